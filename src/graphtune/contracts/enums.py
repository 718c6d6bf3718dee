"""Status codes and sort modes used across subsystem boundaries.

ProfiledState values are ordered: the presentation layer buckets rows by
ascending state value, so the numbering IS the header order.
"""

from enum import Enum


class ProfiledState(int, Enum):
    """Lifecycle state of a profiled row.

    Uses (int, Enum) because the value is the primary sort key.
    The two *_TOTAL members are pseudo-states carried only by total rows so
    they form their own header bucket next to the matching run bucket.
    """

    EXECUTING = 0
    EXECUTED_ON_CURRENT_RUN = 1
    EXECUTED_ON_CURRENT_RUN_TOTAL = 2
    EXECUTED_ON_PREVIOUS_RUN = 3
    EXECUTED_ON_PREVIOUS_RUN_TOTAL = 4
    NOT_EXECUTED = 5


class SortCriterion(str, Enum):
    """User-selectable sort column.

    Uses (str, Enum) so CLI and config strings coerce directly.
    """

    NUMBER = "number"
    NAME = "name"
    TIME = "time"


class SortDirection(str, Enum):
    """Direction applied to the criterion-dependent sort keys."""

    ASCENDING = "ascending"
    DESCENDING = "descending"

    def flipped(self) -> "SortDirection":
        """Return the opposite direction."""
        if self is SortDirection.ASCENDING:
            return SortDirection.DESCENDING
        return SortDirection.ASCENDING

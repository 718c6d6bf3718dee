# src/graphtune/engine/presentation.py
"""Sort and header-bucketing of the row set for display.

Every ordering is led by lifecycle state ascending, which buckets rows
under their header. Within a bucket the active criterion decides:

    criterion | 2nd key (dir)          | 3rd key          | 4th key (dir)
    ----------+------------------------+------------------+------------------
    number    | group order number     | is_group desc    | own order number
    time      | group duration         | is_group desc    | own duration
    name      | group name             | is_group desc    | own name

The default ordering (group name asc, is_group desc, name asc) is used right
after structural edits so members sit under their group header even before
any run has produced order numbers.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from itertools import groupby
from typing import Any

from graphtune.contracts.enums import ProfiledState, SortCriterion, SortDirection
from graphtune.contracts.rows import ProfiledRow, state_label

SortKey = tuple[Callable[[ProfiledRow], Any], bool]


def _nullable(value: int | None) -> tuple[bool, int]:
    # None sorts before any number
    return (value is not None, value if value is not None else 0)


def _state(row: ProfiledRow) -> int:
    return row.state.value


def _is_group(row: ProfiledRow) -> bool:
    return row.is_group


_SECONDARY: dict[SortCriterion, Callable[[ProfiledRow], Any]] = {
    SortCriterion.NUMBER: lambda row: _nullable(row.group_order_number),
    SortCriterion.TIME: lambda row: row.group_duration_ms,
    SortCriterion.NAME: lambda row: row.group_sort_name.casefold(),
}

_QUATERNARY: dict[SortCriterion, Callable[[ProfiledRow], Any]] = {
    SortCriterion.NUMBER: lambda row: _nullable(row.order_number),
    SortCriterion.TIME: lambda row: row.duration_ms,
    SortCriterion.NAME: lambda row: row.name.casefold(),
}


@dataclass
class RowBucket:
    """Rows sharing one lifecycle state, displayed under one header."""

    state: ProfiledState
    label: str
    rows: list[ProfiledRow] = field(default_factory=list)


class PresentationEngine:
    """Holds the requested sort and applies it to a row collection.

    Example:
        presenter = PresentationEngine()
        presenter.request_sort("time")   # time, ascending
        presenter.request_sort("time")   # time, descending
        ordered = presenter.order(model.rows())
    """

    def __init__(self, default_criterion: SortCriterion | str = SortCriterion.NUMBER) -> None:
        self._criterion = SortCriterion(default_criterion)
        self._direction = SortDirection.ASCENDING
        self._last_requested: SortCriterion | None = None
        self._use_default = True

    @property
    def criterion(self) -> SortCriterion:
        return self._criterion

    @property
    def direction(self) -> SortDirection:
        return self._direction

    @property
    def using_default_order(self) -> bool:
        return self._use_default

    def request_sort(self, criterion: SortCriterion | str) -> SortDirection:
        """Select a sort criterion.

        Requesting the same criterion twice in a row flips the direction;
        switching criterion resets it to ascending.

        Raises:
            ValueError: If criterion is not number, name or time
        """
        requested = SortCriterion(criterion)
        if requested == self._last_requested:
            self._direction = self._direction.flipped()
        else:
            self._direction = SortDirection.ASCENDING
        self._criterion = requested
        self._last_requested = requested
        self._use_default = False
        return self._direction

    def use_default_order(self) -> None:
        """Switch to the structural default ordering."""
        self._use_default = True

    def use_criterion_order(self) -> None:
        """Switch back to the requested criterion (after a run completes)."""
        self._use_default = False

    def sort_keys(self) -> list[SortKey]:
        """Active sort keys, most significant first, as (key, reverse) pairs."""
        if self._use_default:
            return self.default_sort_keys()
        descending = self._direction == SortDirection.DESCENDING
        return [
            (_state, False),
            (_SECONDARY[self._criterion], descending),
            (_is_group, True),
            (_QUATERNARY[self._criterion], descending),
        ]

    @staticmethod
    def default_sort_keys() -> list[SortKey]:
        return [
            (_state, False),
            (lambda row: row.group_sort_name.casefold(), False),
            (_is_group, True),
            (lambda row: row.name.casefold(), False),
        ]

    def order(self, rows: Iterable[ProfiledRow]) -> list[ProfiledRow]:
        """Return rows in display order.

        Applies stable sorts from the least to the most significant key so
        each key can carry its own direction.
        """
        ordered = list(rows)
        for key, reverse in reversed(self.sort_keys()):
            ordered.sort(key=key, reverse=reverse)
        return ordered

    def buckets(self, rows: Iterable[ProfiledRow]) -> list[RowBucket]:
        """Order rows and split them under state headers."""
        result: list[RowBucket] = []
        for state, members in groupby(self.order(rows), key=lambda row: row.state):
            result.append(RowBucket(state=state, label=state_label(state), rows=list(members)))
        return result

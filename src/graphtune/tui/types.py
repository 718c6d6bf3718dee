# src/graphtune/tui/types.py
"""Type definitions for TUI data contracts.

These TypedDicts define the exact shape of data passed between the
profiling session and TUI components. Widgets use direct field access
(data["field"]) so a missing field fails loudly.
"""

from typing import TypedDict


class RowDisplay(TypedDict):
    """One profiled row formatted for display."""

    row_id: str
    order: str
    name: str
    milliseconds: int
    is_group: bool
    is_total: bool
    is_member: bool
    renamed: bool
    background: str


class BucketDisplay(TypedDict):
    """A state header and the rows displayed under it."""

    label: str
    state: str
    rows: list[RowDisplay]

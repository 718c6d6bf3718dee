"""Shared contracts for cross-boundary data types.

All dataclasses and enums that cross subsystem boundaries are defined here.

Import pattern:
    from graphtune.contracts import NodeRow, ProfiledState, NodeAdded
"""

from graphtune.contracts.enums import ProfiledState, SortCriterion, SortDirection
from graphtune.contracts.events import (
    GroupAdded,
    GroupInfo,
    GroupMembershipChanged,
    GroupRemoved,
    GroupRenamed,
    NodeAdded,
    NodeExecutionBegan,
    NodeExecutionEnded,
    NodeInfo,
    NodeRemoved,
    NodeRenamed,
    ProfilerEvent,
    RunCompleted,
    RunStarted,
    WorkspaceReset,
)
from graphtune.contracts.results import ExportResult, RunSummary
from graphtune.contracts.rows import (
    DEFAULT_BACKGROUND,
    DEFAULT_GROUP_PREFIX,
    STATE_LABELS,
    GroupRow,
    NodeRow,
    ProfiledRow,
    TotalRow,
    state_label,
)

__all__ = [
    # enums
    "ProfiledState",
    "SortCriterion",
    "SortDirection",
    # events
    "GroupAdded",
    "GroupInfo",
    "GroupMembershipChanged",
    "GroupRemoved",
    "GroupRenamed",
    "NodeAdded",
    "NodeExecutionBegan",
    "NodeExecutionEnded",
    "NodeInfo",
    "NodeRemoved",
    "NodeRenamed",
    "ProfilerEvent",
    "RunCompleted",
    "RunStarted",
    "WorkspaceReset",
    # results
    "ExportResult",
    "RunSummary",
    # rows
    "DEFAULT_BACKGROUND",
    "DEFAULT_GROUP_PREFIX",
    "STATE_LABELS",
    "GroupRow",
    "NodeRow",
    "ProfiledRow",
    "TotalRow",
    "state_label",
]

"""Profiled row entities.

Three row kinds make up the externally visible row set:

- NodeRow: one per workspace node, created on node-added, destroyed on
  node-removed.
- GroupRow: one per node group. The group OWNS its member list; a member
  NodeRow only carries the group id as a lookup key.
- TotalRow: synthetic per-run summary. Exactly two exist after a run
  completes and both are replaced wholesale on the next completion.

All three expose the same sort surface (state, order numbers, durations,
names, is_group) so the presentation layer can key them uniformly.
"""

from dataclasses import dataclass, field, replace

from graphtune.contracts.enums import ProfiledState

DEFAULT_BACKGROUND = "#333333"
DEFAULT_GROUP_PREFIX = "Group: "

# Header labels. The total pseudo-states intentionally share text with the
# matching run bucket; buckets are keyed by state, not by label.
STATE_LABELS: dict[ProfiledState, str] = {
    ProfiledState.EXECUTING: "Executing",
    ProfiledState.EXECUTED_ON_CURRENT_RUN: "Latest Run",
    ProfiledState.EXECUTED_ON_CURRENT_RUN_TOTAL: "Latest Run",
    ProfiledState.EXECUTED_ON_PREVIOUS_RUN: "Previous Run",
    ProfiledState.EXECUTED_ON_PREVIOUS_RUN_TOTAL: "Previous Run",
    ProfiledState.NOT_EXECUTED: "Not Executed",
}


def state_label(state: ProfiledState) -> str:
    """Human-readable header label for a lifecycle state."""
    return STATE_LABELS[state]


def whole_milliseconds(duration_ms: float) -> int:
    """Round a float duration to whole milliseconds (half-to-even)."""
    return int(round(duration_ms))


@dataclass
class NodeRow:
    """Profiling data for a single workspace node."""

    node_id: str
    name: str
    original_name: str
    group_id: str | None = None
    group_name: str = ""
    duration_ms: float = 0.0
    order_number: int | None = None
    group_order_number: int | None = None
    group_duration_ms: float = 0.0
    was_executed_on_last_run: bool = False
    state: ProfiledState = ProfiledState.NOT_EXECUTED
    background_color: str = DEFAULT_BACKGROUND
    execution_start_events: int = 0
    execution_end_events: int = 0

    is_group = False

    @property
    def row_id(self) -> str:
        """Identifier used by the row model index."""
        return self.node_id

    @property
    def is_renamed(self) -> bool:
        """True when the display name differs from the pre-rename name."""
        return self.name != self.original_name

    @property
    def execution_milliseconds(self) -> int:
        return whole_milliseconds(self.duration_ms)

    @property
    def group_sort_name(self) -> str:
        """Name used as the group-level sort key.

        Ungrouped nodes act as their own group so they interleave with
        group headers instead of clustering at one end.
        """
        if self.group_id is None:
            return self.name
        return self.group_name

    @property
    def state_label(self) -> str:
        return state_label(self.state)

    def snapshot(self) -> "NodeRow":
        """Detached copy for readers outside the dispatcher."""
        return replace(self)

    def detach_from_group(self, background: str = DEFAULT_BACKGROUND) -> None:
        """Clear group membership fields after the owning group went away.

        The order number is cleared too; the row stays unordered until the
        next run recomputes it.
        """
        self.group_id = None
        self.group_name = ""
        self.order_number = None
        self.group_duration_ms = 0.0
        self.background_color = background


@dataclass
class GroupRow:
    """Aggregated profiling data for a node group."""

    group_id: str
    source_name: str
    prefix: str = DEFAULT_GROUP_PREFIX
    member_ids: list[str] = field(default_factory=list)
    duration_ms: float = 0.0
    order_number: int | None = None
    group_order_number: int | None = None
    state: ProfiledState = ProfiledState.NOT_EXECUTED
    background_color: str = DEFAULT_BACKGROUND
    is_renamed: bool = False
    # Latest name reported by the host; applied during aggregation.
    live_name: str | None = None

    is_group = True

    @property
    def row_id(self) -> str:
        return self.group_id

    @property
    def name(self) -> str:
        """Prefixed display name."""
        return f"{self.prefix}{self.source_name}"

    @property
    def group_name(self) -> str:
        return self.source_name

    @property
    def group_sort_name(self) -> str:
        return self.source_name

    @property
    def group_duration_ms(self) -> float:
        return self.duration_ms

    @property
    def execution_milliseconds(self) -> int:
        return whole_milliseconds(self.duration_ms)

    @property
    def state_label(self) -> str:
        return state_label(self.state)

    def add_member(self, node_id: str) -> None:
        """Register a member id, keeping first-insertion order."""
        if node_id not in self.member_ids:
            self.member_ids.append(node_id)

    def discard_member(self, node_id: str) -> None:
        """Drop a member id if present."""
        if node_id in self.member_ids:
            self.member_ids.remove(node_id)

    def snapshot(self) -> "GroupRow":
        """Detached copy, member list included."""
        return replace(self, member_ids=list(self.member_ids))


@dataclass(frozen=True)
class TotalRow:
    """Synthetic total-duration row for the current or previous run."""

    name: str
    duration_ms: float
    state: ProfiledState

    is_group = False
    order_number = None
    group_order_number = None
    group_id = None

    @property
    def row_id(self) -> str:
        return f"total:{self.state.name.lower()}"

    @property
    def group_sort_name(self) -> str:
        return self.name

    @property
    def group_duration_ms(self) -> float:
        return self.duration_ms

    @property
    def execution_milliseconds(self) -> int:
        return whole_milliseconds(self.duration_ms)

    @property
    def state_label(self) -> str:
        return state_label(self.state)

    def snapshot(self) -> "TotalRow":
        # frozen
        return self


ProfiledRow = NodeRow | GroupRow | TotalRow

"""Signal payloads crossing the host/profiler boundary.

The host graph environment reports structural edits and execution
lifecycle events as the immutable messages below. They are applied one at a
time by the dispatcher, so a handler never observes another handler's
half-applied mutation.
"""

from dataclasses import dataclass, field

from graphtune.contracts.rows import DEFAULT_BACKGROUND


@dataclass(frozen=True)
class NodeInfo:
    """Host-side description of a node.

    original_name defaults to name for nodes that were never renamed.
    """

    node_id: str
    name: str
    original_name: str | None = None

    @property
    def creation_name(self) -> str:
        return self.original_name if self.original_name is not None else self.name


@dataclass(frozen=True)
class GroupInfo:
    """Host-side description of a node group and its current members."""

    group_id: str
    name: str
    background_color: str = DEFAULT_BACKGROUND
    members: tuple[NodeInfo, ...] = ()

    @property
    def member_ids(self) -> list[str]:
        return [m.node_id for m in self.members]


# === Structural signals ===


@dataclass(frozen=True)
class NodeAdded:
    node: NodeInfo


@dataclass(frozen=True)
class NodeRemoved:
    node: NodeInfo


@dataclass(frozen=True)
class NodeRenamed:
    node: NodeInfo


@dataclass(frozen=True)
class GroupAdded:
    group: GroupInfo


@dataclass(frozen=True)
class GroupRemoved:
    group: GroupInfo


@dataclass(frozen=True)
class GroupRenamed:
    group: GroupInfo


@dataclass(frozen=True)
class GroupMembershipChanged:
    group: GroupInfo


@dataclass(frozen=True)
class WorkspaceReset:
    """Rebuild the whole row set (workspace opened, changed or cleared)."""

    nodes: tuple[NodeInfo, ...] = ()
    groups: tuple[GroupInfo, ...] = ()


# === Execution lifecycle signals ===


@dataclass(frozen=True)
class RunStarted:
    pass


@dataclass(frozen=True)
class RunCompleted:
    pass


@dataclass(frozen=True)
class NodeExecutionBegan:
    node_id: str


@dataclass(frozen=True)
class NodeExecutionEnded:
    """End of a node evaluation.

    duration_ms is the engine-measured duration. When None the tracker
    falls back to its own begin/end timer.
    """

    node_id: str
    duration_ms: float | None = field(default=None)


ProfilerEvent = (
    NodeAdded
    | NodeRemoved
    | NodeRenamed
    | GroupAdded
    | GroupRemoved
    | GroupRenamed
    | GroupMembershipChanged
    | WorkspaceReset
    | RunStarted
    | RunCompleted
    | NodeExecutionBegan
    | NodeExecutionEnded
)

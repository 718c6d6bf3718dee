# src/graphtune/engine/host.py
"""Host protocol: what the profiler needs from the graph environment.

The profiler consumes signals and issues two commands outward
(enable/disable instrumentation, force a manual re-run). It never decides
when or in which order nodes execute.

Lifecycle:
1. connect(sink) - the host starts delivering workspace-level signals
2. connect_node(node_id) / disconnect_node(node_id) - per-node begin/end
   subscription, driven by structural add/remove
3. disconnect() - stop all delivery

Example:
    class MyHost:
        def nodes(self) -> tuple[NodeInfo, ...]:
            return tuple(NodeInfo(n.id, n.name) for n in self._graph)

        def connect_node(self, node_id: str) -> None:
            self._graph[node_id].on_end.append(self._forward_end)
"""

from collections.abc import Callable
from typing import Protocol, runtime_checkable

from graphtune.contracts.events import GroupInfo, NodeInfo, ProfilerEvent

EventSink = Callable[[ProfilerEvent], None]


@runtime_checkable
class WorkspaceHost(Protocol):
    """Protocol for a profiled workspace."""

    def nodes(self) -> tuple[NodeInfo, ...]:
        """Current nodes of the workspace."""
        ...

    def groups(self) -> tuple[GroupInfo, ...]:
        """Current groups of the workspace with their members."""
        ...

    def connect(self, sink: EventSink) -> None:
        """Start delivering structural and run-level signals to sink."""
        ...

    def disconnect(self) -> None:
        """Stop delivering every signal, including per-node ones."""
        ...

    def connect_node(self, node_id: str) -> None:
        """Start delivering begin/end signals for one node."""
        ...

    def disconnect_node(self, node_id: str) -> None:
        """Stop delivering begin/end signals for one node.

        Must be safe for unknown or already-disconnected ids.
        """
        ...

    def enable_instrumentation(self, enabled: bool) -> None:
        """Turn per-node execution timing on or off in the engine."""
        ...

    def force_rerun(self) -> None:
        """Mark every node modified and re-execute the workspace."""
        ...

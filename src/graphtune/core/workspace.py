# src/graphtune/core/workspace.py
"""In-memory reference workspace.

A small node graph that behaves like a visual-programming host: it emits
structural signals when edited and execution signals when run. The CLI,
TUI and end-to-end tests profile it through the WorkspaceHost protocol.

Uses NetworkX for graph operations:
- Acyclicity validation
- Topological execution order
- Downstream propagation of modified nodes
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

import networkx as nx
import yaml
from networkx import DiGraph
from pydantic import BaseModel, Field, field_validator, model_validator

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
)
from graphtune.contracts.rows import DEFAULT_BACKGROUND

if TYPE_CHECKING:
    from graphtune.engine.host import EventSink

_COLOR_PATTERN = re.compile(r"^#(?:[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")


class WorkspaceValidationError(Exception):
    """Raised when a workspace graph or definition is invalid."""

    pass


# === Definition file schema ===


class NodeDefinition(BaseModel):
    """One node of a workspace definition file."""

    model_config = {"frozen": True}

    id: str = Field(min_length=1, description="Stable node identifier")
    name: str = Field(min_length=1, description="Display name")
    original_name: str | None = Field(
        default=None,
        description="Creation name when the node has been renamed",
    )
    duration_ms: float = Field(default=0.0, ge=0, description="Simulated execution time")
    inputs: list[str] = Field(
        default_factory=list,
        description="Ids of upstream nodes",
    )


class GroupDefinition(BaseModel):
    """One node group of a workspace definition file."""

    model_config = {"frozen": True}

    id: str = Field(min_length=1, description="Stable group identifier")
    name: str = Field(description="Group title")
    color: str = Field(default=DEFAULT_BACKGROUND, description="Background colour")
    members: list[str] = Field(min_length=1, description="Member node ids")

    @field_validator("color")
    @classmethod
    def validate_color(cls, v: str) -> str:
        if not _COLOR_PATTERN.match(v):
            raise ValueError(f"'{v}' is not a #RRGGBB or #AARRGGBB colour")
        return v


class WorkspaceDefinition(BaseModel):
    """Workspace definition file.

    Example YAML:
        name: bridge
        nodes:
          - id: cb
            name: Code Block
            duration_ms: 2
          - id: p1
            name: Point.ByCoordinates
            duration_ms: 12
            inputs: [cb]
        groups:
          - id: g1
            name: Points
            color: "#FFB8D8"
            members: [p1]
    """

    model_config = {"frozen": True}

    name: str = Field(default="Home", description="Workspace name")
    nodes: list[NodeDefinition] = Field(default_factory=list)
    groups: list[GroupDefinition] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_references(self) -> "WorkspaceDefinition":
        """Ids are unique and every reference names a defined node."""
        node_ids = [n.id for n in self.nodes]
        duplicates = sorted({i for i in node_ids if node_ids.count(i) > 1})
        if duplicates:
            raise ValueError(f"Duplicate node ids: {duplicates}")

        known = set(node_ids)
        for node in self.nodes:
            missing = [i for i in node.inputs if i not in known]
            if missing:
                raise ValueError(f"Node '{node.id}' has unknown inputs: {missing}")

        group_ids = [g.id for g in self.groups]
        if len(set(group_ids)) != len(group_ids):
            raise ValueError("Duplicate group ids")
        shared = sorted(known.intersection(group_ids))
        if shared:
            raise ValueError(f"Ids used by both a node and a group: {shared}")

        owner: dict[str, str] = {}
        for group in self.groups:
            for member in group.members:
                if member not in known:
                    raise ValueError(f"Group '{group.id}' names unknown node '{member}'")
                if member in owner:
                    raise ValueError(
                        f"Node '{member}' belongs to both '{owner[member]}' and '{group.id}'"
                    )
                owner[member] = group.id
        return self


def load_workspace(path: Path) -> WorkspaceDefinition:
    """Load a workspace definition from YAML.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValidationError: If the definition fails Pydantic validation
    """
    if not path.exists():
        raise FileNotFoundError(f"Workspace file not found: {path}")
    with open(path, encoding="utf-8") as f:
        raw = yaml.safe_load(f) or {}
    return WorkspaceDefinition(**raw)


# === Runtime workspace ===


@dataclass
class WorkspaceNode:
    """Runtime state of a node in the workspace graph."""

    node_id: str
    name: str
    original_name: str
    duration_ms: float = 0.0
    modified: bool = True

    def info(self) -> NodeInfo:
        return NodeInfo(node_id=self.node_id, name=self.name, original_name=self.original_name)


@dataclass
class WorkspaceGroup:
    """Runtime state of a node group."""

    group_id: str
    name: str
    color: str = DEFAULT_BACKGROUND
    members: list[str] = field(default_factory=list)


class InMemoryWorkspace:
    """Workspace graph implementing the WorkspaceHost protocol.

    Runs execute every modified node plus everything downstream of it, in
    topological order (ties broken by insertion order). Each executed node
    emits begin/end signals carrying its configured duration, but only while
    instrumentation is enabled and the node is connected.
    """

    def __init__(self, name: str = "Home") -> None:
        self.name = name
        self._graph: DiGraph[str] = nx.DiGraph()
        self._insertion: dict[str, int] = {}
        self._next_index = 0
        self._groups: dict[str, WorkspaceGroup] = {}
        self._sink: EventSink | None = None
        self._connected_nodes: set[str] = set()
        self._instrumented = False
        self._run_count = 0

    @classmethod
    def from_definition(cls, definition: WorkspaceDefinition) -> InMemoryWorkspace:
        """Build a workspace from a validated definition.

        Raises:
            WorkspaceValidationError: If the node graph contains a cycle
        """
        workspace = cls(definition.name)
        for node in definition.nodes:
            workspace._insert_node(
                node.id,
                node.name,
                original_name=node.original_name,
                duration_ms=node.duration_ms,
            )
        for node in definition.nodes:
            for upstream in node.inputs:
                workspace._graph.add_edge(upstream, node.id)
        for group in definition.groups:
            workspace._groups[group.id] = WorkspaceGroup(
                group_id=group.id,
                name=group.name,
                color=group.color,
                members=list(group.members),
            )
        workspace.validate()
        return workspace

    # === Graph inspection ===

    @property
    def node_count(self) -> int:
        return self._graph.number_of_nodes()

    @property
    def edge_count(self) -> int:
        return self._graph.number_of_edges()

    @property
    def run_count(self) -> int:
        return self._run_count

    @property
    def instrumented(self) -> bool:
        return self._instrumented

    def has_node(self, node_id: str) -> bool:
        return self._graph.has_node(node_id)

    def is_acyclic(self) -> bool:
        return nx.is_directed_acyclic_graph(self._graph)

    def validate(self) -> None:
        """Check the graph is acyclic.

        Raises:
            WorkspaceValidationError: If the graph contains a cycle
        """
        if not self.is_acyclic():
            try:
                cycle = nx.find_cycle(self._graph)
                cycle_str = " -> ".join(f"{u}" for u, v in cycle)
                raise WorkspaceValidationError(f"Workspace contains a cycle: {cycle_str}")
            except nx.NetworkXNoCycle:
                raise WorkspaceValidationError("Workspace contains a cycle") from None

    def execution_order(self, node_ids: set[str] | None = None) -> list[str]:
        """Topological order of the given nodes (all nodes if None)."""
        order = nx.lexicographical_topological_sort(
            self._graph, key=lambda n: self._insertion[n]
        )
        if node_ids is None:
            return list(order)
        return [n for n in order if n in node_ids]

    # === WorkspaceHost protocol ===

    def nodes(self) -> tuple[NodeInfo, ...]:
        return tuple(self._node(n).info() for n in self.execution_order())

    def groups(self) -> tuple[GroupInfo, ...]:
        return tuple(self._group_info(g) for g in self._groups.values())

    def connect(self, sink: EventSink) -> None:
        self._sink = sink

    def disconnect(self) -> None:
        self._sink = None
        self._connected_nodes.clear()

    def connect_node(self, node_id: str) -> None:
        if self._graph.has_node(node_id):
            self._connected_nodes.add(node_id)

    def disconnect_node(self, node_id: str) -> None:
        self._connected_nodes.discard(node_id)

    def enable_instrumentation(self, enabled: bool) -> None:
        self._instrumented = enabled

    def force_rerun(self) -> list[str]:
        for node_id in self._graph.nodes:
            self._node(node_id).modified = True
        return self.run()

    # === Execution ===

    def mark_modified(self, node_id: str) -> None:
        """Flag a node so it (and everything downstream) runs next time."""
        self._node(node_id).modified = True

    def set_duration(self, node_id: str, duration_ms: float) -> None:
        self._node(node_id).duration_ms = duration_ms

    def run(self) -> list[str]:
        """Execute modified nodes and their descendants.

        Returns:
            Ids of executed nodes in execution order
        """
        self.validate()
        dirty: set[str] = set()
        for node_id in self._graph.nodes:
            if self._node(node_id).modified:
                dirty.add(node_id)
                dirty.update(nx.descendants(self._graph, node_id))

        self._emit(RunStarted())
        executed = self.execution_order(dirty)
        for node_id in executed:
            node = self._node(node_id)
            if self._instrumented and node_id in self._connected_nodes:
                self._emit(NodeExecutionBegan(node_id))
                self._emit(NodeExecutionEnded(node_id, duration_ms=node.duration_ms))
            node.modified = False
        self._run_count += 1
        self._emit(RunCompleted())
        return executed

    # === Structural edits ===

    def add_node(
        self,
        node_id: str,
        name: str,
        *,
        duration_ms: float = 0.0,
        inputs: tuple[str, ...] = (),
    ) -> NodeInfo:
        """Add a node wired to the given upstream nodes.

        Raises:
            WorkspaceValidationError: If the id exists, an input is unknown,
                or the new edges would create a cycle
        """
        if self._graph.has_node(node_id):
            raise WorkspaceValidationError(f"Node already exists: {node_id}")
        if node_id in self._groups:
            raise WorkspaceValidationError(f"Id already used by a group: {node_id}")
        missing = [i for i in inputs if not self._graph.has_node(i)]
        if missing:
            raise WorkspaceValidationError(f"Unknown inputs for {node_id}: {missing}")
        node = self._insert_node(node_id, name, duration_ms=duration_ms)
        for upstream in inputs:
            self._graph.add_edge(upstream, node_id)
        self._emit(NodeAdded(node.info()))
        return node.info()

    def connect_nodes(self, from_node: str, to_node: str) -> None:
        """Wire an edge and mark the downstream node modified.

        Raises:
            WorkspaceValidationError: If the edge would create a cycle
        """
        self._graph.add_edge(from_node, to_node)
        if not self.is_acyclic():
            self._graph.remove_edge(from_node, to_node)
            raise WorkspaceValidationError(f"Edge {from_node} -> {to_node} would create a cycle")
        self._node(to_node).modified = True

    def remove_node(self, node_id: str) -> None:
        """Remove a node; groups that contained it lose the member."""
        node = self._node(node_id)
        self._graph.remove_node(node_id)
        self._insertion.pop(node_id, None)
        self._connected_nodes.discard(node_id)
        self._emit(NodeRemoved(node.info()))
        for group in self._groups.values():
            if node_id in group.members:
                group.members.remove(node_id)
                self._emit(GroupMembershipChanged(self._group_info(group)))

    def rename_node(self, node_id: str, name: str) -> None:
        node = self._node(node_id)
        node.name = name
        self._emit(NodeRenamed(node.info()))

    def add_group(
        self,
        group_id: str,
        name: str,
        members: list[str],
        *,
        color: str = DEFAULT_BACKGROUND,
    ) -> GroupInfo:
        """Group existing nodes.

        Raises:
            WorkspaceValidationError: If the id exists or a member is unknown
        """
        if group_id in self._groups:
            raise WorkspaceValidationError(f"Group already exists: {group_id}")
        if self._graph.has_node(group_id):
            raise WorkspaceValidationError(f"Id already used by a node: {group_id}")
        missing = [m for m in members if not self._graph.has_node(m)]
        if missing:
            raise WorkspaceValidationError(f"Unknown group members: {missing}")
        group = WorkspaceGroup(group_id=group_id, name=name, color=color, members=list(members))
        self._groups[group_id] = group
        info = self._group_info(group)
        self._emit(GroupAdded(info))
        for other in self._groups.values():
            if other is group:
                continue
            kept = [m for m in other.members if m not in members]
            if kept != other.members:
                other.members = kept
                self._emit(GroupMembershipChanged(self._group_info(other)))
        return info

    def remove_group(self, group_id: str) -> None:
        group = self._groups.pop(group_id, None)
        if group is None:
            raise WorkspaceValidationError(f"Unknown group: {group_id}")
        self._emit(GroupRemoved(self._group_info(group)))

    def rename_group(self, group_id: str, name: str) -> None:
        group = self._groups.get(group_id)
        if group is None:
            raise WorkspaceValidationError(f"Unknown group: {group_id}")
        group.name = name
        self._emit(GroupRenamed(self._group_info(group)))

    def set_group_members(self, group_id: str, members: list[str]) -> None:
        group = self._groups.get(group_id)
        if group is None:
            raise WorkspaceValidationError(f"Unknown group: {group_id}")
        group.members = [m for m in members if self._graph.has_node(m)]
        self._emit(GroupMembershipChanged(self._group_info(group)))

    # === Helpers ===

    def _insert_node(
        self,
        node_id: str,
        name: str,
        *,
        original_name: str | None = None,
        duration_ms: float = 0.0,
    ) -> WorkspaceNode:
        node = WorkspaceNode(
            node_id=node_id,
            name=name,
            original_name=original_name or name,
            duration_ms=duration_ms,
        )
        self._insertion[node_id] = self._next_index
        self._next_index += 1
        self._graph.add_node(node_id, info=node)
        return node

    def _node(self, node_id: str) -> WorkspaceNode:
        if not self._graph.has_node(node_id):
            raise KeyError(f"Node not found: {node_id}")
        node: WorkspaceNode = self._graph.nodes[node_id]["info"]
        return node

    def _group_info(self, group: WorkspaceGroup) -> GroupInfo:
        return GroupInfo(
            group_id=group.group_id,
            name=group.name,
            background_color=group.color,
            members=tuple(self._node(m).info() for m in group.members if self._graph.has_node(m)),
        )

    def _emit(self, event: ProfilerEvent) -> None:
        if self._sink is not None:
            self._sink(event)

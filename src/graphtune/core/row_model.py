# src/graphtune/core/row_model.py
"""Row model: the row set plus its identifier indices.

The model is the ONLY shared mutable state in the profiler. It is written
exclusively from the dispatcher's consumer context; readers get copies via
the accessor methods.

Indices:
- node id -> NodeRow
- group id -> GroupRow (the group owns its member id list)

Invariants maintained here:
- every NodeRow appears exactly once
- every id in a GroupRow's member list names a present NodeRow whose
  group_id is that group
- total rows are either absent or exactly two
"""

from collections.abc import Iterator

from graphtune.contracts.rows import GroupRow, NodeRow, ProfiledRow, TotalRow


class RowModel:
    """Identifier-indexed store of node, group and total rows.

    Removing an identifier that is not present is a no-op; duplicate or late
    structural signals must never fail.
    """

    def __init__(self) -> None:
        self._nodes: dict[str, NodeRow] = {}
        self._groups: dict[str, GroupRow] = {}
        self._totals: tuple[TotalRow, TotalRow] | None = None

    # === Index maintenance ===

    def upsert(self, row: NodeRow | GroupRow) -> None:
        """Insert or replace a node or group row by its identifier."""
        if isinstance(row, GroupRow):
            self._groups[row.group_id] = row
        else:
            self._nodes[row.node_id] = row

    def remove(self, row_id: str) -> NodeRow | GroupRow | None:
        """Remove a node or group row by identifier.

        Node ids are checked first. Callers that know the row kind use
        remove_node() or remove_group(), which never cross namespaces.

        Returns:
            The removed row, or None if the id was unknown
        """
        node = self.remove_node(row_id)
        if node is not None:
            return node
        return self.remove_group(row_id)

    def remove_node(self, node_id: str) -> NodeRow | None:
        """Remove a node row and drop it from its group's member list."""
        node = self._nodes.pop(node_id, None)
        if node is not None and node.group_id is not None and node.group_id in self._groups:
            self._groups[node.group_id].discard_member(node_id)
        return node

    def remove_group(self, group_id: str) -> GroupRow | None:
        """Remove a group row.

        Members are NOT removed; callers detach them.
        """
        return self._groups.pop(group_id, None)

    def by_id(self, row_id: str) -> NodeRow | GroupRow | None:
        """O(1) lookup of a node or group row."""
        node = self._nodes.get(row_id)
        if node is not None:
            return node
        return self._groups.get(row_id)

    def node(self, node_id: str) -> NodeRow | None:
        return self._nodes.get(node_id)

    def group(self, group_id: str) -> GroupRow | None:
        return self._groups.get(group_id)

    def members_of(self, group_id: str) -> list[NodeRow]:
        """Member rows of a group in membership order (empty if unknown)."""
        group = self._groups.get(group_id)
        if group is None:
            return []
        return [self._nodes[m] for m in group.member_ids if m in self._nodes]

    def attach(self, node_id: str, group_id: str) -> None:
        """Register node_id as a member of group_id.

        A node belongs to at most one group; it is dropped from any previous
        group first.
        """
        node = self._nodes.get(node_id)
        group = self._groups.get(group_id)
        if node is None or group is None:
            return
        if node.group_id is not None and node.group_id != group_id:
            previous = self._groups.get(node.group_id)
            if previous is not None:
                previous.discard_member(node_id)
        node.group_id = group_id
        group.add_member(node_id)

    def clear(self) -> None:
        """Drop every row."""
        self._nodes.clear()
        self._groups.clear()
        self._totals = None

    # === Totals ===

    def set_totals(self, current: TotalRow, previous: TotalRow) -> None:
        """Replace the total row pair."""
        self._totals = (current, previous)

    @property
    def totals(self) -> tuple[TotalRow, TotalRow] | None:
        return self._totals

    # === Read access ===

    def nodes(self) -> list[NodeRow]:
        """Node rows in insertion order."""
        return list(self._nodes.values())

    def groups(self) -> list[GroupRow]:
        """Group rows in insertion order."""
        return list(self._groups.values())

    def rows(self) -> list[ProfiledRow]:
        """The full row set: nodes, then groups, then totals."""
        result: list[ProfiledRow] = [*self._nodes.values(), *self._groups.values()]
        if self._totals is not None:
            result.extend(self._totals)
        return result

    def __iter__(self) -> Iterator[ProfiledRow]:
        return iter(self.rows())

    def __len__(self) -> int:
        return len(self._nodes) + len(self._groups) + (2 if self._totals else 0)

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    @property
    def group_count(self) -> int:
        return len(self._groups)

# src/graphtune/engine/structure.py
"""Structural change handler.

Folds node/group add, remove, rename and membership edits into the row
model without rebuilding unrelated rows. Per-node begin/end subscriptions
follow node lifetime: subscribed on add, unsubscribed on remove.
"""

from collections.abc import Callable

import structlog

from graphtune.contracts.enums import ProfiledState
from graphtune.contracts.events import GroupInfo, NodeInfo
from graphtune.contracts.rows import DEFAULT_BACKGROUND, DEFAULT_GROUP_PREFIX, GroupRow, NodeRow
from graphtune.core.row_model import RowModel

logger = structlog.get_logger(__name__)

Subscriber = Callable[[str], None]


def _noop(node_id: str) -> None:
    pass


class StructuralChangeHandler:
    """Applies structural signals to the row model.

    Example:
        handler = StructuralChangeHandler(model, subscribe=host.connect_node,
                                          unsubscribe=host.disconnect_node)
        handler.on_node_added(NodeInfo("n1", "Point.ByCoordinates"))
    """

    def __init__(
        self,
        model: RowModel,
        *,
        subscribe: Subscriber = _noop,
        unsubscribe: Subscriber = _noop,
        group_prefix: str = DEFAULT_GROUP_PREFIX,
        default_background: str = DEFAULT_BACKGROUND,
    ) -> None:
        self._model = model
        self._subscribe = subscribe
        self._unsubscribe = unsubscribe
        self._group_prefix = group_prefix
        self._default_background = default_background

    def set_subscribers(self, subscribe: Subscriber, unsubscribe: Subscriber) -> None:
        """Swap the per-node subscription callbacks (host attach/detach)."""
        self._subscribe = subscribe
        self._unsubscribe = unsubscribe

    # === Nodes ===

    def on_node_added(self, node: NodeInfo) -> NodeRow:
        """Create a NOT_EXECUTED row for a new node and subscribe to it.

        A duplicate add for a known id keeps the existing row.
        """
        existing = self._model.node(node.node_id)
        if existing is not None:
            return existing
        row = self._new_node_row(node)
        self._model.upsert(row)
        self._subscribe(node.node_id)
        return row

    def on_node_removed(self, node: NodeInfo) -> None:
        """Unsubscribe and drop the node's row (no-op if unknown)."""
        self._unsubscribe(node.node_id)
        if self._model.remove_node(node.node_id) is None:
            logger.debug("remove for unknown node ignored", node_id=node.node_id)

    def on_node_renamed(self, node: NodeInfo) -> None:
        row = self._model.node(node.node_id)
        if row is None:
            logger.debug("rename for unknown node ignored", node_id=node.node_id)
            return
        row.name = node.name

    # === Groups ===

    def on_group_added(self, group: GroupInfo) -> GroupRow:
        """Create a group row and adopt its members.

        Members with an existing row are reused; missing ones are created.
        The group's displayed state is taken from each member in turn, so
        the LAST member processed wins.
        """
        row = GroupRow(
            group_id=group.group_id,
            source_name=group.name,
            prefix=self._group_prefix,
            background_color=group.background_color,
        )
        previous = self._model.group(group.group_id)
        if previous is not None:
            current = set(group.member_ids)
            for member in self._model.members_of(group.group_id):
                if member.node_id not in current:
                    member.detach_from_group(self._default_background)
            row.order_number = previous.order_number
            row.group_order_number = previous.group_order_number
            row.duration_ms = previous.duration_ms
            row.state = previous.state
        self._model.upsert(row)

        for member in group.members:
            self._adopt(row, member)
        return row

    def on_group_removed(self, group: GroupInfo) -> None:
        """Drop the group row and detach (but keep) its former members."""
        row = self._model.group(group.group_id)
        if row is None:
            logger.debug("remove for unknown group ignored", group_id=group.group_id)
            return
        members = self._model.members_of(group.group_id)
        self._model.remove_group(group.group_id)
        for member in members:
            member.detach_from_group(self._default_background)

    def on_group_renamed(self, group: GroupInfo) -> None:
        """Record the live name (applied by the aggregation pass) and recolour."""
        row = self._model.group(group.group_id)
        if row is None:
            logger.debug("rename for unknown group ignored", group_id=group.group_id)
            return
        row.live_name = group.name
        row.background_color = group.background_color
        for member in self._model.members_of(group.group_id):
            member.background_color = group.background_color

    def on_group_membership_changed(self, group: GroupInfo) -> None:
        """Re-register membership: detach dropped members, adopt new ones."""
        row = self._model.group(group.group_id)
        if row is None:
            logger.debug("membership change for unknown group ignored", group_id=group.group_id)
            return
        current = set(group.member_ids)
        for member in self._model.members_of(group.group_id):
            if member.node_id not in current:
                row.discard_member(member.node_id)
                member.detach_from_group(self._default_background)
        for member_info in group.members:
            self._adopt(row, member_info)

    # === Whole-workspace ===

    def rebuild(self, nodes: tuple[NodeInfo, ...], groups: tuple[GroupInfo, ...]) -> None:
        """Replace the row set with rows for the given workspace contents."""
        for node in self._model.nodes():
            self._unsubscribe(node.node_id)
        self._model.clear()
        for node in nodes:
            self.on_node_added(node)
        for group in groups:
            self.on_group_added(group)
        logger.info("row set rebuilt", nodes=len(nodes), groups=len(groups))

    # === Helpers ===

    def _new_node_row(self, node: NodeInfo) -> NodeRow:
        return NodeRow(
            node_id=node.node_id,
            name=node.name,
            original_name=node.creation_name,
            state=ProfiledState.NOT_EXECUTED,
            background_color=self._default_background,
        )

    def _adopt(self, group: GroupRow, member: NodeInfo) -> None:
        node = self._model.node(member.node_id)
        if node is None:
            node = self.on_node_added(member)
        else:
            group.state = node.state
        node.group_name = group.source_name
        node.background_color = group.background_color
        node.group_order_number = group.group_order_number
        self._model.attach(node.node_id, group.group_id)

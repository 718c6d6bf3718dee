# src/graphtune/engine/aggregation.py
"""Post-run aggregation pass.

Runs once per run completion, after the tracker has applied every node
signal of the run:

1. Totals: the previous total-row pair is replaced. Current-run total sums
   durations of nodes that took part in the run; previous-run total sums
   the rest. Group rows are never summed (they would double count).
2. Ordering: node rows are walked in raw completion order (unordered rows
   sort first and are skipped as triggers). Each ungrouped ordered row, and
   each group the first time one of its ordered members is reached, takes
   the next number from a counter starting at 1. A group sweeps ALL of its
   members when triggered, so members share the group's number and the
   group's duration is the sum over its members.

After the pass, the own order numbers of ungrouped rows and group rows form
the gapless sequence 1..K in completion order; rows that did not complete
with a positive duration keep a null order number.
"""

import structlog

from graphtune.contracts.enums import ProfiledState
from graphtune.contracts.rows import GroupRow, NodeRow, TotalRow
from graphtune.core.row_model import RowModel

logger = structlog.get_logger(__name__)


def _raw_order_key(node: NodeRow) -> tuple[bool, int]:
    # None sorts first
    if node.order_number is None:
        return (False, 0)
    return (True, node.order_number)


class AggregationEngine:
    """Derives order numbers, group durations and totals from node rows."""

    def __init__(
        self,
        model: RowModel,
        *,
        current_total_label: str = "Latest Run",
        previous_total_label: str = "Previous Run",
    ) -> None:
        self._model = model
        self._current_total_label = current_total_label
        self._previous_total_label = previous_total_label

    def aggregate(self) -> int:
        """Run the full post-run pass.

        Returns:
            Number of order-assignment targets (K)
        """
        self.compute_totals()
        return self.assign_order_numbers()

    def compute_totals(self) -> tuple[TotalRow, TotalRow]:
        """Replace the current/previous total rows."""
        current_ms = 0.0
        previous_ms = 0.0
        for node in self._model.nodes():
            if node.was_executed_on_last_run:
                current_ms += node.duration_ms
            else:
                previous_ms += node.duration_ms

        current = TotalRow(
            name=self._current_total_label,
            duration_ms=current_ms,
            state=ProfiledState.EXECUTED_ON_CURRENT_RUN_TOTAL,
        )
        previous = TotalRow(
            name=self._previous_total_label,
            duration_ms=previous_ms,
            state=ProfiledState.EXECUTED_ON_PREVIOUS_RUN_TOTAL,
        )
        self._model.set_totals(current, previous)
        return current, previous

    def assign_order_numbers(self) -> int:
        """Walk node rows in completion order and number the targets."""
        counter = 1
        processed: set[str] = set()
        triggered: set[str] = set()

        for node in sorted(self._model.nodes(), key=_raw_order_key):
            if node.node_id in processed:
                continue

            group = self._model.group(node.group_id) if node.group_id is not None else None

            if group is None:
                processed.add(node.node_id)
                node.group_duration_ms = node.duration_ms
                if node.order_number is None:
                    node.group_order_number = None
                    continue
                node.order_number = counter
                node.group_order_number = counter
                counter += 1
                continue

            if node.order_number is None:
                # Unordered members never trigger their group; an ordered
                # sibling (or the untriggered-group pass below) sweeps them.
                continue

            group.state = node.state
            total = self._sweep(group, processed)
            group.order_number = counter
            group.group_order_number = counter
            counter += 1
            self._broadcast(group, total)
            triggered.add(group.group_id)

        for group in self._model.groups():
            if group.group_id in triggered:
                continue
            total = self._sweep(group, processed)
            group.order_number = None
            group.group_order_number = None
            self._broadcast(group, total)

        targets = counter - 1
        logger.debug("order numbers assigned", targets=targets)
        return targets

    def _sweep(self, group: GroupRow, processed: set[str]) -> float:
        """Apply a pending rename and sum the durations of every member."""
        group.duration_ms = 0.0
        self._apply_rename(group)
        total = 0.0
        for member in self._model.members_of(group.group_id):
            if member.node_id not in processed:
                processed.add(member.node_id)
                total += member.duration_ms
        return total

    def _broadcast(self, group: GroupRow, total: float) -> None:
        group.duration_ms = total
        for member in self._model.members_of(group.group_id):
            member.group_duration_ms = total
            member.group_order_number = group.group_order_number

    def _apply_rename(self, group: GroupRow) -> None:
        if group.live_name is None or group.live_name == group.source_name:
            return
        group.is_renamed = True
        group.source_name = group.live_name
        for member in self._model.members_of(group.group_id):
            member.group_name = group.live_name

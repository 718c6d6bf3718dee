# src/graphtune/engine/tracker.py
"""Execution state tracker.

Per-node state machine driven by run and node lifecycle signals:

    NOT_EXECUTED -> EXECUTING -> EXECUTED_ON_CURRENT_RUN
        -> (next run start) EXECUTED_ON_PREVIOUS_RUN -> EXECUTING -> ...

Order numbers assigned here are raw completion sequence numbers. They are
assigned at most once per node per run (first completion with a positive
duration wins) and are renumbered by the aggregation pass at run end.
"""

import time
from collections.abc import Callable

import structlog

from graphtune.contracts.enums import ProfiledState
from graphtune.core.row_model import RowModel

logger = structlog.get_logger(__name__)


class ExecutionStateTracker:
    """Applies execution lifecycle signals to the row model.

    Signals naming an unknown node id are ignored: structural removal can
    race with an in-flight begin/end pair. Node signals are also ignored
    while disarmed (before the first run start and after disarm()); the
    next run start re-arms.
    """

    def __init__(
        self,
        model: RowModel,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        """Initialize tracker.

        Args:
            model: Row model to mutate
            clock: Monotonic clock in seconds, used when the end signal
                carries no engine-measured duration
        """
        self._model = model
        self._clock = clock
        self._completion_counter = 0
        self._timers: dict[str, float] = {}
        self._armed = False

    @property
    def completion_counter(self) -> int:
        return self._completion_counter

    @property
    def armed(self) -> bool:
        """Whether instrumentation has been (re-)armed for the current run."""
        return self._armed

    def disarm(self) -> None:
        self._armed = False
        self._timers.clear()

    def on_run_started(self) -> None:
        """Reset per-run bookkeeping and age last run's results."""
        for node in self._model.nodes():
            node.order_number = None
            node.was_executed_on_last_run = False
            node.execution_start_events = 0
            node.execution_end_events = 0
            if node.state == ProfiledState.EXECUTED_ON_CURRENT_RUN:
                node.state = ProfiledState.EXECUTED_ON_PREVIOUS_RUN

        # Group rows mirror a member's state and carry their own order
        # numbers; a group with no member in the coming run must not keep
        # a number that collides with the new sequence.
        for group in self._model.groups():
            group.order_number = None
            group.group_order_number = None
            if group.state == ProfiledState.EXECUTED_ON_CURRENT_RUN:
                group.state = ProfiledState.EXECUTED_ON_PREVIOUS_RUN

        self._completion_counter = 0
        self._timers.clear()
        self._armed = True
        logger.debug("run started", nodes=self._model.node_count)

    def on_node_began(self, node_id: str) -> None:
        if not self._armed:
            logger.debug("begin signal while disarmed ignored", node_id=node_id)
            return
        node = self._model.node(node_id)
        if node is None:
            logger.debug("begin signal for unknown node ignored", node_id=node_id)
            return
        self._timers[node_id] = self._clock()
        node.execution_start_events += 1
        node.state = ProfiledState.EXECUTING

    def on_node_ended(self, node_id: str, duration_ms: float | None = None) -> None:
        """Record a node completion.

        A positive duration is stored and, on the node's first positive
        completion this run, earns the next completion number. A zero
        duration (cached or short-circuited evaluation) still marks the
        node as executed this run but leaves it unordered.

        Args:
            node_id: Completed node
            duration_ms: Engine-measured duration; None uses the local timer
        """
        if not self._armed:
            logger.debug("end signal while disarmed ignored", node_id=node_id)
            return
        node = self._model.node(node_id)
        if node is None:
            logger.debug("end signal for unknown node ignored", node_id=node_id)
            self._timers.pop(node_id, None)
            return

        started = self._timers.pop(node_id, None)
        if duration_ms is None:
            duration_ms = 0.0 if started is None else (self._clock() - started) * 1000.0

        if duration_ms > 0:
            node.duration_ms = duration_ms
            if not node.was_executed_on_last_run:
                node.order_number = self._completion_counter
                self._completion_counter += 1

        node.execution_end_events += 1
        node.was_executed_on_last_run = True
        node.state = ProfiledState.EXECUTED_ON_CURRENT_RUN

# src/graphtune/engine/dispatcher.py
"""Serialized single-consumer signal dispatch.

Hosts may fire signals from any thread. Every mutation of the row model
goes through SignalDispatcher so exactly one handler runs at a time and
readers never see a half-applied event:

- post() is thread-safe and never blocks on handler work in queued mode.
- pump() applies pending signals in arrival order under the model lock and
  then notifies batch listeners once.
- read() gives readers the same lock so snapshots fall between batches.
"""

import queue
import threading
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Literal

import structlog

from graphtune.contracts.events import ProfilerEvent

logger = structlog.get_logger(__name__)

Handler = Callable[[ProfilerEvent], None]
BatchListener = Callable[[list[ProfilerEvent]], None]


class SignalDispatcher:
    """Marshal point between signal producers and the row model.

    Example:
        dispatcher = SignalDispatcher(session.apply, mode="queued")
        host_thread: dispatcher.post(NodeExecutionEnded("n1", 5.0))
        ui_thread:   dispatcher.pump()
    """

    def __init__(
        self,
        handler: Handler,
        *,
        mode: Literal["immediate", "queued"] = "immediate",
        max_batch_size: int | None = None,
    ) -> None:
        """Initialize dispatcher.

        Args:
            handler: Applies one signal to the row model
            mode: "immediate" pumps on every post; "queued" waits for pump()
            max_batch_size: Upper bound on signals applied per pump
        """
        self._handler = handler
        self._mode = mode
        self._max_batch_size = max_batch_size
        self._pending: queue.SimpleQueue[ProfilerEvent] = queue.SimpleQueue()
        # Reentrant: a handler may post follow-up signals (e.g. a host that
        # re-runs synchronously when asked to force a re-run).
        self._lock = threading.RLock()
        self._listeners: list[BatchListener] = []
        self._pumping = False

    @property
    def mode(self) -> str:
        return self._mode

    def add_batch_listener(self, listener: BatchListener) -> None:
        """Register a callback invoked after each non-empty batch."""
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_batch_listener(self, listener: BatchListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def post(self, event: ProfilerEvent) -> None:
        """Enqueue a signal; in immediate mode, apply it now."""
        self._pending.put(event)
        if self._mode == "immediate":
            self.pump()

    def pump(self) -> int:
        """Apply pending signals in arrival order.

        Returns:
            Number of signals applied
        """
        with self._lock:
            # Nested post from inside a handler: the running loop picks it up.
            if self._pumping:
                return 0
            self._pumping = True
            try:
                batch = self._drain()
            finally:
                self._pumping = False

            if batch:
                logger.debug("signal batch applied", count=len(batch))
                for listener in list(self._listeners):
                    listener(batch)
            return len(batch)

    def _drain(self) -> list[ProfilerEvent]:
        batch: list[ProfilerEvent] = []
        while self._max_batch_size is None or len(batch) < self._max_batch_size:
            try:
                event = self._pending.get_nowait()
            except queue.Empty:
                break
            self._handler(event)
            batch.append(event)
        return batch

    @property
    def pending(self) -> int:
        """Approximate number of signals waiting to be applied."""
        return self._pending.qsize()

    @contextmanager
    def read(self) -> Iterator[None]:
        """Hold the model lock while taking a read-only snapshot."""
        with self._lock:
            yield

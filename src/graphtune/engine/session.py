# src/graphtune/engine/session.py
"""ProfilerSession: wires host signals through the profiling engine.

Control flow:
    structural signals -> StructuralChangeHandler -> RowModel
    execution signals  -> ExecutionStateTracker   -> RowModel
    run completed      -> AggregationEngine, then PresentationEngine

All of it runs inside SignalDispatcher batches. After each batch the
ordered view is recomputed once; readers only ever see that view.
"""

import time
from collections.abc import Callable
from pathlib import Path
from typing import Any

import structlog

from graphtune.contracts.enums import SortCriterion, SortDirection
from graphtune.contracts.events import (
    GroupAdded,
    GroupMembershipChanged,
    GroupRemoved,
    GroupRenamed,
    NodeAdded,
    NodeExecutionBegan,
    NodeExecutionEnded,
    NodeRemoved,
    NodeRenamed,
    ProfilerEvent,
    RunCompleted,
    RunStarted,
    WorkspaceReset,
)
from graphtune.contracts.results import ExportResult, RunSummary
from graphtune.contracts.rows import ProfiledRow
from graphtune.core.config import GraphtuneSettings
from graphtune.core.export import render_export, write_export
from graphtune.core.row_model import RowModel
from graphtune.engine.aggregation import AggregationEngine
from graphtune.engine.dispatcher import SignalDispatcher
from graphtune.engine.host import WorkspaceHost
from graphtune.engine.presentation import PresentationEngine, RowBucket
from graphtune.engine.structure import StructuralChangeHandler, _noop
from graphtune.engine.tracker import ExecutionStateTracker

logger = structlog.get_logger(__name__)

_STRUCTURAL = (
    NodeAdded,
    NodeRemoved,
    NodeRenamed,
    GroupAdded,
    GroupRemoved,
    GroupRenamed,
    GroupMembershipChanged,
    WorkspaceReset,
)


class ProfilerSession:
    """Live profiling data for one workspace at a time.

    Example:
        session = ProfilerSession(settings)
        session.attach(workspace)
        session.enable_profiling()
        workspace.run()
        for bucket in session.buckets():
            print(bucket.label, [row.name for row in bucket.rows])
    """

    def __init__(
        self,
        settings: GraphtuneSettings | None = None,
        *,
        clock: Callable[[], float] = time.perf_counter,
    ) -> None:
        self._settings = settings or GraphtuneSettings()
        presentation = self._settings.presentation

        self._model = RowModel()
        self._tracker = ExecutionStateTracker(self._model, clock=clock)
        self._structure = StructuralChangeHandler(
            self._model,
            group_prefix=presentation.group_prefix,
            default_background=presentation.default_background,
        )
        self._aggregation = AggregationEngine(
            self._model,
            current_total_label=presentation.current_total_label,
            previous_total_label=presentation.previous_total_label,
        )
        self._presenter = PresentationEngine(presentation.default_sort)
        self._dispatcher = SignalDispatcher(
            self.apply,
            mode=self._settings.dispatch.mode,
            max_batch_size=self._settings.dispatch.max_batch_size,
        )
        self._dispatcher.add_batch_listener(self._on_batch)

        self._handlers: dict[type, Callable[[Any], None]] = {
            NodeAdded: lambda e: self._structure.on_node_added(e.node),
            NodeRemoved: lambda e: self._structure.on_node_removed(e.node),
            NodeRenamed: lambda e: self._structure.on_node_renamed(e.node),
            GroupAdded: lambda e: self._structure.on_group_added(e.group),
            GroupRemoved: lambda e: self._structure.on_group_removed(e.group),
            GroupRenamed: lambda e: self._structure.on_group_renamed(e.group),
            GroupMembershipChanged: lambda e: self._structure.on_group_membership_changed(e.group),
            WorkspaceReset: lambda e: self._structure.rebuild(e.nodes, e.groups),
            RunStarted: lambda e: self._on_run_started(),
            RunCompleted: lambda e: self._on_run_completed(),
            NodeExecutionBegan: lambda e: self._tracker.on_node_began(e.node_id),
            NodeExecutionEnded: lambda e: self._tracker.on_node_ended(e.node_id, e.duration_ms),
        }

        self._host: WorkspaceHost | None = None
        self._profiling_enabled = False
        self._run_number = 0
        self._last_summary: RunSummary | None = None
        self._view: tuple[ProfiledRow, ...] = ()

    # === Signal intake ===

    def post(self, event: ProfilerEvent) -> None:
        """Thread-safe entry point for every host signal."""
        self._dispatcher.post(event)

    def pump(self) -> int:
        """Apply queued signals (queued dispatch mode)."""
        return self._dispatcher.pump()

    def apply(self, event: ProfilerEvent) -> None:
        """Apply one signal. Called by the dispatcher only."""
        handler = self._handlers.get(type(event))
        if handler is None:
            logger.warning("unhandled signal type", signal=type(event).__name__)
            return
        handler(event)
        if isinstance(event, _STRUCTURAL):
            self._presenter.use_default_order()

    def _on_run_started(self) -> None:
        if not self._profiling_enabled:
            self._enable()
        self._tracker.on_run_started()

    def _on_run_completed(self) -> None:
        self._run_number += 1
        current, previous = self._aggregation.compute_totals()
        targets = self._aggregation.assign_order_numbers()
        self._presenter.use_criterion_order()
        self._last_summary = RunSummary(
            run_number=self._run_number,
            nodes_executed=sum(1 for n in self._model.nodes() if n.was_executed_on_last_run),
            ordered_targets=targets,
            current_total_ms=current.duration_ms,
            previous_total_ms=previous.duration_ms,
            group_count=self._model.group_count,
        )
        logger.info(
            "run completed",
            run_number=self._run_number,
            nodes_executed=self._last_summary.nodes_executed,
            current_total_ms=current.duration_ms,
            previous_total_ms=previous.duration_ms,
        )

    def _on_batch(self, batch: list[ProfilerEvent]) -> None:
        self._refresh_view()

    def _refresh_view(self) -> None:
        # Readers hold copies; later batches never reach rows already handed out.
        self._view = tuple(row.snapshot() for row in self._presenter.order(self._model.rows()))

    # === Host lifecycle ===

    def attach(self, host: WorkspaceHost) -> None:
        """Profile a (new) workspace, dropping all rows of the previous one."""
        self.detach()
        self._host = host
        self._structure.set_subscribers(host.connect_node, host.disconnect_node)
        self._profiling_enabled = False
        host.connect(self.post)
        self.post(WorkspaceReset(nodes=host.nodes(), groups=host.groups()))

    def detach(self) -> None:
        """Stop receiving signals from the current workspace."""
        if self._host is None:
            return
        with self._dispatcher.read():
            for node in self._model.nodes():
                self._host.disconnect_node(node.node_id)
            self._host.disconnect()
            self._structure.set_subscribers(_noop, _noop)
            self._tracker.disarm()
            self._host = None
            self._profiling_enabled = False

    @property
    def host(self) -> WorkspaceHost | None:
        return self._host

    @property
    def profiling_enabled(self) -> bool:
        return self._profiling_enabled

    def enable_profiling(self) -> None:
        """Reset rows and turn instrumentation on, once per workspace."""
        with self._dispatcher.read():
            if not self._profiling_enabled and self._host is not None:
                self._enable()
            self._refresh_view()

    def _enable(self) -> None:
        if self._host is None:
            return
        self._structure.rebuild(self._host.nodes(), self._host.groups())
        self._presenter.use_default_order()
        self._host.enable_instrumentation(True)
        self._profiling_enabled = True

    def reset_profiling(self) -> None:
        """Re-arm instrumentation and force the workspace to re-execute."""
        if self._host is None:
            return
        with self._dispatcher.read():
            self._host.enable_instrumentation(False)
            self._tracker.disarm()
            self._host.enable_instrumentation(True)
            self._profiling_enabled = True
        self._host.force_rerun()

    # === Presentation ===

    def request_sort(self, criterion: SortCriterion | str) -> SortDirection:
        """Select a sort criterion and re-order the view."""
        with self._dispatcher.read():
            direction = self._presenter.request_sort(criterion)
            self._refresh_view()
        return direction

    def rows(self) -> tuple[ProfiledRow, ...]:
        """Rows in current display order (snapshot)."""
        with self._dispatcher.read():
            return self._view

    def buckets(self) -> list[RowBucket]:
        """Rows of the current view split under state headers."""
        with self._dispatcher.read():
            return self._presenter.buckets(self._view)

    @property
    def presenter(self) -> PresentationEngine:
        return self._presenter

    @property
    def model(self) -> RowModel:
        return self._model

    @property
    def last_summary(self) -> RunSummary | None:
        return self._last_summary

    @property
    def run_number(self) -> int:
        return self._run_number

    # === Export ===

    def export_text(self) -> str:
        return render_export(self.rows(), include_totals=self._settings.export.include_totals)

    def export(self, path: Path) -> ExportResult:
        """Write the current view to a delimited text file."""
        result = write_export(
            self.rows(),
            path,
            encoding=self._settings.export.encoding,
            include_totals=self._settings.export.include_totals,
        )
        logger.info("profile exported", path=result.path, rows=result.row_count)
        return result

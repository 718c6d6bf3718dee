"""Profiling engine: tracker, structural handler, aggregation, presentation, session."""

from graphtune.engine.aggregation import AggregationEngine
from graphtune.engine.dispatcher import SignalDispatcher
from graphtune.engine.host import WorkspaceHost
from graphtune.engine.presentation import PresentationEngine, RowBucket
from graphtune.engine.session import ProfilerSession
from graphtune.engine.structure import StructuralChangeHandler
from graphtune.engine.tracker import ExecutionStateTracker

__all__ = [
    "AggregationEngine",
    "ExecutionStateTracker",
    "PresentationEngine",
    "ProfilerSession",
    "RowBucket",
    "SignalDispatcher",
    "StructuralChangeHandler",
    "WorkspaceHost",
]

"""Operation outcomes.

These types answer: "What did an operation produce?"
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ExportResult:
    """Descriptor for a written export file.

    Mirrors the artifact descriptors used for file outputs: a content hash
    and size are always recorded so the export can be verified later.
    """

    path: str
    content_hash: str
    size_bytes: int
    row_count: int


@dataclass(frozen=True)
class RunSummary:
    """Snapshot of derived totals after a run completes."""

    run_number: int
    nodes_executed: int
    ordered_targets: int
    current_total_ms: float
    previous_total_ms: float
    group_count: int

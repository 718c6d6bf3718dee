# src/graphtune/core/export.py
"""Delimited-text export of the displayed row set.

Format:
    Execution Order,Name,Execution Time (ms)
    <order>,<name>,<whole ms>
    ...

Fields are joined with commas as-is. Names containing commas or quotes are
NOT escaped, so the output is only guaranteed parseable for plain names.
"""

import hashlib
from collections.abc import Iterable
from pathlib import Path

from graphtune.contracts.results import ExportResult
from graphtune.contracts.rows import ProfiledRow, TotalRow

EXPORT_HEADER = "Execution Order,Name,Execution Time (ms)"


def format_row(row: ProfiledRow) -> str:
    """Render one row as a delimited line."""
    order = "" if row.order_number is None else str(row.order_number)
    return ",".join([order, row.name, str(row.execution_milliseconds)])


def render_export(rows: Iterable[ProfiledRow], *, include_totals: bool = True) -> str:
    """Render rows (already in display order) as export text."""
    lines = [EXPORT_HEADER]
    for row in rows:
        if not include_totals and isinstance(row, TotalRow):
            continue
        lines.append(format_row(row))
    return "\n".join(lines) + "\n"


def write_export(
    rows: Iterable[ProfiledRow],
    path: Path,
    *,
    encoding: str = "utf-8",
    include_totals: bool = True,
) -> ExportResult:
    """Write rows to path and describe the written file.

    Raises:
        OSError: If the file cannot be written
    """
    text = render_export(rows, include_totals=include_totals)
    payload = text.encode(encoding)
    with open(path, "wb") as f:
        f.write(payload)

    return ExportResult(
        path=str(path),
        content_hash=hashlib.sha256(payload).hexdigest(),
        size_bytes=len(payload),
        row_count=text.count("\n") - 1,
    )

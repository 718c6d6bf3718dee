"""Tests for delimited-text export."""

from pathlib import Path

import pytest


def _rows():
    from graphtune.contracts import GroupRow, NodeRow, ProfiledState, TotalRow

    return [
        NodeRow("n1", "Code Block", "Code Block", duration_ms=2.4, order_number=1),
        GroupRow("g1", "Points", duration_ms=20.5, order_number=2),
        NodeRow("n2", "Point.Add", "Point.Add", group_id="g1", duration_ms=8.0, order_number=0),
        NodeRow("n3", "Watch", "Watch"),
        TotalRow("Latest Run", 22.9, ProfiledState.EXECUTED_ON_CURRENT_RUN_TOTAL),
        TotalRow("Previous Run", 0.0, ProfiledState.EXECUTED_ON_PREVIOUS_RUN_TOTAL),
    ]


class TestRenderExport:
    def test_header_and_rows(self) -> None:
        from graphtune.core.export import render_export

        text = render_export(_rows())

        assert text.splitlines() == [
            "Execution Order,Name,Execution Time (ms)",
            "1,Code Block,2",
            "2,Group: Points,20",
            "0,Point.Add,8",
            ",Watch,0",
            ",Latest Run,23",
            ",Previous Run,0",
        ]
        assert text.endswith("\n")

    def test_exclude_totals(self) -> None:
        from graphtune.core.export import render_export

        lines = render_export(_rows(), include_totals=False).splitlines()
        assert "Latest Run" not in "\n".join(lines)
        assert len(lines) == 5

    def test_empty_row_set_has_header_only(self) -> None:
        from graphtune.core.export import EXPORT_HEADER, render_export

        assert render_export([]) == EXPORT_HEADER + "\n"

    def test_commas_are_not_escaped(self) -> None:
        """Names are written as-is; embedded commas split the field."""
        from graphtune.contracts import NodeRow
        from graphtune.core.export import format_row

        row = NodeRow("n1", "List.Create, flat", "List.Create, flat", duration_ms=3.0, order_number=1)
        assert format_row(row) == "1,List.Create, flat,3"


class TestWriteExport:
    def test_writes_file_and_describes_it(self, tmp_path: Path) -> None:
        import hashlib

        from graphtune.core.export import write_export

        path = tmp_path / "profile.csv"
        result = write_export(_rows(), path)

        payload = path.read_bytes()
        assert result.path == str(path)
        assert result.size_bytes == len(payload)
        assert result.content_hash == hashlib.sha256(payload).hexdigest()
        assert result.row_count == 6

    def test_encoding_is_applied(self, tmp_path: Path) -> None:
        from graphtune.contracts import NodeRow
        from graphtune.core.export import write_export

        path = tmp_path / "profile.csv"
        write_export([NodeRow("n1", "Größe", "Größe")], path, encoding="latin-1")

        assert "Größe" in path.read_bytes().decode("latin-1")

    def test_unwritable_path_raises(self, tmp_path: Path) -> None:
        from graphtune.core.export import write_export

        with pytest.raises(OSError):
            write_export(_rows(), tmp_path / "missing-dir" / "profile.csv")

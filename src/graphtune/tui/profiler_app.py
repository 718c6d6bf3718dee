# src/graphtune/tui/profiler_app.py
"""Profiler TUI application.

Shows the bucketed row set of a live ProfilerSession and lets the user
re-sort, re-run and export it.
"""

from pathlib import Path
from typing import Any

from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.widgets import DataTable, Footer, Header, Static

from graphtune.core.workspace import InMemoryWorkspace
from graphtune.engine.session import ProfilerSession
from graphtune.tui.widgets.row_table import RowTable


class ProfilerApp(App[None]):
    """Interactive TUI for a profiled workspace."""

    TITLE = "graphtune"
    CSS = """
    #profile-table {
        height: 1fr;
        border: solid green;
    }

    #summary {
        height: 3;
        border: solid blue;
    }
    """

    BINDINGS = [  # noqa: RUF012 - Textual pattern
        Binding("n", "sort('number')", "Sort #"),
        Binding("a", "sort('name')", "Sort name"),
        Binding("t", "sort('time')", "Sort time"),
        Binding("r", "run", "Run"),
        Binding("f", "force_rerun", "Force re-run"),
        Binding("e", "export", "Export"),
        Binding("q", "quit", "Quit"),
    ]

    def __init__(
        self,
        session: ProfilerSession,
        workspace: InMemoryWorkspace,
        export_path: Path | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.session = session
        self.workspace = workspace
        self.export_path = export_path or Path("graphtune-profile.csv")

    def compose(self) -> ComposeResult:
        """Create child widgets."""
        yield Header()
        yield DataTable(id="profile-table", zebra_stripes=True)
        yield Static("", id="summary")
        yield Footer()

    def on_mount(self) -> None:
        table = self.query_one("#profile-table", DataTable)
        table.add_columns("#", "Name", "Time (ms)")
        self.session.enable_profiling()
        # Queued dispatch: the UI thread is the single consumer.
        self.set_interval(0.1, self._pump)
        self.refresh_table()

    def _pump(self) -> None:
        if self.session.pump():
            self.refresh_table()

    def refresh_table(self) -> None:
        """Rebuild table rows from the session's current view."""
        table = self.query_one("#profile-table", DataTable)
        table.clear()
        widget = RowTable(self.session.buckets())
        for index, bucket in enumerate(widget.get_buckets()):
            table.add_row("", f"== {bucket['label']} ==", "", key=f"header:{index}")
            for row in bucket["rows"]:
                name = f"  {row['name']}" if row["is_member"] else row["name"]
                table.add_row(row["order"], name, str(row["milliseconds"]), key=row["row_id"])

        summary = self.session.last_summary
        presenter = self.session.presenter
        sort_text = (
            "default order"
            if presenter.using_default_order
            else f"{presenter.criterion.value} ({presenter.direction.value})"
        )
        if summary is None:
            text = f"No runs yet | {sort_text}"
        else:
            text = (
                f"Run {summary.run_number}: {summary.nodes_executed} nodes executed, "
                f"latest {summary.current_total_ms:.0f} ms, "
                f"previous {summary.previous_total_ms:.0f} ms | {sort_text}"
            )
        self.query_one("#summary", Static).update(text)

    def action_sort(self, criterion: str) -> None:
        self.session.request_sort(criterion)
        self.refresh_table()

    def action_run(self) -> None:
        self.workspace.run()
        self.session.pump()
        self.refresh_table()

    def action_force_rerun(self) -> None:
        self.session.reset_profiling()
        self.session.pump()
        self.refresh_table()

    def action_export(self) -> None:
        try:
            result = self.session.export(self.export_path)
        except OSError as e:
            self.notify(f"Export failed: {e}", severity="error")
            return
        self.notify(f"Exported {result.row_count} rows to {result.path}")

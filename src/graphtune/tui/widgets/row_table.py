"""Row table widget for displaying bucketed profiling rows."""

from graphtune.contracts.rows import GroupRow, NodeRow, ProfiledRow, TotalRow
from graphtune.engine.presentation import RowBucket
from graphtune.tui.types import BucketDisplay, RowDisplay


def to_display(row: ProfiledRow) -> RowDisplay:
    """Format a profiled row for display.

    Args:
        row: Node, group or total row

    Returns:
        RowDisplay with every field populated
    """
    return {
        "row_id": row.row_id,
        "order": "" if row.order_number is None else str(row.order_number),
        "name": row.name,
        "milliseconds": row.execution_milliseconds,
        "is_group": isinstance(row, GroupRow),
        "is_total": isinstance(row, TotalRow),
        "is_member": isinstance(row, NodeRow) and row.group_id is not None,
        "renamed": not isinstance(row, TotalRow) and row.is_renamed,
        "background": "" if isinstance(row, TotalRow) else row.background_color,
    }


class RowTable:
    """Widget model for the profiling table.

    Layout:
        == Latest Run ==
          #  Name                          ms
          1  Code Block                     2
          2  Group: Points                 24
               Point.ByCoordinates         12
        == Latest Run ==
             Latest Run                    26
    """

    def __init__(self, buckets: list[RowBucket]) -> None:
        """Initialize with ordered buckets.

        Args:
            buckets: Output of PresentationEngine.buckets()
        """
        self._buckets: list[BucketDisplay] = [
            {
                "label": bucket.label,
                "state": bucket.state.name,
                "rows": [to_display(row) for row in bucket.rows],
            }
            for bucket in buckets
        ]

    def get_buckets(self) -> list[BucketDisplay]:
        return self._buckets

    @property
    def row_count(self) -> int:
        return sum(len(b["rows"]) for b in self._buckets)

    def render_content(self, name_width: int = 40) -> str:
        """Render the table as plain text.

        Args:
            name_width: Column width for row names

        Returns:
            Formatted table, or a hint when there is nothing to show
        """
        if not self._buckets:
            return "No nodes in workspace."

        lines: list[str] = []
        for bucket in self._buckets:
            lines.append(f"== {bucket['label']} ==")
            lines.append(f"  {'#':>4}  {'Name':<{name_width}} {'ms':>8}")
            for row in bucket["rows"]:
                name = row["name"]
                if row["is_member"]:
                    name = "  " + name
                if row["renamed"]:
                    name = name + " *"
                lines.append(
                    f"  {row['order']:>4}  {name:<{name_width}} {row['milliseconds']:>8}"
                )
            lines.append("")
        return "\n".join(lines).rstrip() + "\n"

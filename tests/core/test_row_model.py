"""Tests for the row model and its indices."""


def _node(node_id: str, **kwargs):
    from graphtune.contracts import NodeRow

    return NodeRow(node_id=node_id, name=node_id, original_name=node_id, **kwargs)


def _group(group_id: str):
    from graphtune.contracts import GroupRow

    return GroupRow(group_id=group_id, source_name=group_id)


class TestIndexMaintenance:
    def test_upsert_and_lookup(self) -> None:
        from graphtune.core.row_model import RowModel

        model = RowModel()
        model.upsert(_node("n1"))
        model.upsert(_group("g1"))

        assert model.by_id("n1").node_id == "n1"  # type: ignore[union-attr]
        assert model.by_id("g1").group_id == "g1"  # type: ignore[union-attr]
        assert model.node("g1") is None
        assert model.group("n1") is None
        assert model.node_count == 1
        assert model.group_count == 1

    def test_upsert_replaces_by_id(self) -> None:
        from graphtune.core.row_model import RowModel

        model = RowModel()
        model.upsert(_node("n1", duration_ms=1.0))
        model.upsert(_node("n1", duration_ms=2.0))

        assert model.node_count == 1
        assert model.node("n1").duration_ms == 2.0  # type: ignore[union-attr]

    def test_remove_unknown_is_noop(self) -> None:
        from graphtune.core.row_model import RowModel

        model = RowModel()
        assert model.remove("missing") is None
        assert len(model) == 0

    def test_remove_node_drops_group_membership(self) -> None:
        from graphtune.core.row_model import RowModel

        model = RowModel()
        model.upsert(_node("n1"))
        model.upsert(_node("n2"))
        model.upsert(_group("g1"))
        model.attach("n1", "g1")
        model.attach("n2", "g1")

        model.remove("n1")

        assert [m.node_id for m in model.members_of("g1")] == ["n2"]
        assert model.group("g1").member_ids == ["n2"]  # type: ignore[union-attr]

    def test_kind_specific_removal_with_shared_id(self) -> None:
        from graphtune.core.row_model import RowModel

        model = RowModel()
        model.upsert(_node("shared"))
        model.upsert(_group("shared"))

        assert model.remove_group("shared") is not None
        assert model.node("shared") is not None
        assert model.group("shared") is None

        assert model.remove_node("shared") is not None
        assert model.remove_node("shared") is None
        assert model.remove_group("shared") is None

    def test_remove_group_keeps_members(self) -> None:
        from graphtune.core.row_model import RowModel

        model = RowModel()
        model.upsert(_node("n1"))
        model.upsert(_group("g1"))
        model.attach("n1", "g1")

        removed = model.remove("g1")

        assert removed is not None
        assert model.node("n1") is not None
        assert model.members_of("g1") == []

    def test_attach_moves_node_between_groups(self) -> None:
        from graphtune.core.row_model import RowModel

        model = RowModel()
        model.upsert(_node("n1"))
        model.upsert(_group("g1"))
        model.upsert(_group("g2"))

        model.attach("n1", "g1")
        model.attach("n1", "g2")

        assert model.members_of("g1") == []
        assert [m.node_id for m in model.members_of("g2")] == ["n1"]
        assert model.node("n1").group_id == "g2"  # type: ignore[union-attr]

    def test_attach_unknown_ids_is_noop(self) -> None:
        from graphtune.core.row_model import RowModel

        model = RowModel()
        model.upsert(_node("n1"))
        model.attach("n1", "missing")
        model.attach("missing", "also-missing")

        assert model.node("n1").group_id is None  # type: ignore[union-attr]


class TestRowSet:
    def test_rows_order_nodes_groups_totals(self) -> None:
        from graphtune.contracts import ProfiledState, TotalRow
        from graphtune.core.row_model import RowModel

        model = RowModel()
        model.upsert(_group("g1"))
        model.upsert(_node("n1"))
        current = TotalRow("Latest Run", 1.0, ProfiledState.EXECUTED_ON_CURRENT_RUN_TOTAL)
        previous = TotalRow("Previous Run", 0.0, ProfiledState.EXECUTED_ON_PREVIOUS_RUN_TOTAL)
        model.set_totals(current, previous)

        assert [r.row_id for r in model.rows()] == [
            "n1",
            "g1",
            "total:executed_on_current_run_total",
            "total:executed_on_previous_run_total",
        ]
        assert len(model) == 4
        assert list(model) == model.rows()

    def test_totals_absent_until_set(self) -> None:
        from graphtune.core.row_model import RowModel

        model = RowModel()
        model.upsert(_node("n1"))
        assert model.totals is None
        assert len(model) == 1

    def test_clear(self) -> None:
        from graphtune.contracts import ProfiledState, TotalRow
        from graphtune.core.row_model import RowModel

        model = RowModel()
        model.upsert(_node("n1"))
        model.upsert(_group("g1"))
        model.set_totals(
            TotalRow("a", 0.0, ProfiledState.EXECUTED_ON_CURRENT_RUN_TOTAL),
            TotalRow("b", 0.0, ProfiledState.EXECUTED_ON_PREVIOUS_RUN_TOTAL),
        )

        model.clear()

        assert model.rows() == []
        assert model.totals is None

"""Tests for the post-run aggregation pass."""

from conftest import group, node


def _engine():
    from graphtune.core.row_model import RowModel
    from graphtune.engine.aggregation import AggregationEngine
    from graphtune.engine.structure import StructuralChangeHandler
    from graphtune.engine.tracker import ExecutionStateTracker

    model = RowModel()
    return (
        model,
        StructuralChangeHandler(model),
        ExecutionStateTracker(model),
        AggregationEngine(model),
    )


class TestTotals:
    def test_totals_partition_node_durations(self) -> None:
        from graphtune.contracts import ProfiledState

        model, structure, tracker, engine = _engine()
        for node_id in ("a", "b", "c"):
            structure.on_node_added(node(node_id))
        structure.on_group_added(group("g1", "G", "b", "c"))
        tracker.on_run_started()
        tracker.on_node_ended("a", 4.0)
        tracker.on_node_ended("b", 6.0)
        tracker.on_node_ended("c", 10.0)
        engine.aggregate()

        tracker.on_run_started()
        tracker.on_node_ended("a", 5.0)
        current, previous = engine.compute_totals()

        assert current.name == "Latest Run"
        assert current.state is ProfiledState.EXECUTED_ON_CURRENT_RUN_TOTAL
        assert current.duration_ms == 5.0
        assert previous.name == "Previous Run"
        assert previous.state is ProfiledState.EXECUTED_ON_PREVIOUS_RUN_TOTAL
        # group rows are never summed
        assert previous.duration_ms == 16.0
        assert model.totals == (current, previous)

    def test_totals_replaced_each_run(self) -> None:
        model, structure, tracker, engine = _engine()
        structure.on_node_added(node("a"))

        tracker.on_run_started()
        tracker.on_node_ended("a", 2.0)
        first = engine.compute_totals()
        tracker.on_run_started()
        tracker.on_node_ended("a", 3.0)
        second = engine.compute_totals()

        assert model.totals == second
        assert model.totals != first

    def test_custom_labels(self) -> None:
        from graphtune.core.row_model import RowModel
        from graphtune.engine.aggregation import AggregationEngine

        engine = AggregationEngine(
            RowModel(), current_total_label="This run", previous_total_label="Earlier"
        )
        current, previous = engine.compute_totals()

        assert (current.name, previous.name) == ("This run", "Earlier")
        assert current.duration_ms == previous.duration_ms == 0.0


class TestOrdering:
    def test_standalone_nodes_in_completion_order(self) -> None:
        model, structure, tracker, engine = _engine()
        for node_id in ("node1", "node2", "node3"):
            structure.on_node_added(node(node_id))
        tracker.on_run_started()
        tracker.on_node_ended("node1", 5.0)
        tracker.on_node_ended("node2", 0.0)
        tracker.on_node_ended("node3", 10.0)

        targets = engine.aggregate()

        assert targets == 2
        n1, n2, n3 = (model.node(n) for n in ("node1", "node2", "node3"))
        assert n1 is not None and n2 is not None and n3 is not None
        assert n1.order_number == 1
        assert n3.order_number == 2
        assert n2.order_number is None
        assert n1.group_order_number == 1
        assert n2.group_order_number is None
        assert n3.group_duration_ms == 10.0
        assert model.totals is not None
        assert model.totals[0].duration_ms == 15.0

    def test_group_numbered_when_first_member_completes(self) -> None:
        model, structure, tracker, engine = _engine()
        structure.on_node_added(node("solo"))
        structure.on_group_added(group("g1", "G", "node1", "node2"))
        tracker.on_run_started()
        tracker.on_node_ended("solo", 1.0)
        tracker.on_node_ended("node2", 3.0)
        tracker.on_node_ended("node1", 7.0)

        engine.aggregate()

        g1 = model.group("g1")
        assert g1 is not None
        assert model.node("solo").order_number == 1  # type: ignore[union-attr]
        assert g1.order_number == 2
        assert g1.group_order_number == 2
        assert g1.duration_ms == 10.0
        for member in model.members_of("g1"):
            assert member.group_order_number == 2
            assert member.group_duration_ms == 10.0

    def test_group_takes_triggering_member_state(self) -> None:
        from graphtune.contracts import ProfiledState

        model, structure, tracker, engine = _engine()
        structure.on_group_added(group("g1", "G", "a", "b"))
        tracker.on_run_started()
        tracker.on_node_ended("a", 2.0)

        engine.aggregate()

        assert model.group("g1").state is ProfiledState.EXECUTED_ON_CURRENT_RUN  # type: ignore[union-attr]

    def test_untriggered_group_still_sums_members(self) -> None:
        model, structure, tracker, engine = _engine()
        structure.on_group_added(group("g1", "G", "a", "b"))
        structure.on_node_added(node("c"))
        tracker.on_run_started()
        tracker.on_node_ended("a", 2.0)
        tracker.on_node_ended("b", 3.0)
        engine.aggregate()

        tracker.on_run_started()
        tracker.on_node_ended("c", 4.0)
        engine.aggregate()

        g1 = model.group("g1")
        assert g1 is not None
        assert g1.order_number is None
        assert g1.duration_ms == 5.0
        assert model.node("c").order_number == 1  # type: ignore[union-attr]

    def test_numbers_are_gapless_across_nodes_and_groups(self) -> None:
        model, structure, tracker, engine = _engine()
        for node_id in ("a", "b", "c", "d", "e"):
            structure.on_node_added(node(node_id))
        structure.on_group_added(group("g1", "G", "b", "d"))
        tracker.on_run_started()
        for node_id, duration in (("d", 1.0), ("a", 2.0), ("b", 3.0), ("e", 4.0), ("c", 0.0)):
            tracker.on_node_ended(node_id, duration)

        targets = engine.aggregate()

        numbers = [
            r.order_number
            for r in [*model.nodes(), *model.groups()]
            if (r.is_group or r.group_id is None) and r.order_number is not None
        ]
        assert sorted(numbers) == [1, 2, 3]
        assert targets == 3
        assert model.group("g1").order_number == 1  # type: ignore[union-attr]
        assert model.node("a").order_number == 2  # type: ignore[union-attr]
        assert model.node("e").order_number == 3  # type: ignore[union-attr]

    def test_pending_group_rename_applied(self) -> None:
        model, structure, tracker, engine = _engine()
        structure.on_group_added(group("g1", "Points", "a"))
        structure.on_group_renamed(group("g1", "Vertices", "a"))
        tracker.on_run_started()
        tracker.on_node_ended("a", 1.0)

        engine.aggregate()

        g1 = model.group("g1")
        assert g1 is not None
        assert g1.is_renamed
        assert g1.name == "Group: Vertices"
        assert model.node("a").group_name == "Vertices"  # type: ignore[union-attr]

    def test_aggregation_before_any_run(self) -> None:
        model, structure, tracker, engine = _engine()
        structure.on_node_added(node("a"))

        assert engine.aggregate() == 0
        assert model.node("a").order_number is None  # type: ignore[union-attr]

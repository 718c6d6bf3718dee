# tests/engine/test_profiling_properties.py
"""Property-based tests for row-set invariants.

Workspaces and runs are generated with Hypothesis and fed to a session as
raw signals so completion order, repeats and zero durations are arbitrary.
"""

from dataclasses import dataclass

from conftest import group, node
from hypothesis import given
from hypothesis import strategies as st

from graphtune.contracts import (
    GroupInfo,
    NodeExecutionBegan,
    NodeExecutionEnded,
    NodeInfo,
    RunCompleted,
    RunStarted,
    WorkspaceReset,
)
from graphtune.engine.session import ProfilerSession


@dataclass(frozen=True)
class Layout:
    nodes: tuple[NodeInfo, ...]
    groups: tuple[GroupInfo, ...]


@st.composite
def layouts(draw: st.DrawFn) -> Layout:
    """Nodes n0..nk, each either ungrouped or in one of up to three groups."""
    count = draw(st.integers(min_value=0, max_value=12))
    ids = [f"n{i}" for i in range(count)]
    owners = draw(st.lists(st.sampled_from([None, "g0", "g1", "g2"]), min_size=count, max_size=count))
    members: dict[str, list[str]] = {}
    for node_id, owner in zip(ids, owners, strict=True):
        if owner is not None:
            members.setdefault(owner, []).append(node_id)
    return Layout(
        nodes=tuple(node(i) for i in ids),
        groups=tuple(group(g, g.upper(), *m) for g, m in sorted(members.items())),
    )


durations = st.sampled_from([0.0, 0.5, 1.0, 2.5, 7.0, 40.0])


@st.composite
def runs(draw: st.DrawFn, layout: Layout) -> list[tuple[str, float]]:
    """Completion sequence for one run; nodes may complete more than once."""
    if not layout.nodes:
        return []
    ids = [n.node_id for n in layout.nodes]
    return draw(st.lists(st.tuples(st.sampled_from(ids), durations), max_size=20))


def _play(session: ProfilerSession, completions: list[tuple[str, float]]) -> None:
    session.post(RunStarted())
    for node_id, duration in completions:
        session.post(NodeExecutionBegan(node_id))
        session.post(NodeExecutionEnded(node_id, duration))
    session.post(RunCompleted())


class TestCoverage:
    @given(layout=layouts())
    def test_rebuild_has_one_row_per_node_and_group(self, layout: Layout) -> None:
        session = ProfilerSession()
        session.post(WorkspaceReset(nodes=layout.nodes, groups=layout.groups))

        model = session.model
        assert model.node_count == len(layout.nodes)
        assert model.group_count == len(layout.groups)
        assert model.totals is None
        assert len(session.rows()) == len(layout.nodes) + len(layout.groups)
        for row in model.nodes():
            assert row.group_id is None or model.group(row.group_id) is not None


class TestRunInvariants:
    @given(data=st.data())
    def test_order_numbers_are_gapless(self, data: st.DataObject) -> None:
        layout = data.draw(layouts())
        session = ProfilerSession()
        session.post(WorkspaceReset(nodes=layout.nodes, groups=layout.groups))

        for _ in range(data.draw(st.integers(min_value=1, max_value=3))):
            _play(session, data.draw(runs(layout)))

            model = session.model
            targets = [r for r in model.nodes() if r.group_id is None] + model.groups()
            numbers = [r.order_number for r in targets if r.order_number is not None]
            assert sorted(numbers) == list(range(1, len(numbers) + 1))
            assert session.last_summary is not None
            assert session.last_summary.ordered_targets == len(numbers)

    @given(data=st.data())
    def test_group_aggregates_members(self, data: st.DataObject) -> None:
        layout = data.draw(layouts())
        session = ProfilerSession()
        session.post(WorkspaceReset(nodes=layout.nodes, groups=layout.groups))

        for _ in range(data.draw(st.integers(min_value=1, max_value=3))):
            _play(session, data.draw(runs(layout)))

            for grp in session.model.groups():
                members = session.model.members_of(grp.group_id)
                assert grp.duration_ms == sum(m.duration_ms for m in members)
                for member in members:
                    assert member.group_order_number == grp.group_order_number

    @given(data=st.data())
    def test_totals_partition_node_durations(self, data: st.DataObject) -> None:
        layout = data.draw(layouts())
        session = ProfilerSession()
        session.post(WorkspaceReset(nodes=layout.nodes, groups=layout.groups))

        for _ in range(data.draw(st.integers(min_value=1, max_value=3))):
            _play(session, data.draw(runs(layout)))

            totals = session.model.totals
            assert totals is not None
            current, previous = totals
            node_sum = sum(n.duration_ms for n in session.model.nodes())
            assert abs((current.duration_ms + previous.duration_ms) - node_sum) < 1e-9

    @given(
        first=st.floats(min_value=0.001, max_value=1000.0),
        second=st.floats(min_value=0.001, max_value=1000.0),
    )
    def test_repeat_completion_keeps_first_order(self, first: float, second: float) -> None:
        from graphtune.contracts import NodeRow
        from graphtune.core.row_model import RowModel
        from graphtune.engine.tracker import ExecutionStateTracker

        model = RowModel()
        for node_id in ("a", "b"):
            model.upsert(NodeRow(node_id=node_id, name=node_id, original_name=node_id))
        tracker = ExecutionStateTracker(model)
        tracker.on_run_started()

        tracker.on_node_ended("b", 1.0)
        tracker.on_node_ended("a", first)
        tracker.on_node_ended("a", second)

        row = model.node("a")
        assert row is not None
        assert row.order_number == 1
        assert row.duration_ms == second

# tests/conftest.py
"""Shared test fixtures and helpers.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/engine/
"""

import os
from pathlib import Path

import pytest
from hypothesis import Phase, Verbosity, settings

from graphtune.contracts import GroupInfo, NodeInfo

# =============================================================================
# Hypothesis Configuration
# =============================================================================

# CI profile: Fast tests for continuous integration
settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,  # Disable deadline for CI (timing varies)
)

# Nightly profile: Thorough testing for scheduled runs
settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Debug profile: Minimal examples with verbose output for debugging
settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

# Load profile from environment, default to "ci"
settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


class FakeClock:
    """Manually advanced clock (seconds) for tracker timing tests."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: float) -> None:
        self.now += ms / 1000.0


def node(node_id: str, name: str | None = None) -> NodeInfo:
    """Build a NodeInfo whose name defaults to its id."""
    return NodeInfo(node_id=node_id, name=name or node_id)


def group(group_id: str, name: str, *member_ids: str, color: str = "#FFB8D8") -> GroupInfo:
    """Build a GroupInfo with plain members."""
    return GroupInfo(
        group_id=group_id,
        name=name,
        background_color=color,
        members=tuple(node(m) for m in member_ids),
    )


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


BRIDGE_WORKSPACE = """
name: bridge
nodes:
  - id: cb
    name: Code Block
    duration_ms: 2
  - id: p1
    name: Point.ByCoordinates
    duration_ms: 12
    inputs: [cb]
  - id: p2
    name: Point.Add
    duration_ms: 8
    inputs: [p1]
  - id: ln
    name: Line.ByStartPointEndPoint
    duration_ms: 5
    inputs: [p1, p2]
groups:
  - id: g1
    name: Points
    color: "#FFB8D8"
    members: [p1, p2]
"""


@pytest.fixture
def workspace_file(tmp_path: Path) -> Path:
    """A small valid workspace definition on disk."""
    path = tmp_path / "workspace.yaml"
    path.write_text(BRIDGE_WORKSPACE)
    return path


__all__ = ["BRIDGE_WORKSPACE", "FakeClock", "group", "node"]

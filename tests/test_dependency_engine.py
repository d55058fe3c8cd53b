"""Unit tests for DependencyEngine - prerequisite graph and removal guard."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import pytest

from medaltracker.data_builders import build_medal
from medaltracker.engines.dependency_engine import DependencyEngine

if TYPE_CHECKING:
    from medaltracker.type_defs import DependencyIndex, MedalData


def make_medal(medal_id: str, *prereq_ids: str) -> MedalData:
    """Medal requiring the given medals."""
    return build_medal(
        {
            "id": medal_id,
            "type": "pistol_mark",
            "prerequisites": [
                {"type": "medal", "medal_id": prereq_id} for prereq_id in prereq_ids
            ],
        }
    )


@pytest.fixture
def chain_index() -> DependencyIndex:
    """A <- B <- C plus D <- B (D depends on B)."""
    return DependencyEngine.build_dependency_index(
        [make_medal("A"), make_medal("B", "A"), make_medal("C", "B"), make_medal("D", "B")]
    )


class TestDependencyIndex:
    """Tests for index construction and traversal."""

    def test_index_maps_prerequisite_to_dependents(
        self, chain_index: DependencyIndex
    ) -> None:
        """Edges point from the prerequisite to its dependents."""
        assert chain_index == {"A": {"B"}, "B": {"C", "D"}}

    def test_age_prerequisites_are_not_edges(self) -> None:
        """Only medal prerequisites create edges."""
        medal = build_medal(
            {
                "id": "adult",
                "type": "x",
                "prerequisites": [{"type": "age_requirement", "min_age": 18}],
            }
        )

        assert DependencyEngine.build_dependency_index([medal]) == {}

    def test_descendants_are_transitive(self, chain_index: DependencyIndex) -> None:
        """A's descendants include B, C and D."""
        assert DependencyEngine.get_descendants("A", chain_index) == {"B", "C", "D"}
        assert DependencyEngine.get_descendants("C", chain_index) == set()

    def test_cycle_terminates_without_start(self, caplog: pytest.LogCaptureFixture) -> None:
        """A cycle back to the start is logged and the start is excluded."""
        index = DependencyEngine.build_dependency_index(
            [make_medal("X", "Y"), make_medal("Y", "X")]
        )

        with caplog.at_level(logging.WARNING):
            descendants = DependencyEngine.get_descendants("X", index)

        assert descendants == {"Y"}
        assert "Dependency cycle detected through medal X" in caplog.text


class TestRemovalGuard:
    """Tests for can_remove / get_blocking."""

    def test_blocked_by_transitive_dependent(self, chain_index: DependencyIndex) -> None:
        """A cannot be removed while C is unlocked, even if B is not."""
        result = DependencyEngine.can_remove("A", chain_index, {"A", "C"})

        assert result == {"can_remove": False, "blocking": ["C"]}

    def test_blocking_sorted(self, chain_index: DependencyIndex) -> None:
        """Blocking ids are sorted."""
        assert DependencyEngine.get_blocking("A", chain_index, ["D", "A", "B", "C"]) == [
            "B",
            "C",
            "D",
        ]

    def test_leaf_medal_can_be_removed(self, chain_index: DependencyIndex) -> None:
        """Medals without dependents are always removable."""
        assert DependencyEngine.can_remove("C", chain_index, {"A", "B", "C"}) == {
            "can_remove": True,
            "blocking": [],
        }


class TestFindCycles:
    """Tests for cycle detection."""

    def test_acyclic_graph(self, chain_index: DependencyIndex) -> None:
        """Chains have no cycles."""
        assert DependencyEngine.find_cycles(chain_index) == []

    def test_two_node_cycle_reported_once(self) -> None:
        """X <-> Y is reported as a single cycle."""
        index = DependencyEngine.build_dependency_index(
            [make_medal("X", "Y"), make_medal("Y", "X")]
        )

        assert DependencyEngine.find_cycles(index) == [["X", "Y"]]

    def test_self_cycle(self) -> None:
        """A medal requiring itself is a cycle."""
        index = DependencyEngine.build_dependency_index([make_medal("S", "S")])

        assert DependencyEngine.find_cycles(index) == [["S"]]

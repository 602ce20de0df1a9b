"""Unit tests for graph algorithms."""

import pytest

from depload.core.graph import ProjectGraph, build_graph, reachable
from depload.core.graph.analysis import find_cycles, get_hub_projects, has_cycle
from depload.core.models import Project, ProjectDependency


def make_graph(*edges: tuple[str, str]) -> ProjectGraph:
    """Create a graph from (source, target) pairs."""
    return build_graph([], [ProjectDependency(s, t) for s, t in edges])


@pytest.fixture
def linear_graph() -> ProjectGraph:
    """Create a linear graph: A -> B -> C -> D."""
    return make_graph(("A", "B"), ("B", "C"), ("C", "D"))


@pytest.fixture
def branching_graph() -> ProjectGraph:
    r"""Create a branching graph: A -> B -> D, A -> C -> D (diamond shape)."""
    return make_graph(("A", "B"), ("A", "C"), ("B", "D"), ("C", "D"))


@pytest.fixture
def cyclic_graph() -> ProjectGraph:
    """Create a graph with a cycle: A -> B -> C -> A."""
    return make_graph(("A", "B"), ("B", "C"), ("C", "A"))


class TestProjectGraph:
    """Tests for the ProjectGraph class."""

    def test_add_project(self) -> None:
        graph = ProjectGraph()
        graph.add_project(Project(name="core", type="library"))
        graph.add_project("app")

        assert graph.names == ["app", "core"]
        project = graph.get_project("core")
        assert project is not None
        assert project.type == "library"
        assert graph.get_project("app") is None

    def test_add_edge(self) -> None:
        graph = ProjectGraph()
        graph.add_project("A")
        graph.add_project("B")
        graph.add_edge(ProjectDependency("A", "B"))

        assert graph.get_dependencies("A") == ["B"]
        assert graph.get_dependents("B") == ["A"]

    def test_edge_creates_missing_nodes(self) -> None:
        graph = make_graph(("app", "external"))
        assert graph.num_nodes == 2
        assert graph.get_project("external") is None

    def test_duplicate_edge_counted_once(self) -> None:
        graph = make_graph(("A", "B"), ("A", "B"))
        assert graph.num_edges == 1
        assert graph.out_degree("A") == 1

    def test_empty_neighbours(self) -> None:
        graph = ProjectGraph()
        graph.add_project("A")
        assert graph.get_dependencies("A") == []
        assert graph.get_dependents("A") == []
        assert graph.get_dependents("unknown") == []

    def test_expand_batch(self, branching_graph: ProjectGraph) -> None:
        assert branching_graph.expand_dependencies(["B", "C"]) == {"D"}
        assert branching_graph.expand_dependents(["B", "C"]) == {"A"}


class TestReachable:
    """Tests for the batched closure traversal."""

    def test_dependents_of_chain(self) -> None:
        graph = make_graph(("A", "B"), ("B", "C"))
        assert reachable("C", graph.expand_dependents) == {"A", "B"}

    def test_dependencies_of_chain(self) -> None:
        graph = make_graph(("A", "B"), ("B", "C"))
        assert reachable("A", graph.expand_dependencies) == {"B", "C"}

    def test_cycle_terminates_without_start(self, cyclic_graph: ProjectGraph) -> None:
        assert reachable("A", cyclic_graph.expand_dependents) == {"B", "C"}
        assert reachable("A", cyclic_graph.expand_dependencies) == {"B", "C"}

    def test_self_loop_excludes_start(self) -> None:
        graph = make_graph(("A", "A"), ("B", "A"))
        assert reachable("A", graph.expand_dependents) == {"B"}

    def test_isolated_node(self) -> None:
        graph = ProjectGraph()
        graph.add_project("A")
        assert reachable("A", graph.expand_dependents) == set()

    def test_batch_size_does_not_change_result(self) -> None:
        edges = [(f"leaf{i}", "root") for i in range(120)]
        edges += [("top", f"leaf{i}") for i in range(120)]
        graph = make_graph(*edges)

        expected = reachable("root", graph.expand_dependents, batch_size=50)
        assert len(expected) == 121
        assert reachable("root", graph.expand_dependents, batch_size=1) == expected
        assert reachable("root", graph.expand_dependents, batch_size=500) == expected

    def test_batches_are_bounded(self) -> None:
        graph = make_graph(*[(f"p{i}", "root") for i in range(10)])
        seen_batches: list[int] = []

        def expand(batch: list[str]) -> set[str]:
            seen_batches.append(len(batch))
            return graph.expand_dependents(batch)

        reachable("root", expand, batch_size=3)
        assert max(seen_batches) <= 3

    def test_invalid_batch_size(self) -> None:
        with pytest.raises(ValueError):
            reachable("A", lambda batch: [], batch_size=0)


class TestCycleDetection:
    """Tests for cycle detection algorithms."""

    def test_has_cycle_false(self, linear_graph: ProjectGraph) -> None:
        assert has_cycle(linear_graph) is False

    def test_has_cycle_true(self, cyclic_graph: ProjectGraph) -> None:
        assert has_cycle(cyclic_graph) is True

    def test_has_cycle_branching(self, branching_graph: ProjectGraph) -> None:
        assert has_cycle(branching_graph) is False

    def test_find_cycles_none(self, linear_graph: ProjectGraph) -> None:
        assert find_cycles(linear_graph) == []

    def test_find_cycles_one(self, cyclic_graph: ProjectGraph) -> None:
        cycles = find_cycles(cyclic_graph)
        assert len(cycles) == 1
        assert set(cycles[0]) == {"A", "B", "C"}

    def test_find_cycles_max_limit(self) -> None:
        """Test that max_cycles limit is respected."""
        # Three separate cycles: 1->2->1, 3->4->3, 5->6->5
        graph = make_graph(
            ("N1", "N2"), ("N2", "N1"), ("N3", "N4"), ("N4", "N3"), ("N5", "N6"), ("N6", "N5")
        )

        cycles = find_cycles(graph, max_cycles=2)
        assert len(cycles) == 2

    def test_deep_chain(self) -> None:
        """Chains far deeper than the recursion limit are walked."""
        graph = make_graph(*[(f"p{i}", f"p{i + 1}") for i in range(3000)])

        assert has_cycle(graph) is False
        assert find_cycles(graph) == []

    def test_deep_chain_closed_into_cycle(self) -> None:
        edges = [(f"p{i}", f"p{i + 1}") for i in range(2999)] + [("p2999", "p0")]
        graph = make_graph(*edges)

        assert has_cycle(graph) is True
        cycles = find_cycles(graph)
        assert len(cycles) == 1
        assert len(cycles[0]) == 3000

    def test_self_loop(self) -> None:
        graph = make_graph(("A", "A"), ("B", "A"))

        assert has_cycle(graph) is True
        assert find_cycles(graph) == [["A"]]


class TestHubProjects:
    """Tests for hub project detection."""

    def test_hubs_ordered_by_dependents(self, branching_graph: ProjectGraph) -> None:
        # D has two direct dependents, B and C one each, A none
        assert get_hub_projects(branching_graph) == ["D", "B", "C"]

    def test_hubs_respect_limit(self, branching_graph: ProjectGraph) -> None:
        assert get_hub_projects(branching_graph, top_k=1) == ["D"]

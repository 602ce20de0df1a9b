"""Load ProjectGraph from GraphRepository or plain edge lists."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from depload.core.graph.base import ProjectGraph
from depload.core.models import ProjectDependency

if TYPE_CHECKING:
    from depload.core.storage import GraphRepository


def load_from_repository(repo: GraphRepository) -> ProjectGraph:
    """Load the full project graph from the store. O(V + E)."""
    graph = ProjectGraph()
    for project in repo.projects.list_all():
        graph.add_project(project)
    for edge in repo.dependencies.list_project_dependencies():
        graph.add_edge(edge)
    return graph


def build_graph(projects: Iterable[str], edges: Iterable[ProjectDependency]) -> ProjectGraph:
    """Build a graph from names and edges without touching the store."""
    graph = ProjectGraph()
    for name in projects:
        graph.add_project(name)
    for edge in edges:
        graph.add_edge(edge)
    return graph

"""Core ProjectGraph class with adjacency list representation."""

from __future__ import annotations

from depload.core.models import Project, ProjectDependency


class ProjectGraph:
    """Directed graph of project build dependencies.

    Uses adjacency sets for O(1) neighbor lookup. Edges may name projects
    that were never added; such nodes are created on demand.
    """

    __slots__ = ("_out", "_in", "_projects", "_edges")

    def __init__(self) -> None:
        self._out: dict[str, set[str]] = {}
        self._in: dict[str, set[str]] = {}
        self._projects: dict[str, Project | None] = {}
        self._edges: set[ProjectDependency] = set()

    def add_project(self, project: Project | str) -> None:
        """Add a project node. O(1)."""
        if isinstance(project, Project):
            self._projects[project.name] = project
            name = project.name
        else:
            name = project
            self._projects.setdefault(name, None)
        self._out.setdefault(name, set())
        self._in.setdefault(name, set())

    def add_edge(self, edge: ProjectDependency) -> None:
        """Add a dependency edge. O(1)."""
        for name in (edge.source_project, edge.target_project):
            if name not in self._projects:
                self.add_project(name)
        self._edges.add(edge)
        self._out[edge.source_project].add(edge.target_project)
        self._in[edge.target_project].add(edge.source_project)

    def get_project(self, name: str) -> Project | None:
        return self._projects.get(name)

    def get_dependencies(self, name: str) -> list[str]:
        """Direct dependencies, sorted. O(out-degree)."""
        return sorted(self._out.get(name, ()))

    def get_dependents(self, name: str) -> list[str]:
        """Direct dependents, sorted. O(in-degree)."""
        return sorted(self._in.get(name, ()))

    def expand_dependencies(self, batch: list[str]) -> set[str]:
        """Direct dependencies of every node in ``batch``."""
        return {n for name in batch for n in self._out.get(name, ())}

    def expand_dependents(self, batch: list[str]) -> set[str]:
        """Direct dependents of every node in ``batch``."""
        return {n for name in batch for n in self._in.get(name, ())}

    def out_degree(self, name: str) -> int:
        return len(self._out.get(name, ()))

    def in_degree(self, name: str) -> int:
        return len(self._in.get(name, ()))

    @property
    def num_nodes(self) -> int:
        return len(self._projects)

    @property
    def num_edges(self) -> int:
        return len(self._edges)

    @property
    def names(self) -> list[str]:
        return sorted(self._projects)

    def __repr__(self) -> str:
        return f"ProjectGraph(nodes={self.num_nodes}, edges={self.num_edges})"

"""Graph analysis: cycle detection and hub projects.

The walks keep their own stack of (project, dependency iterator) pairs, so
chain depth is bounded by memory, not by the interpreter's recursion limit.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from depload.core.graph.base import ProjectGraph


def has_cycle(graph: ProjectGraph) -> bool:
    """Check for cycles using three-color DFS. O(V + E)."""
    white, gray, black = 0, 1, 2
    color: dict[str, int] = {name: white for name in graph.names}

    for root in graph.names:
        if color[root] != white:
            continue
        color[root] = gray
        stack: list[tuple[str, Iterator[str]]] = [(root, iter(graph.get_dependencies(root)))]

        while stack:
            name, targets = stack[-1]
            target = next(targets, None)
            if target is None:
                color[name] = black
                stack.pop()
            elif color[target] == gray:
                return True
            elif color[target] == white:
                color[target] = gray
                stack.append((target, iter(graph.get_dependencies(target))))

    return False


def find_cycles(graph: ProjectGraph, max_cycles: int = 10) -> list[list[str]]:
    """Find dependency cycles, each as the list of projects along it."""
    cycles: list[list[str]] = []
    visited: set[str] = set()

    for root in graph.names:
        if root in visited:
            continue
        if len(cycles) >= max_cycles:
            break

        visited.add(root)
        path = [root]
        on_path = {root}
        stack: list[tuple[str, Iterator[str]]] = [(root, iter(graph.get_dependencies(root)))]

        while stack and len(cycles) < max_cycles:
            name, targets = stack[-1]
            target = next(targets, None)
            if target is None:
                stack.pop()
                path.pop()
                on_path.remove(name)
            elif target not in visited:
                visited.add(target)
                path.append(target)
                on_path.add(target)
                stack.append((target, iter(graph.get_dependencies(target))))
            elif target in on_path:
                cycles.append(path[path.index(target) :])

    return cycles


def get_hub_projects(graph: ProjectGraph, top_k: int = 10) -> list[str]:
    """Projects with the most direct dependents. O(V log V)."""
    scored = [(name, graph.in_degree(name)) for name in graph.names]
    scored.sort(key=lambda x: (-x[1], x[0]))
    return [name for name, degree in scored[:top_k] if degree > 0]

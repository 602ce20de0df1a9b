"""Transitive closure over project dependency edges.

``reachable`` is a batched breadth-first search with an explicit visited set
seeded with the start node, so the start node never appears in the result and
cycles terminate. ``ClosureResolver`` binds it to the graph store and turns
store failures into a ``Degraded`` result instead of an exception.
"""

from __future__ import annotations

import logging
import sqlite3
from collections import deque
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from depload.core.storage import GraphRepository

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 50

Expand = Callable[[list[str]], Iterable[str]]


class Direction(Enum):
    """Which way to follow dependency edges."""

    DEPENDENCIES = "dependencies"  # source -> target
    DEPENDENTS = "dependents"  # target -> source


@dataclass(frozen=True)
class Resolved:
    """A closure computed from the store."""

    projects: frozenset[str]
    degraded = False


@dataclass(frozen=True)
class Degraded:
    """A closure that could not be computed; stands in as the empty set."""

    cause: Exception
    projects: frozenset[str] = frozenset()
    degraded = True


ClosureResult = Resolved | Degraded


def reachable(start: str, expand: Expand, batch_size: int = DEFAULT_BATCH_SIZE) -> set[str]:
    """Every node reachable from ``start``, excluding ``start`` itself.

    ``expand`` maps a batch of at most ``batch_size`` nodes to their direct
    neighbours. Batching bounds each lookup; it does not change the result.
    """
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")

    visited: set[str] = {start}
    result: set[str] = set()
    queue: deque[str] = deque([start])

    while queue:
        batch = [queue.popleft() for _ in range(min(batch_size, len(queue)))]
        for neighbour in expand(batch):
            if neighbour not in visited:
                visited.add(neighbour)
                result.add(neighbour)
                queue.append(neighbour)

    return result


class ClosureResolver:
    """Resolves transitive dependents/dependencies against the graph store."""

    def __init__(self, repo: GraphRepository, batch_size: int = DEFAULT_BATCH_SIZE) -> None:
        self._repo = repo
        self._batch_size = batch_size

    def resolve(self, project: str, direction: Direction) -> ClosureResult:
        """Compute the closure of ``project``; store errors degrade to the empty set."""
        if direction is Direction.DEPENDENTS:
            expand: Expand = self._repo.dependencies.direct_dependents
        else:
            expand = self._repo.dependencies.direct_dependencies

        try:
            return Resolved(frozenset(reachable(project, expand, self._batch_size)))
        except sqlite3.Error as e:
            logger.warning("Could not get %s for %s: %s", direction.value, project, e)
            return Degraded(cause=e)

    def dependents(self, project: str) -> ClosureResult:
        return self.resolve(project, Direction.DEPENDENTS)

    def dependencies(self, project: str) -> ClosureResult:
        return self.resolve(project, Direction.DEPENDENCIES)

    def dependents_of_many(self, projects: Iterable[str]) -> dict[str, ClosureResult]:
        """Dependents for several projects.

        Each lookup is independent and lands in its own key, so the order they
        run in does not matter.
        """
        return {p: self.dependents(p) for p in sorted(set(projects))}

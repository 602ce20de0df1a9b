"""
Project dependency graph algorithms.

Closure (closure.py):
    - reachable(): Batched, cycle-safe BFS over any neighbour function
    - ClosureResolver: Transitive dependents/dependencies against the store,
      returning Resolved or Degraded results

In-memory graph:
    - ProjectGraph: Adjacency sets with O(1) lookups
    - load_from_repository(): Load the full project graph from SQLite
    - analysis: Cycle detection, hub projects
"""

from depload.core.graph.base import ProjectGraph
from depload.core.graph.closure import (
    ClosureResolver,
    ClosureResult,
    Degraded,
    Direction,
    Resolved,
    reachable,
)
from depload.core.graph.loader import build_graph, load_from_repository

__all__ = [
    "ProjectGraph",
    "ClosureResolver",
    "ClosureResult",
    "Degraded",
    "Direction",
    "Resolved",
    "reachable",
    "build_graph",
    "load_from_repository",
]

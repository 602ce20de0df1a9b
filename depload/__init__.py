"""
Depload: dependency-graph load metrics for monorepo workspaces.

Depload combines a workspace's project/file dependency graph with its commit
history to:
- Score each project by churn and fan-in (touched count, load, affected count)
- Estimate the load of an arbitrary set of files
- Suggest a two-way split of a file set that minimizes total estimated load

Usage:
    from depload.core import GraphRepository, get_default_db_path
    from depload.core.metrics import MetricsEngine

    db_path = get_default_db_path(Path("."))
    with GraphRepository(db_path) as repo:
        metrics = MetricsEngine(repo).windowed_project_metrics(100)
"""

__version__ = "0.1.0"

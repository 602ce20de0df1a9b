"""Windowed project metrics and file-set estimated load."""

from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable
from typing import TYPE_CHECKING

from depload.core.graph.closure import ClosureResolver
from depload.core.models import ProjectMetrics

if TYPE_CHECKING:
    from depload.core.storage import GraphRepository

logger = logging.getLogger(__name__)

DEFAULT_COMMIT_WINDOW = 100


def unique_paths(file_paths: Iterable[str]) -> list[str]:
    """Drop blanks and duplicates, keeping first-seen order."""
    seen: dict[str, None] = {}
    for path in file_paths:
        if path and path not in seen:
            seen[path] = None
    return list(seen)


def _check_window(commit_count: int) -> None:
    if commit_count < 1:
        raise ValueError("commit_count must be a positive number")


class MetricsEngine:
    """Computes churn and fan-in metrics from the graph store.

    The engine only reads. Every call recomputes from the current state of the
    store; nothing is cached between calls.
    """

    def __init__(self, repo: GraphRepository, resolver: ClosureResolver | None = None) -> None:
        self._repo = repo
        self._resolver = resolver or ClosureResolver(repo)

    def windowed_project_metrics(
        self, commit_count: int = DEFAULT_COMMIT_WINDOW
    ) -> dict[str, ProjectMetrics]:
        """Metrics for every project over the most recent ``commit_count`` commits.

        - touched_count: commits in the window that touched a file of the project
        - dependent_count: size of the project's transitive dependents
        - load: touched_count * dependent_count
        - affected_count: commits whose affected set (touched projects plus
          their transitive dependents, unioned per commit) includes the project

        dependent_count is resolved for projects touched in the window; a
        project untouched in the window reports zero touched_count,
        dependent_count and load, though its affected_count may be positive.
        """
        _check_window(commit_count)

        metrics = {p.name: ProjectMetrics(name=p.name) for p in self._repo.projects.list_all()}
        commit_ids = self._repo.commits.recent_ids(commit_count)
        if not commit_ids:
            return metrics

        touched_by_commit = self._repo.commits.touched_projects_by_commit(commit_ids)
        touched_anywhere: set[str] = set()
        for touched in touched_by_commit.values():
            touched_anywhere.update(touched)

        closures = self._resolver.dependents_of_many(touched_anywhere)

        touch_counts: Counter[str] = Counter()
        affected_counts: Counter[str] = Counter()
        for touched in touched_by_commit.values():
            affected = set(touched)
            for name in touched:
                touch_counts[name] += 1
                affected.update(closures[name].projects)
            affected_counts.update(affected)

        for name, m in metrics.items():
            closure = closures.get(name)
            m.touched_count = touch_counts[name]
            m.dependent_count = len(closure.projects) if closure else 0
            m.load = m.touched_count * m.dependent_count
            m.affected_count = affected_counts[name]
            m.degraded = closure.degraded if closure else False

        logger.debug(
            "Computed metrics for %d projects over %d commits", len(metrics), len(commit_ids)
        )
        return metrics

    def project_dependency_map_for_files(self, file_paths: Iterable[str]) -> dict[str, list[str]]:
        """For each file, the projects that directly import from it."""
        return {
            path: self._repo.dependencies.projects_depending_on_file(path)
            for path in unique_paths(file_paths)
        }

    def estimated_load(
        self, file_paths: Iterable[str], commit_count: int = DEFAULT_COMMIT_WINDOW
    ) -> int:
        """Touch count of the file set times the size of its dependent closure.

        The touch count is the number of distinct window commits that touched
        at least one of the files. The dependents are the projects importing
        any of the files plus all of their transitive dependents.
        """
        _check_window(commit_count)

        paths = unique_paths(file_paths)
        if not paths:
            return 0

        direct: set[str] = set()
        for dependents in self.project_dependency_map_for_files(paths).values():
            direct.update(dependents)
        if not direct:
            return 0

        all_dependents = set(direct)
        for closure in self._resolver.dependents_of_many(direct).values():
            all_dependents.update(closure.projects)

        commit_ids = self._repo.commits.recent_ids(commit_count)
        touch_count = self._repo.commits.count_commits_touching(commit_ids, paths)
        return touch_count * len(all_dependents)

    def affected_projects(self, changed_files: Iterable[str]) -> set[str]:
        """Projects owning any changed file, plus their transitive dependents."""
        owners: set[str] = set()
        for path in unique_paths(changed_files):
            owners.update(p.name for p in self._repo.projects.list_file_owners(path))

        affected = set(owners)
        for closure in self._resolver.dependents_of_many(owners).values():
            affected.update(closure.projects)
        return affected

"""Two-way file split by best-improvement hill climbing."""

from __future__ import annotations

import logging
import random
from collections.abc import Iterable
from typing import Protocol

from depload.core.metrics import DEFAULT_COMMIT_WINDOW, unique_paths
from depload.core.models import SplitResult

logger = logging.getLogger(__name__)


class LoadModel(Protocol):
    """What the optimizer needs from the metrics engine."""

    def project_dependency_map_for_files(
        self, file_paths: Iterable[str]
    ) -> dict[str, list[str]]: ...

    def estimated_load(self, file_paths: Iterable[str], commit_count: int = ...) -> int: ...


class SplitOptimizer:
    """Partitions files into two groups minimizing summed estimated load.

    Starts from a random split and repeatedly applies the single-file move
    with the most negative change in total load. Stops when no move strictly
    improves the total, which is a local optimum, not necessarily a global one.
    """

    def __init__(self, model: LoadModel) -> None:
        self._model = model

    def suggest_split(
        self,
        file_paths: Iterable[str],
        commit_count: int = DEFAULT_COMMIT_WINDOW,
        seed: int | None = None,
        max_iterations: int | None = None,
    ) -> SplitResult:
        """Suggest a split of ``file_paths``.

        Args:
            file_paths: Files to split; duplicates are ignored
            commit_count: Commit window for estimated load
            seed: Seed for the random initial split; fixed seed, fixed result
            max_iterations: Cap on applied moves; None runs to convergence

        Returns:
            SplitResult whose first group also holds every file nothing depends on
        """
        files = unique_paths(file_paths)
        dependency_map = self._model.project_dependency_map_for_files(files)
        with_deps = [f for f in files if dependency_map.get(f)]
        without_deps = [f for f in files if not dependency_map.get(f)]

        if not with_deps:
            return SplitResult(group_a=files, group_b=[], load_a=0, load_b=0, initial_total=0)

        rng = random.Random(seed)
        group_a: list[str] = []
        group_b: list[str] = []
        for f in with_deps:
            (group_a if rng.random() < 0.5 else group_b).append(f)

        cache: dict[frozenset[str], int] = {}

        def load(group: list[str]) -> int:
            key = frozenset(group)
            if key not in cache:
                cache[key] = self._model.estimated_load(sorted(key), commit_count)
            return cache[key]

        load_a, load_b = load(group_a), load(group_b)
        total = load_a + load_b
        initial_total = total
        iterations = 0

        while max_iterations is None or iterations < max_iterations:
            best: tuple[int, str, bool, int, int] | None = None

            for f in group_a:
                cand_a = load([x for x in group_a if x != f])
                cand_b = load([*group_b, f])
                delta = cand_a + cand_b - total
                if best is None or delta < best[0]:
                    best = (delta, f, True, cand_a, cand_b)

            for f in group_b:
                cand_a = load([*group_a, f])
                cand_b = load([x for x in group_b if x != f])
                delta = cand_a + cand_b - total
                if best is None or delta < best[0]:
                    best = (delta, f, False, cand_a, cand_b)

            if best is None or best[0] >= 0:
                break

            delta, moved, from_a, load_a, load_b = best
            if from_a:
                group_a.remove(moved)
                group_b.append(moved)
            else:
                group_b.remove(moved)
                group_a.append(moved)
            total = load_a + load_b
            iterations += 1
            logger.debug("Moved %s (delta %d, total %d)", moved, delta, total)

        return SplitResult(
            group_a=group_a + without_deps,
            group_b=group_b,
            load_a=load_a,
            load_b=load_b,
            initial_total=initial_total,
            iterations=iterations,
        )

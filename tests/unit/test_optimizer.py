"""Unit tests for the split optimizer."""

from collections.abc import Iterable

import pytest

from depload.core.optimizer import SplitOptimizer


class FakeLoadModel:
    """Load model backed by in-memory commit and dependent sets per file."""

    def __init__(self, files: dict[str, tuple[set[int], set[str]]]) -> None:
        self.files = files
        self.load_calls = 0

    def project_dependency_map_for_files(self, file_paths: Iterable[str]) -> dict[str, list[str]]:
        return {f: sorted(self.files.get(f, (set(), set()))[1]) for f in file_paths}

    def estimated_load(self, file_paths: Iterable[str], commit_count: int = 100) -> int:
        self.load_calls += 1
        commits: set[int] = set()
        dependents: set[str] = set()
        for f in file_paths:
            file_commits, file_dependents = self.files.get(f, (set(), set()))
            commits |= file_commits
            dependents |= file_dependents
        if not dependents:
            return 0
        return len(commits) * len(dependents)


@pytest.fixture
def mixed_model() -> FakeLoadModel:
    """Six files with overlapping churn and dependents, two with no dependents."""
    return FakeLoadModel(
        {
            "a.ts": ({1, 2, 3}, {"web"}),
            "b.ts": ({1, 2}, {"web", "api"}),
            "c.ts": ({4}, {"api"}),
            "d.ts": ({5, 6}, {"worker"}),
            "e.ts": ({1, 4, 6}, set()),
            "f.ts": (set(), set()),
        }
    )


def total_load(model: FakeLoadModel, group_a: list[str], group_b: list[str]) -> int:
    return model.estimated_load(group_a) + model.estimated_load(group_b)


class TestSplitOptimizer:
    """Tests for hill-climbing split suggestions."""

    def test_empty_input(self) -> None:
        result = SplitOptimizer(FakeLoadModel({})).suggest_split([])
        assert result.group_a == []
        assert result.group_b == []
        assert result.total == 0

    def test_no_file_has_dependents(self) -> None:
        model = FakeLoadModel({"x.ts": ({1}, set()), "y.ts": ({2}, set())})
        result = SplitOptimizer(model).suggest_split(["x.ts", "y.ts"])

        assert result.group_a == ["x.ts", "y.ts"]
        assert result.group_b == []
        assert result.total == 0
        assert result.iterations == 0
        assert model.load_calls == 0

    @pytest.mark.parametrize("seed", range(20))
    def test_files_without_dependents_land_in_first_group(
        self, mixed_model: FakeLoadModel, seed: int
    ) -> None:
        result = SplitOptimizer(mixed_model).suggest_split(list(mixed_model.files), seed=seed)

        assert "e.ts" in result.group_a
        assert "f.ts" in result.group_a
        assert "e.ts" not in result.group_b
        assert "f.ts" not in result.group_b

    @pytest.mark.parametrize("seed", range(20))
    def test_never_worse_than_initial_split(self, mixed_model: FakeLoadModel, seed: int) -> None:
        result = SplitOptimizer(mixed_model).suggest_split(list(mixed_model.files), seed=seed)
        assert result.total <= result.initial_total

    @pytest.mark.parametrize("seed", range(20))
    def test_local_optimum(self, mixed_model: FakeLoadModel, seed: int) -> None:
        """No single-file move between the groups lowers the total."""
        result = SplitOptimizer(mixed_model).suggest_split(list(mixed_model.files), seed=seed)
        group_a = [f for f in result.group_a if f not in ("e.ts", "f.ts")]
        group_b = list(result.group_b)
        current = total_load(mixed_model, group_a, group_b)
        assert current == result.total

        for f in group_a:
            moved = total_load(mixed_model, [x for x in group_a if x != f], [*group_b, f])
            assert moved >= current
        for f in group_b:
            moved = total_load(mixed_model, [*group_a, f], [x for x in group_b if x != f])
            assert moved >= current

    def test_partition_covers_every_file_once(self, mixed_model: FakeLoadModel) -> None:
        files = list(mixed_model.files)
        result = SplitOptimizer(mixed_model).suggest_split([*files, "a.ts"], seed=3)

        assert sorted(result.group_a + result.group_b) == sorted(files)

    def test_fixed_seed_is_deterministic(self, mixed_model: FakeLoadModel) -> None:
        optimizer = SplitOptimizer(mixed_model)
        files = list(mixed_model.files)

        first = optimizer.suggest_split(files, seed=42)
        second = optimizer.suggest_split(files, seed=42)
        assert first == second

    @pytest.mark.parametrize("seed", range(10))
    def test_separates_unrelated_files(self, seed: int) -> None:
        model = FakeLoadModel({"x.ts": ({1}, {"p"}), "y.ts": ({2}, {"q"})})
        result = SplitOptimizer(model).suggest_split(["x.ts", "y.ts"], seed=seed)

        assert result.total == 2
        assert len(result.group_a) == 1
        assert len(result.group_b) == 1

    @pytest.mark.parametrize("seed", range(10))
    def test_keeps_shared_files_together(self, seed: int) -> None:
        model = FakeLoadModel({"x.ts": ({1}, {"p"}), "y.ts": ({1}, {"p"})})
        result = SplitOptimizer(model).suggest_split(["x.ts", "y.ts"], seed=seed)

        assert result.total == 1
        assert sorted(result.group_a + result.group_b) == ["x.ts", "y.ts"]
        assert [] in (result.group_a, result.group_b)

    def test_max_iterations_zero_returns_initial_split(self, mixed_model: FakeLoadModel) -> None:
        result = SplitOptimizer(mixed_model).suggest_split(
            list(mixed_model.files), seed=7, max_iterations=0
        )
        assert result.iterations == 0
        assert result.total == result.initial_total

    def test_max_iterations_caps_moves(self, mixed_model: FakeLoadModel) -> None:
        files = list(mixed_model.files)
        for seed in range(20):
            result = SplitOptimizer(mixed_model).suggest_split(files, seed=seed, max_iterations=1)
            assert result.iterations <= 1
            assert result.total <= result.initial_total

    def test_memoizes_group_loads(self, mixed_model: FakeLoadModel) -> None:
        SplitOptimizer(mixed_model).suggest_split(list(mixed_model.files), seed=1)
        # four files are searched, so at most 2**4 distinct groups exist
        assert mixed_model.load_calls <= 16

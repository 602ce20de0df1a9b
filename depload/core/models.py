"""Data models for Depload."""

from __future__ import annotations

import sqlite3
from dataclasses import dataclass, field
from enum import Enum


class ChangeType(Enum):
    """Kinds of change a commit can apply to a file."""

    ADDED = "A"
    MODIFIED = "M"
    DELETED = "D"
    RENAMED = "R"
    TYPECHANGE = "T"


@dataclass
class Project:
    """A named unit of code ownership with member files."""

    name: str
    description: str | None = None
    type: str | None = None
    source_root: str | None = None
    root: str | None = None
    tags: str | None = None
    id: int | None = None

    @property
    def tag_list(self) -> list[str]:
        if not self.tags:
            return []
        return [t for t in self.tags.split(",") if t]

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> Project:
        """Create a Project from a database row."""
        return cls(
            id=row["id"],
            name=row["name"],
            description=row["description"],
            type=row["project_type"],
            source_root=row["source_root"],
            root=row["root"],
            tags=row["tags"],
        )


@dataclass
class ProjectFile:
    """Membership of a file in a project."""

    id: int
    project_id: int
    file_path: str
    file_type: str | None = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> ProjectFile:
        """Create a ProjectFile from a database row."""
        return cls(
            id=row["id"],
            project_id=row["project_id"],
            file_path=row["file_path"],
            file_type=row["file_type"],
        )


@dataclass(frozen=True)
class ProjectDependency:
    """Directed edge: source build-depends-on target."""

    source_project: str
    target_project: str


@dataclass(frozen=True)
class FileDependency:
    """A file imports something that originates in a project (and maybe a file)."""

    file_path: str
    depends_on_project: str
    depends_on_file: str | None = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> FileDependency:
        """Create a FileDependency from a database row."""
        return cls(
            file_path=row["file_path"],
            depends_on_project=row["depends_on_project"],
            depends_on_file=row["depends_on_file"] or None,
        )


@dataclass
class GitCommit:
    """A commit recorded from version control."""

    id: int
    hash: str
    author: str
    date: str
    message: str

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> GitCommit:
        """Create a GitCommit from a database row."""
        return cls(
            id=row["id"],
            hash=row["hash"],
            author=row["author"],
            date=row["date"],
            message=row["message"],
        )


@dataclass
class TouchedFile:
    """A file changed by a commit."""

    id: int
    commit_id: int
    file_path: str
    change_type: ChangeType

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> TouchedFile:
        """Create a TouchedFile from a database row."""
        return cls(
            id=row["id"],
            commit_id=row["commit_id"],
            file_path=row["file_path"],
            change_type=ChangeType(row["change_type"]),
        )


@dataclass
class ProjectMetrics:
    """Windowed churn and fan-in metrics for one project."""

    name: str
    touched_count: int = 0
    dependent_count: int = 0
    load: int = 0
    affected_count: int = 0
    # True when the dependents lookup failed and dependent_count fell back to 0
    degraded: bool = False

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "touched_count": self.touched_count,
            "dependent_count": self.dependent_count,
            "load": self.load,
            "affected_count": self.affected_count,
            "degraded": self.degraded,
        }


@dataclass
class SplitResult:
    """Outcome of a two-way file split."""

    group_a: list[str]
    group_b: list[str]
    load_a: int
    load_b: int
    initial_total: int
    iterations: int = 0

    @property
    def total(self) -> int:
        return self.load_a + self.load_b

    def to_dict(self) -> dict[str, object]:
        return {
            "group_a": self.group_a,
            "group_b": self.group_b,
            "load_a": self.load_a,
            "load_b": self.load_b,
            "total": self.total,
            "initial_total": self.initial_total,
            "iterations": self.iterations,
        }


class IngestStats:
    """Statistics from a commit-log ingestion."""

    def __init__(self) -> None:
        self.commits: int = 0
        self.new_commits: int = 0
        self.touched_files: int = 0
        self.skipped_lines: int = 0

    def __repr__(self) -> str:
        return (
            f"IngestStats(commits={self.commits}, new_commits={self.new_commits}, "
            f"touched_files={self.touched_files}, skipped_lines={self.skipped_lines})"
        )


@dataclass
class SyncStats:
    """Statistics from a workspace sync."""

    projects: int = 0
    files: int = 0
    project_dependencies: int = 0
    file_dependencies: int = 0
    cycles: list[list[str]] = field(default_factory=list)

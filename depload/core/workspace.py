"""Workspace sync: load a project graph snapshot into the store.

The snapshot stands in for the workspace build-graph provider. It is a JSON
document listing projects (with member files and direct project dependencies)
and file-level dependencies:

    {
      "projects": [
        {"name": "core", "type": "library", "root": "libs/core",
         "sourceRoot": "libs/core/src", "tags": ["scope:shared"],
         "files": ["libs/core/src/a.ts"], "dependencies": []}
      ],
      "fileDependencies": [
        {"file": "apps/app/src/main.ts", "project": "core",
         "dependsOnFile": "libs/core/src/a.ts"}
      ]
    }
"""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from depload.core.exceptions import WorkspaceError
from depload.core.graph.analysis import find_cycles, has_cycle
from depload.core.graph.loader import build_graph
from depload.core.models import FileDependency, Project, ProjectDependency, SyncStats
from depload.core.storage import GraphRepository

logger = logging.getLogger(__name__)


class SymbolResolver(Protocol):
    """Resolves which files of ``project`` the imports of ``file_path`` land in."""

    def resolve(self, file_path: str, project: str) -> Iterable[str]: ...


@dataclass
class ProjectSpec:
    """One project as described by the workspace."""

    project: Project
    files: list[str] = field(default_factory=list)
    dependencies: list[str] = field(default_factory=list)


@dataclass
class WorkspaceSnapshot:
    """Projects, memberships and dependency edges of a workspace."""

    projects: list[ProjectSpec] = field(default_factory=list)
    file_dependencies: list[FileDependency] = field(default_factory=list)

    @property
    def project_dependencies(self) -> list[ProjectDependency]:
        return [
            ProjectDependency(spec.project.name, target)
            for spec in self.projects
            for target in spec.dependencies
        ]


def _as_str_list(value: Any, where: str) -> list[str]:
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise WorkspaceError(f"{where} must be a list of strings")
    return list(value)


def parse_snapshot(data: Any) -> WorkspaceSnapshot:
    """Validate and convert a decoded snapshot document."""
    if not isinstance(data, dict):
        raise WorkspaceError("Workspace snapshot must be a JSON object")

    snapshot = WorkspaceSnapshot()
    seen: set[str] = set()
    for entry in data.get("projects") or []:
        if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
            raise WorkspaceError("Every project needs a string 'name'")
        name = entry["name"]
        if name in seen:
            raise WorkspaceError(f"Duplicate project '{name}'")
        seen.add(name)

        tags = _as_str_list(entry.get("tags"), f"projects[{name}].tags")
        snapshot.projects.append(
            ProjectSpec(
                project=Project(
                    name=name,
                    description=entry.get("description"),
                    type=entry.get("type"),
                    source_root=entry.get("sourceRoot"),
                    root=entry.get("root"),
                    tags=",".join(tags) if tags else None,
                ),
                files=_as_str_list(entry.get("files"), f"projects[{name}].files"),
                dependencies=_as_str_list(
                    entry.get("dependencies"), f"projects[{name}].dependencies"
                ),
            )
        )

    for entry in data.get("fileDependencies") or []:
        if (
            not isinstance(entry, dict)
            or not isinstance(entry.get("file"), str)
            or not isinstance(entry.get("project"), str)
        ):
            raise WorkspaceError("Every file dependency needs string 'file' and 'project'")
        snapshot.file_dependencies.append(
            FileDependency(
                file_path=entry["file"],
                depends_on_project=entry["project"],
                depends_on_file=entry.get("dependsOnFile"),
            )
        )

    return snapshot


def load_snapshot(path: Path) -> WorkspaceSnapshot:
    """Read a workspace snapshot from a JSON file."""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as e:
        raise WorkspaceError(f"Cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise WorkspaceError(f"Invalid JSON in {path}: {e}") from e
    return parse_snapshot(data)


class WorkspaceSync:
    """Replaces the store's project graph with a snapshot, in one transaction."""

    def __init__(self, repo: GraphRepository, resolver: SymbolResolver | None = None) -> None:
        self._repo = repo
        self._resolver = resolver

    def sync(self, snapshot: WorkspaceSnapshot) -> SyncStats:
        stats = SyncStats()
        file_deps = list(self._resolve_file_dependencies(snapshot.file_dependencies))

        with self._repo.transaction():
            for spec in snapshot.projects:
                self._repo.projects.upsert(spec.project)
                stats.projects += 1
                for file_path in spec.files:
                    self._repo.projects.add_file(spec.project.name, file_path)
                    stats.files += 1

            stats.project_dependencies = self._repo.dependencies.replace_project_dependencies(
                snapshot.project_dependencies
            )
            stats.file_dependencies = self._repo.dependencies.replace_file_dependencies(
                file_deps
            )

        graph = build_graph(
            (spec.project.name for spec in snapshot.projects), snapshot.project_dependencies
        )
        if has_cycle(graph):
            stats.cycles = find_cycles(graph)
            for cycle in stats.cycles:
                logger.warning("Dependency cycle: %s", " -> ".join([*cycle, cycle[0]]))

        logger.info(
            "Synced %d projects, %d project dependencies, %d file dependencies",
            stats.projects,
            stats.project_dependencies,
            stats.file_dependencies,
        )
        return stats

    def _resolve_file_dependencies(
        self, deps: Iterable[FileDependency]
    ) -> Iterable[FileDependency]:
        """Expand project-only file dependencies through the symbol resolver."""
        for dep in deps:
            if dep.depends_on_file is not None or self._resolver is None:
                yield dep
                continue
            resolved = sorted(set(self._resolver.resolve(dep.file_path, dep.depends_on_project)))
            if not resolved:
                yield dep
            for target in resolved:
                yield FileDependency(dep.file_path, dep.depends_on_project, target)

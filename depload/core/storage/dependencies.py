"""Project and file dependency edge storage."""

from __future__ import annotations

import sqlite3
from collections.abc import Callable, Iterable

from depload.core.models import FileDependency, ProjectDependency
from depload.core.storage.projects import TransactionFactory


class DependencyStorage:
    """Storage operations for project-level and file-level dependency edges.

    Both edge sets are rewritten wholesale on each sync, never diffed.
    """

    def __init__(
        self,
        get_connection: Callable[[], sqlite3.Connection],
        transaction: TransactionFactory,
    ) -> None:
        self._get_connection = get_connection
        self._transaction = transaction

    def replace_project_dependencies(self, edges: Iterable[ProjectDependency]) -> int:
        """Clear and rewrite the project dependency relation. Returns edge count."""
        rows = {(e.source_project, e.target_project) for e in edges}
        with self._transaction() as conn:
            conn.execute("DELETE FROM project_dependencies")
            conn.executemany(
                """
                INSERT OR IGNORE INTO project_dependencies (source_project, target_project)
                VALUES (?, ?)
                """,
                sorted(rows),
            )
        return len(rows)

    def replace_file_dependencies(self, edges: Iterable[FileDependency]) -> int:
        """Clear and rewrite the file dependency relation. Returns edge count."""
        rows = {(e.file_path, e.depends_on_project, e.depends_on_file or "") for e in edges}
        with self._transaction() as conn:
            conn.execute("DELETE FROM file_dependencies")
            conn.executemany(
                """
                INSERT OR IGNORE INTO file_dependencies
                    (file_path, depends_on_project, depends_on_file)
                VALUES (?, ?, ?)
                """,
                sorted(rows),
            )
        return len(rows)

    def list_project_dependencies(self) -> list[ProjectDependency]:
        conn = self._get_connection()
        cursor = conn.execute(
            "SELECT source_project, target_project FROM project_dependencies "
            "ORDER BY source_project, target_project"
        )
        return [ProjectDependency(row[0], row[1]) for row in cursor.fetchall()]

    def direct_dependencies(self, projects: list[str]) -> set[str]:
        """Projects that any of ``projects`` depend on directly."""
        return self._neighbours(projects, select="target_project", match="source_project")

    def direct_dependents(self, projects: list[str]) -> set[str]:
        """Projects that depend directly on any of ``projects``."""
        return self._neighbours(projects, select="source_project", match="target_project")

    def _neighbours(self, projects: list[str], select: str, match: str) -> set[str]:
        if not projects:
            return set()
        conn = self._get_connection()
        placeholders = ",".join("?" for _ in projects)
        cursor = conn.execute(
            f"SELECT {select} FROM project_dependencies WHERE {match} IN ({placeholders})",
            projects,
        )
        return {row[0] for row in cursor.fetchall()}

    def projects_depending_on_file(self, file_path: str) -> list[str]:
        """Projects owning a file that imports from ``file_path``."""
        conn = self._get_connection()
        cursor = conn.execute(
            """
            SELECT DISTINCT p.name
            FROM projects p
            JOIN project_files pf ON p.id = pf.project_id
            JOIN file_dependencies fd ON fd.file_path = pf.file_path
            WHERE fd.depends_on_file = ?
            ORDER BY p.name
            """,
            (file_path,),
        )
        return [row[0] for row in cursor.fetchall()]

    def file_dependencies_of(self, file_path: str) -> list[FileDependency]:
        """What a file depends on."""
        conn = self._get_connection()
        cursor = conn.execute(
            """
            SELECT * FROM file_dependencies WHERE file_path = ?
            ORDER BY depends_on_project, depends_on_file
            """,
            (file_path,),
        )
        return [FileDependency.from_row(row) for row in cursor.fetchall()]

    def files_depending_on(self, target: str) -> list[str]:
        """Files that depend on a project or on a specific file."""
        conn = self._get_connection()
        cursor = conn.execute(
            """
            SELECT DISTINCT file_path FROM file_dependencies
            WHERE depends_on_project = ? OR depends_on_file = ?
            ORDER BY file_path
            """,
            (target, target),
        )
        return [row[0] for row in cursor.fetchall()]

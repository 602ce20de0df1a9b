"""Project and project-file storage operations."""

from __future__ import annotations

import sqlite3
from collections.abc import Callable
from contextlib import AbstractContextManager

from depload.core.exceptions import ProjectNotFoundError
from depload.core.models import Project, ProjectFile

TransactionFactory = Callable[[], AbstractContextManager[sqlite3.Connection]]


class ProjectStorage:
    """Storage operations for projects and their member files."""

    def __init__(
        self,
        get_connection: Callable[[], sqlite3.Connection],
        transaction: TransactionFactory,
    ) -> None:
        self._get_connection = get_connection
        self._transaction = transaction

    def upsert(self, project: Project) -> int:
        """Insert or update a project by name and return its ID."""
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO projects (name, description, project_type, source_root, root, tags)
                VALUES (?, ?, ?, ?, ?, ?)
                ON CONFLICT(name) DO UPDATE SET
                    description = excluded.description,
                    project_type = excluded.project_type,
                    source_root = excluded.source_root,
                    root = excluded.root,
                    tags = excluded.tags
                """,
                (
                    project.name,
                    project.description,
                    project.type,
                    project.source_root,
                    project.root,
                    project.tags,
                ),
            )
            row = conn.execute("SELECT id FROM projects WHERE name = ?", (project.name,)).fetchone()
        return row["id"]  # type: ignore[no-any-return]

    def get(self, name: str) -> Project | None:
        """Get a project, or None if it does not exist."""
        conn = self._get_connection()
        row = conn.execute("SELECT * FROM projects WHERE name = ?", (name,)).fetchone()
        if row is None:
            return None
        return Project.from_row(row)

    def require(self, name: str) -> Project:
        """Get a project or raise ProjectNotFoundError."""
        project = self.get(name)
        if project is None:
            raise ProjectNotFoundError(f"Project '{name}' not found")
        return project

    def list_all(self) -> list[Project]:
        conn = self._get_connection()
        cursor = conn.execute("SELECT * FROM projects ORDER BY name")
        return [Project.from_row(row) for row in cursor.fetchall()]

    def find_by_tag(self, tag: str) -> list[Project]:
        """Get projects carrying an exact tag."""
        return [p for p in self.list_all() if tag in p.tag_list]

    def delete(self, name: str) -> bool:
        """Delete a project; its file memberships go with it."""
        with self._transaction() as conn:
            cursor = conn.execute("DELETE FROM projects WHERE name = ?", (name,))
        return cursor.rowcount > 0

    def add_file(self, project_name: str, file_path: str, file_type: str | None = None) -> None:
        """Record that a file belongs to a project."""
        project = self.require(project_name)
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO project_files (project_id, file_path, file_type)
                VALUES (?, ?, ?)
                """,
                (project.id, file_path, file_type),
            )

    def remove_file(self, project_name: str, file_path: str) -> bool:
        project = self.get(project_name)
        if project is None:
            return False
        with self._transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM project_files WHERE project_id = ? AND file_path = ?",
                (project.id, file_path),
            )
        return cursor.rowcount > 0

    def list_files(self, project_name: str) -> list[ProjectFile]:
        """Get the files of a project; an unknown project has none."""
        project = self.get(project_name)
        if project is None:
            return []
        conn = self._get_connection()
        cursor = conn.execute(
            "SELECT * FROM project_files WHERE project_id = ? ORDER BY file_path",
            (project.id,),
        )
        return [ProjectFile.from_row(row) for row in cursor.fetchall()]

    def list_file_owners(self, file_path: str) -> list[Project]:
        """Get every project that declares a file."""
        conn = self._get_connection()
        cursor = conn.execute(
            """
            SELECT p.* FROM projects p
            JOIN project_files pf ON p.id = pf.project_id
            WHERE pf.file_path = ?
            ORDER BY p.name
            """,
            (file_path,),
        )
        return [Project.from_row(row) for row in cursor.fetchall()]

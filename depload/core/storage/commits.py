"""Commit and touched-file storage operations."""

from __future__ import annotations

import sqlite3
from collections.abc import Callable, Sequence

from depload.core.models import ChangeType, GitCommit, TouchedFile
from depload.core.storage.projects import TransactionFactory


def _placeholders(values: Sequence[object]) -> str:
    return ",".join("?" for _ in values)


class CommitStorage:
    """Storage operations for commits and the files they touched."""

    def __init__(
        self,
        get_connection: Callable[[], sqlite3.Connection],
        transaction: TransactionFactory,
    ) -> None:
        self._get_connection = get_connection
        self._transaction = transaction

    def insert_if_absent(self, hash: str, author: str, date: str, message: str) -> int:
        """Insert a commit and return its ID; a known hash returns the existing ID."""
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT OR IGNORE INTO git_commits (hash, author, date, message)
                VALUES (?, ?, ?, ?)
                """,
                (hash, author, date, message),
            )
            row = conn.execute("SELECT id FROM git_commits WHERE hash = ?", (hash,)).fetchone()
        return row["id"]  # type: ignore[no-any-return]

    def exists(self, hash: str) -> bool:
        conn = self._get_connection()
        row = conn.execute("SELECT 1 FROM git_commits WHERE hash = ?", (hash,)).fetchone()
        return row is not None

    def insert_touched_file(self, commit_id: int, file_path: str, change_type: ChangeType) -> None:
        """Record that a commit touched a file (insert or replace)."""
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO touched_files (commit_id, file_path, change_type)
                VALUES (?, ?, ?)
                """,
                (commit_id, file_path, change_type.value),
            )

    def recent_ids(self, commit_count: int) -> list[int]:
        """IDs of the most recent commits, newest first."""
        conn = self._get_connection()
        cursor = conn.execute(
            "SELECT id FROM git_commits ORDER BY date DESC, id DESC LIMIT ?",
            (commit_count,),
        )
        return [row[0] for row in cursor.fetchall()]

    def recent(self, limit: int = 50) -> list[GitCommit]:
        conn = self._get_connection()
        cursor = conn.execute(
            "SELECT * FROM git_commits ORDER BY date DESC, id DESC LIMIT ?",
            (limit,),
        )
        return [GitCommit.from_row(row) for row in cursor.fetchall()]

    def touched_files(self, commit_hash: str | None = None) -> list[TouchedFile]:
        """Touched files, newest commit first, optionally for one commit."""
        conn = self._get_connection()
        query = """
            SELECT tf.* FROM touched_files tf
            JOIN git_commits gc ON tf.commit_id = gc.id
        """
        params: tuple[str, ...] = ()
        if commit_hash:
            query += " WHERE gc.hash = ?"
            params = (commit_hash,)
        query += " ORDER BY gc.date DESC, gc.id DESC, tf.file_path"
        cursor = conn.execute(query, params)
        return [TouchedFile.from_row(row) for row in cursor.fetchall()]

    def touched_projects_by_commit(self, commit_ids: list[int]) -> dict[int, set[str]]:
        """Distinct projects whose files each commit touched.

        Commits that touched no project file are absent from the result.
        """
        if not commit_ids:
            return {}
        conn = self._get_connection()
        cursor = conn.execute(
            f"""
            SELECT DISTINCT tf.commit_id, p.name
            FROM touched_files tf
            JOIN project_files pf ON pf.file_path = tf.file_path
            JOIN projects p ON p.id = pf.project_id
            WHERE tf.commit_id IN ({_placeholders(commit_ids)})
            """,
            commit_ids,
        )
        touched: dict[int, set[str]] = {}
        for commit_id, project_name in cursor.fetchall():
            touched.setdefault(commit_id, set()).add(project_name)
        return touched

    def count_commits_touching(self, commit_ids: list[int], file_paths: list[str]) -> int:
        """Number of distinct commits among ``commit_ids`` touching any of ``file_paths``."""
        if not commit_ids or not file_paths:
            return 0
        conn = self._get_connection()
        row = conn.execute(
            f"""
            SELECT COUNT(DISTINCT commit_id) FROM touched_files
            WHERE commit_id IN ({_placeholders(commit_ids)})
            AND file_path IN ({_placeholders(file_paths)})
            """,
            [*commit_ids, *file_paths],
        ).fetchone()
        return int(row[0])

"""Repository that coordinates all storage operations."""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from depload.core.storage.commits import CommitStorage
from depload.core.storage.dependencies import DependencyStorage
from depload.core.storage.projects import ProjectStorage

_SCHEMA = """
CREATE TABLE IF NOT EXISTS projects (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT UNIQUE NOT NULL,
    description TEXT,
    project_type TEXT,
    source_root TEXT,
    root TEXT,
    tags TEXT,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS project_files (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    project_id INTEGER NOT NULL,
    file_path TEXT NOT NULL,
    file_type TEXT,
    added_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (project_id) REFERENCES projects(id) ON DELETE CASCADE,
    UNIQUE (project_id, file_path)
);

CREATE TABLE IF NOT EXISTS project_dependencies (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    source_project TEXT NOT NULL,
    target_project TEXT NOT NULL,
    UNIQUE (source_project, target_project)
);

CREATE TABLE IF NOT EXISTS file_dependencies (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    file_path TEXT NOT NULL,
    depends_on_project TEXT NOT NULL,
    depends_on_file TEXT NOT NULL DEFAULT '',
    UNIQUE (file_path, depends_on_project, depends_on_file)
);

CREATE TABLE IF NOT EXISTS git_commits (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    hash TEXT UNIQUE NOT NULL,
    author TEXT NOT NULL,
    date TEXT NOT NULL,
    message TEXT NOT NULL,
    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);

CREATE TABLE IF NOT EXISTS touched_files (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    commit_id INTEGER NOT NULL,
    file_path TEXT NOT NULL,
    change_type TEXT NOT NULL,
    FOREIGN KEY (commit_id) REFERENCES git_commits(id) ON DELETE CASCADE,
    UNIQUE (commit_id, file_path)
);

CREATE INDEX IF NOT EXISTS idx_project_files_path ON project_files(file_path);
CREATE INDEX IF NOT EXISTS idx_project_deps_source ON project_dependencies(source_project);
CREATE INDEX IF NOT EXISTS idx_project_deps_target ON project_dependencies(target_project);
CREATE INDEX IF NOT EXISTS idx_file_deps_file ON file_dependencies(file_path);
CREATE INDEX IF NOT EXISTS idx_file_deps_target_file ON file_dependencies(depends_on_file);
CREATE INDEX IF NOT EXISTS idx_commits_date ON git_commits(date);
CREATE INDEX IF NOT EXISTS idx_touched_files_path ON touched_files(file_path);
"""


class GraphRepository:
    """Facade that coordinates projects, dependencies, and commits storage.

    The connection runs in autocommit mode; multi-row writes are grouped with
    :meth:`transaction`, so a failure part way through leaves the previous
    state intact.
    """

    def __init__(self, db_path: Path) -> None:
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._tx_depth = 0

        self.projects = ProjectStorage(self._get_connection, self.transaction)
        self.dependencies = DependencyStorage(self._get_connection, self.transaction)
        self.commits = CommitStorage(self._get_connection, self.transaction)

    def _get_connection(self) -> sqlite3.Connection:
        """Get or create a database connection."""
        if self._conn is None:
            self._db_path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(self._db_path, isolation_level=None)
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA foreign_keys=ON")
            self._conn.executescript(_SCHEMA)
        return self._conn

    @contextmanager
    def transaction(self) -> Iterator[sqlite3.Connection]:
        """Run the enclosed writes as one all-or-nothing transaction.

        Nested calls join the outermost transaction.
        """
        conn = self._get_connection()
        if self._tx_depth > 0:
            self._tx_depth += 1
            try:
                yield conn
            finally:
                self._tx_depth -= 1
            return

        conn.execute("BEGIN IMMEDIATE")
        self._tx_depth = 1
        try:
            yield conn
        except BaseException:
            conn.execute("ROLLBACK")
            raise
        else:
            conn.execute("COMMIT")
        finally:
            self._tx_depth = 0

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def __enter__(self) -> GraphRepository:
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        self.close()

    def get_stats(self) -> dict[str, int | str | None]:
        """Get store statistics."""
        conn = self._get_connection()

        counts: dict[str, int | str | None] = {}
        for table in (
            "projects",
            "project_files",
            "project_dependencies",
            "file_dependencies",
            "git_commits",
            "touched_files",
        ):
            counts[table] = conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]

        counts["latest_commit"] = conn.execute("SELECT MAX(date) FROM git_commits").fetchone()[0]
        return counts

    def clear(self) -> None:
        """Clear all data from the database."""
        with self.transaction() as conn:
            conn.execute("DELETE FROM touched_files")
            conn.execute("DELETE FROM git_commits")
            conn.execute("DELETE FROM file_dependencies")
            conn.execute("DELETE FROM project_dependencies")
            conn.execute("DELETE FROM project_files")
            conn.execute("DELETE FROM projects")


def get_default_db_path(workspace_root: Path) -> Path:
    """Get the default database path for a workspace."""
    return workspace_root / ".depload" / "projects.db"

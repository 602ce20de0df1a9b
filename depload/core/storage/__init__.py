"""
Storage layer: SQLite persistence for the workspace graph and commit history.

This module provides database operations split by concern:

Components:
    - GraphRepository: Main facade that owns the connection and transactions
    - ProjectStorage: Projects and project-file membership
    - DependencyStorage: Project-level and file-level dependency edges
    - CommitStorage: Commits and the files each one touched

Database Schema:
    projects: id, name, description, project_type, source_root, root, tags
    project_files: id, project_id, file_path, file_type
    project_dependencies: id, source_project, target_project
    file_dependencies: id, file_path, depends_on_project, depends_on_file
    git_commits: id, hash, author, date, message
    touched_files: id, commit_id, file_path, change_type

The database is stored at .depload/projects.db relative to the workspace root.
"""

from depload.core.storage.commits import CommitStorage
from depload.core.storage.dependencies import DependencyStorage
from depload.core.storage.projects import ProjectStorage
from depload.core.storage.repository import GraphRepository, get_default_db_path

__all__ = [
    "GraphRepository",
    "ProjectStorage",
    "DependencyStorage",
    "CommitStorage",
    "get_default_db_path",
]

"""
Core module: data models, exceptions, storage, and the analysis engines.

Models (models.py):
    - Project / ProjectFile: Units of ownership and their member files
    - ProjectDependency / FileDependency: Directed dependency edges
    - GitCommit / TouchedFile: Commit history
    - ProjectMetrics / SplitResult: Engine outputs

Exceptions (exceptions.py):
    - DeploadError: Base exception for all depload errors
    - ProjectNotFoundError: Referenced project doesn't exist
    - IngestError: Commit log could not be read
    - WorkspaceError: Workspace snapshot is unreadable or invalid

Storage (storage/):
    - GraphRepository: Facade for all database operations
    - Uses SQLite for persistence in .depload/projects.db

Engines:
    - graph.closure: Transitive dependents/dependencies
    - metrics: Windowed project metrics and file-set estimated load
    - optimizer: Two-way file split by hill climbing
"""

from depload.core.exceptions import (
    DeploadError,
    IngestError,
    ProjectNotFoundError,
    WorkspaceError,
)
from depload.core.models import (
    ChangeType,
    FileDependency,
    GitCommit,
    IngestStats,
    Project,
    ProjectDependency,
    ProjectFile,
    ProjectMetrics,
    SplitResult,
    SyncStats,
    TouchedFile,
)
from depload.core.storage import GraphRepository, get_default_db_path

__all__ = [
    # Models
    "Project",
    "ProjectFile",
    "ProjectDependency",
    "FileDependency",
    "GitCommit",
    "TouchedFile",
    "ChangeType",
    "ProjectMetrics",
    "SplitResult",
    "IngestStats",
    "SyncStats",
    # Exceptions
    "DeploadError",
    "ProjectNotFoundError",
    "IngestError",
    "WorkspaceError",
    # Storage
    "GraphRepository",
    "get_default_db_path",
]

"""Depload custom exceptions."""


class DeploadError(Exception):
    """Base exception for Depload errors."""


class ProjectNotFoundError(DeploadError):
    """Project not found in the store."""


class IngestError(DeploadError):
    """Commit log could not be read from version control."""


class WorkspaceError(DeploadError):
    """Workspace snapshot could not be loaded."""

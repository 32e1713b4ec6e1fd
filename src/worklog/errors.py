"""Exception types raised by the worklog stores."""

from __future__ import annotations


class WorklogError(Exception):
    """Base exception for worklog operations."""
    pass


class LogNotFoundError(WorklogError):
    """Raised when a strict load asks for a day file that does not exist."""
    pass


class EmptyLogError(WorklogError):
    """Raised when an operation needs an entry but the day has none."""
    pass


class DuplicateEntryError(WorklogError):
    """Raised when a day would hold two entries with the same key."""
    pass


class ValidationError(WorklogError, ValueError):
    """Raised when a record is missing a required field or has a bad shape."""
    pass


class DateExpressionError(WorklogError, ValueError):
    """Raised when a date or time expression cannot be parsed."""
    pass


class MalformedFileError(WorklogError):
    """Raised when a stored file is present but cannot be parsed."""

    def __init__(self, path, reason: str):
        super().__init__(f"Cannot parse {path}: {reason}")
        self.path = path
        self.reason = reason


class ProjectNotFoundError(WorklogError):
    """Raised when an entry references a project key that is not defined."""
    pass

"""Custom exceptions for metadata loading and caching."""

from __future__ import annotations

from typing import Any, Optional


class SqlMetaError(Exception):
    """Base class for all sqlmeta errors."""

    pass


class DatabaseError(SqlMetaError):
    """Raised when a database operation fails."""

    pass


class LoadError(SqlMetaError):
    """Raised when a cache loader fails to produce child objects.

    The original exception is kept in ``cause`` (and chained via ``from``).
    """

    def __init__(self, message: str, parent: Any = None, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.parent = parent
        self.cause = cause


class LoadCanceledError(LoadError):
    """Raised by a loader when its monitor has been canceled."""

    pass


class ComputeError(SqlMetaError):
    """Raised when a derived value (e.g. DDL text) cannot be computed."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause

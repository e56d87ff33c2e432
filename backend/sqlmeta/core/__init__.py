"""Core infrastructure module.

Contains configuration and exceptions. Database access lives in ``core.db``
and is imported explicitly by the catalog loaders.
"""

from .config import (
    Settings,
    DatabaseConnection,
    get_settings,
    get_cached_settings,
    clear_settings_cache,
)
from .exceptions import (
    ComputeError,
    DatabaseError,
    LoadCanceledError,
    LoadError,
    SqlMetaError,
)

__all__ = [
    # Config
    "Settings",
    "DatabaseConnection",
    "get_settings",
    "get_cached_settings",
    "clear_settings_cache",
    # Exceptions
    "ComputeError",
    "DatabaseError",
    "LoadCanceledError",
    "LoadError",
    "SqlMetaError",
]

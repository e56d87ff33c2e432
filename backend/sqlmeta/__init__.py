"""sqlmeta - cached SQL Server table metadata.

Package Structure:
    core/    - Core infrastructure (config, db, exceptions)
    cache/   - Parent-scoped child object cache, derived value slot, load monitor
    schema/  - Schema container, table entity, child objects, catalog loaders
    api      - FastAPI metadata navigator
"""

from .cache import (
    CacheStats,
    ChildObjectCache,
    DerivedValue,
    EntryState,
    LoadMonitor,
    find_object,
)
from .core import (
    ComputeError,
    DatabaseConnection,
    DatabaseError,
    LoadCanceledError,
    LoadError,
    Settings,
    SqlMetaError,
    clear_settings_cache,
    get_cached_settings,
    get_settings,
)
from .schema import (
    SQLServerSchema,
    SQLServerTable,
    TableCheckConstraint,
    TableColumn,
    TableIndex,
    TableUniqueKey,
)

__all__ = [
    # Cache
    "CacheStats",
    "ChildObjectCache",
    "DerivedValue",
    "EntryState",
    "LoadMonitor",
    "find_object",
    # Core
    "ComputeError",
    "DatabaseConnection",
    "DatabaseError",
    "LoadCanceledError",
    "LoadError",
    "Settings",
    "SqlMetaError",
    "clear_settings_cache",
    "get_cached_settings",
    "get_settings",
    # Schema
    "SQLServerSchema",
    "SQLServerTable",
    "TableCheckConstraint",
    "TableColumn",
    "TableIndex",
    "TableUniqueKey",
]

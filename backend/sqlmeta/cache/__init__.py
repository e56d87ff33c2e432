"""Metadata caching module.

Contains the parent-scoped child object cache, the derived value slot and
the monitor handed to loaders.
"""

from .derived import DerivedValue
from .monitor import LoadMonitor
from .object_cache import CacheStats, ChildObjectCache, EntryState, Loader, find_object

__all__ = [
    "CacheStats",
    "ChildObjectCache",
    "DerivedValue",
    "EntryState",
    "LoadMonitor",
    "Loader",
    "find_object",
]

"""Schema container holding the caches shared by its tables."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable, Iterable, Optional, Protocol

from ..cache import ChildObjectCache, LoadMonitor
from .objects import TableColumn, TableIndex, TableUniqueKey

if TYPE_CHECKING:
    from .objects import TableCheckConstraint
    from .table import SQLServerTable

logger = logging.getLogger(__name__)

DDLGenerator = Callable[["SQLServerTable", LoadMonitor], str]


class CatalogLoader(Protocol):
    """Source of catalog metadata for a schema and its tables."""

    def load_tables(self, schema: "SQLServerSchema", monitor: LoadMonitor) -> Iterable["SQLServerTable"]: ...

    def load_columns(self, table: "SQLServerTable", monitor: LoadMonitor) -> Iterable[TableColumn]: ...

    def load_indexes(self, table: "SQLServerTable", monitor: LoadMonitor) -> Iterable[TableIndex]: ...

    def load_unique_keys(self, table: "SQLServerTable", monitor: LoadMonitor) -> Iterable[TableUniqueKey]: ...

    def load_check_constraints(
        self, table: "SQLServerTable", monitor: LoadMonitor
    ) -> Iterable["TableCheckConstraint"]: ...


class SQLServerSchema:
    """A database schema; owns one cache per child kind, keyed by table."""

    def __init__(
        self,
        name: str,
        loader: CatalogLoader,
        ddl_generator: Optional[DDLGenerator] = None,
        database: str = "",
    ) -> None:
        self.name = name
        self.database = database
        self.loader = loader
        self.ddl_generator = ddl_generator

        self.table_cache: ChildObjectCache[SQLServerSchema, SQLServerTable] = ChildObjectCache(
            loader.load_tables, name=f"{name}.tables"
        )
        self.column_cache: ChildObjectCache[SQLServerTable, TableColumn] = ChildObjectCache(
            loader.load_columns, name=f"{name}.columns"
        )
        self.index_cache: ChildObjectCache[SQLServerTable, TableIndex] = ChildObjectCache(
            loader.load_indexes, name=f"{name}.indexes"
        )
        self.unique_key_cache: ChildObjectCache[SQLServerTable, TableUniqueKey] = ChildObjectCache(
            loader.load_unique_keys, name=f"{name}.unique_keys"
        )

    @property
    def caches(self) -> tuple[ChildObjectCache, ...]:
        return (self.table_cache, self.column_cache, self.index_cache, self.unique_key_cache)

    def get_tables(self, monitor: Optional[LoadMonitor] = None) -> tuple["SQLServerTable", ...]:
        return self.table_cache.get_children(self, monitor)

    def get_table(self, identifier: int | str, monitor: Optional[LoadMonitor] = None) -> Optional["SQLServerTable"]:
        table = self.table_cache.get_child(self, identifier, monitor)
        if table is None:
            logger.warning(f"Table '{identifier}' not found in schema '{self.name}'")
        return table

    def refresh(self) -> "SQLServerSchema":
        """Drop everything cached for this schema and its tables."""
        for cache in self.caches:
            cache.clear_all()
        logger.info(f"Schema '{self.name}' refreshed")
        return self

    def __repr__(self) -> str:
        return f"SQLServerSchema({self.name!r})"

"""SQL Server table entity.

Columns, indexes and unique keys are cached by the owning schema, one entry
per table. Check constraints and the DDL text are cached on the table itself.
"""

from __future__ import annotations

from dataclasses import replace
import logging
from typing import Any, Optional, Protocol

from ..cache import ChildObjectCache, DerivedValue, LoadMonitor
from ..core.exceptions import ComputeError
from .container import SQLServerSchema
from .objects import TableCheckConstraint, TableColumn, TableIndex, TableUniqueKey

logger = logging.getLogger(__name__)


class AttributeSource(Protocol):
    """Any table-like entity whose columns can be copied."""
    name: str

    def get_attributes(self, monitor: Optional[LoadMonitor] = None) -> list[TableColumn]: ...


class SQLServerTable:
    """One table of a schema. Hashes by identity so it can key the schema caches."""

    def __init__(
        self,
        schema: SQLServerSchema,
        name: str,
        object_id: Optional[int] = None,
        description: Optional[str] = None,
        properties: Optional[dict[str, Any]] = None,
    ) -> None:
        self.schema = schema
        self.name = name
        self.object_id = object_id
        self.description = description
        self.properties = dict(properties or {})

        self.check_constraint_cache: ChildObjectCache[SQLServerTable, TableCheckConstraint] = ChildObjectCache(
            schema.loader.load_check_constraints, name=f"{schema.name}.{name}.check_constraints"
        )
        self.ddl: DerivedValue[str] = DerivedValue(name=f"DDL of {self.full_name}")

    @classmethod
    def copy_of(
        cls,
        schema: SQLServerSchema,
        source: AttributeSource,
        monitor: Optional[LoadMonitor] = None,
    ) -> "SQLServerTable":
        """Create a new table in ``schema`` with the visible columns of ``source``.

        The copied columns are seeded into the schema's column cache, so the
        new table never queries the catalog for them.
        """
        table = cls(schema, source.name, description=getattr(source, "description", None))
        columns = [
            replace(column)
            for column in source.get_attributes(monitor) or ()
            if not column.is_hidden
        ]
        schema.column_cache.cache_children(table, columns)
        return table

    @property
    def full_name(self) -> str:
        return f"[{self.schema.name}].[{self.name}]"

    @property
    def database(self) -> str:
        return self.schema.database

    @property
    def is_view(self) -> bool:
        return False

    # Columns

    def get_attributes(self, monitor: Optional[LoadMonitor] = None) -> list[TableColumn]:
        columns = self.schema.column_cache.get_children(self, monitor)
        return sorted(columns, key=lambda column: column.ordinal_position)

    def get_attribute(self, name: str, monitor: Optional[LoadMonitor] = None) -> Optional[TableColumn]:
        return self.schema.column_cache.get_child(self, name, monitor)

    def get_attribute_by_id(self, column_id: int, monitor: Optional[LoadMonitor] = None) -> Optional[TableColumn]:
        column = self.schema.column_cache.get_child(self, column_id, monitor)
        if column is None:
            logger.warning(f"Column '{column_id}' not found in table '{self.full_name}'")
        return column

    # Indexes

    def get_indexes(self, monitor: Optional[LoadMonitor] = None) -> tuple[TableIndex, ...]:
        return self.schema.index_cache.get_children(self, monitor)

    def get_index(self, identifier: int | str, monitor: Optional[LoadMonitor] = None) -> Optional[TableIndex]:
        """Find an index by ``index_id`` or by name."""
        index = self.schema.index_cache.get_child(self, identifier, monitor)
        if index is None:
            logger.warning(f"Index '{identifier}' not found in table '{self.full_name}'")
        return index

    # Constraints

    def get_constraints(self, monitor: Optional[LoadMonitor] = None) -> tuple[TableUniqueKey, ...]:
        return self.schema.unique_key_cache.get_children(self, monitor)

    def get_primary_key(self, monitor: Optional[LoadMonitor] = None) -> Optional[TableUniqueKey]:
        for key in self.get_constraints(monitor):
            if key.is_primary_key:
                return key
        return None

    def get_check_constraints(self, monitor: Optional[LoadMonitor] = None) -> tuple[TableCheckConstraint, ...]:
        return self.check_constraint_cache.get_children(self, monitor)

    # DDL

    def get_object_definition_text(self, monitor: Optional[LoadMonitor] = None, refresh: bool = False) -> str:
        """Return the table DDL, generating it once and reusing it until refreshed.

        Raises:
            ComputeError: If no generator is configured or generation fails
        """
        generator = self.schema.ddl_generator
        if generator is None:
            raise ComputeError(f"No DDL generator configured for schema '{self.schema.name}'")
        if monitor is None:
            monitor = LoadMonitor(f"ddl:{self.full_name}")
        return self.ddl.get(lambda: generator(self, monitor), force_refresh=refresh)

    def refresh(self, monitor: Optional[LoadMonitor] = None, reload: bool = False) -> "SQLServerTable":
        """Invalidate every cache this table reads from.

        Each cache is cleared explicitly; schema-level caches do not cascade.
        With ``reload`` the columns are read again right away.
        """
        self.schema.index_cache.clear(self)
        self.schema.unique_key_cache.clear(self)
        self.schema.column_cache.clear(self)
        self.check_constraint_cache.clear(self)
        self.ddl.clear()
        logger.info(f"Table '{self.full_name}' refreshed")

        if reload:
            self.get_attributes(monitor)
        return self

    def __repr__(self) -> str:
        return f"SQLServerTable({self.full_name}, object_id={self.object_id})"

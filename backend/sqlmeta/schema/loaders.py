"""Catalog loaders reading SQL Server system views through pyodbc."""

from __future__ import annotations

import logging
from typing import Any, Optional

from ..cache import LoadMonitor
from ..core.config import DatabaseConnection
from ..core.db import fetch_dicts
from .container import SQLServerSchema
from .objects import (
    PRIMARY_KEY,
    UNIQUE_KEY,
    TableCheckConstraint,
    TableColumn,
    TableIndex,
    TableUniqueKey,
)
from .table import SQLServerTable

logger = logging.getLogger(__name__)

TABLES_SQL = """
SELECT t.object_id, t.name, CAST(ep.value AS NVARCHAR(4000)) AS description,
       t.create_date, t.modify_date
FROM sys.tables t
JOIN sys.schemas s ON s.schema_id = t.schema_id
LEFT JOIN sys.extended_properties ep
    ON ep.major_id = t.object_id AND ep.minor_id = 0
    AND ep.class = 1 AND ep.name = 'MS_Description'
WHERE s.name = ?
ORDER BY t.name;
"""

COLUMNS_SQL = """
SELECT c.column_id, c.name, ty.name AS data_type, c.max_length, c.precision, c.scale,
       c.is_nullable, c.is_identity, c.is_computed, c.is_hidden,
       dc.definition AS default_value
FROM sys.columns c
JOIN sys.types ty ON ty.user_type_id = c.user_type_id
LEFT JOIN sys.default_constraints dc
    ON dc.parent_object_id = c.object_id AND dc.parent_column_id = c.column_id
WHERE c.object_id = ?
ORDER BY c.column_id;
"""

INDEXES_SQL = """
SELECT i.index_id, i.name, i.type_desc, i.is_unique, i.is_primary_key,
       c.name AS column_name
FROM sys.indexes i
LEFT JOIN sys.index_columns ic
    ON ic.object_id = i.object_id AND ic.index_id = i.index_id AND ic.is_included_column = 0
LEFT JOIN sys.columns c ON c.object_id = ic.object_id AND c.column_id = ic.column_id
WHERE i.object_id = ? AND i.index_id > 0
ORDER BY i.index_id, ic.key_ordinal;
"""

UNIQUE_KEYS_SQL = """
SELECT kc.object_id, kc.name, kc.type, kc.unique_index_id, c.name AS column_name
FROM sys.key_constraints kc
JOIN sys.index_columns ic
    ON ic.object_id = kc.parent_object_id AND ic.index_id = kc.unique_index_id
JOIN sys.columns c ON c.object_id = ic.object_id AND c.column_id = ic.column_id
WHERE kc.parent_object_id = ?
ORDER BY kc.name, ic.key_ordinal;
"""

CHECK_CONSTRAINTS_SQL = """
SELECT cc.object_id, cc.name, cc.definition, cc.is_disabled
FROM sys.check_constraints cc
WHERE cc.parent_object_id = ?
ORDER BY cc.name;
"""

_KEY_TYPES = {"PK": PRIMARY_KEY, "UQ": UNIQUE_KEY}


def _group_by_object(rows: list[dict[str, Any]], id_field: str) -> dict[Any, tuple[dict[str, Any], list[str]]]:
    """Group one-row-per-column results by object, keeping row order."""
    grouped: dict[Any, tuple[dict[str, Any], list[str]]] = {}
    for row in rows:
        _, columns = grouped.setdefault(row[id_field], (row, []))
        if row.get("column_name"):
            columns.append(row["column_name"])
    return grouped


class SQLServerMetadataLoader:
    """Loads schema and table metadata from the catalog views of one database."""

    def __init__(self, conn_config: Optional[DatabaseConnection] = None) -> None:
        self.conn_config = conn_config

    def _query(self, monitor: LoadMonitor, task: str, sql: str, *params: Any) -> list[dict[str, Any]]:
        monitor.begin_task(task)
        monitor.check_canceled()
        rows = fetch_dicts(sql, params, conn_config=self.conn_config)
        monitor.done()
        logger.debug(f"{task}: {len(rows)} rows")
        return rows

    def load_tables(self, schema: SQLServerSchema, monitor: LoadMonitor) -> list[SQLServerTable]:
        rows = self._query(monitor, f"Load tables of '{schema.name}'", TABLES_SQL, schema.name)
        return [
            SQLServerTable(
                schema,
                row["name"],
                object_id=row["object_id"],
                description=row.get("description"),
                properties={"create_date": row.get("create_date"), "modify_date": row.get("modify_date")},
            )
            for row in rows
        ]

    def load_columns(self, table: SQLServerTable, monitor: LoadMonitor) -> list[TableColumn]:
        rows = self._query(monitor, f"Load columns of {table.full_name}", COLUMNS_SQL, table.object_id)
        return [
            TableColumn(
                object_id=row["column_id"],
                name=row["name"],
                # column_id can have gaps after dropped columns
                ordinal_position=position,
                data_type=row["data_type"],
                max_length=row.get("max_length"),
                precision=row.get("precision"),
                scale=row.get("scale"),
                nullable=bool(row.get("is_nullable")),
                is_identity=bool(row.get("is_identity")),
                is_computed=bool(row.get("is_computed")),
                is_hidden=bool(row.get("is_hidden")),
                default_value=row.get("default_value"),
            )
            for position, row in enumerate(rows, start=1)
        ]

    def load_indexes(self, table: SQLServerTable, monitor: LoadMonitor) -> list[TableIndex]:
        rows = self._query(monitor, f"Load indexes of {table.full_name}", INDEXES_SQL, table.object_id)
        return [
            TableIndex(
                object_id=index_id,
                name=row["name"],
                index_type=row["type_desc"],
                is_unique=bool(row.get("is_unique")),
                is_primary_key=bool(row.get("is_primary_key")),
                columns=tuple(columns),
            )
            for index_id, (row, columns) in _group_by_object(rows, "index_id").items()
        ]

    def load_unique_keys(self, table: SQLServerTable, monitor: LoadMonitor) -> list[TableUniqueKey]:
        rows = self._query(monitor, f"Load unique keys of {table.full_name}", UNIQUE_KEYS_SQL, table.object_id)
        return [
            TableUniqueKey(
                object_id=object_id,
                name=row["name"],
                constraint_type=_KEY_TYPES.get(str(row["type"]).strip(), UNIQUE_KEY),
                index_id=row.get("unique_index_id"),
                columns=tuple(columns),
            )
            for object_id, (row, columns) in _group_by_object(rows, "object_id").items()
        ]

    def load_check_constraints(self, table: SQLServerTable, monitor: LoadMonitor) -> list[TableCheckConstraint]:
        rows = self._query(
            monitor, f"Load check constraints of {table.full_name}", CHECK_CONSTRAINTS_SQL, table.object_id
        )
        return [
            TableCheckConstraint(
                object_id=row["object_id"],
                name=row["name"],
                definition=row["definition"],
                is_disabled=bool(row.get("is_disabled")),
            )
            for row in rows
        ]

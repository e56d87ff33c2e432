"""Schema model module.

Contains the schema container, the table entity and its child objects.
The pyodbc-backed loaders live in ``schema.loaders``.
"""

from .container import CatalogLoader, DDLGenerator, SQLServerSchema
from .objects import (
    PRIMARY_KEY,
    UNIQUE_KEY,
    TableCheckConstraint,
    TableColumn,
    TableIndex,
    TableUniqueKey,
)
from .table import SQLServerTable

__all__ = [
    "CatalogLoader",
    "DDLGenerator",
    "SQLServerSchema",
    "SQLServerTable",
    "PRIMARY_KEY",
    "UNIQUE_KEY",
    "TableCheckConstraint",
    "TableColumn",
    "TableIndex",
    "TableUniqueKey",
]

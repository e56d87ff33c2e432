"""Database connection and catalog query execution."""

from __future__ import annotations

from contextlib import contextmanager
import logging
from typing import Any, Iterable, Optional, Generator

import pyodbc

from .config import DatabaseConnection, get_cached_settings
from .exceptions import DatabaseError

logger = logging.getLogger(__name__)


def get_connection(conn_config: Optional[DatabaseConnection] = None) -> pyodbc.Connection:
    """Open a database connection.

    Args:
        conn_config: Connection parameters. If None, uses the configured connection.

    Returns:
        pyodbc.Connection object

    Raises:
        DatabaseError: If the connection cannot be opened
    """
    if conn_config is None:
        conn_config = get_cached_settings().connection

    try:
        return pyodbc.connect(conn_config.connection_string, timeout=conn_config.timeout)
    except pyodbc.Error as e:
        logger.error(f"Failed to connect to {conn_config.host}/{conn_config.database}: {e}")
        raise DatabaseError(f"Failed to connect to {conn_config.host}/{conn_config.database}: {e}") from e


@contextmanager
def get_db_connection(conn_config: Optional[DatabaseConnection] = None) -> Generator[pyodbc.Connection, None, None]:
    """Context manager for database connections.

    Example:
        with get_db_connection() as conn:
            cursor = conn.cursor()
            cursor.execute("SELECT 1")
    """
    conn = get_connection(conn_config)
    try:
        yield conn
    finally:
        conn.close()


def fetch_rows(
    sql: str,
    params: Iterable[Any] | None = None,
    max_rows: int | None = None,
    conn_config: Optional[DatabaseConnection] = None,
) -> tuple[list[str], list[list[Any]]]:
    """Execute a catalog query and fetch results.

    Args:
        sql: The SQL query to execute
        params: Optional query parameters
        max_rows: Maximum number of rows to fetch (0 = all). If None, uses settings.
        conn_config: Connection to query. If None, uses the configured connection.

    Returns:
        Tuple of (column_names, rows)

    Raises:
        DatabaseError: If the query fails
    """
    limit = max_rows if max_rows is not None else get_cached_settings().max_rows

    logger.debug(f"Executing catalog query (limit={limit}): {sql[:200]}...")

    try:
        with get_db_connection(conn_config) as conn:
            cursor = conn.cursor()
            cursor.execute(sql, list(params or []))
            columns = [col[0] for col in cursor.description] if cursor.description else []
            rows = cursor.fetchmany(limit) if limit else cursor.fetchall()
            result = [list(row) for row in rows]

            logger.debug(f"Catalog query returned {len(result)} rows")
            return columns, result

    except pyodbc.ProgrammingError as e:
        logger.error(f"SQL programming error: {e}")
        raise DatabaseError(f"Invalid catalog query: {e}") from e
    except pyodbc.OperationalError as e:
        logger.error(f"Database operational error: {e}")
        raise DatabaseError(f"Database operation failed: {e}") from e
    except pyodbc.Error as e:
        logger.error(f"Database error: {e}")
        raise DatabaseError(f"Database error: {e}") from e


def fetch_dicts(
    sql: str,
    params: Iterable[Any] | None = None,
    conn_config: Optional[DatabaseConnection] = None,
) -> list[dict[str, Any]]:
    """Execute a catalog query and return every row as a column-name mapping."""
    columns, rows = fetch_rows(sql, params, max_rows=0, conn_config=conn_config)
    return [dict(zip(columns, row)) for row in rows]

"""Unit tests for the SQL Server catalog loaders (no live database)."""

from __future__ import annotations

import os
import sys

import pytest

# Add backend to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

pytest.importorskip("pyodbc")

from sqlmeta.cache import LoadMonitor
from sqlmeta.core.exceptions import DatabaseError, LoadCanceledError, LoadError
from sqlmeta.schema import PRIMARY_KEY, UNIQUE_KEY, SQLServerSchema, SQLServerTable
from sqlmeta.schema import loaders
from sqlmeta.schema.loaders import SQLServerMetadataLoader


class FakeFetch:
    """Replaces fetch_dicts; answers by matching the catalog view in the SQL."""

    def __init__(self, responses: dict[str, list[dict]]):
        self.responses = responses
        self.queries: list[tuple[str, tuple]] = []

    def __call__(self, sql, params=None, conn_config=None):
        self.queries.append((sql, tuple(params or ())))
        for view, rows in self.responses.items():
            if view in sql:
                return rows
        raise AssertionError(f"unexpected query: {sql}")


@pytest.fixture
def loader():
    return SQLServerMetadataLoader()


@pytest.fixture
def schema(loader):
    return SQLServerSchema("dbo", loader)


@pytest.fixture
def table(schema):
    return SQLServerTable(schema, "Orders", object_id=100)


class TestLoadTables:
    def test_tables_bound_to_schema(self, monkeypatch, loader, schema):
        fetch = FakeFetch({"sys.tables": [
            {"object_id": 100, "name": "Orders", "description": "Customer orders",
             "create_date": None, "modify_date": None},
            {"object_id": 200, "name": "Clients", "description": None,
             "create_date": None, "modify_date": None},
        ]})
        monkeypatch.setattr(loaders, "fetch_dicts", fetch)

        tables = schema.get_tables()

        assert [t.name for t in tables] == ["Orders", "Clients"]
        assert tables[0].object_id == 100
        assert tables[0].description == "Customer orders"
        assert tables[0].schema is schema
        assert fetch.queries[0][1] == ("dbo",)


class TestLoadColumns:
    def test_columns_get_contiguous_ordinals(self, monkeypatch, loader, table):
        monkeypatch.setattr(loaders, "fetch_dicts", FakeFetch({"sys.columns": [
            {"column_id": 1, "name": "Id", "data_type": "int", "max_length": 4, "precision": 10,
             "scale": 0, "is_nullable": 0, "is_identity": 1, "is_computed": 0, "is_hidden": 0,
             "default_value": None},
            {"column_id": 4, "name": "Total", "data_type": "decimal", "max_length": 9, "precision": 18,
             "scale": 2, "is_nullable": 1, "is_identity": 0, "is_computed": 0, "is_hidden": 0,
             "default_value": "((0))"},
        ]}))

        columns = loader.load_columns(table, LoadMonitor())

        assert [(c.object_id, c.ordinal_position) for c in columns] == [(1, 1), (4, 2)]
        assert columns[0].is_identity and not columns[0].nullable
        assert columns[1].default_value == "((0))"


class TestLoadIndexesAndKeys:
    def test_index_rows_grouped_by_index(self, monkeypatch, loader, table):
        monkeypatch.setattr(loaders, "fetch_dicts", FakeFetch({"sys.indexes": [
            {"index_id": 1, "name": "PK_Orders", "type_desc": "CLUSTERED", "is_unique": 1,
             "is_primary_key": 1, "column_name": "Id"},
            {"index_id": 2, "name": "IX_Orders_Client", "type_desc": "NONCLUSTERED", "is_unique": 0,
             "is_primary_key": 0, "column_name": "ClientId"},
            {"index_id": 2, "name": "IX_Orders_Client", "type_desc": "NONCLUSTERED", "is_unique": 0,
             "is_primary_key": 0, "column_name": "Created"},
        ]}))

        indexes = loader.load_indexes(table, LoadMonitor())

        assert [i.name for i in indexes] == ["PK_Orders", "IX_Orders_Client"]
        assert indexes[0].is_primary_key
        assert indexes[1].columns == ("ClientId", "Created")

    def test_unique_key_types(self, monkeypatch, loader, table):
        monkeypatch.setattr(loaders, "fetch_dicts", FakeFetch({"sys.key_constraints": [
            {"object_id": 10, "name": "PK_Orders", "type": "PK", "unique_index_id": 1, "column_name": "Id"},
            {"object_id": 11, "name": "UQ_Orders_Code", "type": "UQ", "unique_index_id": 3, "column_name": "Code"},
        ]}))

        keys = loader.load_unique_keys(table, LoadMonitor())

        assert [k.constraint_type for k in keys] == [PRIMARY_KEY, UNIQUE_KEY]
        assert keys[0].columns == ("Id",)

    def test_check_constraints(self, monkeypatch, loader, table):
        fetch = FakeFetch({"sys.check_constraints": [
            {"object_id": 20, "name": "CK_Total", "definition": "([Total]>=(0))", "is_disabled": 0},
        ]})
        monkeypatch.setattr(loaders, "fetch_dicts", fetch)

        checks = table.get_check_constraints()

        assert checks[0].name == "CK_Total"
        assert fetch.queries[0][1] == (100,)


class TestLoaderFailures:
    def test_database_error_becomes_load_error(self, monkeypatch, table):
        def broken(sql, params=None, conn_config=None):
            raise DatabaseError("Failed to connect to localhost/master")

        monkeypatch.setattr(loaders, "fetch_dicts", broken)

        with pytest.raises(LoadError) as exc_info:
            table.get_attributes()
        assert isinstance(exc_info.value.cause, DatabaseError)

    def test_canceled_monitor_stops_before_query(self, monkeypatch, table):
        fetch = FakeFetch({})
        monkeypatch.setattr(loaders, "fetch_dicts", fetch)
        monitor = LoadMonitor()
        monitor.cancel()

        with pytest.raises(LoadCanceledError):
            table.get_indexes(monitor)
        assert fetch.queries == []

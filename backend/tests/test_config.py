"""Unit tests for configuration loading."""

from __future__ import annotations

import os
import sys

import pytest

# Add backend to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from sqlmeta.core import config
from sqlmeta.core.config import DatabaseConnection, get_settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in list(os.environ):
        if name.startswith("SQLMETA_"):
            monkeypatch.delenv(name, raising=False)
    config.clear_settings_cache()
    yield
    config.clear_settings_cache()


class TestDatabaseConnection:
    def test_sql_auth_connection_string(self):
        conn = DatabaseConnection(host="db", database="Sales", user="reader", password="pw")
        cs = conn.connection_string
        assert "DRIVER={ODBC Driver 17 for SQL Server};" in cs
        assert "SERVER=db;DATABASE=Sales;UID=reader;PWD=pw;" in cs
        assert "TrustServerCertificate=yes;" in cs

    def test_trusted_connection_string(self):
        conn = DatabaseConnection(host="db", database="Sales", trusted_connection=True)
        assert "Trusted_Connection=yes;" in conn.connection_string
        assert "UID=" not in conn.connection_string


class TestGetSettings:
    def test_defaults(self):
        settings = get_settings()
        assert settings.default_schema == "dbo"
        assert settings.max_rows == 0
        assert settings.log_level == "INFO"
        assert settings.connection.host == "localhost"

    def test_individual_env_vars(self, monkeypatch):
        monkeypatch.setenv("SQLMETA_DB_HOST", "sql01")
        monkeypatch.setenv("SQLMETA_DB_DATABASE", "Sales")
        monkeypatch.setenv("SQLMETA_DB_TIMEOUT", "5")
        monkeypatch.setenv("SQLMETA_LOG_LEVEL", "debug")
        monkeypatch.setenv("SQLMETA_CORS_ORIGINS", "http://a, http://b")

        settings = get_settings()

        assert settings.connection.host == "sql01"
        assert settings.connection.database == "Sales"
        assert settings.connection.timeout == 5
        assert settings.log_level == "DEBUG"
        assert settings.cors_origins == ("http://a", "http://b")

    def test_ado_connection_string(self, monkeypatch):
        monkeypatch.setenv(
            "SQLMETA_DB_CONNECTION_STRING",
            "Data Source=sql02;Initial Catalog=Hr;User ID=u;Password=p;TrustServerCertificate=True;",
        )

        conn = get_settings().connection

        assert (conn.host, conn.database, conn.user, conn.password) == ("sql02", "Hr", "u", "p")
        assert conn.trust_cert is True
        assert conn.trusted_connection is False

    def test_cached_settings(self):
        assert config.get_cached_settings() is config.get_cached_settings()

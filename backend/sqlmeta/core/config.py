"""Configuration for the metadata connection and service."""

from __future__ import annotations

from dataclasses import dataclass
import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv(override=True)

ENV_PREFIX = "SQLMETA_DB"
DEFAULT_DRIVER = "ODBC Driver 17 for SQL Server"


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes", "y")


@dataclass(frozen=True)
class DatabaseConnection:
    """Connection parameters for the SQL Server instance holding the metadata."""
    host: str
    database: str
    user: str = ""
    password: str = ""
    driver: str = DEFAULT_DRIVER
    trust_cert: bool = True
    timeout: int = 30
    trusted_connection: bool = False  # Windows Authentication

    @property
    def connection_string(self) -> str:
        """Generate pyodbc connection string."""
        trust = "yes" if self.trust_cert else "no"
        base = (
            f"DRIVER={{{self.driver}}};"
            f"SERVER={self.host};"
            f"DATABASE={self.database};"
        )
        if self.trusted_connection:
            auth = "Trusted_Connection=yes;"
        else:
            auth = f"UID={self.user};PWD={self.password};"
        return base + auth + f"TrustServerCertificate={trust};Connection Timeout={self.timeout};"


@dataclass(frozen=True)
class Settings:
    """Service settings."""
    connection: DatabaseConnection
    default_schema: str
    # 0 = fetch everything; metadata queries must never be truncated
    max_rows: int
    log_level: str
    cors_origins: tuple[str, ...]


def _parse_ado_connection_string(conn_str: str) -> dict[str, str]:
    """Parse an ADO.NET connection string into lower_snake_case keys."""
    result: dict[str, str] = {}
    if not conn_str:
        return result

    for part in conn_str.split(";"):
        if "=" in part:
            key, value = part.split("=", 1)
            key = key.strip().lower().replace(" ", "_")
            result[key] = value.strip()

    return result


def _connection_from_env(prefix: str = ENV_PREFIX) -> DatabaseConnection:
    """Build the connection from ``<prefix>_CONNECTION_STRING`` or individual vars."""
    conn_str = os.getenv(f"{prefix}_CONNECTION_STRING", "")
    if conn_str:
        parsed = _parse_ado_connection_string(conn_str)
        integrated = parsed.get("integrated_security", "").lower() in ("true", "sspi", "yes")
        return DatabaseConnection(
            host=parsed.get("data_source", parsed.get("server", "")),
            database=parsed.get("initial_catalog", parsed.get("database", "")),
            user=parsed.get("user_id", ""),
            password=parsed.get("password", ""),
            timeout=int(parsed.get("connect_timeout", "30")),
            trust_cert=parsed.get("trustservercertificate", "").lower() == "true",
            trusted_connection=integrated,
        )

    trusted = _env_flag(f"{prefix}_TRUSTED_CONNECTION", "no")
    return DatabaseConnection(
        host=os.getenv(f"{prefix}_HOST", "localhost"),
        database=os.getenv(f"{prefix}_DATABASE", "master"),
        user=os.getenv(f"{prefix}_USER", "sa") if not trusted else "",
        password=os.getenv(f"{prefix}_PASSWORD", "") if not trusted else "",
        driver=os.getenv(f"{prefix}_DRIVER", DEFAULT_DRIVER),
        timeout=int(os.getenv(f"{prefix}_TIMEOUT", "30")),
        trust_cert=_env_flag(f"{prefix}_TRUST_CERT", "yes"),
        trusted_connection=trusted,
    )


def get_settings() -> Settings:
    """Load settings from environment variables."""
    origins = os.getenv("SQLMETA_CORS_ORIGINS", "http://localhost:5173")
    return Settings(
        connection=_connection_from_env(),
        default_schema=os.getenv("SQLMETA_DEFAULT_SCHEMA", "dbo"),
        max_rows=int(os.getenv("SQLMETA_MAX_ROWS", "0")),
        log_level=os.getenv("SQLMETA_LOG_LEVEL", "INFO").upper(),
        cors_origins=tuple(origin.strip() for origin in origins.split(",") if origin.strip()),
    )


# Singleton for caching settings
_settings_cache: Optional[Settings] = None


def get_cached_settings() -> Settings:
    """Get cached settings (loads once)."""
    global _settings_cache
    if _settings_cache is None:
        _settings_cache = get_settings()
    return _settings_cache


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    global _settings_cache
    _settings_cache = None

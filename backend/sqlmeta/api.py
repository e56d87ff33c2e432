"""HTTP metadata navigator over the cached schema model."""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Optional

from fastapi import FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .cache import LoadMonitor
from .core import ComputeError, LoadError, Settings, get_cached_settings
from .models import (
    CacheStatsResponse,
    CheckConstraintModel,
    ColumnModel,
    DDLResponse,
    ErrorDetail,
    IndexModel,
    TableModel,
    UniqueKeyModel,
)
from .schema import SQLServerSchema, SQLServerTable

logger = logging.getLogger(__name__)

SchemaFactory = Callable[[str], SQLServerSchema]


def raise_error(status_code: int, error_code: str, message: str, details: dict | None = None):
    """Raise HTTPException with structured error detail."""
    raise HTTPException(
        status_code=status_code,
        detail=ErrorDetail(error_code=error_code, message=message, details=details).model_dump()
    )


def _catalog_schema_factory(settings: Settings) -> SchemaFactory:
    # pyodbc is only needed once a real catalog is queried
    from .schema.loaders import SQLServerMetadataLoader

    loader = SQLServerMetadataLoader(settings.connection)

    def factory(name: str) -> SQLServerSchema:
        return SQLServerSchema(name, loader, database=settings.connection.database)

    return factory


class SchemaRegistry:
    """Keeps one schema container (and therefore one set of caches) per schema name."""

    def __init__(self, factory: SchemaFactory) -> None:
        self._factory = factory
        self._schemas: dict[str, SQLServerSchema] = {}
        self._lock = threading.RLock()

    def get(self, name: str) -> SQLServerSchema:
        with self._lock:
            schema = self._schemas.get(name)
            if schema is None:
                schema = self._factory(name)
                self._schemas[name] = schema
            return schema

    def names(self) -> list[str]:
        with self._lock:
            return sorted(self._schemas)


def create_app(schema_factory: Optional[SchemaFactory] = None, settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_cached_settings()

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )

    app = FastAPI(title="sqlmeta", version="0.1.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
    )
    registry = SchemaRegistry(schema_factory or _catalog_schema_factory(settings))
    app.state.registry = registry

    @app.exception_handler(LoadError)
    async def load_error_handler(request: Request, exc: LoadError) -> JSONResponse:
        logger.error(f"Metadata load failed for {request.url.path}: {exc}")
        detail = ErrorDetail(error_code="metadata_load_failed", message=str(exc))
        return JSONResponse(status_code=502, content={"detail": detail.model_dump()})

    @app.exception_handler(ComputeError)
    async def compute_error_handler(request: Request, exc: ComputeError) -> JSONResponse:
        logger.error(f"DDL computation failed for {request.url.path}: {exc}")
        detail = ErrorDetail(error_code="ddl_failed", message=str(exc))
        return JSONResponse(status_code=502, content={"detail": detail.model_dump()})

    def _table(schema_name: str, table_name: str, monitor: LoadMonitor) -> SQLServerTable:
        table = registry.get(schema_name).get_table(table_name, monitor)
        if table is None:
            raise_error(404, "table_not_found", f"Table '{table_name}' not found in schema '{schema_name}'")
        return table

    @app.get("/health")
    def health() -> dict[str, Any]:
        return {"status": "ok", "default_schema": settings.default_schema, "schemas": registry.names()}

    @app.get("/tables", response_model=list[TableModel])
    def list_default_tables():
        return list_tables(settings.default_schema)

    @app.get("/schemas/{schema_name}/tables", response_model=list[TableModel])
    def list_tables(schema_name: str):
        monitor = LoadMonitor(f"api:{schema_name}")
        return [TableModel.model_validate(t) for t in registry.get(schema_name).get_tables(monitor)]

    @app.get("/schemas/{schema_name}/tables/{table_name}", response_model=TableModel)
    def get_table(schema_name: str, table_name: str):
        return TableModel.model_validate(_table(schema_name, table_name, LoadMonitor(f"api:{table_name}")))

    @app.get("/schemas/{schema_name}/tables/{table_name}/columns", response_model=list[ColumnModel])
    def list_columns(schema_name: str, table_name: str):
        monitor = LoadMonitor(f"api:{table_name}")
        table = _table(schema_name, table_name, monitor)
        return [ColumnModel.model_validate(c) for c in table.get_attributes(monitor)]

    @app.get("/schemas/{schema_name}/tables/{table_name}/columns/{column_name}", response_model=ColumnModel)
    def get_column(schema_name: str, table_name: str, column_name: str):
        monitor = LoadMonitor(f"api:{table_name}")
        column = _table(schema_name, table_name, monitor).get_attribute(column_name, monitor)
        if column is None:
            raise_error(404, "column_not_found", f"Column '{column_name}' not found in table '{table_name}'")
        return ColumnModel.model_validate(column)

    @app.get("/schemas/{schema_name}/tables/{table_name}/indexes", response_model=list[IndexModel])
    def list_indexes(schema_name: str, table_name: str):
        monitor = LoadMonitor(f"api:{table_name}")
        table = _table(schema_name, table_name, monitor)
        return [IndexModel.model_validate(i) for i in table.get_indexes(monitor)]

    @app.get("/schemas/{schema_name}/tables/{table_name}/indexes/{index_name}", response_model=IndexModel)
    def get_index(schema_name: str, table_name: str, index_name: str):
        monitor = LoadMonitor(f"api:{table_name}")
        table = _table(schema_name, table_name, monitor)
        index = table.get_index(int(index_name), monitor) if index_name.isdigit() else None
        if index is None:
            index = table.get_index(index_name, monitor)
        if index is None:
            raise_error(404, "index_not_found", f"Index '{index_name}' not found in table '{table_name}'")
        return IndexModel.model_validate(index)

    @app.get("/schemas/{schema_name}/tables/{table_name}/constraints", response_model=list[UniqueKeyModel])
    def list_constraints(schema_name: str, table_name: str):
        monitor = LoadMonitor(f"api:{table_name}")
        table = _table(schema_name, table_name, monitor)
        return [UniqueKeyModel.model_validate(k) for k in table.get_constraints(monitor)]

    @app.get(
        "/schemas/{schema_name}/tables/{table_name}/check-constraints",
        response_model=list[CheckConstraintModel],
    )
    def list_check_constraints(schema_name: str, table_name: str):
        monitor = LoadMonitor(f"api:{table_name}")
        table = _table(schema_name, table_name, monitor)
        return [CheckConstraintModel.model_validate(c) for c in table.get_check_constraints(monitor)]

    @app.get("/schemas/{schema_name}/tables/{table_name}/ddl", response_model=DDLResponse)
    def get_ddl(schema_name: str, table_name: str, refresh: bool = Query(False)):
        monitor = LoadMonitor(f"api:{table_name}")
        table = _table(schema_name, table_name, monitor)
        return DDLResponse(table=table.full_name, ddl=table.get_object_definition_text(monitor, refresh=refresh))

    @app.post("/schemas/{schema_name}/tables/{table_name}/refresh", response_model=TableModel)
    def refresh_table(schema_name: str, table_name: str):
        monitor = LoadMonitor(f"api:{table_name}")
        return TableModel.model_validate(_table(schema_name, table_name, monitor).refresh(monitor))

    @app.post("/schemas/{schema_name}/refresh")
    def refresh_schema(schema_name: str) -> dict[str, str]:
        registry.get(schema_name).refresh()
        return {"status": "refreshed", "schema": schema_name}

    @app.get("/schemas/{schema_name}/cache", response_model=CacheStatsResponse)
    def cache_stats(schema_name: str):
        schema = registry.get(schema_name)
        caches = [cache.stats() for cache in schema.caches]
        for table in schema.table_cache.get_cached_children(schema) or ():
            caches.append(table.check_constraint_cache.stats())
        return CacheStatsResponse(schema_name=schema_name, caches=caches)

    return app

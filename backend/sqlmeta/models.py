from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


class ErrorDetail(BaseModel):
    error_code: str
    message: str
    details: dict[str, Any] | None = None


class TableModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    object_id: Optional[int] = None
    name: str
    full_name: str
    database: str = ""
    description: Optional[str] = None
    is_view: bool = False
    properties: dict[str, Any] = Field(default_factory=dict)


class ColumnModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    object_id: int
    name: str
    ordinal_position: int
    data_type: str
    max_length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    nullable: bool = True
    is_identity: bool = False
    is_computed: bool = False
    default_value: Optional[str] = None


class IndexModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    object_id: int
    name: str
    index_type: str
    is_unique: bool
    is_primary_key: bool
    columns: list[str] = Field(default_factory=list)


class UniqueKeyModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    object_id: int
    name: str
    constraint_type: str
    columns: list[str] = Field(default_factory=list)


class CheckConstraintModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    object_id: int
    name: str
    definition: str
    is_disabled: bool = False


class DDLResponse(BaseModel):
    table: str
    ddl: str


class CacheStatsResponse(BaseModel):
    schema_name: str
    caches: list[dict[str, Any]] = Field(default_factory=list)

"""Child metadata objects of a SQL Server table."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

PRIMARY_KEY = "PRIMARY KEY"
UNIQUE_KEY = "UNIQUE"


@dataclass(frozen=True)
class TableColumn:
    object_id: int  # sys.columns.column_id
    name: str
    ordinal_position: int
    data_type: str
    max_length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    nullable: bool = True
    is_identity: bool = False
    is_computed: bool = False
    is_hidden: bool = False
    default_value: Optional[str] = None


@dataclass(frozen=True)
class TableIndex:
    object_id: int  # sys.indexes.index_id
    name: str
    index_type: str
    is_unique: bool = False
    is_primary_key: bool = False
    columns: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class TableUniqueKey:
    object_id: int
    name: str
    constraint_type: str
    index_id: Optional[int] = None
    columns: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_primary_key(self) -> bool:
        return self.constraint_type == PRIMARY_KEY


@dataclass(frozen=True)
class TableCheckConstraint:
    object_id: int
    name: str
    definition: str
    is_disabled: bool = False

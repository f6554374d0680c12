"""Engine-neutral raw catalog rows returned by engine adapters.

Raw rows carry strings and primitives only; semantic typing happens in the
introspector.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class RawColumn:
    """A column as reported by the catalog."""

    name: str
    native_type: str
    nullable: bool
    default_value: Optional[str] = None
    auto_increment: bool = False
    unsigned: bool = False
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    enum_values: Tuple[str, ...] = ()
    comment: Optional[str] = None
    type_name: Optional[str] = None


@dataclass(frozen=True)
class RawPrimaryKey:
    """Primary key columns in key order."""

    columns: Tuple[str, ...]
    name: Optional[str] = None


@dataclass(frozen=True)
class RawIndex:
    """An index and its columns in key order."""

    name: str
    columns: Tuple[str, ...]
    unique: bool = False
    primary: bool = False
    index_type: Optional[str] = None


@dataclass(frozen=True)
class RawForeignKey:
    """A single-column foreign key reference with raw action spellings."""

    name: str
    column: str
    foreign_table: str
    foreign_column: str
    on_update: Optional[str] = None
    on_delete: Optional[str] = None


@dataclass(frozen=True)
class RawConstraint:
    """A named table constraint with its raw catalog kind."""

    name: str
    kind: str
    definition: Optional[str] = None


@dataclass(frozen=True)
class RawTrigger:
    """A trigger attached to a table."""

    name: str
    timing: Optional[str] = None
    event: Optional[str] = None
    statement: Optional[str] = None


@dataclass(frozen=True)
class RawPartition:
    """A table partition (MySQL)."""

    name: str
    method: Optional[str] = None
    expression: Optional[str] = None
    description: Optional[str] = None
    ordinal: Optional[int] = None


@dataclass(frozen=True)
class RawSequence:
    """A sequence owned by one of the table's columns (PostgreSQL)."""

    name: str
    column: Optional[str] = None


@dataclass(frozen=True)
class RawMetadata:
    """Table-level catalog facts; every field is optional and engine dependent."""

    charset: Optional[str] = None
    collation: Optional[str] = None
    comment: Optional[str] = None
    storage_engine: Optional[str] = None
    row_format: Optional[str] = None
    auto_increment: Optional[int] = None
    options: Dict[str, str] = field(default_factory=dict)

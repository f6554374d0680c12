from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from .column_def import ColumnDef
from .enums import EngineKind
from .foreign_key_def import ForeignKeyDef
from .key_defs import ConstraintDef, IndexDef, PrimaryKeyDef


class TriggerDef(BaseModel):
    """A trigger attached to a table."""

    name: str
    timing: Optional[str] = None
    event: Optional[str] = None
    statement: Optional[str] = None

    model_config = {"frozen": True}


class PartitionDef(BaseModel):
    """A table partition."""

    name: str
    method: Optional[str] = None
    expression: Optional[str] = None
    description: Optional[str] = None
    ordinal: Optional[int] = None

    model_config = {"frozen": True}


class SequenceDef(BaseModel):
    """A sequence owned by a table column."""

    name: str
    column: Optional[str] = None

    model_config = {"frozen": True}


class EngineMetadata(BaseModel):
    """Engine-dependent table facts. Fields an engine does not report stay empty."""

    engine: EngineKind
    charset: Optional[str] = None
    collation: Optional[str] = None
    comment: Optional[str] = None
    storage_engine: Optional[str] = None
    row_format: Optional[str] = None
    auto_increment: Optional[int] = None
    options: Dict[str, str] = Field(default_factory=dict)
    triggers: List[TriggerDef] = Field(default_factory=list)
    partitions: List[PartitionDef] = Field(default_factory=list)
    sequences: List[SequenceDef] = Field(default_factory=list)

    model_config = {"frozen": True}


class TableDef(BaseModel):
    """Canonical representation of an introspected table."""

    name: str
    columns: List[ColumnDef] = Field(default_factory=list)
    primary_key: Optional[PrimaryKeyDef] = None
    indexes: List[IndexDef] = Field(default_factory=list)
    foreign_keys: List[ForeignKeyDef] = Field(default_factory=list)
    constraints: List[ConstraintDef] = Field(default_factory=list)
    engine_metadata: EngineMetadata
    has_timestamps: bool = False
    has_soft_deletes: bool = False

    model_config = {"frozen": True}

    @property
    def column_names(self) -> List[str]:
        """Column names in table order."""
        return [column.name for column in self.columns]

    def get_column(self, name: str) -> Optional[ColumnDef]:
        """Return the column with the given name, if any."""
        for column in self.columns:
            if column.name == name:
                return column
        return None

    def has_unique_index_on(self, columns: List[str]) -> bool:
        """Return True when a unique index or the primary key covers exactly ``columns``."""
        wanted = list(columns)
        if self.primary_key is not None and list(self.primary_key.columns) == wanted:
            return True
        return any(index.unique and list(index.columns) == wanted for index in self.indexes)

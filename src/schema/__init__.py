"""Canonical, engine-agnostic schema model."""

from .column_def import ColumnDef
from .enums import ConstraintKind, EngineKind, ReferentialAction, RelationshipKind, SemanticType
from .foreign_key_def import ForeignKeyDef
from .key_defs import ConstraintDef, IndexDef, PrimaryKeyDef
from .relationship_def import RelationshipDef
from .schema_def import SchemaDef, UnresolvedForeignKey
from .table_def import EngineMetadata, PartitionDef, SequenceDef, TableDef, TriggerDef

__all__ = [
    "ColumnDef",
    "ConstraintDef",
    "ConstraintKind",
    "EngineKind",
    "EngineMetadata",
    "ForeignKeyDef",
    "IndexDef",
    "PartitionDef",
    "PrimaryKeyDef",
    "ReferentialAction",
    "RelationshipDef",
    "RelationshipKind",
    "SchemaDef",
    "SemanticType",
    "SequenceDef",
    "TableDef",
    "TriggerDef",
    "UnresolvedForeignKey",
]

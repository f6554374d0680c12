from typing import List, Optional, Protocol, runtime_checkable

from schema import EngineKind
from schema.raw import (
    RawColumn,
    RawConstraint,
    RawForeignKey,
    RawIndex,
    RawMetadata,
    RawPartition,
    RawPrimaryKey,
    RawSequence,
    RawTrigger,
)

from .catalog_database import CatalogDatabase


@runtime_checkable
class EngineAdapter(Protocol):
    """Protocol for per-engine catalog readers returning raw, untyped rows."""

    engine: EngineKind
    database: CatalogDatabase

    async def list_tables(self) -> List[str]:
        """List base table names in catalog order."""
        ...

    async def table_exists(self, table: str) -> bool:
        """Return True when the table is present in the catalog."""
        ...

    async def get_columns(self, table: str) -> List[RawColumn]:
        """Columns in ordinal order. Raises TableNotFoundError for unknown tables."""
        ...

    async def get_primary_key(self, table: str) -> Optional[RawPrimaryKey]:
        """Primary key columns in key order, or None for keyless tables."""
        ...

    async def get_indexes(self, table: str) -> List[RawIndex]:
        """Indexes including the primary index when the engine reports one."""
        ...

    async def get_foreign_keys(self, table: str) -> List[RawForeignKey]:
        """Foreign keys, one row per referencing column."""
        ...

    async def get_table_metadata(self, table: str) -> RawMetadata:
        """Table-level facts such as comment, collation and storage engine."""
        ...

    async def get_constraints(self, table: str) -> List[RawConstraint]:
        """Named constraints. May raise UnsupportedFeatureError."""
        ...

    async def get_triggers(self, table: str) -> List[RawTrigger]:
        """Triggers attached to the table. May raise UnsupportedFeatureError."""
        ...

    async def get_partitions(self, table: str) -> List[RawPartition]:
        """Partitions of the table. May raise UnsupportedFeatureError."""
        ...

    async def get_sequences(self, table: str) -> List[RawSequence]:
        """Sequences owned by the table. May raise UnsupportedFeatureError."""
        ...

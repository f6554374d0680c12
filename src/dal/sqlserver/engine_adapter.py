from typing import Dict, List, Optional

from dal.catalog_adapter import CatalogEngineAdapter, is_yes, to_int, to_text
from schema import EngineKind
from schema.raw import (
    RawColumn,
    RawConstraint,
    RawForeignKey,
    RawIndex,
    RawMetadata,
    RawPrimaryKey,
    RawTrigger,
)

_SIZED_TYPES = frozenset({"char", "varchar", "nchar", "nvarchar", "binary", "varbinary"})
_SCALED_TYPES = frozenset({"decimal", "numeric"})

_TABLE_SCOPE = """
    JOIN sys.tables t ON t.object_id = {column}
    JOIN sys.schemas s ON s.schema_id = t.schema_id
"""


def _scope(column: str) -> str:
    return _TABLE_SCOPE.format(column=column)


def render_native_type(
    data_type: str, length: Optional[int], precision: Optional[int], scale: Optional[int]
) -> str:
    """Rebuild a declared type such as ``nvarchar(255)``, ``nvarchar(max)`` or ``decimal(10,2)``."""
    base = data_type.lower()
    if base in _SIZED_TYPES and length is not None:
        return f"{base}(max)" if length == -1 else f"{base}({length})"
    if base in _SCALED_TYPES and precision is not None:
        return f"{base}({precision},{scale or 0})"
    return base


class SqlServerEngineAdapter(CatalogEngineAdapter):
    """SQL Server adapter reading INFORMATION_SCHEMA and sys.* catalog views."""

    engine = EngineKind.SQLSERVER

    async def list_tables(self) -> List[str]:
        """Base tables in the configured schema."""
        rows = await self._fetch(
            """
            SELECT TABLE_NAME AS table_name
            FROM INFORMATION_SCHEMA.TABLES
            WHERE TABLE_SCHEMA = ?
            AND TABLE_TYPE = 'BASE TABLE'
            ORDER BY TABLE_NAME
            """,
            self.schema,
            operation="list_tables",
        )
        return [row["table_name"] for row in rows]

    async def table_exists(self, table: str) -> bool:
        """Check INFORMATION_SCHEMA.TABLES for the table."""
        row = await self._fetchrow(
            """
            SELECT 1 AS present
            FROM INFORMATION_SCHEMA.TABLES
            WHERE TABLE_SCHEMA = ?
            AND TABLE_NAME = ?
            """,
            self.schema,
            table,
            operation="table_exists",
        )
        return row is not None

    async def get_columns(self, table: str) -> List[RawColumn]:
        """Columns with identity flags from COLUMNPROPERTY."""
        rows = await self._fetch(
            """
            SELECT
                c.COLUMN_NAME AS column_name,
                c.DATA_TYPE AS data_type,
                c.IS_NULLABLE AS is_nullable,
                c.COLUMN_DEFAULT AS column_default,
                c.CHARACTER_MAXIMUM_LENGTH AS char_length,
                c.NUMERIC_PRECISION AS numeric_precision,
                c.NUMERIC_SCALE AS numeric_scale,
                COLUMNPROPERTY(
                    OBJECT_ID(QUOTENAME(c.TABLE_SCHEMA) + '.' + QUOTENAME(c.TABLE_NAME)),
                    c.COLUMN_NAME,
                    'IsIdentity'
                ) AS is_identity
            FROM INFORMATION_SCHEMA.COLUMNS c
            WHERE c.TABLE_SCHEMA = ?
            AND c.TABLE_NAME = ?
            ORDER BY c.ORDINAL_POSITION
            """,
            self.schema,
            table,
            operation="get_columns",
        )
        columns = []
        for row in rows:
            data_type = (to_text(row["data_type"]) or "").lower()
            length = to_int(row["char_length"])
            precision = to_int(row["numeric_precision"]) if data_type in _SCALED_TYPES else None
            scale = to_int(row["numeric_scale"]) if data_type in _SCALED_TYPES else None
            columns.append(
                RawColumn(
                    name=row["column_name"],
                    native_type=render_native_type(data_type, length, precision, scale),
                    nullable=is_yes(row["is_nullable"]),
                    default_value=to_text(row["column_default"], keep_empty=True),
                    auto_increment=to_int(row["is_identity"]) == 1,
                    length=length if length != -1 else None,
                    precision=precision,
                    scale=scale,
                )
            )
        return await self._ensure_columns(table, columns)

    async def _index_rows(self, table: str) -> List[dict]:
        return await self._fetch(
            f"""
            SELECT
                i.name AS index_name,
                i.is_unique AS is_unique,
                i.is_primary_key AS is_primary,
                i.type_desc AS index_type,
                col.name AS column_name
            FROM sys.indexes i
            {_scope('i.object_id')}
            JOIN sys.index_columns ic
                ON ic.object_id = i.object_id AND ic.index_id = i.index_id
            JOIN sys.columns col
                ON col.object_id = ic.object_id AND col.column_id = ic.column_id
            WHERE s.name = ?
            AND t.name = ?
            AND i.name IS NOT NULL
            AND ic.is_included_column = 0
            ORDER BY i.name, ic.key_ordinal
            """,
            self.schema,
            table,
            operation="get_indexes",
        )

    async def get_primary_key(self, table: str) -> Optional[RawPrimaryKey]:
        """Primary key index columns in key order."""
        rows = [row for row in await self._index_rows(table) if row["is_primary"]]
        if not rows:
            return None
        return RawPrimaryKey(
            columns=tuple(row["column_name"] for row in rows), name=rows[0]["index_name"]
        )

    async def get_indexes(self, table: str) -> List[RawIndex]:
        """Indexes from sys.indexes, key columns only."""
        grouped: Dict[str, dict] = {}
        for row in await self._index_rows(table):
            entry = grouped.setdefault(
                row["index_name"],
                {
                    "unique": bool(row["is_unique"]),
                    "primary": bool(row["is_primary"]),
                    "index_type": to_text(row["index_type"]),
                    "columns": [],
                },
            )
            entry["columns"].append(row["column_name"])
        return [
            RawIndex(
                name=name,
                columns=tuple(entry["columns"]),
                unique=entry["unique"],
                primary=entry["primary"],
                index_type=entry["index_type"],
            )
            for name, entry in grouped.items()
        ]

    async def get_foreign_keys(self, table: str) -> List[RawForeignKey]:
        """Foreign keys from sys.foreign_keys with ``*_referential_action_desc`` rules."""
        rows = await self._fetch(
            f"""
            SELECT
                fk.name AS constraint_name,
                pc.name AS column_name,
                rt.name AS foreign_table,
                rc.name AS foreign_column,
                fk.update_referential_action_desc AS update_rule,
                fk.delete_referential_action_desc AS delete_rule
            FROM sys.foreign_keys fk
            {_scope('fk.parent_object_id')}
            JOIN sys.foreign_key_columns fkc ON fkc.constraint_object_id = fk.object_id
            JOIN sys.columns pc
                ON pc.object_id = fkc.parent_object_id AND pc.column_id = fkc.parent_column_id
            JOIN sys.tables rt ON rt.object_id = fk.referenced_object_id
            JOIN sys.columns rc
                ON rc.object_id = fkc.referenced_object_id
                AND rc.column_id = fkc.referenced_column_id
            WHERE s.name = ?
            AND t.name = ?
            ORDER BY fk.name, fkc.constraint_column_id
            """,
            self.schema,
            table,
            operation="get_foreign_keys",
        )
        return [
            RawForeignKey(
                name=row["constraint_name"],
                column=row["column_name"],
                foreign_table=row["foreign_table"],
                foreign_column=row["foreign_column"],
                on_update=to_text(row["update_rule"]),
                on_delete=to_text(row["delete_rule"]),
            )
            for row in rows
        ]

    async def get_table_metadata(self, table: str) -> RawMetadata:
        """Database collation plus temporal and memory-optimized table flags."""
        row = await self._fetchrow(
            f"""
            SELECT
                CAST(DATABASEPROPERTYEX(DB_NAME(), 'Collation') AS nvarchar(128)) AS collation_name,
                t.temporal_type_desc AS temporal_type,
                t.is_memory_optimized AS is_memory_optimized
            FROM sys.objects o
            {_scope('o.object_id')}
            WHERE s.name = ?
            AND t.name = ?
            """,
            self.schema,
            table,
            operation="get_table_metadata",
        )
        if row is None:
            return RawMetadata()
        options: Dict[str, str] = {}
        temporal = to_text(row["temporal_type"])
        if temporal and temporal != "NON_TEMPORAL_TABLE":
            options["temporal_type"] = temporal
        if row["is_memory_optimized"]:
            options["memory_optimized"] = "true"
        return RawMetadata(collation=to_text(row["collation_name"]), options=options)

    async def get_constraints(self, table: str) -> List[RawConstraint]:
        """Constraints from sys.objects types PK, UQ, F and C."""
        rows = await self._fetch(
            f"""
            SELECT
                o.name AS constraint_name,
                o.type AS constraint_type,
                cc.definition AS definition
            FROM sys.objects o
            {_scope('o.parent_object_id')}
            LEFT JOIN sys.check_constraints cc ON cc.object_id = o.object_id
            WHERE s.name = ?
            AND t.name = ?
            AND o.type IN ('PK', 'UQ', 'F', 'C')
            ORDER BY o.name
            """,
            self.schema,
            table,
            operation="get_constraints",
        )
        return [
            RawConstraint(
                name=row["constraint_name"],
                kind=(to_text(row["constraint_type"]) or "").strip(),
                definition=to_text(row["definition"]),
            )
            for row in rows
        ]

    async def get_triggers(self, table: str) -> List[RawTrigger]:
        """Triggers from sys.triggers with events from sys.trigger_events."""
        rows = await self._fetch(
            f"""
            SELECT
                tr.name AS trigger_name,
                tr.is_instead_of_trigger AS is_instead_of,
                te.type_desc AS event,
                OBJECT_DEFINITION(tr.object_id) AS definition
            FROM sys.triggers tr
            {_scope('tr.parent_id')}
            JOIN sys.trigger_events te ON te.object_id = tr.object_id
            WHERE s.name = ?
            AND t.name = ?
            ORDER BY tr.name, te.type_desc
            """,
            self.schema,
            table,
            operation="get_triggers",
        )
        grouped: Dict[str, dict] = {}
        for row in rows:
            entry = grouped.setdefault(
                row["trigger_name"],
                {
                    "timing": "INSTEAD OF" if row["is_instead_of"] else "AFTER",
                    "events": [],
                    "definition": to_text(row["definition"]),
                },
            )
            entry["events"].append(to_text(row["event"]))
        return [
            RawTrigger(
                name=name,
                timing=entry["timing"],
                event=" OR ".join(event for event in entry["events"] if event) or None,
                statement=entry["definition"],
            )
            for name, entry in grouped.items()
        ]

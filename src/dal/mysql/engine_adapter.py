from typing import Dict, List, Optional

from dal.catalog_adapter import CatalogEngineAdapter, is_yes, to_int, to_text
from dal.type_mapping import parse_enum_values
from schema import EngineKind
from schema.raw import (
    RawColumn,
    RawConstraint,
    RawForeignKey,
    RawIndex,
    RawMetadata,
    RawPartition,
    RawPrimaryKey,
    RawTrigger,
)

# Every query binds the schema first; NULL falls back to the connection's database.
_SCHEMA = "COALESCE(%s, DATABASE())"

_FRACTIONAL_TYPES = frozenset({"decimal", "numeric", "float", "double", "real"})


class MysqlEngineAdapter(CatalogEngineAdapter):
    """MySQL/MariaDB adapter reading information_schema."""

    engine = EngineKind.MYSQL

    async def list_tables(self) -> List[str]:
        """List base tables in the current database."""
        rows = await self._fetch(
            f"""
            SELECT TABLE_NAME AS table_name
            FROM information_schema.TABLES
            WHERE TABLE_SCHEMA = {_SCHEMA}
            AND TABLE_TYPE = 'BASE TABLE'
            ORDER BY TABLE_NAME
            """,
            self.schema,
            operation="list_tables",
        )
        return [row["table_name"] for row in rows]

    async def table_exists(self, table: str) -> bool:
        """Check information_schema.TABLES for the table."""
        row = await self._fetchrow(
            f"""
            SELECT 1 AS present
            FROM information_schema.TABLES
            WHERE TABLE_SCHEMA = {_SCHEMA}
            AND TABLE_NAME = %s
            """,
            self.schema,
            table,
            operation="table_exists",
        )
        return row is not None

    async def get_columns(self, table: str) -> List[RawColumn]:
        """Columns with COLUMN_TYPE as the native type (keeps ``tinyint(1)`` and enum lists)."""
        rows = await self._fetch(
            f"""
            SELECT
                COLUMN_NAME AS column_name,
                COLUMN_TYPE AS column_type,
                DATA_TYPE AS data_type,
                IS_NULLABLE AS is_nullable,
                COLUMN_DEFAULT AS column_default,
                EXTRA AS extra,
                CHARACTER_MAXIMUM_LENGTH AS char_length,
                NUMERIC_PRECISION AS numeric_precision,
                NUMERIC_SCALE AS numeric_scale,
                COLUMN_COMMENT AS column_comment
            FROM information_schema.COLUMNS
            WHERE TABLE_SCHEMA = {_SCHEMA}
            AND TABLE_NAME = %s
            ORDER BY ORDINAL_POSITION
            """,
            self.schema,
            table,
            operation="get_columns",
        )
        columns = []
        for row in rows:
            column_type = to_text(row["column_type"]) or to_text(row["data_type"]) or ""
            data_type = (to_text(row["data_type"]) or "").lower()
            fractional = data_type in _FRACTIONAL_TYPES
            columns.append(
                RawColumn(
                    name=row["column_name"],
                    native_type=column_type,
                    nullable=is_yes(row["is_nullable"]),
                    default_value=to_text(row["column_default"], keep_empty=True),
                    auto_increment="auto_increment" in (to_text(row["extra"]) or "").lower(),
                    unsigned="unsigned" in column_type.lower(),
                    length=to_int(row["char_length"]),
                    precision=to_int(row["numeric_precision"]) if fractional else None,
                    scale=to_int(row["numeric_scale"]) if fractional else None,
                    enum_values=parse_enum_values(column_type),
                    comment=to_text(row["column_comment"]),
                )
            )
        return await self._ensure_columns(table, columns)

    async def get_primary_key(self, table: str) -> Optional[RawPrimaryKey]:
        """PRIMARY constraint columns in key order."""
        rows = await self._fetch(
            f"""
            SELECT COLUMN_NAME AS column_name
            FROM information_schema.KEY_COLUMN_USAGE
            WHERE TABLE_SCHEMA = {_SCHEMA}
            AND TABLE_NAME = %s
            AND CONSTRAINT_NAME = 'PRIMARY'
            ORDER BY ORDINAL_POSITION
            """,
            self.schema,
            table,
            operation="get_primary_key",
        )
        if not rows:
            return None
        return RawPrimaryKey(columns=tuple(row["column_name"] for row in rows), name="PRIMARY")

    async def get_indexes(self, table: str) -> List[RawIndex]:
        """Indexes from STATISTICS, grouped by name with columns in SEQ_IN_INDEX order."""
        rows = await self._fetch(
            f"""
            SELECT
                INDEX_NAME AS index_name,
                NON_UNIQUE AS non_unique,
                INDEX_TYPE AS index_type,
                COLUMN_NAME AS column_name
            FROM information_schema.STATISTICS
            WHERE TABLE_SCHEMA = {_SCHEMA}
            AND TABLE_NAME = %s
            ORDER BY INDEX_NAME, SEQ_IN_INDEX
            """,
            self.schema,
            table,
            operation="get_indexes",
        )
        grouped: Dict[str, dict] = {}
        for row in rows:
            entry = grouped.setdefault(
                row["index_name"],
                {
                    "unique": not is_yes(row["non_unique"]),
                    "index_type": to_text(row["index_type"]),
                    "columns": [],
                },
            )
            if row["column_name"] is not None:
                entry["columns"].append(row["column_name"])
        return [
            RawIndex(
                name=name,
                columns=tuple(entry["columns"]),
                unique=entry["unique"],
                primary=name == "PRIMARY",
                index_type=entry["index_type"],
            )
            for name, entry in grouped.items()
        ]

    async def get_foreign_keys(self, table: str) -> List[RawForeignKey]:
        """Foreign keys joined with REFERENTIAL_CONSTRAINTS for update/delete rules."""
        rows = await self._fetch(
            f"""
            SELECT
                kcu.CONSTRAINT_NAME AS constraint_name,
                kcu.COLUMN_NAME AS column_name,
                kcu.REFERENCED_TABLE_NAME AS foreign_table,
                kcu.REFERENCED_COLUMN_NAME AS foreign_column,
                rc.UPDATE_RULE AS update_rule,
                rc.DELETE_RULE AS delete_rule
            FROM information_schema.KEY_COLUMN_USAGE kcu
            JOIN information_schema.REFERENTIAL_CONSTRAINTS rc
                ON rc.CONSTRAINT_SCHEMA = kcu.CONSTRAINT_SCHEMA
                AND rc.CONSTRAINT_NAME = kcu.CONSTRAINT_NAME
                AND rc.TABLE_NAME = kcu.TABLE_NAME
            WHERE kcu.TABLE_SCHEMA = {_SCHEMA}
            AND kcu.TABLE_NAME = %s
            AND kcu.REFERENCED_TABLE_NAME IS NOT NULL
            ORDER BY kcu.CONSTRAINT_NAME, kcu.ORDINAL_POSITION
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
        """ENGINE, collation (charset is its prefix), comment, AUTO_INCREMENT and ROW_FORMAT."""
        row = await self._fetchrow(
            f"""
            SELECT
                ENGINE AS storage_engine,
                TABLE_COLLATION AS table_collation,
                TABLE_COMMENT AS table_comment,
                AUTO_INCREMENT AS auto_increment,
                ROW_FORMAT AS row_format,
                CREATE_OPTIONS AS create_options
            FROM information_schema.TABLES
            WHERE TABLE_SCHEMA = {_SCHEMA}
            AND TABLE_NAME = %s
            """,
            self.schema,
            table,
            operation="get_table_metadata",
        )
        if row is None:
            return RawMetadata()
        collation = to_text(row["table_collation"])
        options = {}
        create_options = to_text(row["create_options"])
        if create_options:
            options["create_options"] = create_options
        return RawMetadata(
            charset=collation.split("_", 1)[0] if collation else None,
            collation=collation,
            comment=to_text(row["table_comment"]),
            storage_engine=to_text(row["storage_engine"]),
            row_format=to_text(row["row_format"]),
            auto_increment=to_int(row["auto_increment"]),
            options=options,
        )

    async def get_constraints(self, table: str) -> List[RawConstraint]:
        """Constraints from TABLE_CONSTRAINTS."""
        rows = await self._fetch(
            f"""
            SELECT
                CONSTRAINT_NAME AS constraint_name,
                CONSTRAINT_TYPE AS constraint_type
            FROM information_schema.TABLE_CONSTRAINTS
            WHERE TABLE_SCHEMA = {_SCHEMA}
            AND TABLE_NAME = %s
            ORDER BY CONSTRAINT_NAME
            """,
            self.schema,
            table,
            operation="get_constraints",
        )
        return [
            RawConstraint(name=row["constraint_name"], kind=row["constraint_type"]) for row in rows
        ]

    async def get_triggers(self, table: str) -> List[RawTrigger]:
        """Triggers from information_schema.TRIGGERS."""
        rows = await self._fetch(
            f"""
            SELECT
                TRIGGER_NAME AS trigger_name,
                ACTION_TIMING AS action_timing,
                EVENT_MANIPULATION AS event_manipulation,
                ACTION_STATEMENT AS action_statement
            FROM information_schema.TRIGGERS
            WHERE EVENT_OBJECT_SCHEMA = {_SCHEMA}
            AND EVENT_OBJECT_TABLE = %s
            ORDER BY TRIGGER_NAME
            """,
            self.schema,
            table,
            operation="get_triggers",
        )
        return [
            RawTrigger(
                name=row["trigger_name"],
                timing=to_text(row["action_timing"]),
                event=to_text(row["event_manipulation"]),
                statement=to_text(row["action_statement"]),
            )
            for row in rows
        ]

    async def get_partitions(self, table: str) -> List[RawPartition]:
        """Partitions from information_schema.PARTITIONS (empty for unpartitioned tables)."""
        rows = await self._fetch(
            f"""
            SELECT
                PARTITION_NAME AS partition_name,
                PARTITION_METHOD AS partition_method,
                PARTITION_EXPRESSION AS partition_expression,
                PARTITION_DESCRIPTION AS partition_description,
                PARTITION_ORDINAL_POSITION AS ordinal
            FROM information_schema.PARTITIONS
            WHERE TABLE_SCHEMA = {_SCHEMA}
            AND TABLE_NAME = %s
            AND PARTITION_NAME IS NOT NULL
            ORDER BY PARTITION_ORDINAL_POSITION
            """,
            self.schema,
            table,
            operation="get_partitions",
        )
        return [
            RawPartition(
                name=row["partition_name"],
                method=to_text(row["partition_method"]),
                expression=to_text(row["partition_expression"]),
                description=to_text(row["partition_description"]),
                ordinal=to_int(row["ordinal"]),
            )
            for row in rows
        ]

from typing import Dict, List, Optional, Tuple

from dal.catalog_adapter import CatalogEngineAdapter, is_yes, to_int, to_text
from schema import EngineKind
from schema.raw import (
    RawColumn,
    RawConstraint,
    RawForeignKey,
    RawIndex,
    RawMetadata,
    RawPrimaryKey,
    RawSequence,
    RawTrigger,
)

# pg_trigger.tgtype bit flags
_TRIGGER_BEFORE = 1 << 1
_TRIGGER_INSTEAD = 1 << 6
_TRIGGER_EVENTS: Tuple[Tuple[int, str], ...] = (
    (1 << 2, "INSERT"),
    (1 << 4, "UPDATE"),
    (1 << 3, "DELETE"),
    (1 << 5, "TRUNCATE"),
)

_TABLE_JOIN = """
    JOIN pg_catalog.pg_class cl ON cl.oid = {column}
    JOIN pg_catalog.pg_namespace n ON n.oid = cl.relnamespace
"""


def _table_join(column: str) -> str:
    return _TABLE_JOIN.format(column=column)


class PostgresEngineAdapter(CatalogEngineAdapter):
    """PostgreSQL adapter reading information_schema and pg_catalog."""

    engine = EngineKind.POSTGRES

    async def list_tables(self) -> List[str]:
        """List base tables in the configured schema."""
        rows = await self._fetch(
            """
            SELECT table_name
            FROM information_schema.tables
            WHERE table_schema = $1
            AND table_type = 'BASE TABLE'
            ORDER BY table_name
            """,
            self.schema,
            operation="list_tables",
        )
        return [row["table_name"] for row in rows]

    async def table_exists(self, table: str) -> bool:
        """Check information_schema.tables for the table."""
        row = await self._fetchrow(
            """
            SELECT 1 AS present
            FROM information_schema.tables
            WHERE table_schema = $1
            AND table_name = $2
            """,
            self.schema,
            table,
            operation="table_exists",
        )
        return row is not None

    async def get_columns(self, table: str) -> List[RawColumn]:
        """Columns with ``format_type`` as the native type; enum types report ``enum``."""
        rows = await self._fetch(
            """
            SELECT
                c.column_name,
                c.udt_name,
                format_type(a.atttypid, a.atttypmod) AS formatted_type,
                t.typtype,
                c.is_nullable,
                c.column_default,
                c.is_identity,
                c.character_maximum_length,
                c.numeric_precision,
                c.numeric_scale,
                col_description(a.attrelid, a.attnum) AS column_comment
            FROM information_schema.columns c
            JOIN pg_catalog.pg_namespace n ON n.nspname = c.table_schema
            JOIN pg_catalog.pg_class cl ON cl.relname = c.table_name AND cl.relnamespace = n.oid
            JOIN pg_catalog.pg_attribute a ON a.attrelid = cl.oid AND a.attname = c.column_name
            JOIN pg_catalog.pg_type t ON t.oid = a.atttypid
            WHERE c.table_schema = $1
            AND c.table_name = $2
            ORDER BY c.ordinal_position
            """,
            self.schema,
            table,
            operation="get_columns",
        )
        enum_types = sorted({row["udt_name"] for row in rows if to_text(row["typtype"]) == "e"})
        enum_labels = await self._enum_labels(enum_types) if enum_types else {}

        columns = []
        for row in rows:
            is_enum = to_text(row["typtype"]) == "e"
            default = to_text(row["column_default"], keep_empty=True)
            columns.append(
                RawColumn(
                    name=row["column_name"],
                    native_type="enum" if is_enum else to_text(row["formatted_type"]) or "",
                    nullable=is_yes(row["is_nullable"]),
                    default_value=default,
                    auto_increment=bool(default and default.startswith("nextval("))
                    or is_yes(row["is_identity"]),
                    length=to_int(row["character_maximum_length"]),
                    precision=to_int(row["numeric_precision"]),
                    scale=to_int(row["numeric_scale"]),
                    enum_values=enum_labels.get(row["udt_name"], ()) if is_enum else (),
                    comment=to_text(row["column_comment"]),
                    type_name=row["udt_name"] if is_enum else None,
                )
            )
        return await self._ensure_columns(table, columns)

    async def _enum_labels(self, type_names: List[str]) -> Dict[str, Tuple[str, ...]]:
        rows = await self._fetch(
            """
            SELECT t.typname AS type_name, e.enumlabel AS label
            FROM pg_catalog.pg_type t
            JOIN pg_catalog.pg_enum e ON e.enumtypid = t.oid
            WHERE t.typname = ANY($1::text[])
            ORDER BY t.typname, e.enumsortorder
            """,
            type_names,
            operation="get_enum_labels",
        )
        labels: Dict[str, List[str]] = {}
        for row in rows:
            labels.setdefault(row["type_name"], []).append(row["label"])
        return {name: tuple(values) for name, values in labels.items()}

    async def get_primary_key(self, table: str) -> Optional[RawPrimaryKey]:
        """Primary key columns from pg_constraint in conkey order."""
        rows = await self._fetch(
            f"""
            SELECT con.conname AS constraint_name, a.attname AS column_name
            FROM pg_catalog.pg_constraint con
            {_table_join('con.conrelid')}
            CROSS JOIN LATERAL unnest(con.conkey) WITH ORDINALITY AS k(attnum, ord)
            JOIN pg_catalog.pg_attribute a ON a.attrelid = con.conrelid AND a.attnum = k.attnum
            WHERE con.contype = 'p'
            AND n.nspname = $1
            AND cl.relname = $2
            ORDER BY k.ord
            """,
            self.schema,
            table,
            operation="get_primary_key",
        )
        if not rows:
            return None
        return RawPrimaryKey(
            columns=tuple(row["column_name"] for row in rows),
            name=rows[0]["constraint_name"],
        )

    async def get_indexes(self, table: str) -> List[RawIndex]:
        """Indexes from pg_index with access method; expression columns are skipped."""
        rows = await self._fetch(
            f"""
            SELECT
                i.relname AS index_name,
                ix.indisunique AS is_unique,
                ix.indisprimary AS is_primary,
                am.amname AS index_type,
                a.attname AS column_name
            FROM pg_catalog.pg_index ix
            {_table_join('ix.indrelid')}
            JOIN pg_catalog.pg_class i ON i.oid = ix.indexrelid
            JOIN pg_catalog.pg_am am ON am.oid = i.relam
            CROSS JOIN LATERAL unnest(ix.indkey::int2[]) WITH ORDINALITY AS k(attnum, ord)
            JOIN pg_catalog.pg_attribute a ON a.attrelid = cl.oid AND a.attnum = k.attnum
            WHERE n.nspname = $1
            AND cl.relname = $2
            ORDER BY i.relname, k.ord
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
        """Foreign keys from pg_constraint; composite keys yield one row per column pair."""
        rows = await self._fetch(
            f"""
            SELECT
                con.conname AS constraint_name,
                a.attname AS column_name,
                ft.relname AS foreign_table,
                fa.attname AS foreign_column,
                con.confupdtype::text AS update_rule,
                con.confdeltype::text AS delete_rule
            FROM pg_catalog.pg_constraint con
            {_table_join('con.conrelid')}
            JOIN pg_catalog.pg_class ft ON ft.oid = con.confrelid
            CROSS JOIN LATERAL unnest(con.conkey, con.confkey)
                WITH ORDINALITY AS k(attnum, fattnum, ord)
            JOIN pg_catalog.pg_attribute a ON a.attrelid = con.conrelid AND a.attnum = k.attnum
            JOIN pg_catalog.pg_attribute fa ON fa.attrelid = con.confrelid AND fa.attnum = k.fattnum
            WHERE con.contype = 'f'
            AND n.nspname = $1
            AND cl.relname = $2
            ORDER BY con.conname, k.ord
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
        """Table comment, access method and storage options."""
        row = await self._fetchrow(
            """
            SELECT
                obj_description(cl.oid, 'pg_class') AS table_comment,
                am.amname AS access_method,
                cl.reloptions AS reloptions,
                cl.relpersistence::text AS persistence
            FROM pg_catalog.pg_class cl
            JOIN pg_catalog.pg_namespace n ON n.oid = cl.relnamespace
            LEFT JOIN pg_catalog.pg_am am ON am.oid = cl.relam
            WHERE n.nspname = $1
            AND cl.relname = $2
            """,
            self.schema,
            table,
            operation="get_table_metadata",
        )
        if row is None:
            return RawMetadata()
        options: Dict[str, str] = {}
        if row["access_method"]:
            options["access_method"] = row["access_method"]
        if to_text(row["persistence"]) == "u":
            options["unlogged"] = "true"
        for option in row["reloptions"] or []:
            key, _, value = option.partition("=")
            options[key] = value
        return RawMetadata(comment=to_text(row["table_comment"]), options=options)

    async def get_constraints(self, table: str) -> List[RawConstraint]:
        """Constraints from pg_constraint with their definitions."""
        rows = await self._fetch(
            f"""
            SELECT
                con.conname AS constraint_name,
                con.contype::text AS constraint_type,
                pg_get_constraintdef(con.oid) AS definition
            FROM pg_catalog.pg_constraint con
            {_table_join('con.conrelid')}
            WHERE n.nspname = $1
            AND cl.relname = $2
            ORDER BY con.conname
            """,
            self.schema,
            table,
            operation="get_constraints",
        )
        return [
            RawConstraint(
                name=row["constraint_name"],
                kind=to_text(row["constraint_type"]) or "",
                definition=to_text(row["definition"]),
            )
            for row in rows
        ]

    async def get_triggers(self, table: str) -> List[RawTrigger]:
        """User triggers from pg_trigger; timing and events decoded from tgtype."""
        rows = await self._fetch(
            f"""
            SELECT
                tg.tgname AS trigger_name,
                tg.tgtype::int AS tgtype,
                pg_get_triggerdef(tg.oid) AS definition
            FROM pg_catalog.pg_trigger tg
            {_table_join('tg.tgrelid')}
            WHERE NOT tg.tgisinternal
            AND n.nspname = $1
            AND cl.relname = $2
            ORDER BY tg.tgname
            """,
            self.schema,
            table,
            operation="get_triggers",
        )
        return [
            RawTrigger(
                name=row["trigger_name"],
                timing=_trigger_timing(row["tgtype"]),
                event=_trigger_events(row["tgtype"]),
                statement=to_text(row["definition"]),
            )
            for row in rows
        ]

    async def get_sequences(self, table: str) -> List[RawSequence]:
        """Sequences owned by the table's columns (serial and identity) via pg_depend."""
        rows = await self._fetch(
            f"""
            SELECT s.relname AS sequence_name, a.attname AS column_name
            FROM pg_catalog.pg_class s
            JOIN pg_catalog.pg_depend d
                ON d.objid = s.oid
                AND d.classid = 'pg_catalog.pg_class'::regclass
                AND d.refclassid = 'pg_catalog.pg_class'::regclass
            {_table_join('d.refobjid')}
            JOIN pg_catalog.pg_attribute a ON a.attrelid = cl.oid AND a.attnum = d.refobjsubid
            WHERE s.relkind = 'S'
            AND d.deptype IN ('a', 'i')
            AND n.nspname = $1
            AND cl.relname = $2
            ORDER BY s.relname
            """,
            self.schema,
            table,
            operation="get_sequences",
        )
        return [
            RawSequence(name=row["sequence_name"], column=row["column_name"]) for row in rows
        ]


def _trigger_timing(tgtype: Optional[int]) -> Optional[str]:
    if tgtype is None:
        return None
    if tgtype & _TRIGGER_INSTEAD:
        return "INSTEAD OF"
    return "BEFORE" if tgtype & _TRIGGER_BEFORE else "AFTER"


def _trigger_events(tgtype: Optional[int]) -> Optional[str]:
    if tgtype is None:
        return None
    events = [name for flag, name in _TRIGGER_EVENTS if tgtype & flag]
    return " OR ".join(events) or None

import re
from typing import Dict, List, Optional

from dal.catalog_adapter import CatalogEngineAdapter, to_text
from dal.type_mapping import parse_type_parameters
from schema import EngineKind
from schema.raw import RawColumn, RawForeignKey, RawIndex, RawMetadata, RawPrimaryKey, RawTrigger

_TRIGGER_TIMING_RE = re.compile(r"\b(BEFORE|AFTER|INSTEAD\s+OF)\s+(INSERT|UPDATE|DELETE)\b", re.I)
_TRIGGER_EVENT_RE = re.compile(r"\b(INSERT|UPDATE|DELETE)\b(?:\s+OF\s+[^;]*?)?\s+ON\b", re.I)


class SqliteEngineAdapter(CatalogEngineAdapter):
    """SQLite adapter reading PRAGMA table-valued functions and sqlite_master."""

    engine = EngineKind.SQLITE

    async def list_tables(self) -> List[str]:
        """User tables from sqlite_master, excluding internal ``sqlite_*`` tables."""
        rows = await self._fetch(
            """
            SELECT name
            FROM sqlite_master
            WHERE type = 'table'
            AND name NOT LIKE 'sqlite\\_%' ESCAPE '\\'
            ORDER BY name
            """,
            operation="list_tables",
        )
        return [row["name"] for row in rows]

    async def table_exists(self, table: str) -> bool:
        """Check sqlite_master for the table."""
        row = await self._fetchrow(
            "SELECT 1 AS present FROM sqlite_master WHERE type = 'table' AND name = ?",
            table,
            operation="table_exists",
        )
        return row is not None

    async def _table_info(self, table: str) -> List[dict]:
        return await self._fetch(
            """
            SELECT cid, name, type, "notnull" AS not_null, dflt_value, pk
            FROM pragma_table_info(?)
            ORDER BY cid
            """,
            table,
            operation="table_info",
        )

    async def get_columns(self, table: str) -> List[RawColumn]:
        """Columns from ``PRAGMA table_info``; a lone INTEGER primary key is the rowid alias."""
        rows = await self._table_info(table)
        pk_rows = [row for row in rows if row["pk"]]
        rowid_alias = (
            pk_rows[0]["name"]
            if len(pk_rows) == 1 and (pk_rows[0]["type"] or "").strip().upper() == "INTEGER"
            else None
        )
        columns = []
        for row in rows:
            declared = row["type"] or ""
            length, precision, scale = parse_type_parameters(declared)
            is_rowid = row["name"] == rowid_alias
            columns.append(
                RawColumn(
                    name=row["name"],
                    native_type=declared,
                    nullable=not row["not_null"] and not is_rowid,
                    default_value=to_text(row["dflt_value"], keep_empty=True),
                    auto_increment=is_rowid,
                    unsigned="unsigned" in declared.lower(),
                    length=length,
                    precision=precision,
                    scale=scale,
                )
            )
        return await self._ensure_columns(table, columns)

    async def get_primary_key(self, table: str) -> Optional[RawPrimaryKey]:
        """Primary key columns ordered by their ``pk`` ordinal."""
        rows = await self._table_info(table)
        pk_rows = sorted((row for row in rows if row["pk"]), key=lambda row: row["pk"])
        if not pk_rows:
            return None
        return RawPrimaryKey(columns=tuple(row["name"] for row in pk_rows))

    async def get_indexes(self, table: str) -> List[RawIndex]:
        """Indexes from ``index_list``/``index_info``; origin ``pk`` marks the primary index."""
        index_rows = await self._fetch(
            'SELECT name, "unique" AS is_unique, origin FROM pragma_index_list(?) ORDER BY name',
            table,
            operation="index_list",
        )
        indexes = []
        for index_row in index_rows:
            column_rows = await self._fetch(
                "SELECT name FROM pragma_index_info(?) ORDER BY seqno",
                index_row["name"],
                operation="index_info",
            )
            indexes.append(
                RawIndex(
                    name=index_row["name"],
                    columns=tuple(row["name"] for row in column_rows if row["name"] is not None),
                    unique=bool(index_row["is_unique"]),
                    primary=index_row["origin"] == "pk",
                    index_type="btree",
                )
            )
        return indexes

    async def get_foreign_keys(self, table: str) -> List[RawForeignKey]:
        """Foreign keys from ``foreign_key_list``; a missing target column means its key."""
        rows = await self._fetch(
            """
            SELECT id, seq, "table" AS foreign_table, "from" AS column_name,
                   "to" AS foreign_column, on_update, on_delete
            FROM pragma_foreign_key_list(?)
            ORDER BY id, seq
            """,
            table,
            operation="foreign_key_list",
        )
        target_keys: Dict[str, List[str]] = {}
        foreign_keys = []
        for row in rows:
            foreign_column = row["foreign_column"]
            if foreign_column is None:
                foreign_table = row["foreign_table"]
                if foreign_table not in target_keys:
                    target_pk = await self.get_primary_key(foreign_table)
                    target_keys[foreign_table] = list(target_pk.columns) if target_pk else []
                keys = target_keys[foreign_table]
                foreign_column = keys[row["seq"]] if row["seq"] < len(keys) else "rowid"
            foreign_keys.append(
                RawForeignKey(
                    name=f"fk_{table}_{row['id']}",
                    column=row["column_name"],
                    foreign_table=row["foreign_table"],
                    foreign_column=foreign_column,
                    on_update=row["on_update"],
                    on_delete=row["on_delete"],
                )
            )
        return foreign_keys

    async def get_table_metadata(self, table: str) -> RawMetadata:
        """Table options derived from the CREATE TABLE statement."""
        row = await self._fetchrow(
            "SELECT sql FROM sqlite_master WHERE type = 'table' AND name = ?",
            table,
            operation="table_sql",
        )
        options: Dict[str, str] = {}
        ddl = ((row or {}).get("sql") or "").upper()
        if "AUTOINCREMENT" in ddl:
            options["autoincrement"] = "true"
        if re.search(r"\)\s*WITHOUT\s+ROWID", ddl):
            options["without_rowid"] = "true"
        if re.search(r"\)\s*(?:WITHOUT\s+ROWID\s*,\s*)?STRICT\b", ddl):
            options["strict"] = "true"
        return RawMetadata(options=options)

    async def get_triggers(self, table: str) -> List[RawTrigger]:
        """Triggers from sqlite_master; timing and event parsed from the DDL."""
        rows = await self._fetch(
            "SELECT name, sql FROM sqlite_master"
            " WHERE type = 'trigger' AND tbl_name = ? ORDER BY name",
            table,
            operation="triggers",
        )
        triggers = []
        for row in rows:
            ddl = row["sql"] or ""
            timing = event = None
            match = _TRIGGER_TIMING_RE.search(ddl)
            if match:
                timing = " ".join(match.group(1).upper().split())
                event = match.group(2).upper()
            else:
                event_match = _TRIGGER_EVENT_RE.search(ddl)
                event = event_match.group(1).upper() if event_match else None
            triggers.append(RawTrigger(name=row["name"], timing=timing, event=event, statement=ddl))
        return triggers

from contextlib import asynccontextmanager

import pytest

from common.errors import EngineConnectionError, TableNotFoundError, UnsupportedFeatureError
from dal.config import ConnectionConfig
from dal.postgres import PostgresCatalogDatabase, PostgresEngineAdapter
from dal.postgres.engine_adapter import _trigger_events, _trigger_timing
from schema import EngineKind


class _FakeConn:
    def __init__(self, responses):
        self._responses = responses
        self.calls = []

    async def fetch(self, sql, *params):
        self.calls.append((sql, params))
        for fragment, rows in self._responses:
            if fragment in sql:
                if isinstance(rows, Exception):
                    raise rows
                return rows
        raise AssertionError(f"Unexpected SQL: {sql}")

    async def fetchrow(self, sql, *params):
        rows = await self.fetch(sql, *params)
        return rows[0] if rows else None


def _adapter(monkeypatch, responses, schema=None):
    conn = _FakeConn(responses)

    @asynccontextmanager
    async def fake_acquire(self):
        yield conn

    monkeypatch.setattr(PostgresCatalogDatabase, "acquire", fake_acquire)
    config = ConnectionConfig(
        engine=EngineKind.POSTGRES,
        connection_id="postgres:blog",
        host="localhost",
        database="blog",
        user="postgres",
    )
    return PostgresEngineAdapter(PostgresCatalogDatabase(config), schema=schema), conn


def _column(name, formatted_type, udt_name, **overrides):
    row = {
        "column_name": name,
        "udt_name": udt_name,
        "formatted_type": formatted_type,
        "typtype": "b",
        "is_nullable": "NO",
        "column_default": None,
        "is_identity": "NO",
        "character_maximum_length": None,
        "numeric_precision": None,
        "numeric_scale": None,
        "column_comment": None,
    }
    row.update(overrides)
    return row


@pytest.mark.asyncio
async def test_postgres_defaults_to_public_schema(monkeypatch):
    """Without an explicit schema the adapter reads ``public``."""
    adapter, conn = _adapter(
        monkeypatch, [("table_type = 'BASE TABLE'", [{"table_name": "users"}])]
    )

    assert await adapter.list_tables() == ["users"]
    assert adapter.schema == "public"
    assert conn.calls[0][1] == ("public",)


@pytest.mark.asyncio
async def test_postgres_columns_resolve_serial_identity_and_enums(monkeypatch):
    """Serial defaults and identity columns auto-increment; enum labels come from pg_enum."""
    columns = [
        _column(
            "id",
            "bigint",
            "int8",
            column_default="nextval('users_id_seq'::regclass)",
            numeric_precision=64,
            numeric_scale=0,
        ),
        _column("uuid", "uuid", "uuid", is_identity="NO"),
        _column("seq", "integer", "int4", is_identity="YES"),
        _column("mood", "mood", "mood", typtype="e", is_nullable="YES"),
        _column(
            "email",
            "character varying(255)",
            "varchar",
            character_maximum_length=255,
            column_comment="Login address",
        ),
    ]
    labels = [
        {"type_name": "mood", "label": "sad"},
        {"type_name": "mood", "label": "happy"},
    ]
    adapter, conn = _adapter(
        monkeypatch,
        [("pg_enum", labels), ("information_schema.columns", columns)],
    )

    result = await adapter.get_columns("users")

    by_name = {column.name: column for column in result}
    assert by_name["id"].auto_increment is True
    assert by_name["uuid"].auto_increment is False
    assert by_name["seq"].auto_increment is True
    assert by_name["mood"].native_type == "enum"
    assert by_name["mood"].type_name == "mood"
    assert by_name["mood"].enum_values == ("sad", "happy")
    assert by_name["email"].native_type == "character varying(255)"
    assert by_name["email"].length == 255
    assert by_name["email"].comment == "Login address"
    enum_call = [params for sql, params in conn.calls if "pg_enum" in sql][0]
    assert enum_call == (["mood"],)


@pytest.mark.asyncio
async def test_postgres_missing_table(monkeypatch):
    """An empty column list for an unknown table raises TableNotFoundError."""
    adapter, _ = _adapter(
        monkeypatch,
        [("information_schema.columns", []), ("SELECT 1 AS present", [])],
    )

    with pytest.raises(TableNotFoundError):
        await adapter.get_columns("ghosts")


@pytest.mark.asyncio
async def test_postgres_empty_table_is_not_missing(monkeypatch):
    """A table with no columns that exists returns an empty list."""
    adapter, _ = _adapter(
        monkeypatch,
        [("information_schema.columns", []), ("SELECT 1 AS present", [{"present": 1}])],
    )

    assert await adapter.get_columns("empty") == []


@pytest.mark.asyncio
async def test_postgres_keys_and_indexes(monkeypatch):
    """Primary key, indexes and foreign keys keep their catalog order."""
    adapter, _ = _adapter(
        monkeypatch,
        [
            (
                "con.contype = 'p'",
                [
                    {"constraint_name": "post_tag_pkey", "column_name": "post_id"},
                    {"constraint_name": "post_tag_pkey", "column_name": "tag_id"},
                ],
            ),
            (
                "pg_catalog.pg_index",
                [
                    {
                        "index_name": "post_tag_pkey",
                        "is_unique": True,
                        "is_primary": True,
                        "index_type": "btree",
                        "column_name": "post_id",
                    },
                    {
                        "index_name": "post_tag_pkey",
                        "is_unique": True,
                        "is_primary": True,
                        "index_type": "btree",
                        "column_name": "tag_id",
                    },
                ],
            ),
            (
                "con.contype = 'f'",
                [
                    {
                        "constraint_name": "post_tag_post_id_fkey",
                        "column_name": "post_id",
                        "foreign_table": "posts",
                        "foreign_column": "id",
                        "update_rule": "a",
                        "delete_rule": "c",
                    }
                ],
            ),
        ],
    )

    pk = await adapter.get_primary_key("post_tag")
    indexes = await adapter.get_indexes("post_tag")
    fks = await adapter.get_foreign_keys("post_tag")

    assert pk.columns == ("post_id", "tag_id")
    assert pk.name == "post_tag_pkey"
    assert len(indexes) == 1
    assert indexes[0].primary is True
    assert indexes[0].columns == ("post_id", "tag_id")
    assert indexes[0].index_type == "btree"
    assert fks[0].on_delete == "c"
    assert fks[0].on_update == "a"


@pytest.mark.asyncio
async def test_postgres_metadata_options(monkeypatch):
    """Access method, persistence and reloptions become metadata options."""
    adapter, _ = _adapter(
        monkeypatch,
        [
            (
                "reloptions",
                [
                    {
                        "table_comment": "Blog posts",
                        "access_method": "heap",
                        "reloptions": ["fillfactor=70"],
                        "persistence": "u",
                    }
                ],
            )
        ],
    )

    metadata = await adapter.get_table_metadata("posts")

    assert metadata.comment == "Blog posts"
    assert metadata.options == {"access_method": "heap", "unlogged": "true", "fillfactor": "70"}
    assert metadata.charset is None


@pytest.mark.asyncio
async def test_postgres_constraints_triggers_and_sequences(monkeypatch):
    """Optional catalogs decode constraint kinds, trigger bits and owned sequences."""
    adapter, _ = _adapter(
        monkeypatch,
        [
            (
                "pg_get_constraintdef",
                [
                    {
                        "constraint_name": "posts_score_check",
                        "constraint_type": "c",
                        "definition": "CHECK ((score >= 0))",
                    }
                ],
            ),
            (
                "pg_trigger",
                [
                    {
                        "trigger_name": "posts_touch",
                        "tgtype": 23,
                        "definition": "CREATE TRIGGER posts_touch BEFORE INSERT OR UPDATE ...",
                    }
                ],
            ),
            ("pg_depend", [{"sequence_name": "posts_id_seq", "column_name": "id"}]),
        ],
    )

    constraints = await adapter.get_constraints("posts")
    triggers = await adapter.get_triggers("posts")
    sequences = await adapter.get_sequences("posts")

    assert constraints[0].kind == "c"
    assert constraints[0].definition == "CHECK ((score >= 0))"
    assert triggers[0].timing == "BEFORE"
    assert triggers[0].event == "INSERT OR UPDATE"
    assert sequences[0].name == "posts_id_seq"
    assert sequences[0].column == "id"


@pytest.mark.asyncio
async def test_postgres_partitions_are_unsupported(monkeypatch):
    """Partition introspection is MySQL only."""
    adapter, _ = _adapter(monkeypatch, [])

    with pytest.raises(UnsupportedFeatureError) as exc_info:
        await adapter.get_partitions("posts")

    assert exc_info.value.feature == "partitions"


def test_trigger_type_decoding():
    """tgtype bits decode into timing and events."""
    assert _trigger_timing(1 | 4) == "AFTER"
    assert _trigger_timing(64 | 4) == "INSTEAD OF"
    assert _trigger_events(8 | 16) == "UPDATE OR DELETE"
    assert _trigger_events(None) is None


@pytest.mark.asyncio
async def test_postgres_sqlstate_connection_errors(monkeypatch):
    """SQLSTATE class 08 errors surface as EngineConnectionError."""

    class ConnectionFailureError(Exception):
        sqlstate = "08006"

    adapter, _ = _adapter(
        monkeypatch, [("table_type = 'BASE TABLE'", ConnectionFailureError("gone"))]
    )

    with pytest.raises(EngineConnectionError):
        await adapter.list_tables()

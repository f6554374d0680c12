import asyncio

import pytest

from common.errors import (
    EngineConnectionError,
    ErrorCode,
    IntrospectionError,
    SchemaAnalysisError,
    TableNotFoundError,
)
from introspection.analyzer import SchemaAnalyzer, resolve_table_names
from introspection.settings import AnalyzerSettings
from schema import (
    ColumnDef,
    EngineKind,
    EngineMetadata,
    ForeignKeyDef,
    RelationshipKind,
    SemanticType,
    TableDef,
)


def _table(name, *references):
    columns = [ColumnDef(name="id", native_type="int", semantic_type=SemanticType.INTEGER)]
    foreign_keys = []
    for target in references:
        column = f"{target.rstrip('s')}_id"
        columns.append(
            ColumnDef(name=column, native_type="int", semantic_type=SemanticType.INTEGER)
        )
        foreign_keys.append(
            ForeignKeyDef(
                name=f"{name}_{column}_foreign",
                column=column,
                foreign_table=target,
                foreign_column="id",
            )
        )
    return TableDef(
        name=name,
        columns=columns,
        foreign_keys=foreign_keys,
        engine_metadata=EngineMetadata(engine=EngineKind.POSTGRES),
    )


class _FakeDatabase:
    engine = EngineKind.POSTGRES
    connection_id = "pg:test"

    def __init__(self, max_concurrency=4, ping_error=None):
        self.max_concurrency = max_concurrency
        self._ping_error = ping_error

    async def ping(self):
        if self._ping_error is not None:
            raise self._ping_error


class _FakeAdapter:
    engine = EngineKind.POSTGRES

    def __init__(self, tables, database=None, list_error=None):
        self._tables = tables
        self._list_error = list_error
        self.database = database or _FakeDatabase()

    async def list_tables(self):
        if self._list_error is not None:
            raise self._list_error
        return list(self._tables)


class _FakeIntrospector:
    def __init__(self, tables, errors=None, delay=0.0):
        self._tables = tables
        self._errors = errors or {}
        self._delay = delay
        self.calls = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def introspect(self, name):
        self.calls.append(name)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self._delay)
            if name in self._errors:
                raise self._errors[name]
            return self._tables[name]
        finally:
            self.in_flight -= 1


BLOG = {
    "users": _table("users"),
    "posts": _table("posts", "users"),
    "comments": _table("comments", "posts"),
    "migrations": _table("migrations"),
}


def _analyzer(catalog, introspector, settings=None, database=None, list_error=None):
    adapter = _FakeAdapter(catalog, database=database, list_error=list_error)
    return SchemaAnalyzer(
        adapter, introspector=introspector, settings=settings or AnalyzerSettings()
    )


def test_resolve_table_names():
    """Ignored and repeated names are dropped; first occurrences keep their order."""
    names = resolve_table_names(["b", "a", "jobs", "b", "c"], ignore=["jobs"])

    assert names == ["b", "a", "c"]


@pytest.mark.asyncio
async def test_analyze_all_tables():
    """All non-ignored catalog tables are analyzed into one schema."""
    introspector = _FakeIntrospector(BLOG)
    analyzer = _analyzer(["comments", "migrations", "posts", "users"], introspector)

    schema = await analyzer.analyze()

    assert list(schema.tables) == ["comments", "posts", "users"]
    assert "migrations" not in introspector.calls
    assert schema.connection_id == "pg:test"
    assert schema.creation_order == ["users", "posts", "comments"]
    assert schema.dependency_graph == {
        "comments": {"posts"},
        "posts": {"users"},
        "users": set(),
    }
    assert [rel.kind for rel in schema.relationships_for("posts")] == [
        RelationshipKind.BELONGS_TO,
        RelationshipKind.HAS_MANY,
    ]


@pytest.mark.asyncio
async def test_analyze_explicit_tables_keeps_requested_order():
    """Explicit table lists are deduplicated but not filtered by the ignore list."""
    introspector = _FakeIntrospector(BLOG)
    analyzer = _analyzer([], introspector)

    schema = await analyzer.analyze(["posts", "migrations", "users", "posts"])

    assert list(schema.tables) == ["posts", "migrations", "users"]
    assert sorted(introspector.calls) == ["migrations", "posts", "users"]
    assert schema.creation_order == ["users", "posts", "migrations"]


@pytest.mark.asyncio
async def test_unresolved_foreign_keys_and_cycles_are_reported():
    """Keys leaving the table set and cycles are surfaced on the schema."""
    tables = {"a": _table("a", "bs"), "bs": _table("bs", "a"), "c": _table("c", "zones")}
    analyzer = _analyzer(["a", "bs", "c"], _FakeIntrospector(tables))

    schema = await analyzer.analyze()

    assert schema.cyclic_edges == [("bs", "a")]
    assert [(item.table, item.foreign_table) for item in schema.unresolved_foreign_keys] == [
        ("c", "zones")
    ]
    assert sorted(schema.creation_order) == ["a", "bs", "c"]


@pytest.mark.asyncio
async def test_failures_are_aggregated_after_every_table_ran():
    """One failing table fails the run, but only after all tables were attempted."""
    introspector = _FakeIntrospector(
        BLOG,
        errors={
            "posts": IntrospectionError.wrap("posts", TableNotFoundError("posts")),
            "users": RuntimeError("boom"),
        },
    )
    analyzer = _analyzer(["comments", "posts", "users"], introspector)

    with pytest.raises(SchemaAnalysisError) as exc_info:
        await analyzer.analyze()

    error = exc_info.value
    assert sorted(error.failures) == ["posts", "users"]
    assert error.failures["posts"].code is ErrorCode.TABLE_NOT_FOUND
    assert isinstance(error.failures["users"].cause, RuntimeError)
    assert error.code is ErrorCode.ANALYSIS_FAILED
    assert sorted(introspector.calls) == ["comments", "posts", "users"]


@pytest.mark.asyncio
async def test_ping_failure_stops_before_introspection():
    """A connectivity failure surfaces as EngineConnectionError without table work."""
    introspector = _FakeIntrospector(BLOG)
    database = _FakeDatabase(ping_error=EngineConnectionError("postgres", "refused"))
    analyzer = _analyzer(["users"], introspector, database=database)

    with pytest.raises(EngineConnectionError):
        await analyzer.analyze()

    assert introspector.calls == []


@pytest.mark.asyncio
async def test_list_tables_failures():
    """Listing failures propagate as connection errors or wrap as introspection errors."""
    lost = _analyzer(
        [], _FakeIntrospector(BLOG), list_error=EngineConnectionError("postgres", "lost")
    )
    broken = _analyzer([], _FakeIntrospector(BLOG), list_error=RuntimeError("bad catalog"))

    with pytest.raises(EngineConnectionError):
        await lost.analyze()
    with pytest.raises(IntrospectionError, match="Failed to list tables"):
        await broken.analyze()


@pytest.mark.asyncio
async def test_timeout():
    """A run exceeding its deadline fails with TIMEOUT."""
    analyzer = _analyzer(["users", "posts"], _FakeIntrospector(BLOG, delay=1.0))

    with pytest.raises(IntrospectionError) as exc_info:
        await analyzer.analyze(timeout_seconds=0.05)

    assert exc_info.value.code is ErrorCode.TIMEOUT


@pytest.mark.asyncio
async def test_settings_timeout_applies_by_default():
    """The configured timeout is used when none is passed."""
    analyzer = _analyzer(
        ["users"],
        _FakeIntrospector(BLOG, delay=1.0),
        settings=AnalyzerSettings(timeout_seconds=0.05),
    )

    with pytest.raises(IntrospectionError) as exc_info:
        await analyzer.analyze()

    assert exc_info.value.code is ErrorCode.TIMEOUT


@pytest.mark.asyncio
async def test_cancellation():
    """Setting the cancel event aborts the run with CANCELLED."""
    cancel_event = asyncio.Event()
    analyzer = _analyzer(["users", "posts"], _FakeIntrospector(BLOG, delay=1.0))

    async def cancel_soon():
        await asyncio.sleep(0.01)
        cancel_event.set()

    canceller = asyncio.ensure_future(cancel_soon())
    with pytest.raises(IntrospectionError) as exc_info:
        await analyzer.analyze(cancel_event=cancel_event)
    await canceller

    assert exc_info.value.code is ErrorCode.CANCELLED


@pytest.mark.asyncio
async def test_concurrency_is_bounded_by_settings():
    """No more than max_concurrency tables are introspected at once."""
    tables = {f"t{index}": _table(f"t{index}") for index in range(6)}
    introspector = _FakeIntrospector(tables, delay=0.01)
    analyzer = _analyzer(
        list(tables), introspector, settings=AnalyzerSettings(max_concurrency=2)
    )

    schema = await analyzer.analyze()

    assert len(schema.tables) == 6
    assert introspector.max_in_flight == 2


@pytest.mark.asyncio
async def test_concurrency_defaults_to_pool_size():
    """Without a configured limit the pool size bounds concurrency."""
    tables = {f"t{index}": _table(f"t{index}") for index in range(4)}
    introspector = _FakeIntrospector(tables, delay=0.01)
    analyzer = _analyzer(list(tables), introspector, database=_FakeDatabase(max_concurrency=1))

    await analyzer.analyze()

    assert introspector.max_in_flight == 1

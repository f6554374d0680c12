import pytest

from common.interfaces import TableIntrospector
from dal.schema_cache import CachedSchemaIntrospector, InMemoryTableCacheBackend, TableCache
from schema import EngineKind, EngineMetadata, TableDef


def _table(name):
    return TableDef(name=name, engine_metadata=EngineMetadata(engine=EngineKind.SQLITE))


class _FakeIntrospector:
    def __init__(self):
        self.calls = 0
        self.adapter = object()

    async def introspect(self, table):
        self.calls += 1
        return _table(table)


@pytest.mark.asyncio
async def test_table_cache_hit_miss():
    """Cache returns the stored table after the first miss."""
    cache = TableCache(ttl_seconds=60)
    wrapped = _FakeIntrospector()
    cached = CachedSchemaIntrospector(wrapped, cache, "sqlite:blog")

    first = await cached.introspect("users")
    second = await cached.introspect("users")

    assert first.name == "users"
    assert second is first
    assert wrapped.calls == 1
    assert cached.adapter is wrapped.adapter


@pytest.mark.asyncio
async def test_table_cache_version_hint_is_part_of_key():
    """A new schema version hint forces a fresh introspection."""
    cache = TableCache(ttl_seconds=60)
    wrapped = _FakeIntrospector()
    cached = CachedSchemaIntrospector(wrapped, cache, "sqlite:blog")

    await cached.introspect("users", schema_version_hint="v1")
    await cached.introspect("users", schema_version_hint="v1")
    await cached.introspect("users", schema_version_hint="v2")

    assert wrapped.calls == 2


@pytest.mark.asyncio
async def test_table_cache_ttl_expiration(monkeypatch):
    """Entries expire after the TTL."""
    cache = TableCache(ttl_seconds=10)
    wrapped = _FakeIntrospector()
    cached = CachedSchemaIntrospector(wrapped, cache, "sqlite:blog")

    current = {"now": 0}
    monkeypatch.setattr("dal.schema_cache.time.monotonic", lambda: current["now"])

    await cached.introspect("users")
    current["now"] = 5
    await cached.introspect("users")
    current["now"] = 11
    await cached.introspect("users")

    assert wrapped.calls == 2


def test_table_cache_invalidation_scopes():
    """Invalidation removes entries by connection, table or everything."""
    cache = TableCache(ttl_seconds=60)
    cache.set(("pg:a", "users", None), _table("users"))
    cache.set(("pg:a", "posts", None), _table("posts"))
    cache.set(("pg:b", "users", None), _table("users"))

    assert cache.invalidate(connection_id="pg:a", table="users") == 1
    assert cache.get(("pg:a", "users", None)) is None
    assert cache.get(("pg:a", "posts", None)) is not None

    assert cache.invalidate(table="users") == 1
    assert cache.get(("pg:b", "users", None)) is None

    assert cache.invalidate() == 1
    assert cache.get(("pg:a", "posts", None)) is None


def test_in_memory_backend_evicts_least_recently_used():
    """The backend drops the least recently used entry beyond its size limit."""
    backend = InMemoryTableCacheBackend(max_entries=2)
    backend.set(("c", "a", None), _table("a"), ttl=60)
    backend.set(("c", "b", None), _table("b"), ttl=60)
    backend.get(("c", "a", None))
    backend.set(("c", "c", None), _table("c"), ttl=60)

    assert backend.get(("c", "b", None)) is None
    assert backend.get(("c", "a", None)) is not None
    assert len(backend) == 2

    backend.clear()
    assert len(backend) == 0


def test_table_cache_reads_env_defaults(monkeypatch):
    """TTL and size come from the environment when not passed."""
    monkeypatch.setenv("SCHEMA_CACHE_TTL_SECONDS", "0")
    monkeypatch.setenv("SCHEMA_CACHE_MAX_ENTRIES", "1")
    cache = TableCache()

    cache.set(("c", "a", None), _table("a"))

    assert cache.get(("c", "a", None)) is None


def test_cached_introspector_satisfies_table_introspector():
    """The read-through wrapper can stand in wherever a table introspector is expected."""
    cached = CachedSchemaIntrospector(_FakeIntrospector(), TableCache(ttl_seconds=60), "sqlite:a")

    assert isinstance(cached, TableIntrospector)
    assert not isinstance(object(), TableIntrospector)

import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Optional, Protocol, Tuple, runtime_checkable

from opentelemetry import trace

from common.config.env import get_env_int
from common.interfaces import TableIntrospector
from schema import TableDef

# (connection_id, table, schema_version_hint)
CacheKey = Tuple[str, str, Optional[str]]


@dataclass
class CacheEntry:
    """Cached table with its expiry time."""

    value: TableDef
    expires_at: float


@runtime_checkable
class TableCacheBackend(Protocol):
    """Protocol for table cache storage backends."""

    def get(self, key: CacheKey) -> Optional[TableDef]:
        """Fetch a cached table."""
        ...

    def set(self, key: CacheKey, value: TableDef, ttl: int) -> None:
        """Store a table for ``ttl`` seconds."""
        ...

    def delete(self, connection_id: Optional[str] = None, table: Optional[str] = None) -> int:
        """Drop entries by scope and return how many were removed."""
        ...


class InMemoryTableCacheBackend:
    """LRU, TTL-bounded in-memory backend."""

    def __init__(self, max_entries: int = 1000) -> None:
        """Initialize with a maximum entry count (0 disables eviction)."""
        self._max_entries = max_entries
        self._cache: "OrderedDict[CacheKey, CacheEntry]" = OrderedDict()
        self._logger = logging.getLogger(__name__)

    def get(self, key: CacheKey) -> Optional[TableDef]:
        """Return a live entry and mark it recently used."""
        entry = self._cache.get(key)
        if entry is None:
            return None
        if time.monotonic() >= entry.expires_at:
            self._cache.pop(key, None)
            return None
        self._cache.move_to_end(key)
        return entry.value

    def set(self, key: CacheKey, value: TableDef, ttl: int) -> None:
        """Insert or refresh an entry."""
        self._cache.pop(key, None)
        self._cache[key] = CacheEntry(value=value, expires_at=time.monotonic() + ttl)
        self._evict_if_needed()

    def delete(self, connection_id: Optional[str] = None, table: Optional[str] = None) -> int:
        """Drop every entry matching the given scope."""
        if connection_id is None and table is None:
            count = len(self._cache)
            self._cache.clear()
            return count
        doomed = [
            key
            for key in self._cache
            if (connection_id is None or key[0] == connection_id)
            and (table is None or key[1] == table)
        ]
        for key in doomed:
            self._cache.pop(key, None)
        return len(doomed)

    def clear(self) -> None:
        """Clear all entries."""
        self._cache.clear()

    def _evict_if_needed(self) -> None:
        if self._max_entries <= 0:
            return
        while len(self._cache) > self._max_entries:
            key, _ = self._cache.popitem(last=False)
            self._logger.info("table_cache_evict connection=%s table=%s", key[0], key[1])

    def __len__(self) -> int:
        """Return number of entries."""
        return len(self._cache)


class TableCache:
    """Caller-owned cache of introspected tables keyed by connection, table and version hint."""

    def __init__(
        self,
        ttl_seconds: Optional[int] = None,
        max_entries: Optional[int] = None,
        backend: Optional[TableCacheBackend] = None,
    ) -> None:
        """Initialize with TTL and size limits from arguments or the environment."""
        if ttl_seconds is None:
            ttl_seconds = get_env_int("SCHEMA_CACHE_TTL_SECONDS", 300)
        if max_entries is None:
            max_entries = get_env_int("SCHEMA_CACHE_MAX_ENTRIES", 1000)
        self._ttl = ttl_seconds
        self._backend = backend or InMemoryTableCacheBackend(max_entries=max_entries)
        self._logger = logging.getLogger(__name__)
        self._tracer = trace.get_tracer(__name__)

    def get(self, key: CacheKey) -> Optional[TableDef]:
        """Fetch a cached table if still valid."""
        return self._backend.get(key)

    def set(self, key: CacheKey, value: TableDef) -> None:
        """Store a table with the configured TTL."""
        self._backend.set(key, value, self._ttl)

    def invalidate(
        self,
        connection_id: Optional[str] = None,
        table: Optional[str] = None,
        reason: str = "manual",
    ) -> int:
        """Invalidate cached tables by scope and emit telemetry."""
        scope = "global"
        if connection_id:
            scope = "table" if table else "connection"
        elif table:
            scope = "table_name"

        with self._tracer.start_as_current_span("schema.cache.invalidate") as span:
            span.set_attribute("schema.cache.scope", scope)
            span.set_attribute("schema.cache.reason", reason)
            if connection_id:
                span.set_attribute("schema.cache.connection_id", connection_id)
            if table:
                span.set_attribute("schema.cache.table_name", table)
            count = self._backend.delete(connection_id=connection_id, table=table)
            span.set_attribute("schema.cache.entries_cleared", count)
            self._logger.info(
                "table_cache_invalidate scope=%s connection=%s table=%s reason=%s cleared=%d",
                scope,
                connection_id,
                table,
                reason,
                count,
            )
        return count


class CachedSchemaIntrospector:
    """Read-through cache in front of a SchemaIntrospector for one connection."""

    def __init__(self, wrapped: TableIntrospector, cache: TableCache, connection_id: str) -> None:
        """Wrap an introspector; ``connection_id`` scopes every cache key."""
        self._wrapped = wrapped
        self._cache = cache
        self._connection_id = connection_id
        self._logger = logging.getLogger(__name__)

    @property
    def adapter(self):
        """The engine adapter behind the wrapped introspector."""
        return self._wrapped.adapter

    async def introspect(self, table: str, schema_version_hint: Optional[str] = None) -> TableDef:
        """Return a cached table or introspect and store it."""
        key: CacheKey = (self._connection_id, table, schema_version_hint)
        cached = self._cache.get(key)
        if cached is not None:
            self._logger.info(
                "table_cache_hit connection=%s table=%s version=%s",
                self._connection_id,
                table,
                schema_version_hint,
            )
            return cached
        result = await self._wrapped.introspect(table)
        self._cache.set(key, result)
        return result

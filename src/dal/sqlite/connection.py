import asyncio
import logging
import sqlite3
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

import aiosqlite

from common.errors import EngineConnectionError
from dal.config import ConnectionConfig
from schema import EngineKind

logger = logging.getLogger(__name__)


class SqliteCatalogDatabase:
    """SQLite catalog database opening one aiosqlite connection per acquire."""

    engine = EngineKind.SQLITE

    def __init__(self, config: ConnectionConfig, read_only: bool = True) -> None:
        """Store the database path; connections open on demand."""
        self._path = config.path
        self._read_only = read_only
        self.connection_id = config.connection_id
        self.max_concurrency = config.pool_max_size
        self._slots = asyncio.Semaphore(config.pool_max_size)

    async def connect(self) -> None:
        """No pool to open; connections are per use."""
        return None

    async def close(self) -> None:
        """No pooled resources to release."""
        return None

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator["_SqliteConnection"]:
        """Open a connection for the duration of the context."""
        async with self._slots:
            db_path, uri = _resolve_sqlite_path(self._path, self._read_only)
            try:
                conn = await aiosqlite.connect(db_path, uri=uri)
            except (sqlite3.Error, OSError) as exc:
                raise EngineConnectionError(
                    self.engine.value, f"cannot open {self._path}: {exc}"
                ) from exc
            conn.row_factory = sqlite3.Row
            try:
                await conn.execute("PRAGMA foreign_keys = ON")
                yield _SqliteConnection(conn)
            finally:
                await conn.close()

    async def ping(self) -> None:
        """Run a trivial query to validate the file opens and is a database."""
        try:
            async with self.acquire() as conn:
                await conn.fetch("SELECT count(*) AS tables FROM sqlite_master")
        except EngineConnectionError:
            raise
        except sqlite3.Error as exc:
            raise EngineConnectionError(self.engine.value, f"ping failed: {exc}") from exc


class _SqliteConnection:
    """Dict-returning helpers over aiosqlite (``?`` placeholders)."""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def fetch(self, sql: str, *params: Any) -> List[Dict[str, Any]]:
        async with self._conn.execute(sql, params) as cursor:
            rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def fetchrow(self, sql: str, *params: Any) -> Optional[Dict[str, Any]]:
        rows = await self.fetch(sql, *params)
        return rows[0] if rows else None


def _resolve_sqlite_path(db_path: Optional[str], read_only: bool) -> tuple[str, bool]:
    if read_only and db_path not in (":memory:", "", None):
        return f"file:{db_path}?mode=ro", True
    return db_path or ":memory:", False

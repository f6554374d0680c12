import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

import aiomysql

from common.errors import EngineConnectionError
from dal.config import ConnectionConfig
from schema import EngineKind

logger = logging.getLogger(__name__)


class MysqlCatalogDatabase:
    """MySQL/MariaDB catalog database backed by an aiomysql pool."""

    engine = EngineKind.MYSQL

    def __init__(self, config: ConnectionConfig) -> None:
        """Store config; the pool opens lazily on first use."""
        self._config = config
        self.connection_id = config.connection_id
        self.max_concurrency = config.pool_max_size
        self._pool: Optional[aiomysql.Pool] = None
        self._pool_lock = asyncio.Lock()

    async def connect(self) -> None:
        """Open the connection pool once, even under concurrent first use."""
        if self._pool is not None:
            return
        async with self._pool_lock:
            if self._pool is not None:
                return
            config = self._config
            try:
                self._pool = await aiomysql.create_pool(
                    host=config.host,
                    port=config.resolved_port,
                    user=config.user,
                    password=config.password or "",
                    db=config.database,
                    minsize=config.pool_min_size,
                    maxsize=config.pool_max_size,
                    autocommit=True,
                    cursorclass=aiomysql.DictCursor,
                )
            except Exception as exc:
                raise EngineConnectionError(self.engine.value, f"cannot open pool: {exc}") from exc
            logger.info(
                "catalog_pool_open engine=mysql connection=%s max_size=%d",
                self.connection_id,
                config.pool_max_size,
            )

    async def close(self) -> None:
        """Close the pool."""
        if self._pool is not None:
            self._pool.close()
            await self._pool.wait_closed()
            self._pool = None

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator["_MysqlConnection"]:
        """Borrow a pooled connection."""
        await self.connect()
        pool = self._pool
        try:
            conn = await pool.acquire()
        except Exception as exc:
            raise EngineConnectionError(
                self.engine.value, f"cannot acquire connection: {exc}"
            ) from exc
        try:
            yield _MysqlConnection(conn)
        finally:
            pool.release(conn)

    async def ping(self) -> None:
        """Run a trivial query to validate connectivity."""
        try:
            async with self.acquire() as conn:
                await conn.fetch("SELECT 1 AS ok")
        except EngineConnectionError:
            raise
        except Exception as exc:
            raise EngineConnectionError(self.engine.value, f"ping failed: {exc}") from exc


class _MysqlConnection:
    """asyncpg-like fetch helpers over an aiomysql connection (``%s`` placeholders)."""

    def __init__(self, conn: aiomysql.Connection) -> None:
        self._conn = conn

    async def fetch(self, sql: str, *params: Any) -> List[Dict[str, Any]]:
        async with self._conn.cursor() as cursor:
            await cursor.execute(sql, params or None)
            rows = await cursor.fetchall()
            return [dict(row) for row in rows]

    async def fetchrow(self, sql: str, *params: Any) -> Optional[Dict[str, Any]]:
        async with self._conn.cursor() as cursor:
            await cursor.execute(sql, params or None)
            row = await cursor.fetchone()
            return dict(row) if row is not None else None

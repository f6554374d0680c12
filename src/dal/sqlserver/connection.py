import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

from common.errors import EngineConnectionError
from dal.config import ConnectionConfig
from schema import EngineKind

logger = logging.getLogger(__name__)


class SqlServerCatalogDatabase:
    """SQL Server catalog database over pyodbc, run on worker threads."""

    engine = EngineKind.SQLSERVER

    def __init__(self, config: ConnectionConfig) -> None:
        """Store config; connections open per acquire, bounded by the pool size."""
        self._config = config
        self.connection_id = config.connection_id
        self.max_concurrency = config.pool_max_size
        self._slots = asyncio.Semaphore(config.pool_max_size)

    @property
    def connection_string(self) -> str:
        """ODBC connection string built from the config."""
        config = self._config
        parts = [
            f"DRIVER={{{config.odbc_driver}}}",
            f"SERVER={config.host},{config.resolved_port}",
            f"DATABASE={config.database}",
            f"UID={config.user}",
            f"PWD={config.password or ''}",
            "TrustServerCertificate=yes",
        ]
        return ";".join(parts)

    async def connect(self) -> None:
        """Connections are opened per use."""
        return None

    async def close(self) -> None:
        """No pooled resources to release."""
        return None

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator["_SqlServerConnection"]:
        """Open a pyodbc connection for the duration of the context."""
        import pyodbc

        timeout = int(self._config.query_timeout_seconds or 0)
        async with self._slots:
            try:
                conn = await asyncio.to_thread(
                    pyodbc.connect, self.connection_string, timeout=timeout, autocommit=True
                )
            except pyodbc.Error as exc:
                raise EngineConnectionError(self.engine.value, f"cannot connect: {exc}") from exc
            if timeout:
                conn.timeout = timeout
            try:
                yield _SqlServerConnection(conn)
            finally:
                await asyncio.to_thread(conn.close)

    async def ping(self) -> None:
        """Run a trivial query to validate connectivity."""
        try:
            async with self.acquire() as conn:
                await conn.fetch("SELECT 1 AS ok")
        except EngineConnectionError:
            raise
        except Exception as exc:
            raise EngineConnectionError(self.engine.value, f"ping failed: {exc}") from exc


class _SqlServerConnection:
    """Async dict-returning helpers over a pyodbc connection (``?`` placeholders)."""

    def __init__(self, conn) -> None:
        self._conn = conn

    async def fetch(self, sql: str, *params: Any) -> List[Dict[str, Any]]:
        def _execute() -> List[Dict[str, Any]]:
            cursor = self._conn.cursor()
            try:
                cursor.execute(sql, *params)
                columns = [desc[0] for desc in cursor.description] if cursor.description else []
                return [dict(zip(columns, row)) for row in cursor.fetchall()]
            finally:
                cursor.close()

        return await asyncio.to_thread(_execute)

    async def fetchrow(self, sql: str, *params: Any) -> Optional[Dict[str, Any]]:
        rows = await self.fetch(sql, *params)
        return rows[0] if rows else None

from typing import Any, AsyncContextManager, Dict, List, Optional, Protocol, runtime_checkable

from schema import EngineKind


@runtime_checkable
class CatalogConnection(Protocol):
    """A pooled connection able to run catalog queries in the driver's placeholder style."""

    async def fetch(self, sql: str, *params: Any) -> List[Dict[str, Any]]:
        """Run a query and return every row as a dict."""
        ...

    async def fetchrow(self, sql: str, *params: Any) -> Optional[Dict[str, Any]]:
        """Run a query and return the first row, if any."""
        ...


@runtime_checkable
class CatalogDatabase(Protocol):
    """Connection handle bound to one engine."""

    engine: EngineKind
    connection_id: str
    max_concurrency: int

    async def connect(self) -> None:
        """Open the pool (idempotent)."""
        ...

    async def close(self) -> None:
        """Release pool resources."""
        ...

    def acquire(self) -> AsyncContextManager[CatalogConnection]:
        """Borrow a connection for the duration of the context."""
        ...

    async def ping(self) -> None:
        """Run a trivial query; raise EngineConnectionError when unreachable."""
        ...

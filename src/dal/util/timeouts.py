import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Optional, TypeVar

T = TypeVar("T")
logger = logging.getLogger(__name__)


class CatalogQueryTimeoutError(TimeoutError):
    """A catalog query exceeded its time budget."""

    def __init__(self, engine: str, operation_name: str, timeout_seconds: Optional[float]) -> None:
        """Keep engine and operation context for logs and error classification."""
        self.engine = engine
        self.operation_name = operation_name
        self.timeout_seconds = timeout_seconds
        shown = f"{float(timeout_seconds):g}" if timeout_seconds is not None else "unknown"
        super().__init__(f"{engine} {operation_name} timed out after {shown}s.")


async def run_with_timeout(
    operation: Callable[[], Awaitable[T]],
    timeout_seconds: Optional[float],
    cancel: Optional[Callable[[], Awaitable[None]]] = None,
    *,
    engine: str = "unknown",
    operation_name: str = "catalog_query",
) -> T:
    """Await ``operation()`` under a timeout, invoking ``cancel`` when it expires.

    A missing or non-positive timeout runs the operation unbounded.
    """
    if not timeout_seconds or timeout_seconds <= 0:
        return await operation()
    try:
        return await asyncio.wait_for(operation(), timeout=timeout_seconds)
    except asyncio.TimeoutError as exc:
        if cancel is not None:
            try:
                result = cancel()
                if inspect.isawaitable(result):
                    await result
            except Exception as cancel_exc:
                logger.warning(
                    "catalog_query_cancel_failed engine=%s error=%s", engine, cancel_exc
                )
        raise CatalogQueryTimeoutError(engine, operation_name, timeout_seconds) from exc

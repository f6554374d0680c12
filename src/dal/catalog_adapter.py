import logging
from typing import Any, Dict, List, Optional

from common.errors import EngineConnectionError, SchemaEngineError, TableNotFoundError
from common.errors import UnsupportedFeatureError
from common.interfaces import CatalogDatabase, EngineAdapter
from dal.capabilities import EngineCapabilities, capabilities_for_engine
from dal.error_classification import classify_error_info
from dal.tracing import trace_catalog_query
from dal.util.timeouts import CatalogQueryTimeoutError, run_with_timeout
from schema import EngineKind
from schema.raw import RawColumn, RawConstraint, RawPartition, RawSequence, RawTrigger

logger = logging.getLogger(__name__)


class CatalogEngineAdapter(EngineAdapter):
    """Shared plumbing for engine adapters: query execution, tracing, error mapping."""

    engine: EngineKind

    def __init__(
        self,
        database: CatalogDatabase,
        schema: Optional[str] = None,
        query_timeout_seconds: Optional[float] = None,
    ) -> None:
        """Bind the adapter to a database handle and optional schema/namespace."""
        self.database = database
        self.capabilities: EngineCapabilities = capabilities_for_engine(self.engine)
        self.schema = schema or self.capabilities.default_schema
        self.query_timeout_seconds = query_timeout_seconds

    async def _fetch(self, sql: str, *params: Any, operation: str) -> List[Dict[str, Any]]:
        """Run a catalog query; connection-level driver failures become EngineConnectionError."""
        logger.debug("catalog_query engine=%s operation=%s", self.engine.value, operation)
        try:
            async with self.database.acquire() as conn:
                return await run_with_timeout(
                    lambda: trace_catalog_query(
                        operation, self.engine.value, sql, conn.fetch(sql, *params)
                    ),
                    self.query_timeout_seconds,
                    engine=self.engine.value,
                    operation_name=operation,
                )
        except (SchemaEngineError, CatalogQueryTimeoutError):
            raise
        except Exception as exc:
            classification = classify_error_info(self.engine.value, exc)
            if classification.is_connection_failure:
                raise EngineConnectionError(
                    self.engine.value, f"{operation} failed ({classification.category}): {exc}"
                ) from exc
            raise

    async def _fetchrow(self, sql: str, *params: Any, operation: str) -> Optional[Dict[str, Any]]:
        rows = await self._fetch(sql, *params, operation=operation)
        return rows[0] if rows else None

    async def _ensure_columns(self, table: str, columns: List[RawColumn]) -> List[RawColumn]:
        """Raise TableNotFoundError when no columns came back for a missing table."""
        if not columns and not await self.table_exists(table):
            raise TableNotFoundError(table, engine=self.engine.value)
        return columns

    def _unsupported(self, feature: str) -> UnsupportedFeatureError:
        return UnsupportedFeatureError(self.engine.value, feature)

    async def get_constraints(self, table: str) -> List[RawConstraint]:
        """Named constraints; raises UnsupportedFeatureError where no catalog exists."""
        raise self._unsupported("constraints")

    async def get_triggers(self, table: str) -> List[RawTrigger]:
        """Triggers attached to the table."""
        raise self._unsupported("triggers")

    async def get_partitions(self, table: str) -> List[RawPartition]:
        """Partitions of the table."""
        raise self._unsupported("partitions")

    async def get_sequences(self, table: str) -> List[RawSequence]:
        """Sequences owned by the table."""
        raise self._unsupported("sequences")


def to_int(value: Any) -> Optional[int]:
    """Coerce catalog numerics (Decimal, str, int) to int, keeping None."""
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def to_text(value: Any, keep_empty: bool = False) -> Optional[str]:
    """Coerce catalog text (bytes, str) to str; empty strings become None unless ``keep_empty``."""
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray)):
        value = value.decode("utf-8", errors="replace")
    text = str(value)
    return text if text != "" or keep_empty else None


def is_yes(value: Any) -> bool:
    """Interpret catalog YES/NO, 1/0 and boolean flags."""
    if isinstance(value, str):
        return value.strip().upper() in ("YES", "Y", "1", "TRUE", "T")
    return bool(value)

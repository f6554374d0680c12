import hashlib
import logging
import os
from typing import Awaitable, Optional, TypeVar

from opentelemetry import trace

from common.config.env import get_env_bool

T = TypeVar("T")
logger = logging.getLogger(__name__)

TRACE_ENV_VAR = "SCHEMA_TRACE_QUERIES"


def trace_enabled() -> bool:
    """Return True when catalog query tracing is enabled or an OTEL exporter is configured."""
    raw = os.getenv(TRACE_ENV_VAR)
    if raw is not None:
        try:
            return get_env_bool(TRACE_ENV_VAR, False) is True
        except ValueError:
            logger.warning("Invalid %s value '%s'; query tracing disabled.", TRACE_ENV_VAR, raw)
            return False
    return bool(os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT"))


def _hash_sql(sql: str) -> str:
    return hashlib.sha256(sql.encode("utf-8")).hexdigest()[:16]


async def trace_catalog_query(
    name: str,
    engine: str,
    sql: Optional[str],
    operation: Awaitable[T],
) -> T:
    """Trace a catalog query with OTEL when enabled."""
    if not trace_enabled():
        return await operation

    tracer = trace.get_tracer("dal")
    with tracer.start_as_current_span("dal.catalog.query") as span:
        span.set_attribute("db.system", engine)
        span.set_attribute("db.operation.name", name)
        if sql:
            span.set_attribute("db.statement_hash", _hash_sql(sql))
        try:
            result = await operation
            span.set_attribute("db.status", "ok")
            return result
        except Exception as exc:
            span.set_attribute("db.status", "error")
            span.record_exception(exc)
            raise

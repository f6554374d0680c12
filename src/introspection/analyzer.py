"""Schema Analyzer façade.

Composes per-table introspection, relationship inference and dependency
ordering into one ``SchemaDef`` for a connection. The result is all or
nothing: a single failing table fails the whole analysis, but only after
every table has been attempted so the caller sees every failure at once.
"""

import asyncio
import logging
from typing import Dict, Iterable, List, Optional, Sequence

from opentelemetry import trace

from common.errors import (
    EngineConnectionError,
    ErrorCode,
    IntrospectionError,
    SchemaAnalysisError,
)
from common.interfaces import EngineAdapter, TableIntrospector
from introspection.dependency_graph import DependencyGraph
from introspection.introspector import SchemaIntrospector
from introspection.relationships import RelationshipAnalyzer
from introspection.settings import AnalyzerSettings
from schema import SchemaDef, TableDef

logger = logging.getLogger(__name__)


def resolve_table_names(all_tables: Iterable[str], ignore: Iterable[str] = ()) -> List[str]:
    """Drop ignored and duplicate names, keeping the first occurrence order."""
    ignored = set(ignore)
    seen = set()
    names = []
    for name in all_tables:
        if name in ignored or name in seen:
            continue
        seen.add(name)
        names.append(name)
    return names


class SchemaAnalyzer:
    """Analyze a set of tables on one connection into a ``SchemaDef``."""

    def __init__(
        self,
        adapter: EngineAdapter,
        *,
        introspector: Optional[TableIntrospector] = None,
        relationship_analyzer: Optional[RelationshipAnalyzer] = None,
        settings: Optional[AnalyzerSettings] = None,
    ) -> None:
        """Compose the analyzer.

        Args:
            adapter: Engine adapter bound to the connection to analyze.
            introspector: Anything with ``async introspect(table)``; defaults to a
                ``SchemaIntrospector`` over ``adapter``. Pass a
                ``CachedSchemaIntrospector`` to reuse cached tables.
            relationship_analyzer: Relationship inference strategy.
            settings: Concurrency, timeout and ignore-list settings; read from the
                environment when omitted.
        """
        self._adapter = adapter
        self._settings = settings or AnalyzerSettings.from_env()
        self._introspector = introspector or SchemaIntrospector(adapter)
        self._relationships = relationship_analyzer or RelationshipAnalyzer(
            pivot_extra_column_limit=self._settings.pivot_extra_column_limit
        )
        self._tracer = trace.get_tracer(__name__)

    @property
    def settings(self) -> AnalyzerSettings:
        """Effective analyzer settings."""
        return self._settings

    async def analyze(
        self,
        tables: Optional[Sequence[str]] = None,
        *,
        timeout_seconds: Optional[float] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> SchemaDef:
        """Introspect ``tables`` (all non-ignored tables when None) and build the schema.

        Raises:
            EngineConnectionError: The connectivity check failed.
            SchemaAnalysisError: One or more tables failed; ``failures`` holds each.
            IntrospectionError: The run timed out (``TIMEOUT``) or ``cancel_event``
                was set (``CANCELLED``).
        """
        database = self._adapter.database
        engine = self._adapter.engine.value
        timeout = timeout_seconds if timeout_seconds is not None else self._settings.timeout_seconds

        with self._tracer.start_as_current_span("schema.analyze") as span:
            span.set_attribute("db.system", engine)
            span.set_attribute("schema.connection_id", database.connection_id)
            try:
                await database.ping()
                names = await self._resolve(tables)
                span.set_attribute("schema.table_count", len(names))
                logger.info(
                    "schema_analysis_start engine=%s connection=%s tables=%d",
                    engine,
                    database.connection_id,
                    len(names),
                )
                introspected = await self._introspect_all(names, timeout, cancel_event)
                result = self._assemble(database.connection_id, names, introspected)
            except Exception as exc:
                span.set_attribute("schema.status", "error")
                span.record_exception(exc)
                raise
            span.set_attribute("schema.status", "ok")
            span.set_attribute("schema.relationship_count", len(result.relationships))

        logger.info(
            "schema_analysis_complete engine=%s connection=%s tables=%d relationships=%d "
            "cycles=%d unresolved=%d",
            engine,
            database.connection_id,
            len(result.tables),
            len(result.relationships),
            len(result.cyclic_edges),
            len(result.unresolved_foreign_keys),
        )
        return result

    async def _resolve(self, tables: Optional[Sequence[str]]) -> List[str]:
        if tables is not None:
            return resolve_table_names(tables)
        try:
            catalog = await self._adapter.list_tables()
        except EngineConnectionError:
            raise
        except Exception as exc:
            raise IntrospectionError(f"Failed to list tables: {exc}", cause=exc) from exc
        return resolve_table_names(catalog, self._settings.ignore_tables)

    async def _introspect_all(
        self,
        names: List[str],
        timeout: Optional[float],
        cancel_event: Optional[asyncio.Event],
    ) -> Dict[str, TableDef]:
        limit = self._settings.max_concurrency or self._adapter.database.max_concurrency or 1
        semaphore = asyncio.Semaphore(limit)

        async def introspect_one(name: str) -> TableDef:
            async with semaphore:
                return await self._introspector.introspect(name)

        gathered = asyncio.ensure_future(
            asyncio.gather(*(introspect_one(name) for name in names), return_exceptions=True)
        )
        waiters = {gathered}
        cancel_waiter = None
        if cancel_event is not None:
            cancel_waiter = asyncio.ensure_future(cancel_event.wait())
            waiters.add(cancel_waiter)

        try:
            done, _ = await asyncio.wait(
                waiters, timeout=timeout, return_when=asyncio.FIRST_COMPLETED
            )
        except asyncio.CancelledError:
            gathered.cancel()
            raise
        finally:
            if cancel_waiter is not None:
                cancel_waiter.cancel()

        if gathered not in done:
            gathered.cancel()
            await asyncio.wait({gathered})
            if cancel_waiter is not None and cancel_waiter in done:
                logger.warning("schema_analysis_cancelled tables=%d", len(names))
                raise IntrospectionError("Schema analysis cancelled.", code=ErrorCode.CANCELLED)
            logger.warning("schema_analysis_timeout tables=%d timeout=%s", len(names), timeout)
            raise IntrospectionError(
                f"Schema analysis timed out after {timeout:g}s.", code=ErrorCode.TIMEOUT
            )

        introspected: Dict[str, TableDef] = {}
        failures: Dict[str, IntrospectionError] = {}
        for name, outcome in zip(names, gathered.result()):
            if isinstance(outcome, IntrospectionError):
                failures[name] = outcome
            elif isinstance(outcome, BaseException):
                failures[name] = IntrospectionError.wrap(name, outcome)
            else:
                introspected[name] = outcome
        if failures:
            for name, error in failures.items():
                logger.warning(
                    "table_introspection_failed table=%s code=%s error=%s",
                    name,
                    error.code.value,
                    error,
                )
            raise SchemaAnalysisError(failures)
        return introspected

    def _assemble(
        self, connection_id: str, names: List[str], introspected: Dict[str, TableDef]
    ) -> SchemaDef:
        tables = [introspected[name] for name in names]
        relationships = self._relationships.analyze(tables)
        graph = DependencyGraph()
        dependency_graph = graph.build(tables)
        creation_order = graph.order(dependency_graph, names)
        return SchemaDef(
            connection_id=connection_id,
            tables={name: introspected[name] for name in names},
            relationships=relationships,
            dependency_graph=dependency_graph,
            creation_order=creation_order,
            cyclic_edges=graph.cyclic_edges,
            unresolved_foreign_keys=graph.unresolved_foreign_keys,
        )

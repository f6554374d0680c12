"""DAL factory with engine-driven provider selection.

Engine adapters and catalog database handles are registered per canonical
engine id and imported lazily, so a deployment only needs the driver for the
engine it actually talks to.

Environment Variables:
    SCHEMA_DB_ENGINE: Engine to introspect (mysql, postgres, sqlite, sqlserver)
    SCHEMA_DB_*: Connection settings, see ``dal.config.ConnectionConfig.from_env``

Example:
    >>> from dal.factory import create_engine_adapter_from_env
    >>> adapter = create_engine_adapter_from_env()
    >>> await adapter.database.connect()
    >>> tables = await adapter.list_tables()
"""

import logging
from typing import Callable, Dict, Optional, Type

from common.interfaces import CatalogDatabase
from dal.catalog_adapter import CatalogEngineAdapter
from dal.config import ConnectionConfig
from schema import EngineKind

logger = logging.getLogger(__name__)

# =============================================================================
# Provider Registries
# =============================================================================

CATALOG_DATABASE_PROVIDERS: Dict[EngineKind, Callable[[ConnectionConfig], CatalogDatabase]] = {}
ENGINE_ADAPTER_PROVIDERS: Dict[EngineKind, Type[CatalogEngineAdapter]] = {}


def _register_defaults(engine: EngineKind) -> None:
    """Import the driver-backed implementations for one engine on first use."""
    if engine in CATALOG_DATABASE_PROVIDERS and engine in ENGINE_ADAPTER_PROVIDERS:
        return
    if engine == EngineKind.MYSQL:
        from dal.mysql import MysqlCatalogDatabase, MysqlEngineAdapter

        database_cls, adapter_cls = MysqlCatalogDatabase, MysqlEngineAdapter
    elif engine == EngineKind.POSTGRES:
        from dal.postgres import PostgresCatalogDatabase, PostgresEngineAdapter

        database_cls, adapter_cls = PostgresCatalogDatabase, PostgresEngineAdapter
    elif engine == EngineKind.SQLITE:
        from dal.sqlite import SqliteCatalogDatabase, SqliteEngineAdapter

        database_cls, adapter_cls = SqliteCatalogDatabase, SqliteEngineAdapter
    elif engine == EngineKind.SQLSERVER:
        from dal.sqlserver import SqlServerCatalogDatabase, SqlServerEngineAdapter

        database_cls, adapter_cls = SqlServerCatalogDatabase, SqlServerEngineAdapter
    else:
        raise ValueError(f"No catalog provider registered for engine '{engine}'")
    CATALOG_DATABASE_PROVIDERS.setdefault(engine, database_cls)
    ENGINE_ADAPTER_PROVIDERS.setdefault(engine, adapter_cls)


# =============================================================================
# Factories
# =============================================================================


def create_catalog_database(config: ConnectionConfig) -> CatalogDatabase:
    """Build an unconnected catalog database handle for the configured engine."""
    _register_defaults(config.engine)
    logger.info(
        "Creating catalog database engine=%s connection_id=%s",
        config.engine.value,
        config.connection_id,
    )
    return CATALOG_DATABASE_PROVIDERS[config.engine](config)


def create_engine_adapter(
    database: CatalogDatabase,
    schema: Optional[str] = None,
    query_timeout_seconds: Optional[float] = None,
) -> CatalogEngineAdapter:
    """Build the engine adapter matching ``database.engine``."""
    _register_defaults(database.engine)
    adapter_cls = ENGINE_ADAPTER_PROVIDERS[database.engine]
    return adapter_cls(database, schema=schema, query_timeout_seconds=query_timeout_seconds)


def create_engine_adapter_from_env(prefix: str = "SCHEMA_DB") -> CatalogEngineAdapter:
    """Build a catalog database and adapter from ``{prefix}_*`` environment variables.

    Raises:
        ValueError: If the engine is unknown or required settings are missing.
    """
    config = ConnectionConfig.from_env(prefix)
    database = create_catalog_database(config)
    return create_engine_adapter(
        database,
        schema=config.resolved_schema,
        query_timeout_seconds=config.query_timeout_seconds,
    )


def reset_providers() -> None:
    """Clear registered providers. Used in tests."""
    CATALOG_DATABASE_PROVIDERS.clear()
    ENGINE_ADAPTER_PROVIDERS.clear()

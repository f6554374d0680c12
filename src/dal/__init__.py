"""Data access layer for catalog introspection.

Exposes connection configuration and the engine-selecting factory; engine
drivers are imported lazily by ``dal.factory``.
"""

from dal.config import ConnectionConfig
from dal.factory import (
    create_catalog_database,
    create_engine_adapter,
    create_engine_adapter_from_env,
)

__all__ = [
    "ConnectionConfig",
    "create_catalog_database",
    "create_engine_adapter",
    "create_engine_adapter_from_env",
]

"""MySQL/MariaDB catalog access."""

from .connection import MysqlCatalogDatabase
from .engine_adapter import MysqlEngineAdapter

__all__ = ["MysqlCatalogDatabase", "MysqlEngineAdapter"]

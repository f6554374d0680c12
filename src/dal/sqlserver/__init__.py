"""SQL Server catalog access."""

from .connection import SqlServerCatalogDatabase
from .engine_adapter import SqlServerEngineAdapter

__all__ = ["SqlServerCatalogDatabase", "SqlServerEngineAdapter"]

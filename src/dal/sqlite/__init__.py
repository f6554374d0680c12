"""SQLite catalog access."""

from .connection import SqliteCatalogDatabase
from .engine_adapter import SqliteEngineAdapter

__all__ = ["SqliteCatalogDatabase", "SqliteEngineAdapter"]

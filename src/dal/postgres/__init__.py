"""PostgreSQL catalog access."""

from .connection import PostgresCatalogDatabase
from .engine_adapter import PostgresEngineAdapter

__all__ = ["PostgresCatalogDatabase", "PostgresEngineAdapter"]

"""Protocols shared by the data-access layer and the introspection engine."""

from .catalog_database import CatalogConnection, CatalogDatabase
from .engine_adapter import EngineAdapter
from .inflector import Inflector
from .table_introspector import TableIntrospector

__all__ = [
    "CatalogConnection",
    "CatalogDatabase",
    "EngineAdapter",
    "Inflector",
    "TableIntrospector",
]

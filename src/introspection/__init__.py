"""Schema introspection and relationship inference engine."""

from introspection.analyzer import SchemaAnalyzer, resolve_table_names
from introspection.dependency_graph import DependencyGraph
from introspection.inflector import EnglishInflector
from introspection.introspector import SchemaIntrospector
from introspection.relationships import PivotTable, RelationshipAnalyzer
from introspection.settings import AnalyzerSettings

__all__ = [
    "AnalyzerSettings",
    "DependencyGraph",
    "EnglishInflector",
    "PivotTable",
    "RelationshipAnalyzer",
    "SchemaAnalyzer",
    "SchemaIntrospector",
    "resolve_table_names",
]

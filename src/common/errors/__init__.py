"""Common error taxonomy."""

from common.errors.error_codes import ErrorCode, error_code_for_category
from common.errors.exceptions import (
    EngineConnectionError,
    IntrospectionError,
    SchemaAnalysisError,
    SchemaEngineError,
    TableNotFoundError,
    UnsupportedFeatureError,
)

__all__ = [
    "EngineConnectionError",
    "ErrorCode",
    "IntrospectionError",
    "SchemaAnalysisError",
    "SchemaEngineError",
    "TableNotFoundError",
    "UnsupportedFeatureError",
    "error_code_for_category",
]

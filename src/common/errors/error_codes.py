"""Canonical error codes for schema introspection failures."""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """Bounded error codes attached to every engine error."""

    CONNECTION_FAILED = "CONNECTION_FAILED"
    TABLE_NOT_FOUND = "TABLE_NOT_FOUND"
    UNSUPPORTED_FEATURE = "UNSUPPORTED_FEATURE"
    INTROSPECTION_FAILED = "INTROSPECTION_FAILED"
    ANALYSIS_FAILED = "ANALYSIS_FAILED"
    TIMEOUT = "TIMEOUT"
    CANCELLED = "CANCELLED"


_CATEGORY_TO_CODE: dict[str, ErrorCode] = {
    "connectivity": ErrorCode.CONNECTION_FAILED,
    "auth": ErrorCode.CONNECTION_FAILED,
    "timeout": ErrorCode.TIMEOUT,
    "unsupported": ErrorCode.UNSUPPORTED_FEATURE,
}


def error_code_for_category(category: str | None) -> ErrorCode:
    """Map a driver error category onto an error code."""
    normalized = (category or "").strip().lower()
    return _CATEGORY_TO_CODE.get(normalized, ErrorCode.INTROSPECTION_FAILED)

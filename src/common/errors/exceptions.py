"""Exception hierarchy raised by engine adapters, the introspector and the analyzer."""

from __future__ import annotations

from typing import Mapping, Optional

from common.errors.error_codes import ErrorCode


class SchemaEngineError(Exception):
    """Base class for every error raised by the schema engine."""

    code: ErrorCode = ErrorCode.INTROSPECTION_FAILED

    def __init__(self, message: str, *, code: Optional[ErrorCode] = None) -> None:
        """Store the message and an optional code override."""
        super().__init__(message)
        if code is not None:
            self.code = code


class EngineConnectionError(SchemaEngineError, ConnectionError):
    """The database cannot be reached, authenticated against, or queried."""

    code = ErrorCode.CONNECTION_FAILED

    def __init__(self, engine: str, message: str) -> None:
        """Attach the engine the connection belongs to."""
        self.engine = engine
        super().__init__(f"{engine}: {message}")


class TableNotFoundError(SchemaEngineError, LookupError):
    """The requested table is absent from the catalog."""

    code = ErrorCode.TABLE_NOT_FOUND

    def __init__(self, table: str, engine: Optional[str] = None) -> None:
        """Remember which table was looked up."""
        self.table = table
        self.engine = engine
        where = f" in {engine} catalog" if engine else ""
        super().__init__(f"Table '{table}' not found{where}.")


class UnsupportedFeatureError(SchemaEngineError):
    """The engine has no catalog for the requested feature."""

    code = ErrorCode.UNSUPPORTED_FEATURE

    def __init__(self, engine: str, feature: str) -> None:
        """Record the engine and the missing feature."""
        self.engine = engine
        self.feature = feature
        super().__init__(f"{engine} does not support {feature} introspection.")


class IntrospectionError(SchemaEngineError):
    """Building a table (or the whole schema) failed."""

    code = ErrorCode.INTROSPECTION_FAILED

    def __init__(
        self,
        message: str,
        *,
        table: Optional[str] = None,
        cause: Optional[BaseException] = None,
        code: Optional[ErrorCode] = None,
    ) -> None:
        """Keep the failing table and the underlying error."""
        self.table = table
        self.cause = cause
        if code is None and isinstance(cause, SchemaEngineError):
            code = cause.code
        super().__init__(message, code=code)

    @classmethod
    def wrap(cls, table: str, cause: BaseException) -> "IntrospectionError":
        """Wrap an adapter failure for a single table."""
        return cls(
            f"Failed to introspect table '{table}': {cause.__class__.__name__}: {cause}",
            table=table,
            cause=cause,
        )


class SchemaAnalysisError(IntrospectionError):
    """One or more tables failed during schema analysis."""

    code = ErrorCode.ANALYSIS_FAILED

    def __init__(self, failures: Mapping[str, IntrospectionError]) -> None:
        """Aggregate every per-table failure into one error."""
        self.failures = dict(failures)
        lines = [f"  - {table}: {error}" for table, error in self.failures.items()]
        message = f"Schema analysis failed for {len(self.failures)} table(s):\n" + "\n".join(lines)
        super().__init__(message, code=ErrorCode.ANALYSIS_FAILED)

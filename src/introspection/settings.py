from dataclasses import dataclass
from typing import Optional, Tuple

from common.config.env import get_env_float, get_env_int, get_env_list

DEFAULT_IGNORE_TABLES: Tuple[str, ...] = (
    "migrations",
    "failed_jobs",
    "password_resets",
    "password_reset_tokens",
    "personal_access_tokens",
    "cache",
    "cache_locks",
    "sessions",
    "jobs",
    "job_batches",
)


@dataclass(frozen=True)
class AnalyzerSettings:
    """Tuning knobs for a schema analysis run."""

    # 0 means "use the connection pool size".
    max_concurrency: int = 0
    timeout_seconds: Optional[float] = None
    ignore_tables: Tuple[str, ...] = DEFAULT_IGNORE_TABLES
    pivot_extra_column_limit: int = 2

    def __post_init__(self) -> None:
        """Reject negative limits."""
        if self.max_concurrency < 0:
            raise ValueError("max_concurrency cannot be negative.")
        if self.pivot_extra_column_limit < 0:
            raise ValueError("pivot_extra_column_limit cannot be negative.")
        if self.timeout_seconds is not None and self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive when set.")

    @classmethod
    def from_env(cls) -> "AnalyzerSettings":
        """Load settings from ``SCHEMA_ANALYZER_*`` environment variables."""
        return cls(
            max_concurrency=get_env_int("SCHEMA_ANALYZER_MAX_CONCURRENCY", 0),
            timeout_seconds=get_env_float("SCHEMA_ANALYZER_TIMEOUT_SECS"),
            ignore_tables=tuple(
                get_env_list("SCHEMA_ANALYZER_IGNORE_TABLES", list(DEFAULT_IGNORE_TABLES))
            ),
            pivot_extra_column_limit=get_env_int("SCHEMA_ANALYZER_PIVOT_EXTRA_COLUMNS", 2),
        )

"""Engine normalization and environment variable helpers.

Canonical engine IDs (lowercase) are the values of ``schema.EngineKind``.

User-facing aliases (case-insensitive):
- MySQL: "mysql", "mariadb"
- PostgreSQL: "postgres", "postgresql", "pgsql", "pg"
- SQLite: "sqlite", "sqlite3"
- SQL Server: "sqlserver", "mssql", "sqlsrv"

Example:
    >>> normalize_engine("PostgreSQL")
    <EngineKind.POSTGRES: 'postgres'>
    >>> normalize_engine("MariaDB")
    <EngineKind.MYSQL: 'mysql'>
"""

from typing import Optional, Union

from schema import EngineKind

ENGINE_ALIASES: dict[str, EngineKind] = {
    # MySQL aliases
    "mysql": EngineKind.MYSQL,
    "mariadb": EngineKind.MYSQL,
    # PostgreSQL aliases
    "postgres": EngineKind.POSTGRES,
    "postgresql": EngineKind.POSTGRES,
    "pgsql": EngineKind.POSTGRES,
    "pg": EngineKind.POSTGRES,
    # SQLite aliases
    "sqlite": EngineKind.SQLITE,
    "sqlite3": EngineKind.SQLITE,
    # SQL Server aliases
    "sqlserver": EngineKind.SQLSERVER,
    "mssql": EngineKind.SQLSERVER,
    "sqlsrv": EngineKind.SQLSERVER,
}


def normalize_engine(value: Union[str, EngineKind]) -> EngineKind:
    """Normalize an engine name or alias to its canonical ``EngineKind``.

    Raises:
        ValueError: If the value is not a known engine or alias.
    """
    if isinstance(value, EngineKind):
        return value
    cleaned = (value or "").strip().lower()
    engine = ENGINE_ALIASES.get(cleaned)
    if engine is None:
        allowed = ", ".join(sorted(ENGINE_ALIASES))
        raise ValueError(f"Unknown database engine '{value}'. Allowed values: {allowed}")
    return engine


def get_engine_env(var_name: str, default: Optional[str] = None) -> EngineKind:
    """Read and normalize an engine environment variable.

    Raises:
        ValueError: If the variable is unset with no default, or names an unknown engine.
    """
    from common.config.env import get_env_str

    raw_value = get_env_str(var_name, default)
    if raw_value is None:
        raise ValueError(
            f"{var_name} is not set. Choose one of: mysql, postgres, sqlite, sqlserver."
        )
    try:
        return normalize_engine(raw_value)
    except ValueError as exc:
        raise ValueError(f"Invalid engine for {var_name}: {exc}") from exc

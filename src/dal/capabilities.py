from dataclasses import dataclass
from typing import Optional, Union

from dal.util.env import normalize_engine
from schema import EngineKind


@dataclass(frozen=True)
class EngineCapabilities:
    """Catalog features an engine exposes to the introspector."""

    engine: EngineKind
    default_schema: Optional[str] = None
    supports_constraints_catalog: bool = True
    supports_triggers: bool = True
    supports_partitions: bool = False
    supports_sequences: bool = False
    supports_table_comments: bool = True
    supports_column_comments: bool = True
    supports_charset: bool = False
    supports_storage_engine: bool = False
    supports_enum_types: bool = False
    execution_model: str = "async"


def capabilities_for_engine(engine: Union[str, EngineKind]) -> EngineCapabilities:
    """Return capability flags for a given engine."""
    normalized = normalize_engine(engine)
    if normalized == EngineKind.MYSQL:
        return EngineCapabilities(
            engine=normalized,
            supports_partitions=True,
            supports_charset=True,
            supports_storage_engine=True,
            supports_enum_types=True,
        )
    if normalized == EngineKind.POSTGRES:
        return EngineCapabilities(
            engine=normalized,
            default_schema="public",
            supports_sequences=True,
            supports_enum_types=True,
        )
    if normalized == EngineKind.SQLITE:
        return EngineCapabilities(
            engine=normalized,
            supports_constraints_catalog=False,
            supports_table_comments=False,
            supports_column_comments=False,
        )
    return EngineCapabilities(
        engine=normalized,
        default_schema="dbo",
        supports_table_comments=False,
        supports_column_comments=False,
        execution_model="sync",
    )

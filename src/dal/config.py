from dataclasses import dataclass
from typing import Optional

from common.config.env import get_env_float, get_env_int, get_env_str
from dal.util.env import get_engine_env
from schema import EngineKind

_DEFAULT_PORTS = {
    EngineKind.MYSQL: 3306,
    EngineKind.POSTGRES: 5432,
    EngineKind.SQLSERVER: 1433,
}

_DEFAULT_SCHEMAS = {
    EngineKind.POSTGRES: "public",
    EngineKind.SQLSERVER: "dbo",
}

DEFAULT_ODBC_DRIVER = "ODBC Driver 18 for SQL Server"


@dataclass(frozen=True)
class ConnectionConfig:
    """Connection settings for one catalog database."""

    engine: EngineKind
    connection_id: str
    host: Optional[str] = None
    port: Optional[int] = None
    database: Optional[str] = None
    user: Optional[str] = None
    password: Optional[str] = None
    path: Optional[str] = None
    schema: Optional[str] = None
    odbc_driver: str = DEFAULT_ODBC_DRIVER
    pool_min_size: int = 1
    pool_max_size: int = 5
    query_timeout_seconds: Optional[float] = 30.0

    def __post_init__(self) -> None:
        """Validate required fields for the engine."""
        if self.engine == EngineKind.SQLITE:
            required = {"path": self.path}
        else:
            required = {"host": self.host, "database": self.database, "user": self.user}
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise ValueError(
                f"{self.engine.value} connection missing required config: {', '.join(missing)}."
            )
        if self.pool_max_size < 1:
            raise ValueError("pool_max_size must be at least 1.")
        if self.pool_min_size > self.pool_max_size:
            raise ValueError("pool_min_size cannot exceed pool_max_size.")

    @property
    def resolved_port(self) -> Optional[int]:
        """Configured port or the engine default."""
        return self.port or _DEFAULT_PORTS.get(self.engine)

    @property
    def resolved_schema(self) -> Optional[str]:
        """Configured schema or the engine default."""
        return self.schema or _DEFAULT_SCHEMAS.get(self.engine)

    @classmethod
    def from_env(cls, prefix: str = "SCHEMA_DB") -> "ConnectionConfig":
        """Load connection config from ``{prefix}_*`` environment variables."""
        engine = get_engine_env(f"{prefix}_ENGINE")
        database = get_env_str(f"{prefix}_NAME")
        path = get_env_str(f"{prefix}_PATH")
        default_id = f"{engine.value}:{path or database or 'default'}"
        return cls(
            engine=engine,
            connection_id=get_env_str(f"{prefix}_CONNECTION_ID", default_id),
            host=get_env_str(f"{prefix}_HOST"),
            port=get_env_int(f"{prefix}_PORT"),
            database=database,
            user=get_env_str(f"{prefix}_USER"),
            password=get_env_str(f"{prefix}_PASSWORD"),
            path=path,
            schema=get_env_str(f"{prefix}_SCHEMA"),
            odbc_driver=get_env_str(f"{prefix}_ODBC_DRIVER", DEFAULT_ODBC_DRIVER),
            pool_min_size=get_env_int(f"{prefix}_POOL_MIN", 1),
            pool_max_size=get_env_int(f"{prefix}_POOL_MAX", 5),
            query_timeout_seconds=get_env_float(f"{prefix}_QUERY_TIMEOUT_SECS", 30.0),
        )

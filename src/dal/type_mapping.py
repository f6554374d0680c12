"""Static per-engine mapping from native column types to semantic types and hints."""

import re
from dataclasses import dataclass
from typing import Dict, Optional, Tuple, Union

from dal.util.env import normalize_engine
from schema import EngineKind, SemanticType

_MODIFIERS = frozenset({"unsigned", "signed", "zerofill", "identity"})


@dataclass(frozen=True)
class TypeMapping:
    """Semantic type plus default generator hints for a native type."""

    semantic_type: SemanticType
    cast_hint: str
    validation_hint: str
    fake_data_hint: str


DEFAULT_HINTS: Dict[SemanticType, TypeMapping] = {
    SemanticType.STRING: TypeMapping(SemanticType.STRING, "string", "string", "word"),
    SemanticType.TEXT: TypeMapping(SemanticType.TEXT, "string", "string", "paragraph"),
    SemanticType.INTEGER: TypeMapping(SemanticType.INTEGER, "integer", "integer", "number_between"),
    SemanticType.BIG_INTEGER: TypeMapping(
        SemanticType.BIG_INTEGER, "integer", "integer", "random_number"
    ),
    SemanticType.DECIMAL: TypeMapping(SemanticType.DECIMAL, "decimal:2", "numeric", "random_float"),
    SemanticType.FLOAT: TypeMapping(SemanticType.FLOAT, "float", "numeric", "random_float"),
    SemanticType.DOUBLE: TypeMapping(SemanticType.DOUBLE, "double", "numeric", "random_float"),
    SemanticType.BOOLEAN: TypeMapping(SemanticType.BOOLEAN, "boolean", "boolean", "boolean"),
    SemanticType.DATE: TypeMapping(SemanticType.DATE, "date", "date", "date"),
    SemanticType.DATETIME: TypeMapping(SemanticType.DATETIME, "datetime", "date", "date_time"),
    SemanticType.TIME: TypeMapping(SemanticType.TIME, "string", "date_format:H:i:s", "time"),
    SemanticType.YEAR: TypeMapping(
        SemanticType.YEAR, "integer", "integer|min:1901|max:2155", "year"
    ),
    SemanticType.JSON: TypeMapping(SemanticType.JSON, "array", "json", "json"),
    SemanticType.ENUM: TypeMapping(SemanticType.ENUM, "string", "string", "random_element"),
    SemanticType.UUID: TypeMapping(SemanticType.UUID, "string", "uuid", "uuid"),
    SemanticType.BINARY: TypeMapping(SemanticType.BINARY, "string", "string", "sha256"),
}

FALLBACK = DEFAULT_HINTS[SemanticType.STRING]

_S = SemanticType

SHARED_TYPES: Dict[str, SemanticType] = {
    "varchar": _S.STRING,
    "char": _S.STRING,
    "character": _S.STRING,
    "character varying": _S.STRING,
    "nvarchar": _S.STRING,
    "nchar": _S.STRING,
    "string": _S.STRING,
    "text": _S.TEXT,
    "clob": _S.TEXT,
    "tinyint": _S.INTEGER,
    "smallint": _S.INTEGER,
    "mediumint": _S.INTEGER,
    "int": _S.INTEGER,
    "integer": _S.INTEGER,
    "bigint": _S.BIG_INTEGER,
    "decimal": _S.DECIMAL,
    "numeric": _S.DECIMAL,
    "float": _S.FLOAT,
    "real": _S.FLOAT,
    "double": _S.DOUBLE,
    "double precision": _S.DOUBLE,
    "boolean": _S.BOOLEAN,
    "bool": _S.BOOLEAN,
    "date": _S.DATE,
    "datetime": _S.DATETIME,
    "timestamp": _S.DATETIME,
    "time": _S.TIME,
    "year": _S.YEAR,
    "json": _S.JSON,
    "enum": _S.ENUM,
    "uuid": _S.UUID,
    "binary": _S.BINARY,
    "varbinary": _S.BINARY,
    "blob": _S.BINARY,
}

ENGINE_TYPES: Dict[EngineKind, Dict[str, SemanticType]] = {
    EngineKind.MYSQL: {
        "tinytext": _S.TEXT,
        "mediumtext": _S.TEXT,
        "longtext": _S.TEXT,
        "tinyblob": _S.BINARY,
        "mediumblob": _S.BINARY,
        "longblob": _S.BINARY,
        "bit": _S.INTEGER,
        "set": _S.JSON,
        "double": _S.DOUBLE,
        "real": _S.DOUBLE,
        "geometry": _S.BINARY,
        "point": _S.BINARY,
    },
    EngineKind.POSTGRES: {
        "int2": _S.INTEGER,
        "int4": _S.INTEGER,
        "int8": _S.BIG_INTEGER,
        "smallserial": _S.INTEGER,
        "serial": _S.INTEGER,
        "bigserial": _S.BIG_INTEGER,
        "float4": _S.FLOAT,
        "float8": _S.DOUBLE,
        "money": _S.DECIMAL,
        "bpchar": _S.STRING,
        "citext": _S.TEXT,
        "bytea": _S.BINARY,
        "jsonb": _S.JSON,
        "timestamptz": _S.DATETIME,
        "timestamp without time zone": _S.DATETIME,
        "timestamp with time zone": _S.DATETIME,
        "time without time zone": _S.TIME,
        "time with time zone": _S.TIME,
        "timetz": _S.TIME,
        "inet": _S.STRING,
        "cidr": _S.STRING,
        "macaddr": _S.STRING,
        "interval": _S.STRING,
    },
    EngineKind.SQLITE: {
        "real": _S.DOUBLE,
        "double": _S.DOUBLE,
        "numeric": _S.DECIMAL,
    },
    EngineKind.SQLSERVER: {
        "bit": _S.BOOLEAN,
        "tinyint": _S.INTEGER,
        "ntext": _S.TEXT,
        "datetime2": _S.DATETIME,
        "smalldatetime": _S.DATETIME,
        "datetimeoffset": _S.DATETIME,
        "uniqueidentifier": _S.UUID,
        "money": _S.DECIMAL,
        "smallmoney": _S.DECIMAL,
        "image": _S.BINARY,
        "rowversion": _S.BINARY,
        "xml": _S.TEXT,
    },
}

# (normalized base, exact parameter list) -> semantic type; checked before any table.
SPECIAL_RULES: Dict[EngineKind, Dict[Tuple[str, str], SemanticType]] = {
    EngineKind.MYSQL: {
        ("tinyint", "1"): _S.BOOLEAN,
        ("bit", "1"): _S.BOOLEAN,
    },
    EngineKind.SQLITE: {
        ("tinyint", "1"): _S.BOOLEAN,
    },
    EngineKind.POSTGRES: {},
    EngineKind.SQLSERVER: {},
}

# SQLite declared-type affinity rules, applied in order when no exact entry exists.
_SQLITE_AFFINITY: Tuple[Tuple[Tuple[str, ...], SemanticType], ...] = (
    (("int",), _S.INTEGER),
    (("char", "clob", "text"), _S.TEXT),
    (("blob",), _S.BINARY),
    (("real", "floa", "doub"), _S.DOUBLE),
)


def normalize_native_type(native_type: Optional[str]) -> Tuple[str, Optional[str]]:
    """Return ``(base, params)`` for a native type string.

    ``"VARCHAR(255)"`` becomes ``("varchar", "255")``, ``"tinyint(1) unsigned"``
    becomes ``("tinyint", "1")``, ``"timestamp(6) without time zone"`` becomes
    ``("timestamp without time zone", "6")``.
    """
    raw = str(native_type or "").strip().lower()
    params: Optional[str] = None
    open_at = raw.find("(")
    close_at = raw.rfind(")")
    if open_at != -1 and close_at > open_at:
        params = raw[open_at + 1 : close_at].replace(" ", "")
        raw = f"{raw[:open_at]} {raw[close_at + 1:]}"
    words = [word for word in raw.split() if word not in _MODIFIERS]
    return " ".join(words), params


def map_type(engine: Union[str, EngineKind], native_type: Optional[str]) -> TypeMapping:
    """Map a native column type to its semantic type and default hints.

    Total: unknown engines and unknown or empty types fall back to ``String``.
    """
    try:
        kind = normalize_engine(engine)
    except ValueError:
        return FALLBACK
    semantic = _lookup(kind, native_type)
    return DEFAULT_HINTS.get(semantic, FALLBACK) if semantic is not None else FALLBACK


def _lookup(engine: EngineKind, native_type: Optional[str]) -> Optional[SemanticType]:
    base, params = normalize_native_type(native_type)
    if not base:
        return None
    if params is not None:
        special = SPECIAL_RULES.get(engine, {}).get((base, params))
        if special is not None:
            return special
    engine_table = ENGINE_TYPES.get(engine, {})
    if base in engine_table:
        return engine_table[base]
    if base in SHARED_TYPES:
        return SHARED_TYPES[base]
    if engine == EngineKind.SQLITE:
        for fragments, semantic in _SQLITE_AFFINITY:
            if any(fragment in base for fragment in fragments):
                return semantic
    return None


def parse_type_parameters(
    native_type: Optional[str],
) -> Tuple[Optional[int], Optional[int], Optional[int]]:
    """Extract ``(length, precision, scale)`` from a declared type such as ``DECIMAL(10,2)``.

    A single parameter is a length for character/binary types and a precision
    otherwise.
    """
    base, params = normalize_native_type(native_type)
    if not params:
        return None, None, None
    parts = params.split(",")
    try:
        numbers = [int(part) for part in parts]
    except ValueError:
        return None, None, None
    if len(numbers) >= 2:
        return None, numbers[0], numbers[1]
    semantic = SHARED_TYPES.get(base.split()[0] if base else "", None)
    if semantic in (SemanticType.DECIMAL, SemanticType.FLOAT, SemanticType.DOUBLE):
        return None, numbers[0], None
    return numbers[0], None, None


def parse_enum_values(native_type: Optional[str]) -> Tuple[str, ...]:
    """Parse the value list of an ``enum('a','b')`` or ``set(...)`` column type."""
    raw = str(native_type or "").strip()
    lowered = raw.lower()
    if not (lowered.startswith("enum(") or lowered.startswith("set(")) or not raw.endswith(")"):
        return ()
    inner = raw[raw.index("(") + 1 : -1]
    return tuple(
        value.replace("''", "'") for value in re.findall(r"'((?:[^']|'')*)'", inner)
    )

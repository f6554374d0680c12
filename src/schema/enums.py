"""Enumerations shared by the canonical schema model."""

from enum import Enum
from typing import Optional


class EngineKind(str, Enum):
    """Supported database engines."""

    MYSQL = "mysql"
    POSTGRES = "postgres"
    SQLITE = "sqlite"
    SQLSERVER = "sqlserver"


class SemanticType(str, Enum):
    """Engine-neutral column type category."""

    STRING = "string"
    TEXT = "text"
    INTEGER = "integer"
    BIG_INTEGER = "big_integer"
    DECIMAL = "decimal"
    FLOAT = "float"
    DOUBLE = "double"
    BOOLEAN = "boolean"
    DATE = "date"
    DATETIME = "datetime"
    TIME = "time"
    YEAR = "year"
    JSON = "json"
    ENUM = "enum"
    UUID = "uuid"
    BINARY = "binary"

    @property
    def is_datetime_family(self) -> bool:
        """Return True for types that carry a date and a time."""
        return self in (SemanticType.DATETIME,)

    @property
    def is_numeric(self) -> bool:
        """Return True for integer and fractional numeric types."""
        return self in _NUMERIC_TYPES


_NUMERIC_TYPES = frozenset(
    {
        SemanticType.INTEGER,
        SemanticType.BIG_INTEGER,
        SemanticType.DECIMAL,
        SemanticType.FLOAT,
        SemanticType.DOUBLE,
    }
)


class ReferentialAction(str, Enum):
    """Foreign key ON DELETE / ON UPDATE behaviour."""

    RESTRICT = "restrict"
    CASCADE = "cascade"
    SET_NULL = "set_null"
    NO_ACTION = "no_action"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "ReferentialAction":
        """Translate an engine spelling (``SET NULL``, ``SET_NULL``, ``a``) into an action.

        Unrecognized or absent values map to ``RESTRICT``.
        """
        if raw is None:
            return cls.RESTRICT
        normalized = " ".join(str(raw).replace("_", " ").replace("-", " ").split()).upper()
        return _ACTION_SPELLINGS.get(normalized, cls.RESTRICT)


_ACTION_SPELLINGS = {
    "CASCADE": ReferentialAction.CASCADE,
    "SET NULL": ReferentialAction.SET_NULL,
    "NO ACTION": ReferentialAction.NO_ACTION,
    "RESTRICT": ReferentialAction.RESTRICT,
    # pg_constraint confdeltype/confupdtype codes
    "C": ReferentialAction.CASCADE,
    "N": ReferentialAction.SET_NULL,
    "A": ReferentialAction.NO_ACTION,
    "R": ReferentialAction.RESTRICT,
}


class ConstraintKind(str, Enum):
    """Table constraint category."""

    PRIMARY_KEY = "primary_key"
    FOREIGN_KEY = "foreign_key"
    UNIQUE = "unique"
    CHECK = "check"

    @classmethod
    def parse(cls, raw: Optional[str]) -> Optional["ConstraintKind"]:
        """Translate catalog spellings (``PRIMARY KEY``, ``p``, ``UQ``...) into a kind."""
        if raw is None:
            return None
        normalized = " ".join(str(raw).replace("_", " ").split()).upper()
        return _CONSTRAINT_SPELLINGS.get(normalized)


_CONSTRAINT_SPELLINGS = {
    "PRIMARY KEY": ConstraintKind.PRIMARY_KEY,
    "PRIMARY KEY CONSTRAINT": ConstraintKind.PRIMARY_KEY,
    "P": ConstraintKind.PRIMARY_KEY,
    "PK": ConstraintKind.PRIMARY_KEY,
    "FOREIGN KEY": ConstraintKind.FOREIGN_KEY,
    "FOREIGN KEY CONSTRAINT": ConstraintKind.FOREIGN_KEY,
    "F": ConstraintKind.FOREIGN_KEY,
    "UNIQUE": ConstraintKind.UNIQUE,
    "UNIQUE CONSTRAINT": ConstraintKind.UNIQUE,
    "U": ConstraintKind.UNIQUE,
    "UQ": ConstraintKind.UNIQUE,
    "CHECK": ConstraintKind.CHECK,
    "CHECK CONSTRAINT": ConstraintKind.CHECK,
    "C": ConstraintKind.CHECK,
}


class RelationshipKind(str, Enum):
    """Inferred relationship variants, declared in output sort order."""

    BELONGS_TO = "belongs_to"
    HAS_ONE = "has_one"
    HAS_MANY = "has_many"
    BELONGS_TO_MANY = "belongs_to_many"
    MORPH_TO = "morph_to"
    MORPH_ONE = "morph_one"
    MORPH_MANY = "morph_many"

    @property
    def sort_index(self) -> int:
        """Position of the kind in declaration order."""
        return _RELATIONSHIP_ORDER[self]


_RELATIONSHIP_ORDER = {kind: index for index, kind in enumerate(RelationshipKind)}

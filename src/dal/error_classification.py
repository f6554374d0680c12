from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

CONNECTION_CATEGORIES = frozenset({"connectivity", "auth"})

# pymysql/aiomysql client and server error numbers that mean the session is unusable
_MYSQL_CONNECTIVITY_CODES = frozenset({2002, 2003, 2005, 2006, 2013, 2055})
_MYSQL_AUTH_CODES = frozenset({1044, 1045, 1698})


@dataclass(frozen=True)
class ErrorClassification:
    """Engine-aware classification of a driver exception."""

    category: str
    engine: str

    @property
    def is_connection_failure(self) -> bool:
        """True when the session cannot be used any more (unreachable or rejected)."""
        return self.category in CONNECTION_CATEGORIES


def classify_error(engine: str, exc: BaseException) -> str:
    """Classify a driver error into an engine-agnostic category."""
    return classify_error_info(engine, exc).category


def classify_error_info(engine: str, exc: BaseException) -> ErrorClassification:
    """Classify a driver error by message, SQLSTATE, MySQL error number and class name."""
    message = str(exc).lower()
    class_name = exc.__class__.__name__.lower()
    module_name = exc.__class__.__module__.lower()
    engine = (engine or "unknown").lower()

    if isinstance(exc, TimeoutError) or _matches_any(message, ("timeout", "timed out")):
        return ErrorClassification("timeout", engine)

    if isinstance(exc, (ConnectionError, OSError)) and not isinstance(exc, FileNotFoundError):
        return ErrorClassification("connectivity", engine)

    mysql_code = _mysql_error_code(exc)
    if mysql_code in _MYSQL_CONNECTIVITY_CODES:
        return ErrorClassification("connectivity", engine)
    if mysql_code in _MYSQL_AUTH_CODES:
        return ErrorClassification("auth", engine)

    sqlstate = _sqlstate(exc)
    if sqlstate:
        if sqlstate.startswith("08"):
            return ErrorClassification("connectivity", engine)
        if sqlstate.startswith("28"):
            return ErrorClassification("auth", engine)
        if sqlstate.startswith("42"):
            return ErrorClassification("syntax", engine)

    if _matches_any(
        message,
        (
            "could not connect",
            "can't connect",
            "connection refused",
            "connection reset",
            "connection is closed",
            "connection was closed",
            "server has gone away",
            "lost connection",
            "unable to open database file",
            "network",
            "connection failed",
        ),
    ):
        return ErrorClassification("connectivity", engine)
    if _matches_any(
        message,
        (
            "password authentication failed",
            "login failed",
            "access denied",
            "permission denied",
            "not authorized",
        ),
    ):
        return ErrorClassification("auth", engine)
    if _matches_any(message, ("syntax error", "no such table", "does not exist", "invalid object")):
        return ErrorClassification("syntax", engine)
    if _matches_any(message, ("not supported", "unsupported")):
        return ErrorClassification("unsupported", engine)

    if module_name.startswith("asyncpg"):
        if "invalidpassword" in class_name or "invalidauthorization" in class_name:
            return ErrorClassification("auth", engine)
        if "connection" in class_name or class_name == "interfaceerror":
            return ErrorClassification("connectivity", engine)

    if class_name in {"interfaceerror", "connectiondoesnotexisterror"}:
        return ErrorClassification("connectivity", engine)

    return ErrorClassification("unknown", engine)


def _mysql_error_code(exc: BaseException) -> Optional[int]:
    args = getattr(exc, "args", ())
    if args and isinstance(args[0], int):
        return args[0]
    return None


def _sqlstate(exc: BaseException) -> Optional[str]:
    # asyncpg exposes .sqlstate; pyodbc puts the SQLSTATE first in args
    state = getattr(exc, "sqlstate", None)
    if isinstance(state, str) and len(state) == 5:
        return state
    args = getattr(exc, "args", ())
    if args and isinstance(args[0], str) and len(args[0]) == 5 and args[0][:2].isalnum():
        if any(ch.isdigit() for ch in args[0][:2]):
            return args[0]
    return None


def _matches_any(text: str, fragments: tuple[str, ...]) -> bool:
    return any(fragment in text for fragment in fragments)

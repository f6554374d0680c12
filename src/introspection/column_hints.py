"""Column-name driven refinements for fake-data and validation hints.

Type-level hints come from ``dal.type_mapping``; the patterns here only sharpen
them when a column name says more than its type (``email``, ``price``,
``is_active``...). A pattern applies only to the semantic families listed with
it, so an ``email_verified_at`` timestamp never becomes an e-mail address.
"""

import re
from typing import FrozenSet, Optional, Tuple

from schema import SemanticType

_S = SemanticType
_TEXTUAL: FrozenSet[SemanticType] = frozenset({_S.STRING, _S.TEXT})
_NUMERIC: FrozenSet[SemanticType] = frozenset(
    {_S.INTEGER, _S.BIG_INTEGER, _S.DECIMAL, _S.FLOAT, _S.DOUBLE}
)
_FRACTIONAL: FrozenSet[SemanticType] = frozenset({_S.DECIMAL, _S.FLOAT, _S.DOUBLE})
_TEMPORAL: FrozenSet[SemanticType] = frozenset({_S.DATE, _S.DATETIME})
_FLAGS: FrozenSet[SemanticType] = frozenset({_S.BOOLEAN, _S.INTEGER})

# (pattern, fake data hint, applicable semantic types); first match wins.
FAKE_DATA_PATTERNS: Tuple[Tuple["re.Pattern[str]", str, FrozenSet[SemanticType]], ...] = tuple(
    (re.compile(pattern, re.IGNORECASE), hint, families)
    for pattern, hint, families in (
        (r"email", "safe_email", _TEXTUAL),
        (r"first_?name", "first_name", _TEXTUAL),
        (r"last_?name", "last_name", _TEXTUAL),
        (r"full_?name", "name", _TEXTUAL),
        (r"^name$", "name", _TEXTUAL),
        (r"user_?name", "user_name", _TEXTUAL),
        (r"ip_?address|^ip$", "ipv4", _TEXTUAL),
        (r"street", "street_address", _TEXTUAL),
        (r"address", "address", _TEXTUAL),
        (r"city", "city", _TEXTUAL),
        (r"state", "state", _TEXTUAL),
        (r"country", "country", _TEXTUAL),
        (r"(zip|postal)_?code", "postcode", _TEXTUAL),
        (r"phone|mobile", "phone_number", _TEXTUAL),
        (r"company|organization|business", "company", _TEXTUAL),
        (r"image|photo|avatar|logo", "image_url", _TEXTUAL),
        (r"url|website", "url", _TEXTUAL),
        (r"domain", "domain_name", _TEXTUAL),
        (r"description|message|bio|about", "paragraph", _TEXTUAL),
        (r"content", "paragraphs", _TEXTUAL),
        (r"comment|note", "sentence", _TEXTUAL),
        (r"title|headline", "sentence", _TEXTUAL),
        (r"slug", "slug", _TEXTUAL),
        (r"colou?r", "hex_color", _TEXTUAL),
        (r"file|document", "file_name", _TEXTUAL),
        (r"password", "password", _TEXTUAL),
        (r"birth_?(date|day)", "date_of_birth", _TEMPORAL),
        (r"published_at|start_?date", "past_date", _TEMPORAL),
        (r"(end|due)_?date", "future_date", _TEMPORAL),
        (r"^(is|has|can)_|_(enabled|active)$", "boolean", _FLAGS),
        (r"price|cost|amount", "random_float", _FRACTIONAL),
        (r"salary|income|budget", "number_between", _NUMERIC),
        (r"age|weight|height|score|rating|quantity|count", "number_between", _NUMERIC),
    )
)

# Substring -> validation rule for textual columns.
VALIDATION_PATTERNS: Tuple[Tuple[str, str], ...] = (
    ("email", "email|max:255"),
    ("password", "string|min:8"),
    ("phone", "string|max:20"),
    ("url", "url|max:255"),
    ("slug", "alpha_dash|max:255"),
    ("uuid", "uuid"),
    ("mac_address", "mac_address"),
    ("ip_address", "ip"),
)


def fake_data_hint_for(name: str, semantic_type: SemanticType) -> Optional[str]:
    """Return a name-derived fake data hint, or None to keep the type default."""
    for pattern, hint, families in FAKE_DATA_PATTERNS:
        if semantic_type in families and pattern.search(name):
            return hint
    return None


def validation_hint_for(name: str, semantic_type: SemanticType) -> Optional[str]:
    """Return a name-derived validation rule for textual columns, or None."""
    if semantic_type not in _TEXTUAL:
        return None
    lowered = name.lower()
    for fragment, rule in VALIDATION_PATTERNS:
        if fragment in lowered:
            return rule
    return None

"""Rule-based English inflection for table and column names.

Only the last ``snake_case`` segment is inflected, so ``order_item`` becomes
``order_items`` and ``post_categories`` becomes ``post_category``.
"""

import re
from typing import Dict, Iterable, List, Optional, Tuple

UNCOUNTABLE = frozenset(
    {
        "audio",
        "data",
        "equipment",
        "feedback",
        "fish",
        "information",
        "metadata",
        "money",
        "news",
        "rice",
        "series",
        "sheep",
        "software",
        "species",
        "staff",
    }
)

IRREGULAR: Dict[str, str] = {
    "child": "children",
    "foot": "feet",
    "goose": "geese",
    "hero": "heroes",
    "man": "men",
    "medium": "media",
    "mouse": "mice",
    "ox": "oxen",
    "person": "people",
    "potato": "potatoes",
    "tomato": "tomatoes",
    "tooth": "teeth",
    "woman": "women",
}

_PLURAL_RULES: List[Tuple[str, str]] = [
    (r"(quiz)$", r"\1zes"),
    (r"(matr|vert|ind)(?:ix|ex)$", r"\1ices"),
    (r"(alias|status|campus|bus|canvas)$", r"\1es"),
    (r"(octop|vir)us$", r"\1i"),
    (r"^(ax|test|cris)is$", r"\1es"),
    (r"(analy|ba|diagno|parenthe|progno|synop|the)sis$", r"\1ses"),
    (r"(x|ch|ss|sh|zz)$", r"\1es"),
    (r"([^aeiouy]|qu)y$", r"\1ies"),
    (r"(hive)$", r"\1s"),
    (r"(lea|loa|thie)f$", r"\1ves"),
    (r"([^f])fe$", r"\1ves"),
    (r"([lr])f$", r"\1ves"),
    (r"s$", "s"),
    (r"$", "s"),
]

_SINGULAR_RULES: List[Tuple[str, str]] = [
    (r"(quiz)zes$", r"\1"),
    (r"(matr)ices$", r"\1ix"),
    (r"(vert|ind)ices$", r"\1ex"),
    (r"(alias|status|campus|bus|canvas)(?:es)?$", r"\1"),
    (r"(octop|vir)(?:i|us)$", r"\1us"),
    (r"(analy|ba|diagno|parenthe|progno|synop|the)(?:sis|ses)$", r"\1sis"),
    (r"^(cris|ax|test)(?:es|is)$", r"\1is"),
    (r"(shoe)s$", r"\1"),
    (r"(x|ch|ss|sh|zz)es$", r"\1"),
    (r"(m)ovies$", r"\1ovie"),
    (r"([^aeiouy]|qu)ies$", r"\1y"),
    (r"(hive|tive)s$", r"\1"),
    (r"(lea|loa|thie|[lr])ves$", r"\1f"),
    (r"([^f])ves$", r"\1fe"),
    (r"ss$", "ss"),
    (r"us$", "us"),
    (r"s$", ""),
]


def _compile(rules: Iterable[Tuple[str, str]]) -> List[Tuple["re.Pattern[str]", str]]:
    return [(re.compile(pattern, re.IGNORECASE), replacement) for pattern, replacement in rules]


class EnglishInflector:
    """Suffix-rule inflector with irregular and uncountable word lists."""

    def __init__(
        self,
        irregular: Optional[Dict[str, str]] = None,
        uncountable: Optional[Iterable[str]] = None,
    ) -> None:
        """Extend the built-in word lists with project-specific entries."""
        self._plurals = dict(IRREGULAR)
        self._plurals.update(irregular or {})
        self._singulars = {plural: singular for singular, plural in self._plurals.items()}
        self._uncountable = set(UNCOUNTABLE) | set(uncountable or ())
        self._plural_rules = _compile(_PLURAL_RULES)
        self._singular_rules = _compile(_SINGULAR_RULES)

    def pluralize(self, word: str) -> str:
        """Return the plural form of ``word``; plurals are returned unchanged."""
        return self._inflect(word, self._plurals, self._singulars, self._plural_rules)

    def singularize(self, word: str) -> str:
        """Return the singular form of ``word``; singulars are returned unchanged."""
        return self._inflect(word, self._singulars, self._plurals, self._singular_rules)

    def _inflect(self, word, lookup, reverse, rules) -> str:
        head, sep, last = word.rpartition("_")
        lowered = last.lower()
        if not lowered or lowered in self._uncountable:
            return word
        if lowered in lookup:
            result = lookup[lowered]
        elif lowered in reverse:
            result = lowered
        else:
            result = last
            for pattern, replacement in rules:
                if pattern.search(last):
                    result = pattern.sub(replacement, last, count=1)
                    break
        return f"{head}{sep}{result}"

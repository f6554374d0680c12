from typing import Protocol, runtime_checkable


@runtime_checkable
class Inflector(Protocol):
    """Protocol for word inflection used by naming-convention heuristics."""

    def pluralize(self, word: str) -> str:
        """Return the plural form of ``word``."""
        ...

    def singularize(self, word: str) -> str:
        """Return the singular form of ``word``."""
        ...

from typing import Protocol, runtime_checkable

from schema import TableDef


@runtime_checkable
class TableIntrospector(Protocol):
    """Protocol for anything that builds one ``TableDef`` per table name."""

    async def introspect(self, table: str) -> TableDef:
        """Introspect ``table`` into its canonical definition."""
        ...

from typing import Dict, List, Set, Tuple

from pydantic import BaseModel, Field

from .enums import RelationshipKind
from .relationship_def import RelationshipDef
from .table_def import TableDef


class UnresolvedForeignKey(BaseModel):
    """A foreign key whose target table is outside the scanned table set."""

    table: str
    foreign_key: str
    foreign_table: str

    model_config = {"frozen": True}


class SchemaDef(BaseModel):
    """The full analysis result for one connection and table set."""

    connection_id: str
    tables: Dict[str, TableDef] = Field(default_factory=dict)
    relationships: List[RelationshipDef] = Field(default_factory=list)
    dependency_graph: Dict[str, Set[str]] = Field(default_factory=dict)
    creation_order: List[str] = Field(default_factory=list)
    cyclic_edges: List[Tuple[str, str]] = Field(default_factory=list)
    unresolved_foreign_keys: List[UnresolvedForeignKey] = Field(default_factory=list)

    model_config = {"frozen": True}

    def relationships_for(self, table: str) -> List[RelationshipDef]:
        """Relationships owned by ``table`` in output order."""
        return [rel for rel in self.relationships if rel.owner_table == table]

    def relationships_of_kind(self, kind: RelationshipKind) -> List[RelationshipDef]:
        """Relationships of a single kind in output order."""
        return [rel for rel in self.relationships if rel.kind == kind]

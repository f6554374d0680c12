from typing import Optional

from pydantic import BaseModel

from .enums import ReferentialAction, RelationshipKind


class RelationshipDef(BaseModel):
    """An inferred application-level relationship owned by one table.

    BelongsTo/HasOne/HasMany carry ``foreign_key_column`` and ``foreign_key_name``.
    BelongsToMany carries the pivot fields. Morph variants carry the morph fields;
    ``related_table`` is empty for MorphTo since the target is chosen at runtime.
    """

    kind: RelationshipKind
    owner_table: str
    related_table: Optional[str] = None
    method_name: str
    foreign_key_column: Optional[str] = None
    foreign_key_name: Optional[str] = None
    local_key_column: Optional[str] = None
    nullable: bool = False
    on_delete: Optional[ReferentialAction] = None
    pivot_table: Optional[str] = None
    foreign_pivot_key: Optional[str] = None
    related_pivot_key: Optional[str] = None
    morph_name: Optional[str] = None
    type_column: Optional[str] = None
    id_column: Optional[str] = None

    model_config = {"frozen": True}

    @property
    def key_column(self) -> str:
        """The column that identifies this relationship within its owner."""
        return self.foreign_key_column or self.foreign_pivot_key or self.type_column or ""

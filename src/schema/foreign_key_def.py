from pydantic import BaseModel

from .enums import ReferentialAction


class ForeignKeyDef(BaseModel):
    """Canonical representation of a single-column foreign key constraint."""

    name: str
    column: str
    foreign_table: str
    foreign_column: str
    on_update: ReferentialAction = ReferentialAction.RESTRICT
    on_delete: ReferentialAction = ReferentialAction.RESTRICT

    model_config = {"frozen": True}

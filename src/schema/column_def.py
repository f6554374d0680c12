from typing import List, Optional

from pydantic import BaseModel, Field

from .enums import SemanticType


class ColumnDef(BaseModel):
    """Canonical representation of a column with its semantic type and generator hints."""

    name: str
    native_type: str
    semantic_type: SemanticType
    nullable: bool = False
    default_value: Optional[str] = None
    auto_increment: bool = False
    unsigned: bool = False
    length: Optional[int] = None
    precision: Optional[int] = None
    scale: Optional[int] = None
    enum_values: List[str] = Field(default_factory=list)
    comment: Optional[str] = None
    type_name: Optional[str] = None
    cast_hint: str = "string"
    validation_hint: str = "string"
    fake_data_hint: str = "word"

    model_config = {"frozen": True}

from typing import List, Optional

from pydantic import BaseModel, Field

from .enums import ConstraintKind


class PrimaryKeyDef(BaseModel):
    """Primary key columns in key order."""

    columns: List[str] = Field(min_length=1)
    name: Optional[str] = None

    model_config = {"frozen": True}


class IndexDef(BaseModel):
    """Canonical representation of an index."""

    name: str
    columns: List[str] = Field(default_factory=list)
    unique: bool = False
    primary: bool = False
    index_type: Optional[str] = None

    model_config = {"frozen": True}


class ConstraintDef(BaseModel):
    """A named table constraint."""

    name: str
    kind: ConstraintKind
    definition: Optional[str] = None

    model_config = {"frozen": True}

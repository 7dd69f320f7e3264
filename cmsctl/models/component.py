"""Component schema document body."""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field
from typing_extensions import Literal

FieldType = Literal["string", "number", "boolean", "array", "object", "enum", "date"]


class ComponentField(BaseModel):
    """A field a component instance must provide data for."""

    model_config = ConfigDict(extra="allow")

    name: str
    label: str
    type: FieldType
    required: bool = False


class ComponentSchema(BaseModel):
    """Primitive or composite component schema.

    Composite-only keys (``components``, ``dataSchema``, ``minColumns``,
    ``defaultColumns``) are carried as extra fields.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str
    description: str = ""
    type: Literal["primitive", "composite"]
    icon: Optional[str] = None
    # "fields" is stored under an alias so it cannot shadow BaseModel attributes
    field_defs: List[ComponentField] = Field(default=[], alias="fields")

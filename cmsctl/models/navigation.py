"""Navigation menu document body."""

from typing import List, Optional
from pydantic import BaseModel, ConfigDict


class NavigationItem(BaseModel):
    """A single menu entry, optionally with nested children."""

    model_config = ConfigDict(extra="allow")

    id: str
    label: str
    href: str
    order: int = 0
    children: Optional[List["NavigationItem"]] = None


class Navigation(BaseModel):
    """Navigation menu document body."""

    model_config = ConfigDict(extra="allow")

    name: str
    description: Optional[str] = None
    items: List[NavigationItem] = []


NavigationItem.model_rebuild()

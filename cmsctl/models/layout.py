"""Layout document body."""

from typing import Optional
from pydantic import BaseModel, ConfigDict
from typing_extensions import Literal

NavigationStyle = Literal["default", "minimal", "full"]


class LayoutHeader(BaseModel):
    """Header section of a layout."""

    model_config = ConfigDict(extra="allow")

    showNavigation: bool = True
    navigationStyle: NavigationStyle = "default"
    customNavigation: Optional[bool] = None


class LayoutFooter(BaseModel):
    """Footer section of a layout."""

    model_config = ConfigDict(extra="allow")

    showFooter: bool = True
    footerStyle: Optional[NavigationStyle] = None
    customFooter: Optional[bool] = None


class Layout(BaseModel):
    """Layout document body."""

    model_config = ConfigDict(extra="allow")

    name: str
    description: str = ""
    navigationId: Optional[str] = None
    header: LayoutHeader
    footer: LayoutFooter

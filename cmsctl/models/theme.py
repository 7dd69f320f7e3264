"""Theme document body."""

from typing import Dict, Optional
from pydantic import BaseModel, ConfigDict, field_validator

REQUIRED_COLOR_ROLES = ("primary", "secondary", "background", "text")


class ThemeFonts(BaseModel):
    """Heading and body font stacks."""

    model_config = ConfigDict(extra="allow")

    heading: str
    body: str


class Theme(BaseModel):
    """Theme document body.

    At most one theme in the repository has ``isActive`` set; the content
    repository is the only place that flips it.
    """

    model_config = ConfigDict(extra="allow")

    name: str
    description: Optional[str] = None
    colors: Dict[str, str]
    fonts: ThemeFonts
    spacing: Optional[Dict[str, str]] = None
    isActive: bool = False

    @field_validator("colors")
    @classmethod
    def validate_colors(cls, v: Dict[str, str]) -> Dict[str, str]:
        """Require the color roles every layout renders with."""
        missing = [role for role in REQUIRED_COLOR_ROLES if not v.get(role)]
        if missing:
            raise ValueError(f"Missing color roles: {', '.join(missing)}")
        return v

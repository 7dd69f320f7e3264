"""Page document body."""

from typing import List, Optional, Dict, Any
from pydantic import BaseModel, ConfigDict, field_validator
from typing_extensions import Literal

from ..utils.slug import is_slug


class Page(BaseModel):
    """Page document body.

    Sections are kept as raw mappings; their shape belongs to the editors
    and the renderer.
    """

    model_config = ConfigDict(extra="allow")

    title: str
    slug: Optional[str] = None
    status: Literal["draft", "published"] = "draft"
    metaDescription: Optional[str] = None
    isLandingPage: Optional[bool] = None
    layoutId: Optional[str] = None
    useLayout: Optional[bool] = None
    sections: List[Dict[str, Any]] = []

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Title cannot be empty")
        return v

    @field_validator("slug")
    @classmethod
    def validate_slug(cls, v: Optional[str]) -> Optional[str]:
        """Validate slug is URL-safe."""
        if v is not None and not is_slug(v):
            raise ValueError("Slug must be URL-safe (lowercase, alphanumeric, hyphens)")
        return v

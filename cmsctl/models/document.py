"""Document, category and listing models.

A document is one JSON file in the content tree. The repository lifts
the ``createdAt``/``updatedAt`` keys out of the stored JSON so that a
document's ``body`` is exactly what the caller wrote.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel, ValidationError

from ..exceptions import ValidationFailedError
from .component import ComponentSchema
from .layout import Layout
from .navigation import Navigation
from .page import Page
from .theme import Theme

CREATED_AT_KEY = "createdAt"
UPDATED_AT_KEY = "updatedAt"
TIMESTAMP_KEYS = (CREATED_AT_KEY, UPDATED_AT_KEY)


def pop_timestamp(body: Dict[str, Any], key: str, source: str) -> Optional[str]:
    """Remove and return a timestamp key from a JSON object.

    Raises:
        ValidationFailedError: If the value is present but not a string
    """
    value = body.pop(key, None)
    if value is None or isinstance(value, str):
        return value
    raise ValidationFailedError(
        f"Invalid {key} in {source}: expected an ISO-8601 string, got {type(value).__name__}",
        validation_errors=[f"{key}: must be a string"],
    )


class Category(str, Enum):
    """Document kinds stored in the content tree."""

    PAGE = "page"
    LAYOUT = "layout"
    THEME = "theme"
    NAVIGATION = "navigation"
    COMPONENT_SCHEMA = "component-schema"

    @property
    def directory(self) -> str:
        """Directory holding this category's files."""
        return _DIRECTORIES[self]

    @property
    def body_model(self) -> Type[BaseModel]:
        return _BODY_MODELS[self]

    @property
    def name_field(self) -> str:
        """Body key holding the human-readable name used to derive ids."""
        return "title" if self is Category.PAGE else "name"

    @classmethod
    def parse(cls, value: "str | Category") -> "Category":
        """Resolve a category from its value or its directory name."""
        if isinstance(value, Category):
            return value
        for category in cls:
            if value in (category.value, category.directory):
                return category
        raise ValidationFailedError(
            f"Unknown category: {value}",
            validation_errors=[f"category must be one of: {', '.join(c.value for c in cls)}"],
        )


_DIRECTORIES = {
    Category.PAGE: "pages",
    Category.LAYOUT: "layouts",
    Category.THEME: "themes",
    Category.NAVIGATION: "navigation",
    Category.COMPONENT_SCHEMA: "components",
}

_BODY_MODELS: Dict[Category, Type[BaseModel]] = {
    Category.PAGE: Page,
    Category.LAYOUT: Layout,
    Category.THEME: Theme,
    Category.NAVIGATION: Navigation,
    Category.COMPONENT_SCHEMA: ComponentSchema,
}


class ListingEntry(BaseModel):
    """One file found while listing a category directory."""

    id: str
    revision: Optional[str] = None
    location: str


class StoredDocument(BaseModel):
    """Raw body and revision as returned by a backend."""

    body: Dict[str, Any]
    revision: str


class Document(BaseModel):
    """A document as seen by repository callers."""

    category: Category
    id: str
    body: Dict[str, Any]
    revision: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    has_draft: bool = False

    @classmethod
    def from_stored(cls, category: Category, doc_id: str, stored: StoredDocument) -> "Document":
        """Build a document from backend JSON, lifting out the timestamps.

        Raises:
            ValidationFailedError: If a stored timestamp is not a string
        """
        body = dict(stored.body)
        source = f"stored {category.value} '{doc_id}'"
        created_at = pop_timestamp(body, CREATED_AT_KEY, source)
        updated_at = pop_timestamp(body, UPDATED_AT_KEY, source)
        return cls(
            category=category,
            id=doc_id,
            body=body,
            revision=stored.revision,
            created_at=created_at,
            updated_at=updated_at,
        )

    def to_stored_body(self) -> Dict[str, Any]:
        """JSON object written to the backend."""
        data = dict(self.body)
        if self.created_at:
            data[CREATED_AT_KEY] = self.created_at
        if self.updated_at:
            data[UPDATED_AT_KEY] = self.updated_at
        return data

    @property
    def is_active(self) -> bool:
        """Whether this is a theme flagged active."""
        return self.category is Category.THEME and self.body.get("isActive") is True


class DocumentSummary(BaseModel):
    """Listing row: id plus minimal metadata.

    ``error`` is set when the document could not be read; such rows carry
    only the id.
    """

    category: Category
    id: str
    name: Optional[str] = None
    revision: Optional[str] = None
    updated_at: Optional[str] = None
    is_active: Optional[bool] = None
    has_draft: bool = False
    error: Optional[str] = None

    @classmethod
    def from_document(cls, document: Document) -> "DocumentSummary":
        name = document.body.get(document.category.name_field)
        return cls(
            category=document.category,
            id=document.id,
            name=name if isinstance(name, str) else None,
            revision=document.revision,
            updated_at=document.updated_at,
            is_active=document.is_active if document.category is Category.THEME else None,
        )


def validate_body(category: Category, body: Dict[str, Any]) -> BaseModel:
    """Check a body against its category model.

    Raises:
        ValidationFailedError: If required fields are missing or malformed
    """
    if not isinstance(body, dict):
        raise ValidationFailedError(
            f"{category.value} body must be a JSON object",
            validation_errors=[f"got {type(body).__name__}"],
        )

    try:
        return category.body_model.model_validate(body)
    except ValidationError as e:
        errors: List[str] = []
        for err in e.errors():
            location = ".".join(str(part) for part in err["loc"]) or "body"
            errors.append(f"{location}: {err['msg']}")
        raise ValidationFailedError(
            f"Invalid {category.value} document: {'; '.join(errors)}",
            validation_errors=errors,
        )

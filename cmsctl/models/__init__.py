"""Data models for the content repository.

This package contains the document envelope models shared by the
backends and the repository facade, and the Pydantic models for each
category's body (pages, layouts, themes, navigation menus and component
schemas).
"""

from .document import (
    Category,
    Document,
    DocumentSummary,
    ListingEntry,
    StoredDocument,
    validate_body,
    pop_timestamp,
    CREATED_AT_KEY,
    UPDATED_AT_KEY,
    TIMESTAMP_KEYS,
)
from .page import Page
from .layout import Layout, LayoutHeader, LayoutFooter
from .theme import Theme, ThemeFonts
from .navigation import Navigation, NavigationItem
from .component import ComponentSchema, ComponentField

__all__ = [
    # Envelope models
    "Category",
    "Document",
    "DocumentSummary",
    "ListingEntry",
    "StoredDocument",
    "validate_body",
    "pop_timestamp",
    "CREATED_AT_KEY",
    "UPDATED_AT_KEY",
    "TIMESTAMP_KEYS",

    # Bodies
    "Page",
    "Layout",
    "LayoutHeader",
    "LayoutFooter",
    "Theme",
    "ThemeFonts",
    "Navigation",
    "NavigationItem",
    "ComponentSchema",
    "ComponentField",
]

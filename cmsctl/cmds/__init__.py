"""Command modules for the cmsctl CLI.

This module exports all command groups (Typer apps) that can be registered
with the main application.
"""

from ..models import Category
from .documents import create_category_app
from .themes import app as themes_app
from .drafts import app as drafts_app
from .config import app as config_app

pages_app = create_category_app(Category.PAGE)
layouts_app = create_category_app(Category.LAYOUT)
navigation_app = create_category_app(Category.NAVIGATION)
components_app = create_category_app(Category.COMPONENT_SCHEMA)

__all__ = [
    "pages_app",
    "layouts_app",
    "themes_app",
    "navigation_app",
    "components_app",
    "drafts_app",
    "config_app",
]

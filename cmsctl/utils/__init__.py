"""Utility modules for the content repository.

This package contains identifier helpers, retry logic and error
formatting shared by the backends and the CLI.
"""

from .slug import slugify, is_slug
from .retry import RetryManager, CircuitBreaker

__all__ = [
    "slugify",
    "is_slug",
    "RetryManager",
    "CircuitBreaker",
]

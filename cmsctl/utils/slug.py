"""Identifier helpers for document file names."""

import re

_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def slugify(value: str) -> str:
    """Turn a human-readable name into a document id.

    Lowercases, collapses every run of non-alphanumeric characters into a
    single hyphen and strips leading/trailing hyphens. Applying it to an
    existing slug returns the slug unchanged.

    Examples:
        >>> slugify("About Us!")
        'about-us'
        >>> slugify("  Dark -- Mode  ")
        'dark-mode'
    """
    return _NON_ALNUM.sub("-", value.lower()).strip("-")


def is_slug(value: str) -> bool:
    """Check whether a value is already a valid, non-empty slug."""
    return bool(value) and slugify(value) == value

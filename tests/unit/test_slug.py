"""Unit tests for document id helpers."""

import pytest

from cmsctl.utils.slug import is_slug, slugify


class TestSlugify:
    """Test cases for slugify."""

    @pytest.mark.parametrize(
        "value, expected",
        [
            ("About Us", "about-us"),
            ("About Us!", "about-us"),
            ("  Dark -- Mode  ", "dark-mode"),
            ("Main_Menu", "main-menu"),
            ("Hero Banner 2", "hero-banner-2"),
            ("already-a-slug", "already-a-slug"),
            ("!!!", ""),
        ],
    )
    def test_slugify(self, value, expected):
        assert slugify(value) == expected

    def test_idempotent(self):
        once = slugify("Contact & Support")

        assert slugify(once) == once


class TestIsSlug:
    """Test cases for is_slug."""

    def test_valid(self):
        assert is_slug("about-us") is True
        assert is_slug("v2") is True

    def test_invalid(self):
        assert is_slug("") is False
        assert is_slug("About") is False
        assert is_slug("about us") is False
        assert is_slug("-about") is False
        assert is_slug("about--us") is False

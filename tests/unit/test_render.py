"""Unit tests for render.py module.

Tests the OutputFormatter class: format selection and table, JSON and
YAML output.
"""

import json
from io import StringIO

import pytest
import yaml
from unittest.mock import patch

from rich.console import Console

from cmsctl.exceptions import ValidationFailedError
from cmsctl.render import ENV_OUTPUT_FORMAT, OutputFormatter


@pytest.fixture
def buffer():
    return StringIO()


@pytest.fixture
def formatter(buffer):
    """OutputFormatter writing tables into a buffer."""
    return OutputFormatter(console=Console(file=buffer, width=120, color_system=None))


@pytest.fixture
def rows():
    return [
        {"id": "about", "name": "About Us", "active": True, "tags": ["a", "b"], "updated_at": None},
        {"id": "home", "name": "Home", "active": False, "tags": [], "updated_at": "2024-05-01T12:00:00.000Z"},
    ]


class TestDetermineFormat:
    """Output format selection."""

    def test_override_wins(self, formatter, monkeypatch):
        monkeypatch.setenv(ENV_OUTPUT_FORMAT, "yaml")

        assert formatter.determine_format("JSON") == "json"

    def test_environment(self, formatter, monkeypatch):
        monkeypatch.setenv(ENV_OUTPUT_FORMAT, "yaml")

        assert formatter.determine_format() == "yaml"

    def test_tty_gets_table(self, formatter, monkeypatch):
        monkeypatch.delenv(ENV_OUTPUT_FORMAT, raising=False)

        with patch("cmsctl.render.sys.stdout") as mock_stdout:
            mock_stdout.isatty.return_value = True
            assert formatter.determine_format() == "table"

            mock_stdout.isatty.return_value = False
            assert formatter.determine_format() == "json"


class TestRender:
    """Rendering in each format."""

    def test_table(self, formatter, buffer, rows):
        formatter.render(rows, format="table", columns=["id", "name", "active", "tags"], title="Pages")

        output = buffer.getvalue()
        assert "Pages" in output
        assert "About Us" in output
        assert "✓" in output
        assert "✗" in output
        assert '["a", "b"]' in output

    def test_table_column_titles(self, formatter, buffer, rows):
        formatter.render_table(rows, columns=["id", "updated_at"])

        assert "Updated At" in buffer.getvalue()

    def test_table_single_dict(self, formatter, buffer):
        formatter.render_table({"id": "dark", "name": "Dark"})

        output = buffer.getvalue()
        assert "dark" in output
        assert "Name" in output

    def test_empty_table(self, formatter, buffer):
        formatter.render_table([])

        assert "No data to display" in buffer.getvalue()

    def test_json(self, formatter, capsys, rows):
        formatter.render(rows, format="json")

        assert json.loads(capsys.readouterr().out) == rows

    def test_json_keeps_unicode(self, formatter, capsys):
        formatter.render_json({"title": "Café"})

        assert "Café" in capsys.readouterr().out

    def test_yaml_preserves_key_order(self, formatter, capsys):
        formatter.render({"title": "About", "slug": "about", "status": "draft"}, format="yaml")

        output = capsys.readouterr().out
        assert yaml.safe_load(output) == {"title": "About", "slug": "about", "status": "draft"}
        assert output.index("title") < output.index("slug") < output.index("status")

    def test_unknown_format(self, formatter, rows):
        with pytest.raises(ValidationFailedError, match="Unknown output format"):
            formatter.render(rows, format="xml")

"""Output rendering and formatting utilities.

This module provides the output formatter used by the CLI to display
documents and listings as tables, JSON or YAML.
"""

import json
import os
import sys
from typing import Any, Dict, List, Optional, Union

import yaml
from rich import box
from rich.console import Console
from rich.table import Table

from .exceptions import ValidationFailedError

OUTPUT_FORMATS = ("table", "json", "yaml")
ENV_OUTPUT_FORMAT = "CMS_OUTPUT_FORMAT"


class OutputFormatter:
    """Main output formatter that handles multiple output formats."""

    def __init__(self, console: Optional[Console] = None) -> None:
        """Initialize output formatter.

        Args:
            console: Rich console instance. If None, creates a new one.
        """
        self.console = console or Console()

    def determine_format(self, format_override: Optional[str] = None) -> str:
        """Determine the output format to use.

        Args:
            format_override: Explicit format override

        Returns:
            Format name (table, json, yaml)
        """
        if format_override:
            return format_override.lower()

        env_format = os.environ.get(ENV_OUTPUT_FORMAT)
        if env_format:
            return env_format.lower()

        # Tables for terminals, JSON when piped
        if sys.stdout.isatty():
            return "table"
        return "json"

    def render(
        self,
        data: Any,
        format: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        """Render data in the specified format.

        Args:
            data: Data to render
            format: Output format (table, json, yaml)
            **kwargs: Additional formatting options
        """
        format_name = self.determine_format(format)

        if format_name == "table":
            self.render_table(data, **kwargs)
        elif format_name == "json":
            self.render_json(data)
        elif format_name == "yaml":
            self.render_yaml(data)
        else:
            raise ValidationFailedError(
                f"Unknown output format: {format_name}",
                validation_errors=[f"format must be one of: {', '.join(OUTPUT_FORMATS)}"],
            )

    def render_table(
        self,
        data: Union[List[Dict[str, Any]], Dict[str, Any]],
        columns: Optional[List[str]] = None,
        title: Optional[str] = None,
        show_lines: bool = False,
        **kwargs: Any,
    ) -> None:
        """Render data as a table using Rich.

        Args:
            data: Row dicts, or a single dict rendered as one row
            columns: Column names to display
            title: Table title
            show_lines: Whether to show row separators
            **kwargs: Additional arguments
        """
        if not data:
            self.console.print("[dim]No data to display[/dim]")
            return

        if isinstance(data, dict):
            data = [data]

        if not columns:
            columns = []
            for item in data:
                for key in item:
                    if key not in columns:
                        columns.append(key)

        table = Table(title=title, show_lines=show_lines, box=box.ROUNDED)

        for col in columns:
            table.add_column(col.replace("_", " ").title(), overflow="fold")

        for item in data:
            row = []
            for col in columns:
                value = item.get(col, "")
                if value is None:
                    value = ""
                elif isinstance(value, bool):
                    value = "✓" if value else "✗"
                elif isinstance(value, (list, dict)):
                    value = json.dumps(value, ensure_ascii=False)
                row.append(str(value))
            table.add_row(*row)

        self.console.print(table)

    def render_json(self, data: Any, indent: int = 2) -> None:
        """Render data as JSON on stdout."""
        try:
            output = json.dumps(data, indent=indent, ensure_ascii=False, default=str)
        except (TypeError, ValueError) as e:
            raise ValidationFailedError(f"Failed to serialize data to JSON: {e}")
        print(output)

    def render_yaml(self, data: Any) -> None:
        """Render data as YAML on stdout."""
        try:
            output = yaml.safe_dump(data, default_flow_style=False, allow_unicode=True, sort_keys=False)
        except yaml.YAMLError as e:
            raise ValidationFailedError(f"Failed to serialize data to YAML: {e}")
        print(output, end="")

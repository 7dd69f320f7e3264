"""Integration tests for cmsctl.

Test Structure:
- test_repository.py: repository facade over the in-memory backend
- test_theme_activation.py: theme switching and partial-failure recovery
- test_cli.py: command-line workflows through Typer's CliRunner
"""

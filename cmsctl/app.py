"""Main Typer application for the cmsctl CLI.

This module contains the main Typer app instance and registers all command groups.
It provides the entry point for the CLI and handles global options like profile,
debug mode, output formatting, and environment variable integration.
"""

import functools
import os
import sys
from typing import Optional

import click
import typer
from rich.console import Console
from rich.markup import escape

from . import __version__
from .config import (
    ENV_API_URL,
    ENV_BRANCH,
    ENV_CONTENT_ROOT,
    ENV_LOCAL_MODE,
    ENV_LOCAL_ROOT,
    ENV_OWNER,
    ENV_REPO,
    ENV_TOKEN,
    ConfigManager,
    apply_environment_overrides,
)
from .exceptions import CmsError, ConfigError
from .render import OUTPUT_FORMATS, OutputFormatter
from .utils.exceptions import format_error_for_user

# Create main Typer app
app = typer.Typer(
    name="cmsctl",
    help="Command-line tool for managing git-backed site content",
    context_settings={"help_option_names": ["-h", "--help"]},
    no_args_is_help=True,
    rich_markup_mode="rich",
)

# Global state for shared objects
console = Console()
output_formatter = OutputFormatter(console)


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        typer.echo(f"cmsctl {__version__}")
        raise typer.Exit()


def validate_output_callback(value: Optional[str]) -> Optional[str]:
    """Reject unknown output formats before any command runs."""
    if value is not None and value.lower() not in OUTPUT_FORMATS:
        raise typer.BadParameter(f"must be one of: {', '.join(OUTPUT_FORMATS)}")
    return value.lower() if value else value


def show_environment_info(debug: bool) -> None:
    """Show environment variable information if debug is enabled."""
    if not debug:
        return

    console.print("[dim]Environment variables:[/dim]")
    for var in (ENV_OWNER, ENV_REPO, ENV_BRANCH, ENV_API_URL, ENV_CONTENT_ROOT, ENV_LOCAL_ROOT, ENV_LOCAL_MODE):
        console.print(f"  {var}: {os.getenv(var, '[not set]')}", markup=False)
    console.print(f"  {ENV_TOKEN}: {'[set]' if os.getenv(ENV_TOKEN) else '[not set]'}", markup=False)


# Global options
@app.callback()
def main(
    ctx: typer.Context,
    profile: Optional[str] = typer.Option(
        None,
        "--profile",
        "-p",
        help="Configuration profile to use",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Show what would be done without making changes",
    ),
    output_format: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format (table, json, yaml)",
        callback=validate_output_callback,
    ),
    local: bool = typer.Option(
        False,
        "--local",
        help="Read from the local content tree instead of the remote repository",
    ),
    token: Optional[str] = typer.Option(
        None,
        "--token",
        envvar=ENV_TOKEN,
        help="Access token sent with every request",
        show_default=False,
    ),
    timeout: Optional[int] = typer.Option(
        None,
        "--timeout",
        help="Request timeout in seconds (overrides the profile)",
    ),
    max_retries: Optional[int] = typer.Option(
        None,
        "--max-retries",
        help="Maximum number of retry attempts for reads (overrides the profile)",
    ),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """cmsctl - Command-line tool for managing git-backed site content.

    Pages, layouts, themes, navigation menus and component schemas are
    JSON documents in a git repository. cmsctl reads and writes them with
    revision checks, so concurrent edits never overwrite each other.

    Examples:
        # List all pages
        cmsctl pages list

        # Update a page from a file, using the revision from the last read
        cmsctl pages update about about.json --revision 3f2a9c1

        # Switch the active theme
        cmsctl themes activate midnight

        # Read from a local checkout
        cmsctl --local layouts list
    """
    try:
        config_manager = ConfigManager()
    except ConfigError as e:
        console.print(f"[red]Configuration error: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    # Store global options in context
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["dry_run"] = dry_run
    ctx.obj["output_format"] = output_format
    ctx.obj["local"] = local
    ctx.obj["token"] = token
    ctx.obj["timeout"] = timeout
    ctx.obj["max_retries"] = max_retries
    ctx.obj["console"] = console
    ctx.obj["config_manager"] = config_manager
    ctx.obj["output_formatter"] = output_formatter

    profile_obj = None
    try:
        if profile:
            profile_obj = apply_environment_overrides(config_manager.get_profile(profile))
        else:
            try:
                profile_obj = apply_environment_overrides(config_manager.get_default_profile())
            except ConfigError:
                # No default profile - check if environment variables are available
                if config_manager.has_environment_config():
                    profile_obj = config_manager.get_environment_config()
                    if debug:
                        console.print("[dim]Created temporary profile from environment variables[/dim]")
    except ConfigError as e:
        console.print(f"[red]Error loading profile '{escape(profile or 'default')}': {escape(str(e))}[/red]")
        raise typer.Exit(1)

    ctx.obj["profile"] = profile_obj

    # Configure debug mode
    if debug:
        console.print("[dim]Debug mode enabled[/dim]")
        show_environment_info(debug)
        if profile_obj:
            console.print(f"[dim]Using profile: {profile_obj.name} ({profile_obj.repository}@{profile_obj.branch})[/dim]")


def handle_exceptions(func):
    """Decorator to handle common exceptions in commands."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except CmsError as e:
            ctx = click.get_current_context(silent=True)
            debug = (ctx.obj or {}).get("debug", False) if ctx else False
            error_msg = format_error_for_user(e, debug)
            console.print(f"[red]{escape(error_msg)}[/red]")
            if not debug and not isinstance(e, ConfigError):
                console.print("[dim]Use --debug for more details[/dim]")
            raise typer.Exit(1)
        except KeyboardInterrupt:
            console.print("\n[yellow]Operation cancelled by user[/yellow]")
            raise typer.Exit(130)
    return wrapper


_registered = False


def register_commands() -> None:
    """Register all command groups with the main app."""
    global _registered
    if _registered:
        return

    from .cmds import (
        pages_app,
        layouts_app,
        themes_app,
        navigation_app,
        components_app,
        drafts_app,
        config_app,
    )

    # Register command groups
    app.add_typer(pages_app, name="pages", help="Manage pages")
    app.add_typer(layouts_app, name="layouts", help="Manage layouts")
    app.add_typer(themes_app, name="themes", help="Manage themes")
    app.add_typer(navigation_app, name="navigation", help="Manage navigation menus")
    app.add_typer(components_app, name="components", help="Manage component schemas")
    app.add_typer(drafts_app, name="drafts", help="Manage unpublished drafts")
    app.add_typer(config_app, name="config", help="Manage configuration")
    _registered = True


# Commands are registered by cli() to avoid circular imports


def cli():
    """Entry point for the CLI."""
    register_commands()

    try:
        app()
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        sys.exit(130)


if __name__ == "__main__":
    cli()

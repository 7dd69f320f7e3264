"""Configuration management commands for the cmsctl CLI.

This module provides commands for managing content repository profiles
including initialization, listing, switching and deletion. Access
tokens are never stored; pass --token or set CMS_GITHUB_TOKEN.
"""

import os
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.prompt import Prompt
from rich.table import Table

from ..config import (
    DEFAULT_API_URL,
    DEFAULT_CONTENT_ROOT,
    ENV_API_URL,
    ENV_BRANCH,
    ENV_CONTENT_ROOT,
    ENV_LOCAL_MODE,
    ENV_LOCAL_ROOT,
    ENV_OWNER,
    ENV_REPO,
    ENV_TOKEN,
)
from ..exceptions import ConfigError

app = typer.Typer()
console = Console()


@app.command()
def init(
    ctx: typer.Context,
    profile_name: str = typer.Option("default", "--name", help="Profile name"),
    owner: Optional[str] = typer.Option(None, "--owner", help="Repository owner"),
    repo: Optional[str] = typer.Option(None, "--repo", help="Repository name"),
    branch: str = typer.Option("main", "--branch", help="Branch to read from and commit to"),
    api_url: str = typer.Option(DEFAULT_API_URL, "--api-url", help="REST API base URL"),
    content_root: str = typer.Option(DEFAULT_CONTENT_ROOT, "--content-root", help="Directory holding the content"),
    local_root: Optional[str] = typer.Option(None, "--local-root", help="Local content tree for --local"),
    local_mode: bool = typer.Option(False, "--local-mode", help="Read from the local tree by default"),
    interactive: bool = typer.Option(True, "--interactive/--no-interactive", help="Interactive setup"),
    force: bool = typer.Option(False, "--force", help="Overwrite existing profile"),
) -> None:
    """Initialize a new configuration profile.

    Examples:
        # Interactive setup
        cmsctl config init

        # Non-interactive setup
        cmsctl config init --no-interactive --owner acme --repo website

        # Create a named profile for a staging branch
        cmsctl config init --name staging --owner acme --repo website --branch staging
    """
    config_manager = ctx.obj["config_manager"]

    if ctx.obj["dry_run"]:
        console.print(f"[yellow]DRY RUN: Would initialize profile '{profile_name}' with:[/yellow]")
        console.print(f"  Repository: {owner or 'interactive'}/{repo or 'interactive'}")
        console.print(f"  Branch: {branch}")
        console.print(f"  Content root: {content_root}")
        return

    try:
        existing = [profile["name"] for profile in config_manager.list_profiles()]
        if profile_name in existing and not force:
            console.print(f"[red]Profile '{profile_name}' already exists. Use --force to overwrite.[/red]")
            raise typer.Exit(1)

        if interactive:
            console.print(f"[bold blue]Setting up profile: {profile_name}[/bold blue]")
            console.print()

            if not owner:
                owner = Prompt.ask("Repository owner")
            if not repo:
                repo = Prompt.ask("Repository name")
            branch = Prompt.ask("Branch", default=branch)
            content_root = Prompt.ask("Content directory", default=content_root)

        if not owner or not repo:
            console.print("[red]Repository owner and name are required[/red]")
            raise typer.Exit(1)

        profile = config_manager.create_profile(
            name=profile_name,
            owner=owner,
            repo=repo,
            branch=branch,
            api_url=api_url,
            content_root=content_root,
            local_root=local_root,
            local_mode=local_mode,
            overwrite=force,
        )

        if config_manager.get_active_profile() == profile_name:
            console.print(f"[green]Profile '{profile_name}' saved and set as active![/green]")
        else:
            console.print(f"[green]Profile '{profile_name}' saved![/green]")

        if ctx.obj["output_format"] in ["json", "yaml"]:
            ctx.obj["output_formatter"].render(profile.model_dump(), format=ctx.obj["output_format"])

    except ConfigError as e:
        console.print(f"[red]Configuration error: {escape(str(e))}[/red]")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        console.print("\n[yellow]Setup cancelled[/yellow]")
        raise typer.Exit(1)


@app.command("list")
def list_profiles(
    ctx: typer.Context,
) -> None:
    """List all configuration profiles.

    Examples:
        # List all profiles
        cmsctl config list

        # List profiles in JSON format
        cmsctl -o json config list
    """
    config_manager = ctx.obj["config_manager"]
    profiles = config_manager.list_profiles()

    if ctx.obj["output_format"] in ["json", "yaml"]:
        ctx.obj["output_formatter"].render(
            {"profiles": profiles, "active_profile": config_manager.get_active_profile()},
            format=ctx.obj["output_format"],
        )
        return

    if not profiles:
        console.print("[yellow]No profiles configured. Run 'cmsctl config init' to create one.[/yellow]")
        return

    table = Table(title="Configuration Profiles")
    table.add_column("Name", style="bold")
    table.add_column("Repository", style="cyan")
    table.add_column("Branch", style="dim")
    table.add_column("Mode", style="blue")
    table.add_column("Active", style="yellow")

    for profile in profiles:
        table.add_row(
            profile["name"],
            f"{profile['owner']}/{profile['repo']}",
            profile["branch"],
            "local" if profile["local_mode"] else "remote",
            "✓" if profile["active"] else "—",
        )

    console.print(table)


@app.command("use")
def use_profile(
    ctx: typer.Context,
    profile_name: str = typer.Argument(..., help="Profile name to make active"),
) -> None:
    """Set the active profile.

    Examples:
        # Switch to the staging profile
        cmsctl config use staging
    """
    config_manager = ctx.obj["config_manager"]

    if ctx.obj["dry_run"]:
        console.print(f"[yellow]DRY RUN: Would set '{profile_name}' as active profile[/yellow]")
        return

    try:
        config_manager.set_active_profile(profile_name)
        console.print(f"[green]Profile '{profile_name}' is now active![/green]")
    except ConfigError as e:
        console.print(f"[red]Error setting active profile: {escape(str(e))}[/red]")
        raise typer.Exit(1)


@app.command("delete")
def delete_profile(
    ctx: typer.Context,
    profile_name: str = typer.Argument(..., help="Profile name to delete"),
    force: bool = typer.Option(False, "--force", help="Delete without confirmation"),
) -> None:
    """Delete a configuration profile.

    Examples:
        # Delete with confirmation
        cmsctl config delete old-profile

        # Force delete without confirmation
        cmsctl config delete old-profile --force
    """
    config_manager = ctx.obj["config_manager"]

    if ctx.obj["dry_run"]:
        console.print(f"[yellow]DRY RUN: Would delete profile '{profile_name}'[/yellow]")
        return

    try:
        profile = config_manager.get_profile(profile_name)
        is_active = config_manager.get_active_profile() == profile_name

        if not force:
            console.print("[yellow]About to delete profile:[/yellow]")
            console.print(f"  Name: {profile.name}")
            console.print(f"  Repository: {profile.repository}")
            console.print(f"  Active: {'Yes' if is_active else 'No'}")

            confirm = typer.confirm(f"Are you sure you want to delete profile '{profile_name}'?")
            if not confirm:
                console.print("[yellow]Delete cancelled[/yellow]")
                return

        config_manager.delete_profile(profile_name)
        console.print(f"[green]Profile '{profile_name}' deleted successfully![/green]")

        if is_active:
            console.print("[yellow]Note: You may want to make another profile active with 'cmsctl config use'[/yellow]")

    except ConfigError as e:
        console.print(f"[red]Error deleting profile: {escape(str(e))}[/red]")
        raise typer.Exit(1)


@app.command("show")
def show_config(
    ctx: typer.Context,
) -> None:
    """Show configuration location, the resolved profile and environment overrides.

    Examples:
        # Show config info
        cmsctl config show

        # Show in JSON format
        cmsctl -o json config show
    """
    config_manager = ctx.obj["config_manager"]
    profile = ctx.obj.get("profile")
    config_file = config_manager.config_file

    env_vars = {var: os.getenv(var) for var in (
        ENV_OWNER, ENV_REPO, ENV_BRANCH, ENV_API_URL, ENV_CONTENT_ROOT, ENV_LOCAL_ROOT, ENV_LOCAL_MODE,
    )}
    env_vars[ENV_TOKEN] = "set" if os.getenv(ENV_TOKEN) else None

    if ctx.obj["output_format"] in ["json", "yaml"]:
        ctx.obj["output_formatter"].render({
            "config_file": str(config_file),
            "config_exists": config_file.exists(),
            "drafts_file": str(config_manager.drafts_file),
            "profile": profile.model_dump() if profile else None,
            "environment_variables": env_vars,
        }, format=ctx.obj["output_format"])
        return

    table = Table(title="Configuration Status")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="bold")

    table.add_row("Config File", str(config_file))
    table.add_row("Exists", "✓ Yes" if config_file.exists() else "✗ No")
    table.add_row("Drafts File", str(config_manager.drafts_file))

    if profile:
        table.add_row("Profile", profile.name)
        table.add_row("Repository", f"{profile.repository}@{profile.branch}")
        table.add_row("Content Root", profile.content_root)
        table.add_row("Mode", "local" if profile.local_mode else "remote")
    else:
        table.add_row("Profile", "[dim]none[/dim]")

    table.add_row("", "")
    table.add_row("[bold]Environment Variables[/bold]", "")

    for var, value in env_vars.items():
        table.add_row(var, escape(value) if value else "[dim]not set[/dim]")

    console.print(table)

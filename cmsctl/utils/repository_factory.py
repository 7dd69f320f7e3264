"""Repository factory for the CLI commands.

This module builds the content repository, draft overlay and output
formatter a command needs from the Typer context the main callback
populates.
"""

from typing import Any, Dict, Tuple

import typer

from ..config import Profile
from ..drafts import DraftOverlay, JsonFileDraftStorage
from ..exceptions import ConfigError
from ..render import OutputFormatter
from ..repository import ContentRepository


def get_profile_from_context(ctx: typer.Context) -> Profile:
    """Resolve the profile for a command, applying CLI overrides.

    Raises:
        ConfigError: If no profile or environment configuration exists
    """
    profile = ctx.obj.get("profile")
    if not profile:
        raise ConfigError(
            "No repository configured. Please either:\n"
            "  1. Run 'cmsctl config init' to set up a profile, or\n"
            "  2. Set environment variables: CMS_GITHUB_OWNER and CMS_GITHUB_REPO"
        )

    overrides: Dict[str, Any] = {}
    if ctx.obj.get("timeout") is not None:
        overrides["timeout"] = ctx.obj["timeout"]
    if ctx.obj.get("max_retries") is not None:
        overrides["retry_attempts"] = ctx.obj["max_retries"]

    if not overrides:
        return profile

    try:
        return Profile(**{**profile.model_dump(), **overrides})
    except ValueError as e:
        raise ConfigError(f"Invalid option: {e}")


def get_draft_overlay(ctx: typer.Context) -> DraftOverlay:
    """Draft overlay stored next to the configuration."""
    drafts = ctx.obj.get("drafts")
    if drafts is None:
        drafts = DraftOverlay(JsonFileDraftStorage(ctx.obj["config_manager"].drafts_file))
        ctx.obj["drafts"] = drafts
    return drafts


def get_repository_from_context(ctx: typer.Context) -> ContentRepository:
    """Build the content repository for the current invocation."""
    profile = get_profile_from_context(ctx)
    debug = ctx.obj.get("debug", False)

    if debug:
        mode = "local" if ctx.obj.get("local") or profile.local_mode else "remote"
        ctx.obj["console"].print(f"[dim]Using {mode} backend for {profile.repository}[/dim]")

    return ContentRepository.from_profile(
        profile,
        drafts=get_draft_overlay(ctx),
        debug=debug,
        local_mode=True if ctx.obj.get("local") else None,
    )


def get_repository_and_formatter(ctx: typer.Context) -> Tuple[ContentRepository, OutputFormatter]:
    """Get both repository and formatter from context."""
    repository = get_repository_from_context(ctx)
    formatter = ctx.obj["output_formatter"]
    return repository, formatter

"""Configuration management for the content repository.

This module provides configuration profile management, including creating,
updating, deleting, and switching between content repositories. Access
tokens are never stored in profiles; callers pass them per operation.
"""

import os
import tomllib
import json
import re
from pathlib import Path
from typing import Dict, List, Optional, Any

from pydantic import BaseModel, Field, field_validator, HttpUrl

from .exceptions import ConfigError

DEFAULT_API_URL = "https://api.github.com"
DEFAULT_CONTENT_ROOT = "src/content"

ENV_OWNER = "CMS_GITHUB_OWNER"
ENV_REPO = "CMS_GITHUB_REPO"
ENV_BRANCH = "CMS_GITHUB_BRANCH"
ENV_API_URL = "CMS_API_URL"
ENV_CONTENT_ROOT = "CMS_CONTENT_ROOT"
ENV_LOCAL_ROOT = "CMS_LOCAL_ROOT"
ENV_LOCAL_MODE = "CMS_LOCAL_MODE"
ENV_TOKEN = "CMS_GITHUB_TOKEN"
ENV_CONFIG_DIR = "CMS_CONFIG_DIR"

_GITHUB_NAME = re.compile(r"^[A-Za-z0-9_.-]+$")


def _env_flag(value: Optional[str]) -> Optional[bool]:
    if value is None or value == "":
        return None
    return value.strip().lower() in ("1", "true", "yes", "on")


class Profile(BaseModel):
    """Configuration profile for one content repository."""

    name: str = Field(..., description="Profile name")
    owner: str = Field(..., description="Repository owner (user or organization)")
    repo: str = Field(..., description="Repository name")
    branch: str = Field(default="main", description="Branch content is read from and committed to")
    api_url: HttpUrl = Field(default=DEFAULT_API_URL, description="REST API base URL")
    content_root: str = Field(default=DEFAULT_CONTENT_ROOT, description="Directory holding the category directories")
    local_root: Optional[str] = Field(None, description="Local content tree used in local mode")
    local_mode: bool = Field(default=False, description="Read from the local tree instead of the remote repository")
    timeout: int = Field(default=30, description="Request timeout in seconds")
    retry_attempts: int = Field(default=3, description="Number of retry attempts for reads")
    max_workers: int = Field(default=8, description="Parallel reads when listing")
    active: bool = Field(default=False, description="Whether this is the active profile")

    @field_validator("owner", "repo")
    @classmethod
    def validate_repository_name(cls, v: str) -> str:
        """Validate owner and repository names."""
        if not v or not _GITHUB_NAME.match(v):
            raise ValueError("Owner and repository may only contain letters, digits, '-', '_' and '.'")
        return v

    @field_validator("branch")
    @classmethod
    def validate_branch(cls, v: str) -> str:
        if not v.strip() or " " in v:
            raise ValueError("Branch name cannot be empty or contain spaces")
        return v

    @field_validator("content_root")
    @classmethod
    def validate_content_root(cls, v: str) -> str:
        """Normalize the content root to a relative path without slashes at the ends."""
        v = v.strip().strip("/")
        if ".." in v.split("/"):
            raise ValueError("Content root cannot contain '..'")
        return v

    @field_validator("timeout")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        """Validate timeout value."""
        if v <= 0:
            raise ValueError("Timeout must be greater than 0")
        if v > 300:
            raise ValueError("Timeout cannot exceed 300 seconds")
        return v

    @field_validator("retry_attempts")
    @classmethod
    def validate_retry_attempts(cls, v: int) -> int:
        """Validate retry attempts value."""
        if v < 0:
            raise ValueError("Retry attempts cannot be negative")
        if v > 10:
            raise ValueError("Retry attempts cannot exceed 10")
        return v

    @field_validator("max_workers")
    @classmethod
    def validate_max_workers(cls, v: int) -> int:
        if not 1 <= v <= 32:
            raise ValueError("Max workers must be between 1 and 32")
        return v

    def model_dump(self, **kwargs: Any) -> Dict[str, Any]:
        """Convert profile to dictionary with proper string conversion."""
        data = super().model_dump(**kwargs)
        if "api_url" in data:
            data["api_url"] = str(data["api_url"]).rstrip("/")
        return data

    @property
    def repository(self) -> str:
        """``owner/repo`` slug."""
        return f"{self.owner}/{self.repo}"


def apply_environment_overrides(profile: Profile) -> Profile:
    """Return a copy of ``profile`` with ``CMS_*`` environment overrides applied."""
    overrides: Dict[str, Any] = {}
    for env_var, field in (
        (ENV_OWNER, "owner"),
        (ENV_REPO, "repo"),
        (ENV_BRANCH, "branch"),
        (ENV_API_URL, "api_url"),
        (ENV_CONTENT_ROOT, "content_root"),
        (ENV_LOCAL_ROOT, "local_root"),
    ):
        value = os.getenv(env_var)
        if value:
            overrides[field] = value

    local_mode = _env_flag(os.getenv(ENV_LOCAL_MODE))
    if local_mode is not None:
        overrides["local_mode"] = local_mode

    if not overrides:
        return profile

    try:
        return Profile(**{**profile.model_dump(), **overrides})
    except ValueError as e:
        raise ConfigError(f"Invalid environment override: {e}")


class ConfigManager:
    """Manages configuration profiles for content repositories."""

    def __init__(self, config_dir: Optional[Path] = None) -> None:
        """Initialize configuration manager.

        Args:
            config_dir: Configuration directory path. If None, uses default.
        """
        if config_dir is None:
            env_dir = os.getenv(ENV_CONFIG_DIR)
            config_dir = Path(env_dir) if env_dir else Path.home() / ".cmsctl"
        self.config_dir = Path(config_dir)
        self.config_file = self.config_dir / "config.toml"
        self.profiles_dir = self.config_dir / "profiles"

        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.profiles_dir.mkdir(exist_ok=True)

        self._profiles: Dict[str, Profile] = {}
        self._active_profile: Optional[str] = None
        self._load_config()

    @property
    def drafts_file(self) -> Path:
        """File the CLI keeps unpublished drafts in."""
        return self.config_dir / "drafts.json"

    def create_profile(
        self,
        name: str,
        owner: str,
        repo: str,
        branch: str = "main",
        api_url: str = DEFAULT_API_URL,
        content_root: str = DEFAULT_CONTENT_ROOT,
        local_root: Optional[str] = None,
        local_mode: bool = False,
        timeout: int = 30,
        retry_attempts: int = 3,
        overwrite: bool = False,
    ) -> Profile:
        """Create a new configuration profile.

        Returns:
            Created profile

        Raises:
            ConfigError: If profile creation fails
        """
        if name in self._profiles and not overwrite:
            raise ConfigError(f"Profile '{name}' already exists")

        try:
            profile = Profile(
                name=name,
                owner=owner,
                repo=repo,
                branch=branch,
                api_url=api_url,
                content_root=content_root,
                local_root=local_root,
                local_mode=local_mode,
                timeout=timeout,
                retry_attempts=retry_attempts,
            )
        except ValueError as e:
            raise ConfigError(f"Failed to create profile: {e}")

        self._profiles[name] = profile
        self._save_profile(profile)
        if self._active_profile is None:
            self._active_profile = name
        self._save_config()

        return profile

    def list_profiles(self) -> List[Dict[str, Any]]:
        """List all available profiles."""
        profiles = []
        for profile in self._profiles.values():
            profile_dict = profile.model_dump()
            profile_dict["active"] = profile.name == self._active_profile
            profiles.append(profile_dict)

        return profiles

    def set_active_profile(self, name: str) -> None:
        """Set the active profile.

        Raises:
            ConfigError: If profile doesn't exist
        """
        if name not in self._profiles:
            raise ConfigError(f"Profile '{name}' not found")

        for profile in self._profiles.values():
            profile.active = profile.name == name

        self._active_profile = name
        self._save_config()

    def get_active_profile(self) -> Optional[str]:
        """Get the name of the active profile."""
        return self._active_profile

    def get_default_profile(self) -> Profile:
        """Get the default (active) profile.

        Raises:
            ConfigError: If no default profile is set
        """
        if not self._active_profile or self._active_profile not in self._profiles:
            raise ConfigError("No default profile set")

        return self._profiles[self._active_profile]

    def get_profile(self, name: str) -> Profile:
        """Get a specific profile by name.

        Raises:
            ConfigError: If profile doesn't exist
        """
        if name not in self._profiles:
            raise ConfigError(f"Profile '{name}' not found")

        return self._profiles[name]

    def delete_profile(self, name: str) -> None:
        """Delete a configuration profile.

        Raises:
            ConfigError: If profile doesn't exist
        """
        if name not in self._profiles:
            raise ConfigError(f"Profile '{name}' not found")

        if self._active_profile == name:
            self._active_profile = None

        del self._profiles[name]

        profile_file = self.profiles_dir / f"{name}.json"
        if profile_file.exists():
            profile_file.unlink()

        self._save_config()

    def has_environment_config(self) -> bool:
        """Check if environment variables provide sufficient configuration."""
        return bool(os.getenv(ENV_OWNER) and os.getenv(ENV_REPO))

    def get_environment_config(self) -> Profile:
        """Build a profile from environment variables alone.

        Raises:
            ConfigError: If insufficient environment configuration
        """
        owner = os.getenv(ENV_OWNER)
        repo = os.getenv(ENV_REPO)

        if not (owner and repo):
            raise ConfigError(f"{ENV_OWNER} and {ENV_REPO} environment variables are required")

        try:
            profile = Profile(name="environment", owner=owner, repo=repo, active=True)
        except ValueError as e:
            raise ConfigError(f"Invalid environment configuration: {e}")

        return apply_environment_overrides(profile)

    def _load_config(self) -> None:
        """Load configuration from file."""
        if not self.config_file.exists():
            return

        try:
            with open(self.config_file, "rb") as f:
                config_data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError) as e:
            raise ConfigError(f"Failed to load configuration: {e}")

        self._active_profile = config_data.get("active_profile") or None

        for profile_file in sorted(self.profiles_dir.glob("*.json")):
            try:
                with open(profile_file, "r", encoding="utf-8") as f:
                    profile_data = json.load(f)
                profile = Profile(**profile_data)
            except (OSError, ValueError) as e:
                raise ConfigError(f"Failed to load profile {profile_file}: {e}")

            self._profiles[profile.name] = profile

    def _save_config(self) -> None:
        """Save configuration to file."""
        # tomllib is read-only, so the two keys are written by hand
        active = f'"{self._active_profile}"' if self._active_profile else '""'
        toml_content = (
            "# cmsctl configuration\n"
            'version = "1.0"\n'
            f"active_profile = {active}\n"
        )

        try:
            with open(self.config_file, "w", encoding="utf-8") as f:
                f.write(toml_content)
        except OSError as e:
            raise ConfigError(f"Failed to save configuration: {e}")

    def _save_profile(self, profile: Profile) -> None:
        """Save individual profile to file."""
        profile_file = self.profiles_dir / f"{profile.name}.json"

        try:
            with open(profile_file, "w", encoding="utf-8") as f:
                json.dump(profile.model_dump(), f, indent=2, default=str)
        except OSError as e:
            raise ConfigError(f"Failed to save profile: {e}")

"""Unit tests for config.py module.

Tests Profile validation, the ConfigManager profile store and the
``CMS_*`` environment variable overrides.
"""

import json

import pytest
from unittest.mock import patch

from cmsctl.config import (
    ENV_CONFIG_DIR,
    ConfigManager,
    Profile,
    apply_environment_overrides,
)
from cmsctl.exceptions import ConfigError


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch):
    """Keep developer CMS_* variables out of these tests."""
    for name in (
        "CMS_GITHUB_OWNER",
        "CMS_GITHUB_REPO",
        "CMS_GITHUB_BRANCH",
        "CMS_API_URL",
        "CMS_CONTENT_ROOT",
        "CMS_LOCAL_ROOT",
        "CMS_LOCAL_MODE",
        ENV_CONFIG_DIR,
    ):
        monkeypatch.delenv(name, raising=False)


class TestProfile:
    """Test cases for the Profile model."""

    def test_profile_creation_minimal_data(self):
        """Test creating a profile with only the required fields."""
        profile = Profile(name="default", owner="acme", repo="site")

        assert profile.branch == "main"
        assert str(profile.api_url).rstrip("/") == "https://api.github.com"
        assert profile.content_root == "src/content"
        assert profile.local_mode is False
        assert profile.timeout == 30
        assert profile.retry_attempts == 3
        assert profile.repository == "acme/site"

    def test_invalid_owner(self):
        with pytest.raises(ValueError):
            Profile(name="default", owner="acme corp", repo="site")

    def test_invalid_branch(self):
        with pytest.raises(ValueError):
            Profile(name="default", owner="acme", repo="site", branch="feature x")

    def test_content_root_normalized(self):
        profile = Profile(name="default", owner="acme", repo="site", content_root="/site/content/")

        assert profile.content_root == "site/content"

    def test_content_root_parent_rejected(self):
        with pytest.raises(ValueError):
            Profile(name="default", owner="acme", repo="site", content_root="../elsewhere")

    def test_profile_timeout_validation(self):
        """Test timeout validation."""
        with pytest.raises(ValueError):
            Profile(name="default", owner="acme", repo="site", timeout=0)
        with pytest.raises(ValueError):
            Profile(name="default", owner="acme", repo="site", timeout=301)

    def test_profile_retry_attempts_validation(self):
        """Test retry attempts validation."""
        with pytest.raises(ValueError):
            Profile(name="default", owner="acme", repo="site", retry_attempts=-1)
        with pytest.raises(ValueError):
            Profile(name="default", owner="acme", repo="site", retry_attempts=11)

    def test_profile_model_dump(self):
        """api_url is dumped as a plain string without a trailing slash."""
        profile = Profile(name="default", owner="acme", repo="site")

        data = profile.model_dump()

        assert data["api_url"] == "https://api.github.com"
        assert "token" not in data


class TestEnvironmentOverrides:
    """Test cases for CMS_* environment overrides."""

    def test_no_overrides_returns_same_profile(self):
        profile = Profile(name="default", owner="acme", repo="site")

        assert apply_environment_overrides(profile) is profile

    def test_overrides_applied(self, monkeypatch):
        monkeypatch.setenv("CMS_GITHUB_BRANCH", "preview")
        monkeypatch.setenv("CMS_LOCAL_ROOT", "/tmp/content")
        monkeypatch.setenv("CMS_LOCAL_MODE", "true")
        profile = Profile(name="default", owner="acme", repo="site")

        overridden = apply_environment_overrides(profile)

        assert overridden.branch == "preview"
        assert overridden.local_root == "/tmp/content"
        assert overridden.local_mode is True
        assert profile.branch == "main"

    def test_local_mode_false(self, monkeypatch):
        monkeypatch.setenv("CMS_LOCAL_MODE", "0")
        profile = Profile(name="default", owner="acme", repo="site", local_mode=True)

        assert apply_environment_overrides(profile).local_mode is False

    def test_invalid_override(self, monkeypatch):
        monkeypatch.setenv("CMS_GITHUB_OWNER", "not valid!")
        profile = Profile(name="default", owner="acme", repo="site")

        with pytest.raises(ConfigError):
            apply_environment_overrides(profile)


class TestConfigManager:
    """Test cases for the ConfigManager class."""

    @pytest.fixture
    def config_manager(self, tmp_path):
        """Create a ConfigManager over a temporary directory."""
        return ConfigManager(config_dir=tmp_path)

    def test_config_manager_initialization(self, tmp_path):
        """Test ConfigManager initialization with custom directory."""
        manager = ConfigManager(config_dir=tmp_path)

        assert manager.config_dir == tmp_path
        assert manager.config_file == tmp_path / "config.toml"
        assert manager.profiles_dir.is_dir()
        assert manager.drafts_file == tmp_path / "drafts.json"
        assert manager.get_active_profile() is None

    def test_config_dir_from_environment(self, tmp_path, monkeypatch):
        monkeypatch.setenv(ENV_CONFIG_DIR, str(tmp_path / "custom"))

        manager = ConfigManager()

        assert manager.config_dir == tmp_path / "custom"

    def test_config_manager_default_initialization(self, tmp_path):
        with patch("pathlib.Path.home", return_value=tmp_path):
            manager = ConfigManager()

        assert manager.config_dir == tmp_path / ".cmsctl"

    def test_create_profile_success(self, config_manager):
        profile = config_manager.create_profile(name="prod", owner="acme", repo="site", branch="main")

        assert profile.name == "prod"
        assert config_manager.get_active_profile() == "prod"
        saved = json.loads((config_manager.profiles_dir / "prod.json").read_text())
        assert saved["owner"] == "acme"
        assert saved["api_url"] == "https://api.github.com"

    def test_create_profile_duplicate_name(self, config_manager):
        config_manager.create_profile(name="prod", owner="acme", repo="site")

        with pytest.raises(ConfigError, match="already exists"):
            config_manager.create_profile(name="prod", owner="acme", repo="other")

    def test_create_profile_overwrite(self, config_manager):
        config_manager.create_profile(name="prod", owner="acme", repo="site")

        profile = config_manager.create_profile(name="prod", owner="acme", repo="other", overwrite=True)

        assert profile.repo == "other"

    def test_create_profile_invalid(self, config_manager):
        with pytest.raises(ConfigError, match="Failed to create profile"):
            config_manager.create_profile(name="prod", owner="acme", repo="site", timeout=0)

    def test_profiles_persist(self, tmp_path):
        first = ConfigManager(config_dir=tmp_path)
        first.create_profile(name="prod", owner="acme", repo="site")
        first.create_profile(name="staging", owner="acme", repo="site", branch="staging")
        first.set_active_profile("staging")

        second = ConfigManager(config_dir=tmp_path)

        assert second.get_active_profile() == "staging"
        assert second.get_default_profile().branch == "staging"
        assert {p["name"] for p in second.list_profiles()} == {"prod", "staging"}

    def test_list_profiles_marks_active(self, config_manager):
        config_manager.create_profile(name="prod", owner="acme", repo="site")
        config_manager.create_profile(name="staging", owner="acme", repo="site")

        profiles = {p["name"]: p for p in config_manager.list_profiles()}

        assert profiles["prod"]["active"] is True
        assert profiles["staging"]["active"] is False

    def test_set_active_profile_not_found(self, config_manager):
        with pytest.raises(ConfigError, match="not found"):
            config_manager.set_active_profile("missing")

    def test_get_default_profile_none_set(self, config_manager):
        with pytest.raises(ConfigError, match="No default profile"):
            config_manager.get_default_profile()

    def test_get_profile_not_found(self, config_manager):
        with pytest.raises(ConfigError):
            config_manager.get_profile("missing")

    def test_delete_active_profile(self, config_manager):
        config_manager.create_profile(name="prod", owner="acme", repo="site")

        config_manager.delete_profile("prod")

        assert config_manager.get_active_profile() is None
        assert not (config_manager.profiles_dir / "prod.json").exists()

    def test_delete_profile_not_found(self, config_manager):
        with pytest.raises(ConfigError):
            config_manager.delete_profile("missing")

    def test_corrupt_config_file(self, tmp_path):
        (tmp_path / "config.toml").write_text("active_profile = [unclosed")

        with pytest.raises(ConfigError, match="Failed to load configuration"):
            ConfigManager(config_dir=tmp_path)

    def test_environment_config(self, config_manager, monkeypatch):
        monkeypatch.setenv("CMS_GITHUB_OWNER", "acme")
        monkeypatch.setenv("CMS_GITHUB_REPO", "site")
        monkeypatch.setenv("CMS_GITHUB_BRANCH", "preview")

        assert config_manager.has_environment_config() is True
        profile = config_manager.get_environment_config()

        assert profile.name == "environment"
        assert profile.repository == "acme/site"
        assert profile.branch == "preview"

    def test_environment_config_missing(self, config_manager):
        assert config_manager.has_environment_config() is False
        with pytest.raises(ConfigError, match="CMS_GITHUB_OWNER"):
            config_manager.get_environment_config()

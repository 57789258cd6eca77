"""Tests for settings configuration."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from dependabot_bouncer.conf.bouncer import BouncerSettings
from dependabot_bouncer.conf.github import GitHubSettings
from dependabot_bouncer.conf.settings import Settings
from dependabot_bouncer.settings import settings


def test_settings_exists():
    """Test that settings instance exists."""
    assert settings is not None


def test_settings_is_settings_class():
    """Test that settings is an instance of Settings."""
    assert isinstance(settings, Settings)


def test_settings_has_project_name():
    """Test that settings has project_name attribute."""
    assert settings.project_name == "dependabot-bouncer"


def test_settings_inherits_from_component_settings():
    """Test that Settings combines the triage and GitHub settings."""
    assert issubclass(Settings, BouncerSettings)
    assert issubclass(Settings, GitHubSettings)


def test_debug_defaults_to_false(monkeypatch):
    """Test that debug defaults to False."""
    monkeypatch.delenv("DEBUG", raising=False)
    # Prevent loading from .env file
    monkeypatch.setattr("pydantic_settings.sources.DotEnvSettingsSource.__call__", lambda *args, **kwargs: {})
    test_settings = Settings()
    assert test_settings.debug is False


def test_debug_from_env(monkeypatch):
    """Test that debug can be set from environment."""
    monkeypatch.setenv("DEBUG", "True")
    test_settings = Settings()
    assert test_settings.debug is True


def test_bouncer_defaults(monkeypatch):
    """Test the triage defaults match the bot's own commands."""
    for name in ("BOT_LOGIN", "REBASE_COMMENT", "RECREATE_COMMENT", "CLOSE_COMMENT", "AUTO_MERGE_METHOD"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr("pydantic_settings.sources.DotEnvSettingsSource.__call__", lambda *args, **kwargs: {})

    test_settings = Settings()

    assert test_settings.bot_login == "dependabot"
    assert test_settings.approve_comment is None
    assert test_settings.rebase_comment == "@dependabot rebase"
    assert test_settings.recreate_comment == "@dependabot recreate"
    assert test_settings.close_comment == "Closed due to inactivity."
    assert test_settings.auto_merge_method == "SQUASH"


def test_config_file_from_env(monkeypatch, tmp_path: Path):
    """Test the config file location can be set from the environment."""
    monkeypatch.setenv("DEPENDABOT_BOUNCER_CONFIG", str(tmp_path / "bouncer.yaml"))
    test_settings = Settings()
    assert test_settings.config_file == tmp_path / "bouncer.yaml"


def test_bot_login_from_env(monkeypatch):
    """Test another automation bot can be configured."""
    monkeypatch.setenv("BOT_LOGIN", "renovate")
    assert Settings().bot_login == "renovate"


@pytest.mark.parametrize("method,expected", [("merge", "MERGE"), ("Squash", "SQUASH"), ("REBASE", "REBASE")])
def test_auto_merge_method_normalized(method: str, expected: str):
    """Test merge methods are accepted case-insensitively."""
    assert BouncerSettings(auto_merge_method=method).auto_merge_method == expected


def test_auto_merge_method_invalid():
    """Test unknown merge methods are rejected."""
    with pytest.raises(ValidationError, match="auto_merge_method must be one of"):
        BouncerSettings(auto_merge_method="fast-forward")

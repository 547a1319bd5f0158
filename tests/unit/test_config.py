"""
Unit tests for configuration module.

Tests configuration loading from environment variables.
"""

import pytest

from app import config

ENV_VARS = [
    "DATABASE_URL",
    "DATABASE_PATH",
    "STORAGE_BASE_PATH",
    "YT_SCOPES",
    "OAUTH_TOKEN_URI",
    "OAUTH_TIMEOUT_SECONDS",
    "SOURCE_TIMEOUT_SECONDS",
    "UPLOAD_TIMEOUT_SECONDS",
    "OPENAI_API_KEY",
    "OPENAI_MODEL",
]


@pytest.fixture(autouse=True)
def reset_config_cache(monkeypatch):
    """Reset config cache and environment before each test."""
    config._config_instance = None
    monkeypatch.setattr(config, "load_dotenv", lambda: None)
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
    config._config_instance = None


def test_get_config_default_values():
    """Test get_config() with default values (no env vars set)."""
    cfg = config.get_config()

    assert cfg.database_url == "sqlite:///data/agent.db"
    assert cfg.storage_base_path is None
    assert cfg.youtube_scopes == ["https://www.googleapis.com/auth/youtube.upload"]
    assert cfg.oauth_token_uri == "https://oauth2.googleapis.com/token"
    assert cfg.oauth_timeout_seconds == 30
    assert cfg.source_timeout_seconds == 60
    assert cfg.upload_timeout_seconds == 600
    assert cfg.openai_api_key is None
    assert cfg.openai_model == "gpt-4o-mini"


def test_get_config_custom_values(monkeypatch):
    """Test get_config() with custom environment variables."""
    monkeypatch.setenv("DATABASE_PATH", "/var/lib/autopilot/tasks.db")
    monkeypatch.setenv("STORAGE_BASE_PATH", "/media")
    monkeypatch.setenv("YT_SCOPES", "https://www.googleapis.com/auth/youtube.force-ssl")
    monkeypatch.setenv("OAUTH_TIMEOUT_SECONDS", "5")
    monkeypatch.setenv("UPLOAD_TIMEOUT_SECONDS", "120.5")
    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("OPENAI_MODEL", "gpt-4o")

    cfg = config.get_config()

    assert cfg.database_url == "sqlite:////var/lib/autopilot/tasks.db"
    assert cfg.storage_base_path == "/media"
    assert cfg.youtube_scopes == ["https://www.googleapis.com/auth/youtube.force-ssl"]
    assert cfg.oauth_timeout_seconds == 5
    assert cfg.upload_timeout_seconds == 120.5
    assert cfg.openai_api_key == "sk-test"
    assert cfg.openai_model == "gpt-4o"


def test_database_url_overrides_path(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://user:pw@db/autopilot")
    monkeypatch.setenv("DATABASE_PATH", "ignored.db")

    assert config.get_config().database_url == "postgresql://user:pw@db/autopilot"


@pytest.mark.parametrize(
    "raw",
    ["scope1,scope2,scope3", "scope1 scope2 scope3", "scope1, scope2  scope3"],
)
def test_get_config_multiple_scopes(monkeypatch, raw):
    """Scopes may be separated by commas, spaces or both."""
    monkeypatch.setenv("YT_SCOPES", raw)

    cfg = config.get_config()

    assert cfg.youtube_scopes == ["scope1", "scope2", "scope3"]


@pytest.mark.parametrize("raw", ["abc", "0", "-5"])
def test_invalid_timeout(monkeypatch, raw):
    monkeypatch.setenv("SOURCE_TIMEOUT_SECONDS", raw)

    with pytest.raises(ValueError) as exc_info:
        config.get_config()

    assert "SOURCE_TIMEOUT_SECONDS" in str(exc_info.value)


def test_get_config_singleton_pattern(monkeypatch):
    """Test that get_config() returns the same instance (singleton)."""
    cfg1 = config.get_config()
    monkeypatch.setenv("OPENAI_MODEL", "changed")
    cfg2 = config.get_config()

    assert cfg1 is cfg2
    assert cfg2.openai_model == "gpt-4o-mini"

"""
Configuration module for the application.

Handles reading environment variables for the database, storage,
OAuth, upload timeouts and the AI planning aid.
"""

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


@dataclass
class Config:
    """
    Application configuration for the upload autopilot.

    Attributes:
        database_url: SQLAlchemy URL of the task/account/profile database
        storage_base_path: Base directory for relative ``file`` sources
        youtube_scopes: Default OAuth scopes for newly registered accounts
        oauth_token_uri: OAuth token endpoint used for refresh-token redemption
        oauth_timeout_seconds: Timeout for one token refresh
        source_timeout_seconds: Timeout for fetching remote sources and thumbnails
        upload_timeout_seconds: Socket timeout for YouTube API calls
        openai_api_key: API key for AI metadata generation (optional)
        openai_model: Chat model used for AI metadata generation
    """
    database_url: str
    storage_base_path: Optional[str]
    youtube_scopes: list[str]
    oauth_token_uri: str
    oauth_timeout_seconds: float
    source_timeout_seconds: float
    upload_timeout_seconds: float
    openai_api_key: Optional[str]
    openai_model: str


# Module-level cache for configuration
_config_instance: Config | None = None


def _read_seconds(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number of seconds, got {raw!r}") from None
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def get_config() -> Config:
    """
    Get application configuration (singleton pattern).

    Reads configuration from environment variables with sensible defaults.
    Loads .env file if present in the project root.

    Environment variables:
        DATABASE_URL: SQLAlchemy URL; overrides DATABASE_PATH
        DATABASE_PATH: SQLite file path (default: "data/agent.db")
        STORAGE_BASE_PATH: Base path for video files (default: current directory)
        YT_SCOPES: Comma or space-separated list of YouTube API scopes
            Default: "https://www.googleapis.com/auth/youtube.upload"
        OAUTH_TOKEN_URI: Default "https://oauth2.googleapis.com/token"
        OAUTH_TIMEOUT_SECONDS: Default 30
        SOURCE_TIMEOUT_SECONDS: Default 60
        UPLOAD_TIMEOUT_SECONDS: Default 600
        OPENAI_API_KEY: Optional
        OPENAI_MODEL: Default "gpt-4o-mini"

    Returns:
        Config instance with loaded configuration

    Raises:
        ValueError: If a timeout variable is not a positive number
    """
    global _config_instance

    if _config_instance is not None:
        return _config_instance

    # Load .env file if it exists
    load_dotenv()

    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        database_path = os.getenv("DATABASE_PATH", os.path.join("data", "agent.db"))
        database_url = f"sqlite:///{database_path}"

    # Split by comma or space and strip whitespace
    scopes_str = os.getenv("YT_SCOPES", "https://www.googleapis.com/auth/youtube.upload")
    scopes = [s.strip() for s in scopes_str.replace(",", " ").split() if s.strip()]

    _config_instance = Config(
        database_url=database_url,
        storage_base_path=os.getenv("STORAGE_BASE_PATH") or None,
        youtube_scopes=scopes,
        oauth_token_uri=os.getenv("OAUTH_TOKEN_URI", "https://oauth2.googleapis.com/token"),
        oauth_timeout_seconds=_read_seconds("OAUTH_TIMEOUT_SECONDS", 30),
        source_timeout_seconds=_read_seconds("SOURCE_TIMEOUT_SECONDS", 60),
        upload_timeout_seconds=_read_seconds("UPLOAD_TIMEOUT_SECONDS", 600),
        openai_api_key=os.getenv("OPENAI_API_KEY") or None,
        openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
    )

    return _config_instance

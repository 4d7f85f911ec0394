"""Configuration management using Pydantic Settings."""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Project root, so .env is found regardless of the working directory
_PROJECT_ROOT = Path(__file__).parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Client settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Bluesky
    bluesky_handle: str = Field(default="", description="Bluesky handle or DID used to log in")
    bluesky_password: str = Field(default="", description="Bluesky app password")
    bluesky_service_url: str = Field(
        default="https://bsky.social", description="PDS / entryway service URL"
    )

    # Reddit
    reddit_client_id: str = Field(default="", description="Reddit script app client ID")
    reddit_client_secret: str = Field(default="", description="Reddit script app secret")
    reddit_username: str = Field(default="", description="Reddit account username")
    reddit_password: str = Field(default="", description="Reddit account password")
    reddit_user_agent: str = Field(
        default="", description="User-Agent sent to Reddit (defaults to socialkit/<version> by <username>)"
    )

    # Transport
    request_timeout: float = Field(default=30.0, description="HTTP timeout in seconds")
    page_size: int = Field(default=50, description="Items requested per page")

    # Logging
    debug: bool = Field(default=False, description="Emit pagination progress traces")
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Logging level"
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

"""Pydantic Settings model for application configuration."""

from pydantic_settings import BaseSettings, SettingsConfigDict

from pipeline_actions.utils.constants import (
    DEFAULT_BASTION_TAG_SUFFIX,
    DEFAULT_BOT_AUTHOR_PATTERN,
    DEFAULT_TUNNEL_POLL_INTERVAL_SECONDS,
    DEFAULT_TUNNEL_READY_TIMEOUT_SECONDS,
)


class Settings(BaseSettings):
    """Environment variable settings for the application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Generic application-wide settings
    DEBUG: bool = False

    # GitHub API settings
    GITHUB_API_URL: str = "https://api.github.com"
    GITHUB_TOKEN: str | None = None
    GITHUB_REPOSITORY: str | None = None

    # Cloud settings
    AWS_REGION: str | None = None

    # Bastion tunnel settings
    BASTION_TAG_SUFFIX: str = DEFAULT_BASTION_TAG_SUFFIX
    TUNNEL_POLL_INTERVAL_SECONDS: float = DEFAULT_TUNNEL_POLL_INTERVAL_SECONDS
    TUNNEL_READY_TIMEOUT_SECONDS: float = DEFAULT_TUNNEL_READY_TIMEOUT_SECONDS

    # Mirror settings
    MIRROR_BOT_AUTHOR_PATTERN: str = DEFAULT_BOT_AUTHOR_PATTERN


settings = Settings()

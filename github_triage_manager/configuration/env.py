"""Pydantic Settings model for application configuration."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


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
    TRIAGE_CONFIG: Path = Path("triage.yaml")
    STATE_FILE: Path | None = None

    # GitHub API settings
    GITHUB_API_URL: str | None = None
    REPO: str | None = None

    # Tokens, in order of preference
    GITHUB_PAT_TOKEN: str | None = None
    GITHUB_TOKEN: str | None = None
    GITHUB_TOKEN_FILE: Path = Path(".secrets/github-token")

    # Model settings
    MODELS_API_URL: str | None = None
    MODEL_NAME: str | None = None

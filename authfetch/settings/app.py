"""Application settings powered by Pydantic BaseSettings."""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseSettings):
    """Centralized environment configuration."""

    model_config = SettingsConfigDict(
        env_prefix="AUTHFETCH_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    user_agent: str = "authfetch/0.1"
    timeout_seconds: float = 30.0
    max_workers: int = 4
    max_reauthentication_attempts: int = 1
    log_level: str = "INFO"
    log_json: bool = True
    api_token: str | None = Field(default=None, repr=False)


def get_settings() -> AppSettings:
    """Get a settings instance."""
    return AppSettings()

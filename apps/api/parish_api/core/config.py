"""Application configuration."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Ancillary API configuration loaded from environment variables."""

    jwt_secret: str | None = None
    token_ttl_hours: int = Field(default=24, ge=1)
    admin_email: str | None = None
    admin_password: str | None = None
    cors_allow_origins: list[str] = Field(default_factory=list)
    login_rate_limit: int = Field(default=10, ge=1)
    login_rate_window_seconds: int = Field(default=900, ge=1)
    docs_verify_rate_limit: int = Field(default=10, ge=1)
    docs_verify_rate_window_seconds: int = Field(default=900, ge=1)

    model_config = SettingsConfigDict(env_prefix="PARISH_", extra="ignore")


class ConsoleSettings(BaseSettings):
    """Admin console configuration: where the two identity backends live."""

    api_base_url: str = "http://localhost:10000/api"
    hosted_url: str | None = None
    hosted_anon_key: str | None = None
    credential_path: str = "~/.parish/credentials.json"
    request_timeout_seconds: float = Field(default=10.0, gt=0)

    model_config = SettingsConfigDict(env_prefix="PARISH_CONSOLE_", extra="ignore")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()


@lru_cache(maxsize=1)
def get_console_settings() -> ConsoleSettings:
    return ConsoleSettings()

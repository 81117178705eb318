"""
Application settings using Pydantic.

Provides environment-based configuration loading with DEPLOYMETA_ prefix.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_BASE_URL = "https://factory.commonfate.io"


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="DEPLOYMETA_",
    )

    # Factory API
    base_url: str = DEFAULT_BASE_URL
    oidc_issuer: str = DEFAULT_BASE_URL

    # Credentials
    licence_key: str | None = None
    deployment_name: str | None = None

    # HTTP client settings
    http_timeout: float = 30.0

    # Local state
    state_path: str = "deploymeta.state.json"

    # Logging
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

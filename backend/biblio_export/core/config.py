"""Application settings and configuration helpers."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Global application settings."""

    app_name: str = "Biblio Export"
    env: Literal["development", "production", "test"] = "development"
    api_prefix: str = "/api"
    log_level: str = "INFO"

    graphql_endpoint: str = "https://api.thoth.pub/graphql"
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    max_request_attempts: int = Field(default=5, ge=1)
    backoff_base_seconds: float = Field(default=0.5, ge=0)
    backoff_multiplier: float = Field(default=2.0, ge=1)
    backoff_max_seconds: float = Field(default=8.0, ge=0)

    default_page_limit: int = Field(default=100, ge=1)
    max_page_limit: int = Field(default=500, ge=1)

    crossref_depositor_name: str = "Thoth"
    crossref_depositor_email: str = "distribution@thoth.pub"

    model_config = SettingsConfigDict(
        env_prefix="BIBLIO_EXPORT_",
        env_file=".env",
        env_file_encoding="utf-8",
    )


@lru_cache
def get_settings() -> Settings:
    """Cached settings accessor."""
    return Settings()


def reload_settings() -> Settings:
    """Reset cache and create a new settings instance (used in tests)."""
    get_settings.cache_clear()
    return get_settings()


# Convenience alias used across the codebase.
settings = get_settings()

"""Application configuration via pydantic-settings.

Loads all settings from ``HEALTHZ_``-prefixed environment variables (or a
.env file).
"""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration for the healthz service."""

    model_config = SettingsConfigDict(
        env_prefix="HEALTHZ_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # --- Application ---
    log_level: str = "INFO"

    # --- Health endpoint ---
    health_path: str = "/health"

    # --- Lifecycle components ---
    startup_component: str = "startup"
    shutdown_component: str = "shutdown"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the cached application settings singleton."""
    return Settings()

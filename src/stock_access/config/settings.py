"""
Configuration management for the access core.

Values come from the environment (prefix ``STOCK_ACCESS_``) or a ``.env``
file, falling back to the defaults in ``constants``.
"""
from typing import Optional
from functools import lru_cache
from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .constants import ResolutionDefaults, Roles


class AccessSettings(BaseSettings):
    """Settings for role resolution, caching and the remote store client."""

    model_config = SettingsConfigDict(
        env_prefix="STOCK_ACCESS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Resolution cache
    cache_max_age_seconds: float = Field(default=ResolutionDefaults.CACHE_MAX_AGE, gt=0)
    cache_max_entries: int = Field(default=ResolutionDefaults.CACHE_MAX_ENTRIES, gt=0)
    reverify_window_seconds: float = Field(default=ResolutionDefaults.REVERIFY_WINDOW, ge=0)
    in_flight_wait_timeout_seconds: float = Field(default=ResolutionDefaults.IN_FLIGHT_WAIT_TIMEOUT, gt=0)
    profile_create_retry_delay_seconds: float = Field(
        default=ResolutionDefaults.PROFILE_CREATE_RETRY_DELAY, ge=0
    )

    # Roles
    admin_role: str = Field(default=Roles.ADMIN.value)
    default_role: str = Field(default=Roles.RESTAURANTE.value)

    # Remote store
    supabase_url: Optional[str] = Field(default=None)
    supabase_key: Optional[SecretStr] = Field(default=None)
    http_timeout_seconds: float = Field(default=10.0, gt=0)

    @field_validator("admin_role", "default_role")
    @classmethod
    def normalize_role(cls, value: str) -> str:
        """Role names are stored lower-case and trimmed."""
        normalized = value.strip().lower()
        if not normalized:
            raise ValueError("Role name cannot be empty")
        return normalized

    @field_validator("supabase_url")
    @classmethod
    def strip_trailing_slash(cls, value: Optional[str]) -> Optional[str]:
        return value.rstrip("/") if value else value

    @property
    def is_store_configured(self) -> bool:
        """Check if the remote store connection is configured."""
        return bool(self.supabase_url and self.supabase_key)


@lru_cache()
def get_settings() -> AccessSettings:
    """Get cached settings instance."""
    return AccessSettings()

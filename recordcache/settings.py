"""Settings for the cache layer.

Values come from ``RECORDCACHE_*`` environment variables or a ``.env`` file
in the working directory. Every field has a default, so an empty
environment is a valid configuration.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


DEFAULT_TTL_SECONDS = 20 * 60


class CacheSettings(BaseSettings):
    """Cache layer settings loaded from the environment."""

    model_config = SettingsConfigDict(
        env_prefix="RECORDCACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    default_ttl_seconds: float = Field(
        default=DEFAULT_TTL_SECONDS,
        description="TTL applied to cached operations without a custom or infinite policy",
        gt=0,
    )
    observed_namespace: str = Field(
        default="database",
        description="The one namespace whose invalidations are published on the bus",
    )

    @field_validator("observed_namespace")
    @classmethod
    def reject_separator(cls, v: str) -> str:
        if not v or ":" in v:
            raise ValueError("observed_namespace must be non-empty and must not contain ':'")
        return v


@lru_cache()
def get_settings() -> CacheSettings:
    """Get cached settings singleton."""
    return CacheSettings()

"""Cache settings loaded from the environment."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from gamestash.duration import parse_duration

DEFAULT_TTL = "10m"
DEFAULT_DASHBOARD_TTL = "5m"
DEFAULT_TIMEOUT = "2s"


class CacheSettings(BaseSettings):
    """Settings for the cache layer.

    Every field can be overridden with a ``GAMESTASH_CACHE_`` environment
    variable, e.g. ``GAMESTASH_CACHE_REDIS_URL`` or ``GAMESTASH_CACHE_TTL=30m``.
    """

    model_config = SettingsConfigDict(
        env_prefix="GAMESTASH_CACHE_",
        env_file=".env",
        extra="ignore",
    )

    backend: Literal["redis", "memory"] = Field(
        default="redis", description="Cache backend implementation"
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0", description="Redis connection URL"
    )
    key_prefix: str | None = Field(
        default=None, description="Optional namespace prepended to every Redis key"
    )
    ttl: str = Field(default=DEFAULT_TTL, description="TTL for cached entries")
    dashboard_ttl: str = Field(
        default=DEFAULT_DASHBOARD_TTL,
        description="TTL and freshness window for the dashboard view",
    )
    timeout: str | None = Field(
        default=DEFAULT_TIMEOUT,
        description="Upper bound for a single cache round trip, unset for none",
    )
    max_memory_items: int | None = Field(
        default=None, ge=1, description="LRU bound for the memory backend"
    )
    log_level: str = Field(default="INFO", description="Root log level")
    log_json: bool = Field(default=False, description="Render logs as JSON")

    @field_validator("ttl", "dashboard_ttl", "timeout")
    @classmethod
    def validate_duration(cls, value: str | None) -> str | None:
        if value is not None:
            parse_duration(value)
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value!r}")
        return level

    @property
    def ttl_ms(self) -> int:
        return parse_duration(self.ttl)

    @property
    def dashboard_ttl_ms(self) -> int:
        return parse_duration(self.dashboard_ttl)


@lru_cache
def get_settings() -> CacheSettings:
    """Get cached settings instance."""
    return CacheSettings()

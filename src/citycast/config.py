"""Application configuration management."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    # Server settings
    app_host: str = Field(default="0.0.0.0", description="Server bind host")
    app_port: int = Field(default=8080, description="Server bind port")

    # Upstream API settings
    upstream_url: str = Field(
        default="https://api.open-meteo.com/v1/forecast",
        description="Open-Meteo forecast API URL",
    )
    upstream_timeout_seconds: float = Field(
        default=4.0,
        description="Upstream request timeout in seconds",
        ge=0.1,
        le=30.0,
    )

    # Cache settings
    cache_ttl_seconds: int = Field(
        default=20 * 60,
        description="Age in seconds after which a cached payload is refreshed",
        ge=1,
        le=24 * 3600,
    )
    cache_backend: Literal["memory", "redis"] = Field(
        default="memory",
        description="Cache store backend",
    )
    cache_max_size: int = Field(
        default=10000,
        description="Maximum entries held by the in-memory store",
        ge=1,
        le=1000000,
    )
    cache_schema_version: int = Field(
        default=1,
        description="Version tag written into cache entries",
        ge=1,
    )
    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis connection URL for the redis cache backend",
    )

    # Rate limiting
    rate_limit_requests: int = Field(
        default=50,
        description="Weather requests allowed per client within one window",
        ge=1,
    )
    rate_limit_window_seconds: int = Field(
        default=60,
        description="Length of a rate limit window in seconds",
        ge=1,
    )

    # City directory
    cities_file: str | None = Field(
        default=None,
        description="Optional JSON file with bilingual city names",
    )

    # Logging settings
    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: str = Field(
        default="json",
        description="Log format (json or text)",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()

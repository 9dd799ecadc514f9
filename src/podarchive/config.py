"""Central configuration management using pydantic-settings.

All configuration is loaded from environment variables with sensible defaults.
Create a .env file for local development.
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class PathSettings(BaseSettings):
    """Locations of the cache and the archive."""

    model_config = SettingsConfigDict(env_prefix="PODARCHIVE_")

    cache_dir: Path = Field(
        default=Path("cache"), description="Directory for HTTP responses and podcast records"
    )
    output_dir: Path = Field(default=Path("output"), description="Directory for the archive")
    server_base: str | None = Field(
        default=None, description="Base URL the archive is served from, used in feed enclosures"
    )


class HttpSettings(BaseSettings):
    """HTTP client configuration."""

    model_config = SettingsConfigDict(env_prefix="HTTP_")

    timeout_seconds: float = Field(default=60.0, description="Request timeout")
    user_agent: str = Field(
        default="podarchive/0.1 (+https://github.com/podarchive/podarchive)",
        description="User-Agent header sent with every request",
    )


class PipelineSettings(BaseSettings):
    """Concurrency and processing configuration."""

    model_config = SettingsConfigDict(env_prefix="PIPELINE_")

    concurrency: int = Field(default=8, ge=1, description="Max items processed in parallel")
    max_playlist_pages: int = Field(
        default=1000, ge=1, description="Upper bound on playlist pages followed"
    )
    image_size: int = Field(default=720, description="Edge length of embedded episode artwork")


class NetworkSettings(BaseSettings):
    """Expected network identity, checked before a command runs."""

    model_config = SettingsConfigDict(env_prefix="NETWORK_")

    expect_ip: str | None = Field(default=None, description="Expected external IP address")
    expect_country: str | None = Field(
        default=None, description="Expected geolocated country code"
    )


class Settings(BaseSettings):
    """Main application settings aggregating all config sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Logging level"
    )

    # Sub-configurations
    paths: PathSettings = Field(default_factory=PathSettings)
    http: HttpSettings = Field(default_factory=HttpSettings)
    pipeline: PipelineSettings = Field(default_factory=PipelineSettings)
    network: NetworkSettings = Field(default_factory=NetworkSettings)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Application settings loaded from environment.
    """
    return Settings()

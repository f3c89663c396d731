"""
Application settings using Pydantic.

Provides environment-based configuration loading with VPCCTL_ prefix.
"""

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings."""

    # AWS (unset falls back to the SDK's own region/profile resolution)
    aws_region: str | None = None
    aws_profile: str | None = None

    # NAT gateway waits
    nat_gateway_timeout: float = 300.0
    nat_gateway_poll_interval: float = 15.0

    # Logging
    log_level: str = "INFO"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        env_prefix = "VPCCTL_"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()

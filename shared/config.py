"""
Configuration management for the identity lookup client.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class IdentityClientSettings(BaseSettings):
    """Settings read from IDENTITY_* environment variables or .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="IDENTITY_",
        case_sensitive=False,
        extra="ignore"
    )

    service_name: str = "identity"
    log_level: str = "info"

    # Seconds
    connect_timeout: float = Field(default=10.0, gt=0)
    read_timeout: float = Field(default=30.0, gt=0)


def get_settings(**overrides) -> IdentityClientSettings:
    """Build settings, letting explicit keyword arguments win over the environment."""
    return IdentityClientSettings(**overrides)

"""
Shared configuration management for the middleware gateway.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="ACCESS_",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")
    log_format: str = Field(default="console")  # console | json

    # Authentication (static shared secret)
    api_key: str = Field(default="secret123")
    api_key_header: str = Field(default="X-API-Key")

    # Rate limiting
    rate_limit_cooldown_seconds: float = Field(default=5.0, gt=0)
    rate_limit_sweep_interval: int = Field(default=1000, ge=0)

    # Pipeline endpoint
    hello_path: str = Field(default="/hello")


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)

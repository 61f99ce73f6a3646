"""
Shared configuration management for the X API access service.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="XAPI_",
        case_sensitive=False,
        extra="allow"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Document store (sessions + result cache)
    store_url: str = Field(default="redis://localhost:6379/0")
    store_namespace: str = Field(default="x-api")
    store_connect_timeout: float = Field(default=5.0)
    store_socket_timeout: float = Field(default=45.0)
    store_failure_threshold: int = Field(default=5)
    store_recovery_timeout: float = Field(default=30.0)

    # Result cache horizons (seconds)
    cache_default_ttl: float = Field(default=43200.0)
    cache_short_ttl: float = Field(default=1800.0)

    # Platform
    search_timeout: float = Field(default=15.0)
    deprecated_cookie_domain: str = Field(default="x.com")
    canonical_cookie_domain: str = Field(default=".twitter.com")

    # Secrets
    secrets_file: Optional[str] = Field(default=None)
    master_key: Optional[str] = Field(default=None)


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port)

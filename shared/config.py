"""
Shared configuration management for the Edge Auth service.
"""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


def split_csv(value: Optional[str]) -> List[str]:
    """Split a comma separated setting into its non-empty items."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="EDGE_AUTH_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Application
    app_domain: Optional[str] = Field(default=None)
    team_name: Optional[str] = Field(default=None)
    logout_redirect: str = Field(default="/")

    # Identity-aware proxy token validation
    jwks_uri: Optional[str] = Field(default=None)
    issuer: Optional[str] = Field(default=None)
    audience: Optional[str] = Field(default=None)
    algorithms: str = Field(default="RS256")
    fetch_timeout_ms: int = Field(default=5000)
    cache_ttl_ms: int = Field(default=10 * 60 * 1000)
    cooldown_ms: int = Field(default=30 * 1000)
    clock_skew_seconds: int = Field(default=30)

    # Request-side token locations
    allow_cookie_fallback: bool = Field(default=True)
    token_header: str = Field(default="Cf-Access-Jwt-Assertion")
    token_cookie: str = Field(default="CF_Authorization")
    protected_paths: str = Field(default="/protected")


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

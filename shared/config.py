"""
Shared configuration management for the RBAC access service.
"""

from typing import FrozenSet

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

    # Policy storage
    policy_path: str = Field(default="policy.csv")
    allowed_roles: str = Field(default="owner,moderator")
    max_hierarchy_level: int = Field(default=10, ge=1)

    @property
    def role_whitelist(self) -> FrozenSet[str]:
        """Roles callers may assign, parsed from the comma separated setting."""
        return frozenset(role.strip() for role in self.allowed_roles.split(",") if role.strip())


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

"""
Centralized configuration for TenantGuard.

Uses Pydantic BaseSettings for environment variable integration
and validation. All configurable values should be defined here.

Configuration sources (in order of precedence):
1. Explicit constructor arguments
2. Environment variables (TENANTGUARD_*)
3. .env file
4. Default values

Example:
    from tenantguard.config import get_config

    config = get_config()
    print(config.approved_registries)

    # Override at runtime
    config = get_config(reference_data_path="./reference.yaml")
"""

from __future__ import annotations

import os
from typing import Annotated, List, Literal, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from tenantguard.admission.checks import APPROVED_REGISTRIES

DEFAULT_APPROVED_REGISTRIES: List[str] = list(APPROVED_REGISTRIES)


class TenantGuardConfig(BaseSettings):
    """
    Central configuration for TenantGuard.

    All settings can be overridden via environment variables
    prefixed with TENANTGUARD_.

    Example:
        export TENANTGUARD_REFERENCE_DATA_PATH=/etc/tenantguard/reference.yaml
        export TENANTGUARD_APPROVED_REGISTRIES=gcr.io/,quay.io/
        export TENANTGUARD_LOG_FORMAT=text
    """

    model_config = SettingsConfigDict(
        env_prefix="TENANTGUARD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Service identification
    service_name: str = Field(
        default="tenantguard",
        description="Service name for log and telemetry attribution",
    )

    # Reference data
    reference_data_path: Optional[str] = Field(
        default=None,
        description="YAML/JSON file holding the roles and users mappings",
    )
    use_builtin_reference_data: bool = Field(
        default=True,
        description="Publish the built-in roles/users when no path is configured",
    )

    # Security admission
    approved_registries: Annotated[List[str], NoDecode] = Field(
        default_factory=lambda: list(DEFAULT_APPROVED_REGISTRIES),
        description="Image prefixes accepted by the registry check",
    )

    # Logging
    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="info",
        description="Logging level for TenantGuard",
    )
    log_format: Literal["json", "text"] = Field(
        default="json",
        description="Decision log output format (json for Loki, text for console)",
    )

    # Audit
    audit_to_log: bool = Field(
        default=True,
        description="Write every RBAC verdict to the decision log",
    )
    audit_to_otel: bool = Field(
        default=True,
        description="Emit every RBAC verdict as an OTel span",
    )
    tracer_name: str = Field(
        default="tenantguard.rbac.audit",
        description="Tracer name used by the audit emitter",
    )

    @field_validator("reference_data_path")
    @classmethod
    def expand_path(cls, v: Optional[str]) -> Optional[str]:
        """Expand ~ and environment variables in paths."""
        if v is None:
            return v
        return os.path.expanduser(os.path.expandvars(v))

    @field_validator("approved_registries", mode="before")
    @classmethod
    def split_registries(cls, v):
        """Accept a comma-separated string from the environment."""
        if isinstance(v, str):
            return [item.strip() for item in v.split(",") if item.strip()]
        return v


# Global singleton
_config: Optional[TenantGuardConfig] = None


def get_config(**overrides) -> TenantGuardConfig:
    """
    Get the global configuration instance.

    Creates a singleton on first call. Subsequent calls return
    the same instance unless overrides are provided.

    Args:
        **overrides: Override any config values

    Returns:
        TenantGuardConfig instance
    """
    global _config

    if overrides or _config is None:
        _config = TenantGuardConfig(**overrides)

    return _config


def reset_config() -> None:
    """Reset the global configuration (for testing)."""
    global _config
    _config = None


def get_log_level() -> str:
    """Get the configured log level."""
    return get_config().log_level

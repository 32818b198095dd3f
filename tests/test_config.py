"""
Tests for TenantGuardConfig - environment-driven settings.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from tenantguard.config import (
    DEFAULT_APPROVED_REGISTRIES,
    TenantGuardConfig,
    get_config,
    get_log_level,
    reset_config,
)


class TestDefaults:
    def test_defaults(self):
        config = TenantGuardConfig()
        assert config.service_name == "tenantguard"
        assert config.reference_data_path is None
        assert config.use_builtin_reference_data is True
        assert config.approved_registries == DEFAULT_APPROVED_REGISTRIES
        assert config.log_format == "json"
        assert config.audit_to_log is True
        assert config.audit_to_otel is True

    def test_default_registries(self):
        assert DEFAULT_APPROVED_REGISTRIES == [
            "docker.io/",
            "gcr.io/",
            "quay.io/",
            "registry.example.com/",
        ]


class TestEnvironment:
    def test_env_prefix(self, monkeypatch):
        monkeypatch.setenv("TENANTGUARD_LOG_LEVEL", "debug")
        monkeypatch.setenv("TENANTGUARD_AUDIT_TO_OTEL", "false")
        config = TenantGuardConfig()
        assert config.log_level == "debug"
        assert config.audit_to_otel is False

    def test_registries_from_comma_separated_env(self, monkeypatch):
        monkeypatch.setenv("TENANTGUARD_APPROVED_REGISTRIES", "ghcr.io/acme/, quay.io/")
        config = TenantGuardConfig()
        assert config.approved_registries == ["ghcr.io/acme/", "quay.io/"]

    def test_reference_path_expanded(self, monkeypatch, tmp_path):
        monkeypatch.setenv("REF_DIR", str(tmp_path))
        config = TenantGuardConfig(reference_data_path="$REF_DIR/reference.yaml")
        assert config.reference_data_path == f"{tmp_path}/reference.yaml"

    def test_invalid_log_format(self):
        with pytest.raises(PydanticValidationError):
            TenantGuardConfig(log_format="xml")


class TestSingleton:
    def test_get_config_cached(self):
        assert get_config() is get_config()

    def test_overrides_replace_singleton(self):
        first = get_config()
        second = get_config(log_level="error")
        assert second is not first
        assert get_log_level() == "error"

    def test_reset(self):
        first = get_config()
        reset_config()
        assert get_config() is not first

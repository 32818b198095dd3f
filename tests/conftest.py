"""
Pytest configuration and fixtures for TenantGuard tests.
"""

from __future__ import annotations

import os
from typing import Dict, Generator

import pytest

from tenantguard.config import reset_config
from tenantguard.rbac.store import SnapshotStore, builtin_snapshot, reset_snapshot_store


# ============================================================================
# Environment Fixtures
# ============================================================================


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch) -> Generator[None, None, None]:
    """Strip TENANTGUARD_* variables and reset global singletons per test."""
    for key in list(os.environ):
        if key.startswith("TENANTGUARD_"):
            monkeypatch.delenv(key, raising=False)
    reset_config()
    reset_snapshot_store()

    yield

    reset_config()
    reset_snapshot_store()


# ============================================================================
# Reference Data Fixtures
# ============================================================================


@pytest.fixture
def snapshot():
    """Built-in reference snapshot (alice, bob, charlie, diana, eve)."""
    return builtin_snapshot()


@pytest.fixture
def store(snapshot) -> SnapshotStore:
    return SnapshotStore(snapshot)


@pytest.fixture
def reference_document() -> Dict:
    """Reference data as it appears in a YAML file."""
    return {
        "roles": {
            "admin": {
                "description": "Everything",
                "permissions": [],
            },
            "editor": {
                "description": "Edit workloads",
                "permissions": [
                    {"resource": "pods", "actions": ["create", "read", "update"]},
                    {"resource": "deployments", "actions": ["create", "read", "update"]},
                ],
            },
            "viewer": {
                "permissions": [
                    {"resource": "pods", "actions": ["read"]},
                ],
            },
        },
        "users": {
            "alice": {"roles": ["admin"], "namespace": "default"},
            "bob": {"roles": ["editor"], "namespace": "production"},
            "diana": {"roles": ["viewer"], "namespace": "production"},
        },
    }


# ============================================================================
# Pod Fixtures
# ============================================================================


@pytest.fixture
def clean_pod() -> Dict:
    """A pod that passes every admission check."""
    return {
        "metadata": {"name": "web", "namespace": "production"},
        "hostNetwork": False,
        "hostPID": False,
        "hostIPC": False,
        "containers": [
            {
                "name": "app",
                "image": "gcr.io/acme/web:v1",
                "securityContext": {"privileged": False, "runAsUser": 1000},
            },
        ],
        "initContainers": [
            {"name": "migrate", "image": "quay.io/acme/migrate:v1"},
        ],
    }

"""
Pydantic models for RBAC (Role-Based Access Control).

Provides namespace-scoped access to platform resources, with an
unconditional override for holders of the ``admin`` role.

Key concepts:
- Permission: Atomic (resource-kind, action) capability grant
- Role: Named collection of permissions, defined centrally
- User: Identity holding one or more roles and a home namespace
- AccessRequest: One (user, resource, action, namespace) question
- ResolvedUser: A user's aggregated roles, permissions and namespace scope
- Verdict: Allow/deny answer with reasons and an audit record
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, FrozenSet, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

ADMIN_ROLE = "admin"

KNOWN_RESOURCE_KINDS: Tuple[str, ...] = (
    "pods",
    "deployments",
    "services",
    "configmaps",
    "secrets",
)


class Action(str, Enum):
    """Actions that can be performed on resources."""
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


class Permission(BaseModel):
    """
    A specific (resource-kind, action) grant.

    No wildcard syntax: ``pods``/``read`` grants exactly that.

    Example:
        read_pods = Permission(resource="pods", action=Action.READ)
    """
    model_config = ConfigDict(frozen=True)

    resource: str = Field(..., min_length=1, description="Resource kind, e.g. 'pods'")
    action: Action = Field(..., description="Granted action")

    def __str__(self) -> str:
        return f"{self.action.value} on {self.resource}"


class Role(BaseModel):
    """
    Named collection of permissions.

    An empty permission set grants nothing; there is no explicit deny.

    Example:
        viewer = Role(
            name="viewer",
            description="Read-only access",
            permissions=frozenset({Permission(resource="pods", action=Action.READ)}),
        )
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Unique role name")
    description: str = Field(default="", description="What this role provides")
    permissions: FrozenSet[Permission] = Field(
        default_factory=frozenset,
        description="Granted permissions",
    )


class User(BaseModel):
    """
    A user of the platform.

    ``namespace`` is ignored for users holding the admin role.

    Example:
        bob = User(name="bob", roles=("editor",), namespace="production")
    """
    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Unique user name")
    roles: Tuple[str, ...] = Field(..., min_length=1, description="Role names held")
    namespace: Optional[str] = Field(None, description="Assigned namespace")


class AccessRequest(BaseModel):
    """
    A single authorization question. Constructed per call, never persisted.

    Example:
        request = AccessRequest(
            user="bob",
            resource="pods",
            action=Action.READ,
            namespace="staging",
        )
    """
    model_config = ConfigDict(frozen=True)

    user: str = Field(..., min_length=1, description="User name (may be unknown)")
    resource: str = Field(..., min_length=1, description="Resource kind")
    action: Action = Field(..., description="Requested action")
    namespace: str = Field(..., min_length=1, description="Target namespace")


class ResolvedUser(BaseModel):
    """
    Output of the permission resolver for one user name.

    ``exists=False`` is a normal outcome, not an error.
    """
    model_config = ConfigDict(frozen=True)

    name: str
    exists: bool
    roles: FrozenSet[Role] = Field(default_factory=frozenset)
    permissions: FrozenSet[Permission] = Field(default_factory=frozenset)
    is_admin: bool = False
    home_namespace: Optional[str] = None

    @property
    def role_names(self) -> Tuple[str, ...]:
        """Sorted role names, for audit snapshots."""
        return tuple(sorted(r.name for r in self.roles))

    def can_access_namespace(self, namespace: str) -> bool:
        """Binary namespace predicate: all namespaces for admins, else exactly one."""
        if self.is_admin:
            return True
        return self.home_namespace is not None and namespace == self.home_namespace

    def has_permission(self, resource: str, action: Action) -> bool:
        return Permission(resource=resource, action=action) in self.permissions


class AuditRecord(BaseModel):
    """
    Immutable log entry capturing one RBAC decision's full context.

    ``timestamp`` is assigned by the caller, not by the evaluator.
    """
    model_config = ConfigDict(frozen=True)

    user: str
    resource: str
    action: Action
    namespace: str
    roles: Tuple[str, ...] = Field(default_factory=tuple)
    allowed: bool
    timestamp: Optional[datetime] = None


class Verdict(BaseModel):
    """
    Result of an access check.

    ``reasons`` is empty when allowed and holds the denial cause otherwise.
    """
    model_config = ConfigDict(frozen=True)

    allowed: bool
    reasons: Tuple[str, ...] = Field(default_factory=tuple)
    audit: AuditRecord

    def to_dict(self) -> Dict[str, Any]:
        """External JSON representation."""
        return {
            "allowed": self.allowed,
            "reasons": list(self.reasons),
            "audit": self.audit.model_dump(mode="json"),
        }


# =============================================================================
# Built-in Reference Data
# =============================================================================

def _grant(resources: Tuple[str, ...], actions: List[Action]) -> FrozenSet[Permission]:
    return frozenset(
        Permission(resource=resource, action=action)
        for resource in resources
        for action in actions
    )


_WORKLOAD_KINDS = ("pods", "deployments", "services", "configmaps")


def _create_built_in_roles() -> List[Role]:
    """Create the built-in roles."""

    admin = Role(
        name=ADMIN_ROLE,
        description="Full access to all resources in all namespaces",
        permissions=_grant(KNOWN_RESOURCE_KINDS, list(Action)),
    )

    editor = Role(
        name="editor",
        description="Create, read and update workloads in the home namespace",
        permissions=_grant(_WORKLOAD_KINDS, [Action.CREATE, Action.READ, Action.UPDATE]),
    )

    viewer = Role(
        name="viewer",
        description="Read-only access to workloads in the home namespace",
        permissions=_grant(_WORKLOAD_KINDS, [Action.READ]),
    )

    secret_manager = Role(
        name="secret-manager",
        description="Full access to secrets in the home namespace",
        permissions=_grant(("secrets",), list(Action)),
    )

    return [admin, editor, viewer, secret_manager]


def _create_built_in_users() -> List[User]:
    """Create the built-in users."""
    return [
        User(name="alice", roles=(ADMIN_ROLE,), namespace="default"),
        User(name="bob", roles=("editor",), namespace="production"),
        User(name="charlie", roles=("editor",), namespace="staging"),
        User(name="diana", roles=("viewer",), namespace="production"),
        User(name="eve", roles=("viewer", "secret-manager"), namespace="staging"),
    ]


BUILT_IN_ROLES: List[Role] = _create_built_in_roles()
BUILT_IN_USERS: List[User] = _create_built_in_users()
BUILT_IN_ROLE_NAMES: set[str] = {r.name for r in BUILT_IN_ROLES}

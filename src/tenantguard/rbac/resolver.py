"""
Permission Resolver.

Aggregates the permission sets of every role a user holds into one
combined set, and derives the user's namespace scope.

Example:
    resolver = PermissionResolver(store.current())
    resolved = resolver.resolve("bob")
    resolved.has_permission("pods", Action.READ)
"""

from __future__ import annotations

import logging
from typing import FrozenSet, List

from tenantguard.rbac.models import ADMIN_ROLE, Permission, ResolvedUser, Role
from tenantguard.rbac.store import ReferenceSnapshot

logger = logging.getLogger(__name__)


class PermissionResolver:
    """
    Resolves a user name against one reference snapshot.

    Pure function of the snapshot: holds no cache and never mutates it.
    """

    def __init__(self, snapshot: ReferenceSnapshot):
        self.snapshot = snapshot

    def resolve(self, user_name: str) -> ResolvedUser:
        """
        Resolve roles, permissions and namespace scope for ``user_name``.

        An unknown user resolves to ``exists=False`` with no permissions.
        """
        user = self.snapshot.get_user(user_name)
        if user is None:
            return ResolvedUser(name=user_name, exists=False)

        roles: List[Role] = []
        for role_name in user.roles:
            role = self.snapshot.get_role(role_name)
            if role is None:
                logger.warning(f"Role {role_name} not found for user {user_name}")
                continue
            roles.append(role)

        is_admin = any(role.name == ADMIN_ROLE for role in roles)

        return ResolvedUser(
            name=user_name,
            exists=True,
            roles=frozenset(roles),
            permissions=aggregate_permissions(roles),
            is_admin=is_admin,
            home_namespace=None if is_admin else user.namespace,
        )


def aggregate_permissions(roles: List[Role]) -> FrozenSet[Permission]:
    """Union of every permission granted by ``roles``."""
    permissions: set[Permission] = set()
    for role in roles:
        permissions |= role.permissions
    return frozenset(permissions)

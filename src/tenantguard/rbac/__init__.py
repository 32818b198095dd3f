"""
TenantGuard RBAC Module.

Namespace-scoped role-based access control for platform resources.

Example usage:
    from tenantguard.rbac import (
        AccessRequest,
        Action,
        PermissionResolver,
        RBACEvaluator,
        get_snapshot_store,
    )

    snapshot = get_snapshot_store().current()
    request = AccessRequest(user="bob", resource="pods", action=Action.READ, namespace="staging")

    resolved = PermissionResolver(snapshot).resolve(request.user)
    verdict = RBACEvaluator().evaluate(request, resolved)
    print(verdict.allowed, verdict.reasons)   # False ('no access to namespace staging',)

CLI usage:
    # Check access
    tenantguard rbac check -u bob -r pods -a read -n staging

    # Inspect a user
    tenantguard rbac whois bob
"""

from tenantguard.rbac.models import (
    # Enums
    Action,
    # Models
    Permission,
    Role,
    User,
    AccessRequest,
    ResolvedUser,
    AuditRecord,
    Verdict,
    # Built-in reference data
    ADMIN_ROLE,
    KNOWN_RESOURCE_KINDS,
    BUILT_IN_ROLES,
    BUILT_IN_USERS,
    BUILT_IN_ROLE_NAMES,
)

from tenantguard.rbac.store import (
    ReferenceSnapshot,
    SnapshotStore,
    builtin_snapshot,
    dump_snapshot,
    load_snapshot,
    snapshot_from_dict,
    get_snapshot_store,
    set_snapshot_store,
    reset_snapshot_store,
)

from tenantguard.rbac.resolver import (
    PermissionResolver,
    aggregate_permissions,
)

from tenantguard.rbac.evaluator import (
    RBACEvaluator,
    REASON_USER_NOT_FOUND,
)

from tenantguard.rbac.audit import (
    AuditSink,
    MemoryAuditSink,
    LoggingAuditSink,
    RBACAuditEmitter,
)

__all__ = [
    # Enums
    "Action",
    # Models
    "Permission",
    "Role",
    "User",
    "AccessRequest",
    "ResolvedUser",
    "AuditRecord",
    "Verdict",
    # Built-in
    "ADMIN_ROLE",
    "KNOWN_RESOURCE_KINDS",
    "BUILT_IN_ROLES",
    "BUILT_IN_USERS",
    "BUILT_IN_ROLE_NAMES",
    # Store
    "ReferenceSnapshot",
    "SnapshotStore",
    "builtin_snapshot",
    "dump_snapshot",
    "load_snapshot",
    "snapshot_from_dict",
    "get_snapshot_store",
    "set_snapshot_store",
    "reset_snapshot_store",
    # Resolver
    "PermissionResolver",
    "aggregate_permissions",
    # Evaluator
    "RBACEvaluator",
    "REASON_USER_NOT_FOUND",
    # Audit
    "AuditSink",
    "MemoryAuditSink",
    "LoggingAuditSink",
    "RBACAuditEmitter",
]

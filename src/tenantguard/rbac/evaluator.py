"""
RBAC Evaluator.

Turns an ``AccessRequest`` and the requesting user's ``ResolvedUser`` into
a ``Verdict``.  Checks run in a fixed order and the first failing check
supplies the single denial reason:

1. user existence
2. admin override (allows, skipping everything below)
3. namespace access
4. permission

Every call produces an ``AuditRecord``, allowed or not.

Example:
    evaluator = RBACEvaluator()
    verdict = evaluator.evaluate(request, resolver.resolve(request.user))
    if not verdict.allowed:
        print(verdict.reasons[0])
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from tenantguard.rbac.models import AccessRequest, AuditRecord, ResolvedUser, Verdict

logger = logging.getLogger(__name__)

REASON_USER_NOT_FOUND = "user not found"


def namespace_denied_reason(namespace: str) -> str:
    return f"no access to namespace {namespace}"


def permission_denied_reason(request: AccessRequest) -> str:
    return f"missing permission: {request.action.value} on {request.resource}"


class RBACEvaluator:
    """
    Stateless access evaluator.

    Safe to share between threads; every call depends only on its arguments.
    """

    def evaluate(
        self,
        request: AccessRequest,
        resolved: ResolvedUser,
        timestamp: Optional[datetime] = None,
    ) -> Verdict:
        """
        Decide ``request`` for ``resolved``.

        Args:
            request: The access question.
            resolved: Resolver output for ``request.user``.
            timestamp: Decision time recorded in the audit record,
                supplied by the caller.

        Returns:
            Verdict with at most one reason.
        """
        reason = self._first_denial(request, resolved)
        allowed = reason is None

        audit = AuditRecord(
            user=request.user,
            resource=request.resource,
            action=request.action,
            namespace=request.namespace,
            roles=resolved.role_names,
            allowed=allowed,
            timestamp=timestamp,
        )

        if allowed:
            logger.debug(
                f"Access allowed: user={request.user}, resource={request.resource}, "
                f"action={request.action.value}, namespace={request.namespace}"
            )
            return Verdict(allowed=True, reasons=(), audit=audit)

        logger.debug(
            f"Access denied: user={request.user}, resource={request.resource}, "
            f"action={request.action.value}, namespace={request.namespace}, reason={reason}"
        )
        return Verdict(allowed=False, reasons=(reason,), audit=audit)

    def _first_denial(self, request: AccessRequest, resolved: ResolvedUser) -> Optional[str]:
        if not resolved.exists:
            return REASON_USER_NOT_FOUND

        # Only bypass path; must follow the existence check
        if resolved.is_admin:
            return None

        if not resolved.can_access_namespace(request.namespace):
            return namespace_denied_reason(request.namespace)

        if not resolved.has_permission(request.resource, request.action):
            return permission_denied_reason(request)

        return None

"""
Error taxonomy for TenantGuard.

Deny outcomes are values, not exceptions: an unknown user or a missing
permission produces a ``Verdict``.  Exceptions are reserved for the
boundary (malformed input, missing reference data) and for the opt-in
hard-enforcement path.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from tenantguard.rbac.models import Verdict


class TenantGuardError(Exception):
    """Base class for all TenantGuard errors."""


class ValidationError(TenantGuardError):
    """
    Raised by the boundary layer when an input payload is malformed.

    Carries one entry per offending field so front-ends can render them.
    """

    def __init__(self, subject: str, errors: Optional[List[Dict[str, Any]]] = None):
        self.subject = subject
        self.errors = errors or []
        if self.errors:
            fields = ", ".join(e.get("loc", "?") for e in self.errors)
            message = f"Invalid {subject}: {fields}"
        else:
            message = f"Invalid {subject}"
        super().__init__(message)


class ReferenceDataUnavailableError(TenantGuardError):
    """Raised when no reference data snapshot can be served."""


class AccessDeniedError(TenantGuardError):
    """
    Raised when access is denied (hard enforcement).

    Contains the full Verdict for logging/debugging.
    """

    def __init__(self, verdict: "Verdict"):
        self.verdict = verdict
        reason = "; ".join(verdict.reasons) or "Insufficient permissions"
        super().__init__(f"Access denied: {reason}")

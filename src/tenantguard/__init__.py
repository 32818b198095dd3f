"""
TenantGuard - Authorization and security admission for a multi-tenant platform.

Two independent, deterministic decision engines:

- RBAC: given (user, resource kind, action, namespace), allow or deny with
  a justification and an audit record.
- Security admission: given a pod specification, pass or fail with an
  itemized violation report.

Example usage:
    from tenantguard import GuardService

    service = GuardService()
    verdict = service.authorize(
        {"user": "diana", "resource": "pods", "action": "create", "namespace": "production"}
    )
    # verdict.allowed == False
    # verdict.reasons == ("missing permission: create on pods",)
"""

__version__ = "0.1.0"
__all__ = [
    "GuardService",
    "RBACEvaluator",
    "PermissionResolver",
    "SecurityAdmissionEvaluator",
    "__version__",
]


# Lazy imports to avoid loading OTel at import time
def __getattr__(name: str):
    if name == "GuardService":
        from tenantguard.service import GuardService
        return GuardService
    if name == "RBACEvaluator":
        from tenantguard.rbac.evaluator import RBACEvaluator
        return RBACEvaluator
    if name == "PermissionResolver":
        from tenantguard.rbac.resolver import PermissionResolver
        return PermissionResolver
    if name == "SecurityAdmissionEvaluator":
        from tenantguard.admission.evaluator import SecurityAdmissionEvaluator
        return SecurityAdmissionEvaluator
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

"""
Security admission for pod specifications.

Checks every container and init container against a fixed set of
platform-hardening constraints and returns an itemized report.

Public API::

    from tenantguard.admission import (
        # Evaluator
        SecurityAdmissionEvaluator,
        # Models
        PodSpec,
        Container,
        SecurityContext,
        SecurityReport,
        ViolationKind,
        # OTel helpers
        emit_admission_report,
    )
"""

from tenantguard.admission.checks import (
    APPROVED_REGISTRIES,
    Check,
    default_checks,
    is_approved_image,
)
from tenantguard.admission.evaluator import SecurityAdmissionEvaluator
from tenantguard.admission.models import (
    Container,
    PodMetadata,
    PodSpec,
    SecurityContext,
    SecurityReport,
    ViolationKind,
)
from tenantguard.admission.otel import emit_admission_report

__all__ = [
    # Evaluator
    "SecurityAdmissionEvaluator",
    # Checks
    "APPROVED_REGISTRIES",
    "Check",
    "default_checks",
    "is_approved_image",
    # Models
    "Container",
    "PodMetadata",
    "PodSpec",
    "SecurityContext",
    "SecurityReport",
    "ViolationKind",
    # OTel
    "emit_admission_report",
]

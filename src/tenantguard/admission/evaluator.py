"""
Security Admission Evaluator.

Runs the fixed check battery over a pod and aggregates every violation
into one ``SecurityReport``.  This is a full-report design: a failing
check never stops the remaining ones.

Usage::

    from tenantguard.admission import SecurityAdmissionEvaluator

    evaluator = SecurityAdmissionEvaluator()
    report = evaluator.evaluate(pod)
    if not report.passed:
        for kind, entities in report.details.items():
            logger.warning("Admission: %s %s", kind.value, entities)
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

from tenantguard.admission.checks import APPROVED_REGISTRIES, Check, default_checks
from tenantguard.admission.models import PodSpec, SecurityReport, ViolationKind

logger = logging.getLogger(__name__)


class SecurityAdmissionEvaluator:
    """Evaluates pods against platform-hardening constraints."""

    def __init__(
        self,
        approved_registries: Sequence[str] = APPROVED_REGISTRIES,
        checks: Optional[List[Check]] = None,
    ):
        self.approved_registries = tuple(approved_registries)
        self.checks = checks if checks is not None else default_checks(self.approved_registries)

    def evaluate(self, pod: PodSpec) -> SecurityReport:
        """Run all checks.

        Args:
            pod: Validated pod specification.

        Returns:
            ``SecurityReport`` with ``passed`` true iff no check fired.
        """
        details: Dict[ViolationKind, List[str]] = {}

        for check in self.checks:
            found = check(pod)
            if found:
                details.setdefault(check.kind, []).extend(found)

        report = SecurityReport(
            pod_name=pod.metadata.name,
            namespace=pod.metadata.namespace,
            passed=not details,
            violations=set(details),
            details=details,
            containers_checked=len(pod.containers),
            init_containers_checked=len(pod.init_containers),
        )

        if report.passed:
            logger.debug(
                "Admission passed: pod=%s/%s containers=%d init_containers=%d",
                report.namespace,
                report.pod_name,
                report.containers_checked,
                report.init_containers_checked,
            )
        else:
            logger.warning(
                "Admission FAILED: pod=%s/%s violations=%s",
                report.namespace,
                report.pod_name,
                ",".join(report.sorted_violations()),
            )

        return report

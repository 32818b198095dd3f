"""
GuardService: the front door to both decision engines.

Wires the snapshot store, permission resolver, RBAC evaluator and audit
sinks for access requests, and the admission evaluator plus its report
hand-off for pods.  Assigns audit timestamps; the evaluators never read
the clock.

Example:
    service = GuardService()

    verdict = service.authorize(
        {"user": "bob", "resource": "pods", "action": "read", "namespace": "production"}
    )

    report = service.admit(pod_manifest)
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional, Union

from tenantguard.admission.evaluator import SecurityAdmissionEvaluator
from tenantguard.admission.models import PodSpec, SecurityReport
from tenantguard.admission.otel import emit_admission_report
from tenantguard.boundary import parse_access_request, parse_pod_spec
from tenantguard.config import TenantGuardConfig, get_config
from tenantguard.errors import AccessDeniedError
from tenantguard.logger import DecisionLogger
from tenantguard.rbac.audit import AuditSink, LoggingAuditSink, RBACAuditEmitter
from tenantguard.rbac.evaluator import RBACEvaluator
from tenantguard.rbac.models import AccessRequest, ResolvedUser, Verdict
from tenantguard.rbac.resolver import PermissionResolver
from tenantguard.rbac.store import SnapshotStore, get_snapshot_store

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GuardService:
    """
    Authorization and admission front door.

    Holds no per-request state: each call takes the live snapshot once
    and evaluates against it.
    """

    def __init__(
        self,
        store: Optional[SnapshotStore] = None,
        audit_sinks: Optional[List[AuditSink]] = None,
        admission_evaluator: Optional[SecurityAdmissionEvaluator] = None,
        decision_logger: Optional[DecisionLogger] = None,
        config: Optional[TenantGuardConfig] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.config = config or get_config()
        self._store = store
        self.evaluator = RBACEvaluator()
        self.admission_evaluator = admission_evaluator or SecurityAdmissionEvaluator(
            approved_registries=self.config.approved_registries
        )
        self.decision_logger = decision_logger or DecisionLogger(
            service_name=self.config.service_name,
            log_format=self.config.log_format,
        )
        self.audit_sinks = audit_sinks if audit_sinks is not None else self._default_sinks()
        self.clock = clock

    @property
    def store(self) -> SnapshotStore:
        """Explicit store, else the process-wide default (loaded on first use)."""
        return self._store if self._store is not None else get_snapshot_store()

    def _default_sinks(self) -> List[AuditSink]:
        sinks: List[AuditSink] = []
        if self.config.audit_to_log:
            sinks.append(LoggingAuditSink(self.decision_logger))
        if self.config.audit_to_otel:
            sinks.append(RBACAuditEmitter(self.config.tracer_name))
        return sinks

    def resolve(self, user_name: str) -> ResolvedUser:
        """Resolve a user against the live snapshot."""
        return PermissionResolver(self.store.current()).resolve(user_name)

    def authorize(self, request: Union[AccessRequest, Mapping[str, Any]]) -> Verdict:
        """
        Decide an access request and hand the audit record to every sink.

        Raises:
            ValidationError: If ``request`` is malformed.
            ReferenceDataUnavailableError: If no reference data is loaded.
        """
        request = parse_access_request(request)
        snapshot = self.store.current()

        resolved = PermissionResolver(snapshot).resolve(request.user)
        verdict = self.evaluator.evaluate(request, resolved, timestamp=self.clock())

        for sink in self.audit_sinks:
            sink.record(verdict)

        return verdict

    def require_access(self, request: Union[AccessRequest, Mapping[str, Any]]) -> Verdict:
        """
        Hard enforcement: raises AccessDeniedError if denied.

        Use this for actual enforcement at security boundaries.
        """
        verdict = self.authorize(request)
        if not verdict.allowed:
            logger.warning(
                f"Access denied: user={verdict.audit.user}, "
                f"resource={verdict.audit.namespace}/{verdict.audit.resource}, "
                f"action={verdict.audit.action.value}, reason={verdict.reasons[0]}"
            )
            raise AccessDeniedError(verdict)
        return verdict

    def admit(self, pod: Union[PodSpec, Mapping[str, Any]]) -> SecurityReport:
        """
        Evaluate a pod and hand the report to the decision log and OTel.

        Raises:
            ValidationError: If ``pod`` is malformed.
        """
        pod = parse_pod_spec(pod)
        report = self.admission_evaluator.evaluate(pod)

        if self.config.audit_to_log:
            self.decision_logger.log_admission_report(report)
        if self.config.audit_to_otel:
            emit_admission_report(report)

        return report

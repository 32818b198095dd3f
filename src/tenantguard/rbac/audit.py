"""
RBAC Audit Trail.

Receives every verdict's ``AuditRecord`` and hands it to its destination:
an in-memory append-only trail, the structured decision log, or OTel spans.

Example TraceQL queries:
    # All denials in last 24h
    { name = "rbac.deny" }

    # Access by specific user
    { rbac.user = "bob" }

    # Cross-namespace attempts
    { rbac.denial_reason =~ "no access to namespace.*" }
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from typing import List, Optional

from opentelemetry import trace
from opentelemetry.trace import SpanKind, Status, StatusCode

from tenantguard.logger import DecisionLogger
from tenantguard.rbac.models import AuditRecord, Verdict

logger = logging.getLogger(__name__)


class AuditSink(ABC):
    """Destination for RBAC verdicts. Receives values, returns nothing."""

    @abstractmethod
    def record(self, verdict: Verdict) -> None:
        """Accept one verdict and its audit record."""
        pass


class MemoryAuditSink(AuditSink):
    """
    Append-only in-memory audit trail.

    Thread-safe; records are never modified or removed.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._records: List[AuditRecord] = []

    def record(self, verdict: Verdict) -> None:
        with self._lock:
            self._records.append(verdict.audit)

    @property
    def records(self) -> List[AuditRecord]:
        """Copy of the trail in arrival order."""
        with self._lock:
            return list(self._records)

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class LoggingAuditSink(AuditSink):
    """Writes each verdict to the structured decision log."""

    def __init__(self, decision_logger: Optional[DecisionLogger] = None):
        self.decision_logger = decision_logger or DecisionLogger()

    def record(self, verdict: Verdict) -> None:
        self.decision_logger.log_access_decision(verdict.audit, verdict.reasons)


class RBACAuditEmitter(AuditSink):
    """
    Emits RBAC verdicts as OTel spans.

    Each verdict becomes a span with attributes for:
    - User and roles held
    - Resource, action and namespace
    - Decision outcome and denial reason

    Example:
        emitter = RBACAuditEmitter()
        trace_id = emitter.emit_verdict(verdict)
    """

    def __init__(self, tracer_name: str = "tenantguard.rbac.audit", tracer=None):
        self.tracer = tracer or trace.get_tracer(tracer_name)

    def record(self, verdict: Verdict) -> None:
        self.emit_verdict(verdict)

    def emit_verdict(self, verdict: Verdict) -> str:
        """
        Emit verdict as OTel span.

        Returns trace_id for reference.
        """
        audit = verdict.audit
        decision = "allow" if verdict.allowed else "deny"

        with self.tracer.start_as_current_span(
            f"rbac.{decision}",
            kind=SpanKind.INTERNAL,
        ) as span:
            span.set_attribute("rbac.decision", decision)
            span.set_attribute("rbac.user", audit.user)
            span.set_attribute("rbac.resource", audit.resource)
            span.set_attribute("rbac.action", audit.action.value)
            span.set_attribute("rbac.namespace", audit.namespace)
            span.set_attribute("rbac.roles", list(audit.roles))

            if verdict.reasons:
                span.set_attribute("rbac.denial_reason", verdict.reasons[0])

            if audit.timestamp:
                span.set_attribute("rbac.evaluated_at", audit.timestamp.isoformat())

            span.add_event(
                "access.evaluated",
                attributes={
                    "decision": decision,
                    "user": audit.user,
                    "resource": f"{audit.namespace}/{audit.resource}",
                    "action": audit.action.value,
                },
            )

            if verdict.allowed:
                span.set_status(Status(StatusCode.OK))
            else:
                span.set_status(
                    Status(StatusCode.ERROR, verdict.reasons[0] if verdict.reasons else "Access denied")
                )

            span_context = span.get_span_context()
            trace_id = format(span_context.trace_id, "032x")

        return trace_id

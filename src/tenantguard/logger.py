"""
Structured logging for authorization and admission decisions.

Outputs JSON-formatted logs for Loki ingestion. One entry per decision:

Logged events:
- rbac.allow
- rbac.deny
- admission.pass
- admission.fail

Usage:
    from tenantguard.logger import DecisionLogger

    logger = DecisionLogger()
    logger.log_access_decision(verdict.audit, verdict.reasons)
    logger.log_admission_report(report)
"""

from __future__ import annotations

import json
import logging
import sys
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import IO, TYPE_CHECKING, Any, Dict, Iterator, Optional, Sequence

if TYPE_CHECKING:
    from tenantguard.admission.models import SecurityReport
    from tenantguard.rbac.models import AuditRecord

# Configure structured logger for Loki
_decision_logger = logging.getLogger("tenantguard.decisions")
_decision_logger.setLevel(logging.INFO)

# Default handler outputs JSON to stdout (for container/Loki pickup)
_default_handler = logging.StreamHandler(sys.stdout)
_default_handler.setFormatter(logging.Formatter("%(message)s"))
if not _decision_logger.handlers:
    _decision_logger.addHandler(_default_handler)


@contextmanager
def decision_stream(stream: IO[str]) -> Iterator[None]:
    """Temporarily write the default decision log handler to ``stream``."""
    previous = _default_handler.setStream(stream)
    try:
        yield
    finally:
        if previous is not None:
            _default_handler.setStream(previous)


class DecisionLogger:
    """
    Structured logger for decision events.

    Each log entry includes standard fields for filtering:
    - event type and service
    - the subject of the decision (user or pod)
    - event-specific attributes
    """

    def __init__(
        self,
        service_name: str = "tenantguard",
        log_format: str = "json",
        extra_labels: Optional[Dict[str, str]] = None,
    ):
        """
        Initialize decision logger.

        Args:
            service_name: Service name for log attribution
            log_format: "json" for Loki, "text" for key=value console output
            extra_labels: Additional labels for Loki filtering
        """
        self.service_name = service_name
        self.log_format = log_format
        self.extra_labels = extra_labels or {}
        self._logger = _decision_logger

    def _emit(self, event: str, level: str = "info", **fields: Any) -> None:
        """Emit a structured log entry."""
        entry: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "event": event,
            "service": self.service_name,
        }
        entry.update(fields)

        if self.extra_labels:
            entry["labels"] = self.extra_labels

        if self.log_format == "text":
            log_line = " ".join(f"{k}={_text_value(v)}" for k, v in entry.items())
        else:
            log_line = json.dumps(entry, default=str)

        if level == "error":
            self._logger.error(log_line)
        elif level == "warn":
            self._logger.warning(log_line)
        else:
            self._logger.info(log_line)

    def log_access_decision(
        self,
        record: "AuditRecord",
        reasons: Sequence[str] = (),
    ) -> None:
        """Log an RBAC decision from its audit record."""
        self._emit(
            event="rbac.allow" if record.allowed else "rbac.deny",
            level="info" if record.allowed else "warn",
            user=record.user,
            resource=record.resource,
            action=record.action.value,
            namespace=record.namespace,
            roles=list(record.roles),
            allowed=record.allowed,
            reasons=list(reasons),
            decided_at=record.timestamp.isoformat() if record.timestamp else None,
        )

    def log_admission_report(self, report: "SecurityReport") -> None:
        """Log a security admission report."""
        self._emit(
            event="admission.pass" if report.passed else "admission.fail",
            level="info" if report.passed else "warn",
            pod=report.pod_name,
            namespace=report.namespace,
            passed=report.passed,
            violations=report.sorted_violations(),
            details={k.value: list(v) for k, v in report.details.items()},
        )


def _text_value(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    if isinstance(value, dict):
        return json.dumps(value, default=str)
    return str(value)

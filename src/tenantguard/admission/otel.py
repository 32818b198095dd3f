"""
OTel span event emission helpers for security admission.

Events are added to the current span, so a front-end that wraps each
admission request in a span gets the report attached to it.

Usage::

    from tenantguard.admission.otel import emit_admission_report

    report = evaluator.evaluate(pod)
    emit_admission_report(report)
"""

from __future__ import annotations

import logging

from opentelemetry import trace as otel_trace

from tenantguard.admission.models import SecurityReport

logger = logging.getLogger(__name__)


def _add_span_event(name: str, attributes: dict[str, str | int | float | bool | list[str]]) -> None:
    """Add an event to the current OTel span if it is recording."""
    span = otel_trace.get_current_span()
    if span and span.is_recording():
        span.add_event(name=name, attributes=attributes)


def emit_admission_report(report: SecurityReport) -> None:
    """Emit a span event summarising the admission report.

    Event name: ``admission.report``, followed by one
    ``admission.violation`` event per violation kind.
    """
    attrs: dict[str, str | int | float | bool | list[str]] = {
        "admission.pod": report.pod_name,
        "admission.namespace": report.namespace,
        "admission.pass": report.passed,
        "admission.violation_count": len(report.violations),
        "admission.violations": report.sorted_violations(),
        "admission.containers_checked": report.containers_checked,
        "admission.init_containers_checked": report.init_containers_checked,
    }
    _add_span_event("admission.report", attrs)

    for kind in sorted(report.details, key=lambda k: k.value):
        _add_span_event(
            "admission.violation",
            {
                "admission.violation.kind": kind.value,
                "admission.violation.entities": list(report.details[kind]),
            },
        )

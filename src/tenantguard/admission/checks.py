"""
Security admission checks.

Each check inspects one pod and returns the offending entities it found,
as human-readable detail lines.  An empty list means the check passed.
Checks are independent and order-insensitive; the evaluator runs all of
them.

Container checks walk ``containers`` followed by ``initContainers``;
init container details carry an ``init:`` prefix.

Absent optional fields satisfy the constraint (no ``securityContext``
means neither privileged nor root).  Only explicit violating values fail.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterator, List, Sequence, Tuple

from tenantguard.admission.models import Container, PodSpec, ViolationKind

APPROVED_REGISTRIES: Tuple[str, ...] = (
    "docker.io/",
    "gcr.io/",
    "quay.io/",
    "registry.example.com/",
)


@dataclass(frozen=True)
class Check:
    """One named constraint mapped to the violation kind it reports."""

    name: str
    kind: ViolationKind
    run: Callable[[PodSpec], List[str]]

    def __call__(self, pod: PodSpec) -> List[str]:
        return self.run(pod)


def container_label(container: Container, index: int, init: bool = False) -> str:
    """Declared name if present, else position within its list."""
    label = container.name or f"#{index}"
    return f"init:{label}" if init else label


def iter_containers(pod: PodSpec) -> Iterator[Tuple[str, Container]]:
    """Yield (label, container) for regular then init containers."""
    for i, container in enumerate(pod.containers):
        yield container_label(container, i), container
    for i, container in enumerate(pod.init_containers):
        yield container_label(container, i, init=True), container


def check_privileged(pod: PodSpec) -> List[str]:
    return [label for label, c in iter_containers(pod) if c.is_privileged]


def check_host_access(pod: PodSpec) -> List[str]:
    details = []
    if pod.host_network:
        details.append("hostNetwork=true")
    if pod.host_pid:
        details.append("hostPID=true")
    if pod.host_ipc:
        details.append("hostIPC=true")
    return details


def check_root_user(pod: PodSpec) -> List[str]:
    return [label for label, c in iter_containers(pod) if c.runs_as_root]


def is_approved_image(image: str, registries: Sequence[str] = APPROVED_REGISTRIES) -> bool:
    """Exact string-prefix match; a bare image name is not approved."""
    return any(image.startswith(prefix) for prefix in registries)


def image_registry_check(registries: Sequence[str] = APPROVED_REGISTRIES) -> Check:
    """Build the registry check for an allow-list of image prefixes."""
    allowed = tuple(registries)

    def _run(pod: PodSpec) -> List[str]:
        return [
            f"{label}: {c.image}"
            for label, c in iter_containers(pod)
            if not is_approved_image(c.image, allowed)
        ]

    return Check(name="image_registry", kind=ViolationKind.UNAPPROVED_IMAGE, run=_run)


def default_checks(registries: Sequence[str] = APPROVED_REGISTRIES) -> List[Check]:
    """The fixed battery, in reporting order."""
    return [
        Check(name="privileged", kind=ViolationKind.PRIVILEGED, run=check_privileged),
        Check(name="host_access", kind=ViolationKind.HOST_ACCESS, run=check_host_access),
        Check(name="root_user", kind=ViolationKind.ROOT_USER, run=check_root_user),
        image_registry_check(registries),
    ]

"""
Pydantic models for security admission.

Field names follow the Kubernetes Pod spelling (``securityContext``,
``runAsUser``, ``hostNetwork``, ``initContainers``) through aliases, and
accept the snake_case names as well.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field


class ViolationKind(str, Enum):
    """Categories of failed security constraints."""
    PRIVILEGED = "privileged_containers_detected"
    HOST_ACCESS = "host_access_detected"
    ROOT_USER = "root_user_detected"
    UNAPPROVED_IMAGE = "unapproved_image_detected"


class SecurityContext(BaseModel):
    """Container security settings. Absent fields are not violations."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    privileged: Optional[bool] = None
    run_as_user: Optional[int] = Field(None, alias="runAsUser", ge=0)


class Container(BaseModel):
    """A container or init container."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: Optional[str] = None
    image: str
    security_context: Optional[SecurityContext] = Field(None, alias="securityContext")

    @property
    def is_privileged(self) -> bool:
        return self.security_context is not None and self.security_context.privileged is True

    @property
    def runs_as_root(self) -> bool:
        return self.security_context is not None and self.security_context.run_as_user == 0


class PodMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    namespace: str = "default"


class PodSpec(BaseModel):
    """
    A workload submitted for admission.

    Example:
        pod = PodSpec(
            metadata=PodMetadata(name="web", namespace="production"),
            containers=[Container(name="app", image="gcr.io/x/y:v1")],
        )
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    metadata: PodMetadata
    host_network: bool = Field(False, alias="hostNetwork")
    host_pid: bool = Field(False, alias="hostPID")
    host_ipc: bool = Field(False, alias="hostIPC")
    containers: List[Container] = Field(default_factory=list)
    init_containers: List[Container] = Field(default_factory=list, alias="initContainers")


class SecurityReport(BaseModel):
    """
    Aggregated admission result.

    ``passed`` is true iff ``violations`` is empty.  ``details`` maps each
    violation kind to the offending entities, in container order.
    """

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    pod_name: str = Field(..., alias="podName")
    namespace: str
    passed: bool = Field(..., alias="pass")
    violations: Set[ViolationKind] = Field(default_factory=set)
    details: Dict[ViolationKind, List[str]] = Field(default_factory=dict)
    containers_checked: int = 0
    init_containers_checked: int = 0

    def sorted_violations(self) -> List[str]:
        return sorted(v.value for v in self.violations)

    def to_dict(self) -> Dict[str, Any]:
        """External JSON representation."""
        return {
            "podName": self.pod_name,
            "namespace": self.namespace,
            "pass": self.passed,
            "violations": self.sorted_violations(),
            "details": {
                kind.value: list(self.details[kind])
                for kind in sorted(self.details, key=lambda k: k.value)
            },
        }

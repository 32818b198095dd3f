"""
Boundary validation.

Turns raw JSON/YAML documents into the typed inputs the evaluators
consume.  Malformed payloads raise ``tenantguard.errors.ValidationError``
here, before any evaluation runs; the evaluators assume well-formed input.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from tenantguard.admission.models import PodSpec
from tenantguard.errors import ValidationError
from tenantguard.rbac.models import AccessRequest


def _field_errors(exc: PydanticValidationError) -> List[Dict[str, Any]]:
    return [
        {
            "loc": ".".join(str(part) for part in err["loc"]) or "<root>",
            "msg": err["msg"],
            "type": err["type"],
        }
        for err in exc.errors()
    ]


def _validate(model: type[BaseModel], subject: str, payload: Any):
    if isinstance(payload, model):
        return payload
    if not isinstance(payload, Mapping):
        raise ValidationError(subject, [{"loc": "<root>", "msg": "expected a mapping"}])
    try:
        return model.model_validate(dict(payload))
    except PydanticValidationError as e:
        raise ValidationError(subject, _field_errors(e)) from e


def parse_access_request(payload: Union[AccessRequest, Mapping[str, Any]]) -> AccessRequest:
    """
    Validate ``{user, resource, action, namespace}``.

    Raises:
        ValidationError: On a missing field or unknown action.
    """
    return _validate(AccessRequest, "access request", payload)


def parse_pod_spec(payload: Union[PodSpec, Mapping[str, Any]]) -> PodSpec:
    """
    Validate a pod for admission.

    Accepts the flat shape (``metadata`` beside ``containers``) and a full
    Pod manifest (``{kind: Pod, metadata, spec: {...}}``).

    Raises:
        ValidationError: On an unrecognized shape or bad field type.
    """
    if isinstance(payload, Mapping) and isinstance(payload.get("spec"), Mapping):
        kind = payload.get("kind", "Pod")
        if kind != "Pod":
            raise ValidationError("pod spec", [{"loc": "kind", "msg": f"unsupported kind {kind!r}"}])
        flat = dict(payload["spec"])
        flat["metadata"] = payload.get("metadata")
        payload = flat
    return _validate(PodSpec, "pod spec", payload)

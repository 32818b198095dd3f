"""
RBAC reference data storage.

Holds the role and user mappings as an immutable ``ReferenceSnapshot``.
A ``SnapshotStore`` publishes snapshots by swapping a single reference, so
an in-flight evaluation sees either the old data or the new data, never a
mix of both.

Reference data layout (YAML or JSON):
    roles:
      editor:
        description: Edit workloads
        permissions:
          - resource: pods
            actions: [create, read, update]
    users:
      bob:
        roles: [editor]
        namespace: production
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

import yaml
from pydantic import ValidationError as PydanticValidationError

from tenantguard.errors import ReferenceDataUnavailableError, ValidationError
from tenantguard.rbac.models import (
    BUILT_IN_ROLES,
    BUILT_IN_USERS,
    Action,
    Permission,
    Role,
    User,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReferenceSnapshot:
    """
    Immutable view of role name -> Role and user name -> User.

    The mappings are copied on construction and exposed read-only.
    """

    roles: Mapping[str, Role] = field(default_factory=dict)
    users: Mapping[str, User] = field(default_factory=dict)
    source: str = "memory"

    def __post_init__(self) -> None:
        object.__setattr__(self, "roles", MappingProxyType(dict(self.roles)))
        object.__setattr__(self, "users", MappingProxyType(dict(self.users)))

    @classmethod
    def from_models(
        cls,
        roles: Iterable[Role],
        users: Iterable[User],
        source: str = "memory",
    ) -> "ReferenceSnapshot":
        return cls(
            roles={r.name: r for r in roles},
            users={u.name: u for u in users},
            source=source,
        )

    def get_role(self, name: str) -> Optional[Role]:
        return self.roles.get(name)

    def get_user(self, name: str) -> Optional[User]:
        return self.users.get(name)

    def list_roles(self) -> List[Role]:
        return [self.roles[name] for name in sorted(self.roles)]

    def list_users(self) -> List[User]:
        return [self.users[name] for name in sorted(self.users)]


def builtin_snapshot() -> ReferenceSnapshot:
    """Snapshot of the built-in roles and users."""
    return ReferenceSnapshot.from_models(BUILT_IN_ROLES, BUILT_IN_USERS, source="builtin")


# =============================================================================
# Loaders
# =============================================================================

def _parse_role(name: str, spec: Any) -> Role:
    spec = spec or {}
    if not isinstance(spec, dict):
        raise ValidationError("role", [{"loc": f"roles.{name}", "msg": "must be a mapping"}])

    permissions = set()
    for i, entry in enumerate(spec.get("permissions") or []):
        loc = f"roles.{name}.permissions.{i}"
        if not isinstance(entry, dict) or "resource" not in entry:
            raise ValidationError("role", [{"loc": loc, "msg": "expected {resource, actions}"}])
        actions = entry.get("actions")
        if actions is None and "action" in entry:
            actions = [entry["action"]]
        try:
            for action in actions or []:
                permissions.add(Permission(resource=entry["resource"], action=Action(action)))
        except (ValueError, PydanticValidationError) as e:
            raise ValidationError("role", [{"loc": loc, "msg": str(e)}]) from e

    try:
        return Role(
            name=name,
            description=spec.get("description", ""),
            permissions=frozenset(permissions),
        )
    except PydanticValidationError as e:
        raise ValidationError("role", [{"loc": f"roles.{name}", "msg": str(e)}]) from e


def _parse_user(name: str, spec: Any) -> User:
    if not isinstance(spec, dict):
        raise ValidationError("user", [{"loc": f"users.{name}", "msg": "must be a mapping"}])
    roles = spec.get("roles") or []
    if isinstance(roles, str):
        roles = [roles]
    try:
        return User(name=name, roles=tuple(roles), namespace=spec.get("namespace"))
    except PydanticValidationError as e:
        errors = [
            {"loc": f"users.{name}." + ".".join(str(p) for p in err["loc"]), "msg": err["msg"]}
            for err in e.errors()
        ]
        raise ValidationError("user", errors) from e


def snapshot_from_dict(data: Mapping[str, Any], source: str = "memory") -> ReferenceSnapshot:
    """
    Build a snapshot from a loaded ``{roles: ..., users: ...}`` document.

    Raises:
        ValidationError: If any role or user entry is malformed.
    """
    if not isinstance(data, Mapping):
        raise ValidationError("reference data", [{"loc": "<root>", "msg": "must be a mapping"}])

    sections = {}
    for section in ("roles", "users"):
        value = data.get(section) or {}
        if not isinstance(value, Mapping):
            raise ValidationError(
                "reference data", [{"loc": section, "msg": "must be a mapping"}]
            )
        sections[section] = value

    roles = [_parse_role(name, spec) for name, spec in sections["roles"].items()]
    users = [_parse_user(name, spec) for name, spec in sections["users"].items()]

    snapshot = ReferenceSnapshot.from_models(roles, users, source=source)

    for user in snapshot.users.values():
        for role_name in user.roles:
            if role_name not in snapshot.roles:
                logger.warning(f"User {user.name} references unknown role {role_name}")

    return snapshot


def load_snapshot(path: Union[str, Path]) -> ReferenceSnapshot:
    """
    Load a snapshot from a YAML or JSON file.

    Raises:
        ReferenceDataUnavailableError: If the file is missing or unreadable.
        ValidationError: If its content is malformed.
    """
    path = Path(path)
    if not path.exists():
        raise ReferenceDataUnavailableError(f"Reference data file not found: {path}")

    try:
        with open(path, encoding="utf-8") as f:
            if path.suffix == ".json":
                data = json.load(f)
            else:
                data = yaml.safe_load(f)
    except (OSError, UnicodeDecodeError, yaml.YAMLError, json.JSONDecodeError) as e:
        raise ReferenceDataUnavailableError(f"Cannot read reference data from {path}: {e}") from e

    snapshot = snapshot_from_dict(data or {}, source=str(path))
    logger.debug(
        f"Loaded reference data from {path}: "
        f"{len(snapshot.roles)} roles, {len(snapshot.users)} users"
    )
    return snapshot


def dump_snapshot(snapshot: ReferenceSnapshot) -> Dict[str, Any]:
    """Inverse of ``snapshot_from_dict``: group permissions per resource kind."""
    roles: Dict[str, Any] = {}
    for role in snapshot.list_roles():
        by_resource: Dict[str, List[str]] = {}
        for perm in sorted(role.permissions, key=lambda p: (p.resource, p.action.value)):
            by_resource.setdefault(perm.resource, []).append(perm.action.value)
        roles[role.name] = {
            "description": role.description,
            "permissions": [
                {"resource": resource, "actions": actions}
                for resource, actions in by_resource.items()
            ],
        }

    users = {
        user.name: {"roles": list(user.roles), "namespace": user.namespace}
        for user in snapshot.list_users()
    }
    return {"roles": roles, "users": users}


# =============================================================================
# Snapshot Store
# =============================================================================

class SnapshotStore:
    """
    Publishes reference snapshots by atomic reference swap.

    Readers call ``current()`` once per evaluation and keep that snapshot
    for the whole call.  Writers build a complete snapshot first, then
    ``publish()`` it.
    """

    def __init__(self, snapshot: Optional[ReferenceSnapshot] = None):
        self._lock = threading.Lock()
        self._snapshot = snapshot
        self._version = 0 if snapshot is None else 1

    @property
    def version(self) -> int:
        """Number of snapshots published so far."""
        return self._version

    @property
    def loaded(self) -> bool:
        return self._snapshot is not None

    def current(self) -> ReferenceSnapshot:
        """
        Return the live snapshot.

        Raises:
            ReferenceDataUnavailableError: If nothing has been published.
        """
        snapshot = self._snapshot
        if snapshot is None:
            raise ReferenceDataUnavailableError("No reference data has been loaded")
        return snapshot

    def publish(self, snapshot: ReferenceSnapshot) -> int:
        """Swap in a new snapshot. Returns the new version."""
        with self._lock:
            self._snapshot = snapshot
            self._version += 1
            version = self._version
        logger.info(
            f"Published reference data v{version} from {snapshot.source}: "
            f"{len(snapshot.roles)} roles, {len(snapshot.users)} users"
        )
        return version

    def reload_from(self, path: Union[str, Path]) -> int:
        """Load ``path`` and publish it. The live snapshot is kept on failure."""
        snapshot = load_snapshot(path)
        return self.publish(snapshot)


# =============================================================================
# Store Factory
# =============================================================================

_default_store: Optional[SnapshotStore] = None
_default_store_lock = threading.Lock()


def get_snapshot_store() -> SnapshotStore:
    """
    Get the default snapshot store.

    Loads ``reference_data_path`` from config when set, otherwise the
    built-in reference data unless that is disabled.
    """
    global _default_store

    with _default_store_lock:
        if _default_store is None:
            from tenantguard.config import get_config

            config = get_config()
            store = SnapshotStore()
            if config.reference_data_path:
                store.reload_from(config.reference_data_path)
            elif config.use_builtin_reference_data:
                store.publish(builtin_snapshot())
            _default_store = store

    return _default_store


def set_snapshot_store(store: SnapshotStore) -> None:
    """Set the default snapshot store (for testing)."""
    global _default_store
    _default_store = store


def reset_snapshot_store() -> None:
    """Reset the default store (for testing)."""
    global _default_store
    _default_store = None

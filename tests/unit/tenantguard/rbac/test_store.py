"""Tests for reference data snapshots, loaders and the snapshot store."""

import json
import threading

import pytest
import yaml

from tenantguard.config import get_config
from tenantguard.errors import ReferenceDataUnavailableError, ValidationError
from tenantguard.rbac.models import Action, Permission, Role, User
from tenantguard.rbac.resolver import PermissionResolver
from tenantguard.rbac.store import (
    ReferenceSnapshot,
    SnapshotStore,
    builtin_snapshot,
    dump_snapshot,
    get_snapshot_store,
    load_snapshot,
    set_snapshot_store,
    snapshot_from_dict,
)


# ---------------------------------------------------------------------------
# ReferenceSnapshot
# ---------------------------------------------------------------------------


class TestReferenceSnapshot:
    def test_mappings_are_read_only(self, snapshot):
        with pytest.raises(TypeError):
            snapshot.roles["intruder"] = Role(name="intruder")
        with pytest.raises(TypeError):
            snapshot.users["mallory"] = User(name="mallory", roles=("admin",))

    def test_copies_input_mappings(self):
        roles = {"viewer": Role(name="viewer")}
        snapshot = ReferenceSnapshot(roles=roles, users={})
        roles["admin"] = Role(name="admin")
        assert "admin" not in snapshot.roles

    def test_list_sorted_by_name(self, snapshot):
        assert [u.name for u in snapshot.list_users()] == ["alice", "bob", "charlie", "diana", "eve"]

    def test_builtin_source(self):
        assert builtin_snapshot().source == "builtin"


# ---------------------------------------------------------------------------
# Loaders
# ---------------------------------------------------------------------------


class TestSnapshotFromDict:
    def test_parses_roles_and_users(self, reference_document):
        snapshot = snapshot_from_dict(reference_document)
        editor = snapshot.get_role("editor")
        assert Permission(resource="deployments", action=Action.UPDATE) in editor.permissions
        assert len(editor.permissions) == 6
        assert snapshot.get_user("bob").namespace == "production"
        assert snapshot.get_role("viewer").description == ""

    def test_single_action_shorthand(self):
        snapshot = snapshot_from_dict({
            "roles": {"r": {"permissions": [{"resource": "pods", "action": "read"}]}},
        })
        assert snapshot.get_role("r").permissions == frozenset(
            {Permission(resource="pods", action=Action.READ)}
        )

    def test_unknown_action_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            snapshot_from_dict({
                "roles": {"r": {"permissions": [{"resource": "pods", "actions": ["patch"]}]}},
            })
        assert exc_info.value.errors[0]["loc"] == "roles.r.permissions.0"

    def test_permission_without_resource_rejected(self):
        with pytest.raises(ValidationError):
            snapshot_from_dict({"roles": {"r": {"permissions": [{"actions": ["read"]}]}}})

    def test_user_without_roles_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            snapshot_from_dict({"users": {"nobody": {"roles": [], "namespace": "x"}}})
        assert exc_info.value.errors[0]["loc"].startswith("users.nobody")

    def test_roles_section_must_be_mapping(self):
        with pytest.raises(ValidationError) as exc_info:
            snapshot_from_dict({"roles": ["admin"], "users": {}})
        assert exc_info.value.errors[0]["loc"] == "roles"

    def test_users_section_must_be_mapping(self):
        with pytest.raises(ValidationError) as exc_info:
            snapshot_from_dict({"roles": {}, "users": ["bob"]})
        assert exc_info.value.errors[0]["loc"] == "users"

    def test_dangling_role_reference_warns(self, caplog):
        snapshot_from_dict({"users": {"bob": {"roles": ["ghost-role"], "namespace": "x"}}})
        assert "unknown role ghost-role" in caplog.text

    def test_dump_round_trip(self, snapshot):
        reloaded = snapshot_from_dict(dump_snapshot(snapshot))
        assert reloaded.roles == snapshot.roles
        assert reloaded.users == snapshot.users


class TestLoadSnapshot:
    def test_yaml_file(self, tmp_path, reference_document):
        path = tmp_path / "reference.yaml"
        path.write_text(yaml.dump(reference_document))
        snapshot = load_snapshot(path)
        assert set(snapshot.users) == {"alice", "bob", "diana"}
        assert snapshot.source == str(path)

    def test_json_file(self, tmp_path, reference_document):
        path = tmp_path / "reference.json"
        path.write_text(json.dumps(reference_document))
        assert set(load_snapshot(path).roles) == {"admin", "editor", "viewer"}

    def test_missing_file(self, tmp_path):
        with pytest.raises(ReferenceDataUnavailableError):
            load_snapshot(tmp_path / "missing.yaml")

    def test_unparseable_file(self, tmp_path):
        path = tmp_path / "broken.yaml"
        path.write_text("roles: [unclosed\n")
        with pytest.raises(ReferenceDataUnavailableError):
            load_snapshot(path)

    def test_undecodable_file(self, tmp_path):
        path = tmp_path / "latin1.yaml"
        path.write_bytes(b"users:\n  b\xffb: {roles: [viewer]}\n")
        with pytest.raises(ReferenceDataUnavailableError):
            load_snapshot(path)

    def test_empty_file(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        snapshot = load_snapshot(path)
        assert snapshot.roles == {}
        assert snapshot.users == {}


# ---------------------------------------------------------------------------
# SnapshotStore
# ---------------------------------------------------------------------------


class TestSnapshotStore:
    def test_empty_store_unavailable(self):
        store = SnapshotStore()
        assert store.loaded is False
        with pytest.raises(ReferenceDataUnavailableError):
            store.current()

    def test_publish_swaps_and_versions(self, snapshot):
        store = SnapshotStore()
        assert store.publish(snapshot) == 1
        replacement = ReferenceSnapshot.from_models([], [])
        assert store.publish(replacement) == 2
        assert store.current() is replacement
        assert store.version == 2

    def test_in_flight_evaluation_keeps_its_snapshot(self, snapshot):
        """A reader holding the old snapshot is unaffected by a swap."""
        store = SnapshotStore(snapshot)
        held = store.current()
        store.publish(ReferenceSnapshot.from_models([], []))
        assert PermissionResolver(held).resolve("bob").exists is True
        assert PermissionResolver(store.current()).resolve("bob").exists is False

    def test_failed_reload_keeps_live_snapshot(self, tmp_path, snapshot):
        store = SnapshotStore(snapshot)
        with pytest.raises(ReferenceDataUnavailableError):
            store.reload_from(tmp_path / "missing.yaml")
        assert store.current() is snapshot
        assert store.version == 1

    def test_concurrent_readers_see_whole_snapshots(self):
        """Readers never observe a user from one snapshot with roles from another."""
        old = ReferenceSnapshot.from_models(
            [Role(name="r", permissions=frozenset({Permission(resource="pods", action="read")}))],
            [User(name="u", roles=("r",), namespace="old")],
        )
        new = ReferenceSnapshot.from_models(
            [Role(name="r", permissions=frozenset({Permission(resource="pods", action="delete")}))],
            [User(name="u", roles=("r",), namespace="new")],
        )
        store = SnapshotStore(old)
        mixed = []
        stop = threading.Event()

        def reader():
            while not stop.is_set():
                resolved = PermissionResolver(store.current()).resolve("u")
                actions = {p.action for p in resolved.permissions}
                if (resolved.home_namespace == "old") != (actions == {Action.READ}):
                    mixed.append(resolved)

        threads = [threading.Thread(target=reader) for _ in range(4)]
        for t in threads:
            t.start()
        for i in range(200):
            store.publish(new if i % 2 == 0 else old)
        stop.set()
        for t in threads:
            t.join()

        assert mixed == []


class TestDefaultStore:
    def test_builtin_by_default(self):
        store = get_snapshot_store()
        assert store.current().source == "builtin"
        assert get_snapshot_store() is store

    def test_configured_path(self, tmp_path, reference_document):
        path = tmp_path / "reference.yaml"
        path.write_text(yaml.dump(reference_document))
        get_config(reference_data_path=str(path))
        assert get_snapshot_store().current().source == str(path)

    def test_builtin_disabled(self):
        get_config(use_builtin_reference_data=False)
        with pytest.raises(ReferenceDataUnavailableError):
            get_snapshot_store().current()

    def test_set_store(self, store):
        set_snapshot_store(store)
        assert get_snapshot_store() is store

    def test_concurrent_first_callers_share_one_store(self):
        barrier = threading.Barrier(8)
        stores = []

        def first_call():
            barrier.wait()
            stores.append(get_snapshot_store())

        threads = [threading.Thread(target=first_call) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len({id(s) for s in stores}) == 1
        assert stores[0].version == 1

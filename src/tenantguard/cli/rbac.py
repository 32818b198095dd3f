"""TenantGuard CLI - RBAC access checks and reference data inspection."""

import json
import sys
from typing import Optional

import click

from tenantguard.config import TenantGuardConfig
from tenantguard.errors import ReferenceDataUnavailableError, ValidationError
from tenantguard.logger import decision_stream
from tenantguard.rbac.models import Action
from tenantguard.rbac.store import SnapshotStore, get_snapshot_store, load_snapshot
from tenantguard.service import GuardService


def _open_store(reference: Optional[str]) -> SnapshotStore:
    """Load ``reference`` if given, else the configured default store."""
    try:
        if reference:
            return SnapshotStore(load_snapshot(reference))
        store = get_snapshot_store()
        store.current()
        return store
    except (ReferenceDataUnavailableError, ValidationError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


reference_option = click.option(
    "--reference",
    "-f",
    type=click.Path(exists=True, dir_okay=False),
    help="Reference data file (roles and users); defaults to the configured store",
)


@click.group()
def rbac():
    """Role-based access control commands."""
    pass


@rbac.command("check")
@click.option("--user", "-u", required=True, help="User name")
@click.option("--resource", "-r", required=True, help="Resource kind (e.g. pods)")
@click.option(
    "--action",
    "-a",
    required=True,
    type=click.Choice([a.value for a in Action]),
    help="Action to perform",
)
@click.option("--namespace", "-n", required=True, help="Target namespace")
@reference_option
@click.option("--json", "as_json", is_flag=True, help="Print the verdict as JSON")
@click.option("--fail-on-deny", is_flag=True, help="Exit with error if access is denied")
@click.option("--audit", is_flag=True, help="Also write the decision to the audit log")
def rbac_check_cmd(
    user: str,
    resource: str,
    action: str,
    namespace: str,
    reference: Optional[str],
    as_json: bool,
    fail_on_deny: bool,
    audit: bool,
):
    """Check whether USER may perform ACTION on RESOURCE in NAMESPACE.

    Example:
        tenantguard rbac check -u bob -r pods -a read -n staging
    """
    store = _open_store(reference)
    service = GuardService(store=store, config=TenantGuardConfig(audit_to_log=audit))

    try:
        # Keep stdout for the JSON verdict alone
        with decision_stream(sys.stderr if as_json else sys.stdout):
            verdict = service.authorize(
                {"user": user, "resource": resource, "action": action, "namespace": namespace}
            )
    except ValidationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(verdict.to_dict(), indent=2))
    elif verdict.allowed:
        click.echo(f"ALLOWED: {user} may {action} {resource} in {namespace}")
    else:
        click.echo(f"DENIED: {verdict.reasons[0]}")

    if fail_on_deny and not verdict.allowed:
        sys.exit(1)


@rbac.command("whois")
@click.argument("user")
@reference_option
def rbac_whois_cmd(user: str, reference: Optional[str]):
    """Show the roles, namespace scope and permissions USER resolves to."""
    store = _open_store(reference)
    resolved = GuardService(store=store, audit_sinks=[]).resolve(user)

    if not resolved.exists:
        click.echo(f"User '{user}' not found", err=True)
        sys.exit(1)

    click.echo(f"User:      {resolved.name}")
    click.echo(f"Roles:     {', '.join(resolved.role_names) or '(none)'}")
    if resolved.is_admin:
        click.echo("Namespace: * (admin)")
    else:
        click.echo(f"Namespace: {resolved.home_namespace or '(none)'}")
    click.echo("Permissions:")
    for perm in sorted(resolved.permissions, key=lambda p: (p.resource, p.action.value)):
        click.echo(f"  {perm}")


@rbac.command("list-roles")
@reference_option
def rbac_list_roles_cmd(reference: Optional[str]):
    """List roles and their permissions."""
    snapshot = _open_store(reference).current()

    for role in snapshot.list_roles():
        click.echo(f"{role.name}: {role.description}")
        for perm in sorted(role.permissions, key=lambda p: (p.resource, p.action.value)):
            click.echo(f"  {perm}")


@rbac.command("list-users")
@reference_option
def rbac_list_users_cmd(reference: Optional[str]):
    """List users with their roles and namespace."""
    snapshot = _open_store(reference).current()

    for user in snapshot.list_users():
        click.echo(f"{user.name}\troles={','.join(user.roles)}\tnamespace={user.namespace or '-'}")

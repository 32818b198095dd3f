"""TenantGuard CLI - Security admission checks for pod specifications."""

import json
import sys
from pathlib import Path

import click
import yaml

from tenantguard.config import TenantGuardConfig
from tenantguard.errors import ValidationError
from tenantguard.logger import decision_stream
from tenantguard.service import GuardService


def _load_document(path: str) -> dict:
    """Read a pod document from a YAML or JSON file."""
    with open(path, encoding="utf-8") as f:
        if Path(path).suffix == ".json":
            return json.load(f)
        return yaml.safe_load(f)


@click.group()
def admission():
    """Security admission commands."""
    pass


@admission.command("check")
@click.argument("path", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Print the report as JSON")
@click.option("--fail-on-violation", is_flag=True, help="Exit with error if the pod fails admission")
@click.option("--audit", is_flag=True, help="Also write the report to the audit log")
def admission_check_cmd(path: str, as_json: bool, fail_on_violation: bool, audit: bool):
    """Check the pod in PATH against the platform security constraints.

    Accepts a Pod manifest or a flat pod spec, as YAML or JSON. Reports:
    - Privileged containers
    - Host network / PID / IPC access
    - Containers running as root (runAsUser: 0)
    - Images outside the approved registries

    Example:
        tenantguard admission check ./pod.yaml --fail-on-violation
    """
    try:
        document = _load_document(path)
    except (OSError, UnicodeDecodeError, yaml.YAMLError, json.JSONDecodeError) as e:
        click.echo(f"Error: cannot read {path}: {e}", err=True)
        sys.exit(1)

    service = GuardService(audit_sinks=[], config=TenantGuardConfig(audit_to_log=audit))

    try:
        with decision_stream(sys.stderr if as_json else sys.stdout):
            report = service.admit(document or {})
    except ValidationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(report.to_dict(), indent=2))
    else:
        status = "PASS" if report.passed else "FAIL"
        click.echo(f"{status}: pod {report.namespace}/{report.pod_name}")
        for kind, entities in report.to_dict()["details"].items():
            click.echo(f"  {kind}:")
            for entity in entities:
                click.echo(f"    - {entity}")

    if fail_on_violation and not report.passed:
        sys.exit(1)

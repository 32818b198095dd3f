"""
TenantGuard CLI - Evaluate access requests and admit pod specifications.

Commands:
    tenantguard rbac        Check access, inspect users and roles
    tenantguard admission   Check pod specifications against security constraints
"""

import logging

import click

from tenantguard.config import get_log_level

# Import command groups
from .admission import admission
from .rbac import rbac


@click.group()
@click.version_option(package_name="tenantguard")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """TenantGuard - Authorization and security admission."""
    level = "debug" if verbose else get_log_level()
    logging.basicConfig(level=level.upper(), format="%(levelname)s %(name)s: %(message)s")


# Register command groups
main.add_command(rbac)
main.add_command(admission)


if __name__ == "__main__":
    main()

"""
Script to seed default role templates in the database.
"""
import asyncio
import sys
from typing import Dict, List, Tuple

import click

from opsdesk.core.permissions import validate_permissions
from opsdesk.database import async_session_factory
from opsdesk.repositories.role_repository import RoleRepository


# name -> (description, permissions)
DEFAULT_ROLES: Dict[str, Tuple[str, List[str]]] = {
    "SUPERVISOR": (
        "Field supervisor: dashboard and job management",
        ["view_dashboard", "manage_jobs"],
    ),
    "TECHNICIAN": (
        "Field technician: self-service portal only",
        ["access_portal", "view_my_tasks", "view_attendance"],
    ),
    "HR_MANAGER": (
        "HR: employee records and leave approval",
        ["view_employees", "edit_employee", "approve_leave", "view_salary"],
    ),
    "FINANCE": (
        "Finance: financial figures and analytics",
        ["view_dashboard", "view_analytics", "view_finance", "view_salary"],
    ),
    "SALES": (
        "Sales: quotation lifecycle without approval",
        ["view_dashboard", "create_quote", "view_quote", "edit_quote"],
    ),
}


def build_default_roles() -> Dict[str, Tuple[str, List[str]]]:
    """
    Return the default roles with their permission lists checked against the catalog.

    Raises:
        ValidationError: If a default role names an unknown permission
    """
    return {
        name: (description, validate_permissions(permissions, field=f"{name}.permissions"))
        for name, (description, permissions) in DEFAULT_ROLES.items()
    }


async def seed_roles(force: bool = False, session_factory=async_session_factory) -> Dict[str, int]:
    """
    Seed roles in the database.

    Args:
        force: If True, reset description and permissions of existing roles
        session_factory: Session factory to use

    Returns:
        Counts of created and updated roles
    """
    roles = build_default_roles()
    created_count = 0
    updated_count = 0

    async with session_factory() as session:
        role_repo = RoleRepository(session)

        for role_name, (description, permissions) in roles.items():
            existing_role = await role_repo.get_by_name(role_name)

            if existing_role:
                if force:
                    await role_repo.update(
                        existing_role.id,
                        description=description,
                        permissions=permissions
                    )
                    updated_count += 1
                    click.echo(f"✓ Updated role: {role_name}")
                else:
                    click.echo(f"→ Role already exists: {role_name}")
            else:
                await role_repo.create(
                    name=role_name,
                    description=description,
                    permissions=permissions
                )
                created_count += 1
                click.echo(f"✓ Created role: {role_name}")

        await session.commit()

    return {"created": created_count, "updated": updated_count}


@click.command()
@click.option(
    "--force",
    is_flag=True,
    help="Reset existing roles to their default permissions"
)
def main(force: bool):
    """Seed default role templates in the database."""
    click.echo("Seeding roles...")
    try:
        counts = asyncio.run(seed_roles(force))
    except Exception as e:
        click.echo(f"✗ Error seeding roles: {e}", err=True)
        sys.exit(1)

    click.echo("\nSummary:")
    click.echo(f"  Created: {counts['created']}")
    click.echo(f"  Updated: {counts['updated']}")
    click.echo(f"  Total: {len(DEFAULT_ROLES)}")
    click.echo("\n✓ Roles seeded successfully!")


if __name__ == "__main__":
    main()

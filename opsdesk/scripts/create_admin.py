"""
Script to create or reset the bootstrap ADMIN user.

The ADMIN user is linked to an Employee like every other user, so one is
created for it when the given email has none.
"""
import asyncio
import re
import sys
from typing import Tuple

import click
from sqlalchemy import func, select

from opsdesk.core.access import ADMIN_ROLE_LABEL
from opsdesk.core.config import settings
from opsdesk.core.permissions import ALL_ACCESS
from opsdesk.core.security import hash_password
from opsdesk.database import async_session_factory
from opsdesk.models import Employee, User
from opsdesk.repositories.employee_repository import EmployeeRepository
from opsdesk.repositories.user_repository import UserRepository


def validate_password(password: str) -> Tuple[bool, str]:
    """
    Validate password strength.

    Args:
        password: Password to validate

    Returns:
        Tuple of (is_valid, error_message)
    """
    if len(password) < settings.password_min_length:
        return False, f"Password must be at least {settings.password_min_length} characters long"

    if not re.search(r"[A-Z]", password):
        return False, "Password must contain at least one uppercase letter"

    if not re.search(r"[a-z]", password):
        return False, "Password must contain at least one lowercase letter"

    if not re.search(r"\d", password):
        return False, "Password must contain at least one digit"

    return True, ""


async def create_admin_user(
    email: str,
    password: str,
    username: str = "Admin",
    employee_name: str = "Administrator",
    force: bool = False,
    session_factory=async_session_factory
) -> User:
    """
    Create the ADMIN user, or reset it when ``force`` is set.

    Args:
        email: Login email
        password: Plain text password
        username: Username
        employee_name: Display name of the linked employee record
        force: If True, reset password, role and permissions of an existing user
        session_factory: Session factory to use

    Returns:
        The created or updated user

    Raises:
        click.ClickException: If the user exists and ``force`` is not set
    """
    async with session_factory() as session:
        user_repo = UserRepository(session)
        employee_repo = EmployeeRepository(session)

        existing_user = await user_repo.get_by_email(email)
        if existing_user:
            if not force:
                raise click.ClickException(
                    f"User '{email}' already exists. Use --force to reset it."
                )
            user = await user_repo.update_if_version(
                existing_user.id,
                None,
                hashed_password=hash_password(password),
                role_label=ADMIN_ROLE_LABEL,
                role_id=None,
                permissions=[ALL_ACCESS],
                is_active=True,
            )
            click.echo(f"✓ Reset admin user: {email}")
        else:
            result = await session.execute(
                select(Employee).where(func.lower(Employee.email) == email.lower())
            )
            employee = result.scalars().first()
            if employee is None:
                employee = await employee_repo.create(
                    name=employee_name,
                    email=email,
                    position="Administrator"
                )
                click.echo(f"✓ Created employee record #{employee.id}")

            user = await user_repo.create(
                username=username,
                email=email,
                hashed_password=hash_password(password),
                role_label=ADMIN_ROLE_LABEL,
                role_id=None,
                permissions=[ALL_ACCESS],
                employee_id=employee.id,
                is_active=True,
                version=1
            )
            click.echo(f"✓ Created admin user: {email}")

        await session.commit()
        return user


@click.command()
@click.option(
    "--email",
    prompt=True,
    help="Admin email address"
)
@click.option(
    "--password",
    prompt=True,
    hide_input=True,
    confirmation_prompt=True,
    help="Admin password"
)
@click.option(
    "--username",
    default="Admin",
    show_default=True,
    help="Admin username"
)
@click.option(
    "--employee-name",
    default="Administrator",
    show_default=True,
    help="Name for the linked employee record"
)
@click.option(
    "--force",
    is_flag=True,
    help="Reset the user if it exists"
)
def main(email: str, password: str, username: str, employee_name: str, force: bool):
    """Create or reset the ADMIN user."""
    is_valid, error_msg = validate_password(password)
    if not is_valid:
        click.echo(f"✗ {error_msg}", err=True)
        sys.exit(1)

    click.echo("Creating admin user...")
    user = asyncio.run(create_admin_user(email, password, username, employee_name, force))

    click.echo("\nUser Details:")
    click.echo(f"  Username: {user.username}")
    click.echo(f"  Email: {user.email}")
    click.echo(f"  Role: {user.role_label}")
    click.echo(f"  Permissions: {', '.join(user.permissions)}")


if __name__ == "__main__":
    main()

"""CLI commands for user accounts."""

from __future__ import annotations

import click

from vbs.application.add_user import AddUserHandler
from vbs.domain.exceptions import DomainException
from vbs.domain.model.value_objects import UserRole
from vbs.infrastructure.bootstrap import booking_store


@click.command("add")
@click.option("--id", "user_id", required=True, help="User ID.")
@click.option("--email", required=True, help="Contact email.")
@click.option("--name", default=None, help="Display name.")
@click.option("--admin", is_flag=True, default=False, help="Grant admin access.")
def user_add(user_id: str, email: str, name: str | None, admin: bool) -> None:
    """Register a user, or update an existing one."""
    handler = AddUserHandler(store=booking_store())

    try:
        user = handler.handle(
            user_id, email, name=name, role=UserRole.ADMIN if admin else UserRole.CUSTOMER
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"User {user.id} saved  (role={user.role.value})")

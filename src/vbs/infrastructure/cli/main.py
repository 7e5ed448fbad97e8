import click

from vbs.domain.exceptions import DomainException
from vbs.infrastructure.bootstrap import engine, settings
from vbs.infrastructure.cli.availability_commands import availability_set, availability_show
from vbs.infrastructure.cli.booking_commands import (
    booking_cancel,
    booking_confirm,
    booking_create,
    booking_list,
    booking_refund,
    booking_show,
)
from vbs.infrastructure.cli.email_commands import email_list
from vbs.infrastructure.cli.user_commands import user_add
from vbs.infrastructure.logging_config import configure_logging
from vbs.infrastructure.persistence.database import init_db


@click.group()
@click.option(
    "--log-level",
    envvar="VBS_LOG_LEVEL",
    default="INFO",
    show_default=True,
    help="Logging level (DEBUG, INFO, WARNING, ERROR).",
)
def cli(log_level: str) -> None:
    """VBS: Venue Booking System"""
    try:
        # Fails fast on a bad environment before any command runs.
        settings()
        configure_logging(log_level)
    except DomainException as exc:
        raise click.ClickException(str(exc))


@cli.group()
def db() -> None:
    """Manage the database."""


@db.command("init")
def db_init() -> None:
    """Create all tables."""
    try:
        init_db(engine())
    except DomainException as exc:
        raise click.ClickException(str(exc))
    click.echo("Database initialised.")


@cli.group()
def booking() -> None:
    """Manage bookings."""


@cli.group()
def availability() -> None:
    """Manage per-date availability."""


@cli.group()
def email() -> None:
    """Inspect the email queue."""


@cli.group()
def user() -> None:
    """Manage user accounts."""


# Register subcommands
booking.add_command(booking_cancel)
booking.add_command(booking_confirm)
booking.add_command(booking_create)
booking.add_command(booking_list)
booking.add_command(booking_refund)
booking.add_command(booking_show)
availability.add_command(availability_set)
availability.add_command(availability_show)
email.add_command(email_list)
user.add_command(user_add)

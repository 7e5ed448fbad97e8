"""CLI commands for the email queue."""

from __future__ import annotations

import click

from vbs.application.list_email_queue import ListEmailQueueHandler
from vbs.domain.exceptions import DomainException
from vbs.domain.model.email import EmailStatus
from vbs.infrastructure.bootstrap import booking_store


@click.command("list")
@click.option(
    "--status",
    default=None,
    type=click.Choice([s.value for s in EmailStatus], case_sensitive=False),
    help="Only entries with this status.",
)
def email_list(status: str | None) -> None:
    """List queued notifications."""
    handler = ListEmailQueueHandler(store=booking_store())

    try:
        lines = handler.handle(EmailStatus(status.upper()) if status else None)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not lines:
        click.echo("Email queue is empty.")
        return

    click.echo(f"{'Scheduled for':<27} {'Type':<22} {'Status':<8} {'Ref':<12} Recipient")
    click.echo("-" * 96)
    for line in lines:
        click.echo(
            f"{line.scheduled_for:<27} {line.email_type:<22} {line.status:<8} "
            f"{line.booking_reference or '-':<12} {line.recipient}"
        )

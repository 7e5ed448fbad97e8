"""CLI commands for per-date availability (capacity planning)."""

from __future__ import annotations

from datetime import datetime

import click

from vbs.application.set_availability import SetAvailabilityHandler
from vbs.application.show_availability import ShowAvailabilityHandler
from vbs.domain.exceptions import DomainException
from vbs.domain.model.value_objects import ItemKey, ItemType
from vbs.infrastructure.bootstrap import booking_store

_ITEM_TYPES = click.Choice([t.value for t in ItemType], case_sensitive=False)


@click.command("set")
@click.option("--type", "item_type", required=True, type=_ITEM_TYPES, help="PACKAGE or EXTRA.")
@click.option("--item-id", required=True, help="Package or extra id.")
@click.option("--date", "day", required=True, type=click.DateTime(["%Y-%m-%d"]), help="Service date.")
@click.option("--total", required=True, type=int, help="Total units for the date.")
def availability_set(item_type: str, item_id: str, day: datetime, total: int) -> None:
    """Set the capacity of an item on a date."""
    handler = SetAvailabilityHandler(store=booking_store())

    try:
        entry = handler.handle(ItemKey(ItemType(item_type.upper()), item_id), day.date(), total)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Availability for {entry.item_key} on {entry.day.isoformat()} set to "
        f"{entry.total_quantity} ({entry.available_quantity} available)"
    )


@click.command("show")
@click.option("--date", "day", default=None, type=click.DateTime(["%Y-%m-%d"]), help="Only this date.")
def availability_show(day: datetime | None) -> None:
    """Show availability by date."""
    handler = ShowAvailabilityHandler(store=booking_store())

    try:
        lines = handler.handle(day.date() if day else None)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not lines:
        click.echo("No availability records found.")
        return

    click.echo(f"{'Date':<12} {'Type':<8} {'Item':<20} {'Total':>8} {'Reserved':>10} {'Available':>10}")
    click.echo("-" * 72)
    for line in lines:
        click.echo(
            f"{line.day:<12} {line.item_type:<8} {line.item_id:<20} "
            f"{line.total:>8} {line.reserved:>10} {line.available:>10}"
        )

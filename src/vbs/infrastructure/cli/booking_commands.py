"""CLI commands for the Booking aggregate."""

from __future__ import annotations

import click

from vbs.application.cancel_booking import CancelBookingHandler
from vbs.application.confirm_booking import ConfirmBookingHandler
from vbs.application.create_booking import CreateBookingHandler
from vbs.application.dto import BookingDTO
from vbs.application.list_bookings import ListBookingsHandler
from vbs.application.refund_booking import RefundBookingHandler
from vbs.application.requests import (
    ConfirmBookingRequest,
    CreateBookingRequest,
    ListBookingsRequest,
    RefundBookingRequest,
    parse_request,
)
from vbs.application.show_booking import ShowBookingHandler
from vbs.domain.exceptions import AlreadyConfirmedError, DomainException
from vbs.infrastructure.bootstrap import (
    booking_store,
    payment_gateway,
    reference_generator,
    settings,
)
from vbs.infrastructure.identity import AccountIdentityProvider


def _parse_item(raw: str) -> dict:
    """Parse 'PACKAGE:pkg-1:2:150.00[:Name]' into an item payload."""
    parts = raw.split(":", 4)
    if len(parts) < 4:
        raise click.BadParameter(
            f"Invalid item format '{raw}'. Expected 'TYPE:ID:Qty:UnitPrice[:Name]'."
        )
    item_type, item_id, qty_str, price = parts[:4]
    try:
        qty = int(qty_str)
    except ValueError:
        raise click.BadParameter(f"Invalid quantity '{qty_str}' for item '{item_id}'.")
    return {
        "item_type": item_type.upper(),
        "item_id": item_id,
        "quantity": qty,
        "unit_price": price,
        "name": parts[4] if len(parts) == 5 else None,
    }


def _display_booking(dto: BookingDTO) -> None:
    """Shared formatting for displaying a booking."""
    click.echo(f"Booking {dto.id}  (status={dto.status})")
    click.echo(f"Reference: {dto.booking_reference or '-'}")
    click.echo(f"Date:      {dto.booking_date}")
    click.echo(f"Owner:     {dto.owner}")
    if dto.payment_reference:
        click.echo(f"Payment:   {dto.payment_reference}")
    click.echo()
    click.echo(f"  {'Type':<8} {'Item':<24} {'Qty':>5} {'Price':>14} {'Total':>14}")
    click.echo(f"  {'-'*69}")
    for item in dto.items:
        click.echo(
            f"  {item.item_type:<8} {item.name:<24} {item.quantity:>5} "
            f"{item.unit_price:>14} {item.total_price:>14}"
        )
    click.echo(f"  {'-'*69}")
    click.echo(f"  {'Total':<39} {dto.total_amount:>29}")
    click.echo(f"  {'Discount':<39} {dto.discount_amount:>29}")
    click.echo(f"  {'Amount due':<39} {dto.final_amount:>29}")
    if dto.refunded_amount:
        click.echo(f"  {'Refunded':<39} {dto.refunded_amount:>29}")


@click.command("create")
@click.option("--date", "booking_date", required=True, help="Booking date/time (ISO 8601).")
@click.option("--item", "items", required=True, multiple=True, help="Item as 'TYPE:ID:Qty:UnitPrice[:Name]'.")
@click.option("--user-id", default=None, help="Registered owner.")
@click.option("--guest-name", default=None, help="Guest owner name.")
@click.option("--guest-email", default=None, help="Guest owner email.")
@click.option("--discount", default="0", show_default=True, help="Discount already validated from a promo code.")
@click.option("--currency", default=None, help="Currency code (defaults to VBS_DEFAULT_CURRENCY).")
@click.option("--notes", default=None, help="Customer notes.")
def booking_create(
    booking_date: str,
    items: tuple[str, ...],
    user_id: str | None,
    guest_name: str | None,
    guest_email: str | None,
    discount: str,
    currency: str | None,
    notes: str | None,
) -> None:
    """Create a PENDING booking at checkout."""
    payload = {
        "booking_date": booking_date,
        "items": [_parse_item(raw) for raw in items],
        "user_id": user_id,
        "guest_name": guest_name,
        "guest_email": guest_email,
        "discount_amount": discount,
        "currency": (currency or settings().default_currency).upper(),
        "customer_notes": notes,
    }

    try:
        request = parse_request(CreateBookingRequest, payload)
        dto = CreateBookingHandler(store=booking_store()).handle(request)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Booking {dto.id} created  (status={dto.status})")
    click.echo(f"Amount due: {dto.final_amount}")


@click.command("show")
@click.option("--id", "booking_id", default=None, help="Booking ID.")
@click.option("--reference", default=None, help="Booking reference.")
@click.option("--user-id", default=None, help="Acting user (omit for guests).")
def booking_show(booking_id: str | None, reference: str | None, user_id: str | None) -> None:
    """Show details of an existing booking."""
    if not booking_id and not reference:
        raise click.ClickException("Give --id or --reference")

    store = booking_store()
    try:
        caller = AccountIdentityProvider(store, user_id).current_caller()
        dto = ShowBookingHandler(store=store).handle(
            booking_id=booking_id, booking_reference=reference, caller=caller
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    _display_booking(dto)


@click.command("confirm")
@click.option("--id", "booking_id", required=True, help="Booking ID to confirm.")
@click.option("--payment-ref", "payment_reference", required=True, help="Provider payment reference.")
@click.option("--user-id", default=None, help="Acting user (omit for guest bookings).")
def booking_confirm(booking_id: str, payment_reference: str, user_id: str | None) -> None:
    """Confirm a paid booking (reserves availability, queues emails)."""
    store = booking_store()
    cfg = settings()

    try:
        request = parse_request(
            ConfirmBookingRequest,
            {"booking_id": booking_id, "payment_reference": payment_reference},
        )
        caller = AccountIdentityProvider(store, user_id).current_caller()
        handler = ConfirmBookingHandler(
            store=store,
            gateway=payment_gateway(),
            reference_generator=reference_generator(),
            max_reference_attempts=cfg.reference_max_attempts,
            venue_name=cfg.venue_name,
            reminder_lead=cfg.reminder_lead,
        )
        result = handler.handle(request, caller)
    except AlreadyConfirmedError as exc:
        click.echo(f"Booking {booking_id} was already confirmed ({exc.booking_reference}).")
        return
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Booking {booking_id} confirmed as {result.booking.booking_reference} "
        f"(payment {result.payment_confirmation.reference})"
    )
    click.echo(f"Confirmation email queued for {result.notifications.confirmation_scheduled_for}")
    click.echo(f"Reminder email queued for     {result.notifications.reminder_scheduled_for}")


@click.command("cancel")
@click.option("--id", "booking_id", required=True, help="Booking ID to cancel.")
@click.option("--admin-id", required=True, help="Acting administrator.")
@click.option("--no-restock", is_flag=True, default=False, help="Keep availability reserved.")
def booking_cancel(booking_id: str, admin_id: str, no_restock: bool) -> None:
    """Cancel a booking (returns availability if it was confirmed)."""
    store = booking_store()

    try:
        caller = AccountIdentityProvider(store, admin_id).current_caller()
        CancelBookingHandler(store=store).handle(booking_id, caller, restock=not no_restock)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(f"Booking {booking_id} cancelled.")


@click.command("refund")
@click.option("--id", "booking_id", required=True, help="Booking ID to refund.")
@click.option("--admin-id", required=True, help="Acting administrator.")
@click.option("--reason", required=True, help="Reason recorded with the refund.")
@click.option("--amount", default=None, help="Amount for a partial refund.")
def booking_refund(booking_id: str, admin_id: str, reason: str, amount: str | None) -> None:
    """Refund a confirmed booking in full, or partially with --amount."""
    store = booking_store()
    payload = {"reason": reason, "type": "partial" if amount else "full", "amount": amount}

    try:
        request = parse_request(RefundBookingRequest, payload)
        caller = AccountIdentityProvider(store, admin_id).current_caller()
        result = RefundBookingHandler(store=store, gateway=payment_gateway()).handle(
            booking_id, request, caller
        )
    except DomainException as exc:
        raise click.ClickException(str(exc))

    click.echo(
        f"Refund {result.refund_reference} issued for booking {booking_id} "
        f"(status={result.booking.status})"
    )


@click.command("list")
@click.option("--admin-id", required=True, help="Acting administrator.")
@click.option("--search", default=None, help="Match reference, guest or account name/email.")
@click.option(
    "--status",
    type=click.Choice(["PENDING", "CONFIRMED", "CANCELLED", "REFUNDED"], case_sensitive=False),
    default=None,
)
@click.option("--from", "start_date", default=None, help="Earliest booking date (ISO 8601).")
@click.option("--to", "end_date", default=None, help="Latest booking date (ISO 8601).")
@click.option(
    "--sort-by",
    type=click.Choice(["createdAt", "bookingDate", "finalAmount", "status"]),
    default="createdAt",
    show_default=True,
)
@click.option("--order", type=click.Choice(["asc", "desc"]), default="desc", show_default=True)
@click.option("--page", type=int, default=1, show_default=True)
@click.option("--limit", type=int, default=20, show_default=True, help="Page size (max 100).")
def booking_list(
    admin_id: str,
    search: str | None,
    status: str | None,
    start_date: str | None,
    end_date: str | None,
    sort_by: str,
    order: str,
    page: int,
    limit: int,
) -> None:
    """List bookings for administrators."""
    store = booking_store()
    payload = {
        "search": search,
        "status": status.upper() if status else None,
        "start_date": start_date,
        "end_date": end_date,
        "sort_by": sort_by,
        "sort_order": order,
        "page": page,
        "limit": limit,
    }

    try:
        request = parse_request(ListBookingsRequest, payload)
        caller = AccountIdentityProvider(store, admin_id).current_caller()
        result = ListBookingsHandler(store=store).handle(request, caller)
    except DomainException as exc:
        raise click.ClickException(str(exc))

    if not result.bookings:
        click.echo("No bookings found.")
        return

    click.echo(
        f"{'Reference':<12} {'Status':<10} {'Date':<26} {'Owner':<30} {'Amount':>14}"
    )
    click.echo("-" * 96)
    for dto in result.bookings:
        click.echo(
            f"{dto.booking_reference or '-':<12} {dto.status:<10} {dto.booking_date:<26} "
            f"{dto.owner:<30} {dto.final_amount:>14}"
        )
    click.echo()
    click.echo(f"Page {result.page} of {max(result.total_pages, 1)} ({result.total} bookings)")

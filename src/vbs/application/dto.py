"""Data Transfer Objects: plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass

from vbs.domain.model.booking import Booking


@dataclass(frozen=True)
class BookingItemDTO:
    item_type: str
    item_id: str
    name: str
    quantity: int
    unit_price: str  # formatted, e.g. "GBP 75.00"
    total_price: str


@dataclass(frozen=True)
class BookingDTO:
    id: str
    booking_reference: str | None
    status: str
    booking_date: str  # ISO 8601
    owner: str  # user id, or guest email
    total_amount: str
    discount_amount: str
    final_amount: str
    currency: str
    items: list[BookingItemDTO]
    payment_reference: str | None = None
    refunded_amount: str | None = None


@dataclass(frozen=True)
class PaymentConfirmationDTO:
    reference: str
    amount: int  # minor units, as reported by the provider
    currency: str
    status: str


@dataclass(frozen=True)
class NotificationScheduleDTO:
    confirmation_scheduled_for: str
    reminder_scheduled_for: str


@dataclass(frozen=True)
class ConfirmedBookingDTO:
    """Output of a successful confirmation."""

    booking: BookingDTO
    payment_confirmation: PaymentConfirmationDTO
    notifications: NotificationScheduleDTO


@dataclass(frozen=True)
class RefundDTO:
    booking: BookingDTO
    refund_reference: str
    amount: int
    currency: str
    status: str


def to_booking_dto(booking: Booking) -> BookingDTO:
    return BookingDTO(
        id=booking.id,  # type: ignore[arg-type]
        booking_reference=booking.booking_reference,
        status=booking.status.value,
        booking_date=booking.booking_date.isoformat(),
        owner=booking.user_id or (booking.guest.email if booking.guest else ""),
        total_amount=str(booking.total_amount),
        discount_amount=str(booking.discount_amount),
        final_amount=str(booking.final_amount),
        currency=booking.currency,
        items=[
            BookingItemDTO(
                item_type=item.item_type.value,
                item_id=item.item_key.item_id,
                name=item.name,
                quantity=item.quantity.value,
                unit_price=str(item.unit_price),
                total_price=str(item.total_price),
            )
            for item in booking.items
        ],
        payment_reference=booking.payment_reference,
        refunded_amount=str(booking.refunded_amount) if booking.refunded_amount else None,
    )


@dataclass(frozen=True)
class BookingListDTO:
    bookings: list[BookingDTO]
    total: int
    page: int
    limit: int
    total_pages: int

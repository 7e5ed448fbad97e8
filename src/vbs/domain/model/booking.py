"""Booking aggregate: one customer reservation for one date.

The Booking is an aggregate root that owns its items.  All lifecycle
invariants are enforced here; persistence of each transition is a
separate, conditional write performed by the store.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum

from vbs.domain.exceptions import (
    AccessDeniedError,
    InvalidStateError,
    UnauthenticatedError,
    ValidationError,
)
from vbs.domain.model.value_objects import (
    Caller,
    GuestIdentity,
    ItemKey,
    ItemType,
    Money,
    Quantity,
)


class BookingStatus(Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


@dataclass(frozen=True)
class BookingItem:
    """One line of a booking.

    Captures the price and name of the package or extra at checkout time.
    Immutable once created; refunds are recorded on the booking instead.
    """

    item_type: ItemType
    name: str
    quantity: Quantity
    unit_price: Money  # locked at checkout
    package_id: str | None = None
    extra_id: str | None = None
    id: str | None = None

    def __post_init__(self) -> None:
        if self.item_type is ItemType.PACKAGE:
            if not self.package_id or self.extra_id:
                raise ValidationError("Package items must reference exactly one package")
        elif not self.extra_id or self.package_id:
            raise ValidationError("Extra items must reference exactly one extra")

    @property
    def item_key(self) -> ItemKey:
        item_id = self.package_id if self.item_type is ItemType.PACKAGE else self.extra_id
        return ItemKey(self.item_type, item_id)  # type: ignore[arg-type]

    @property
    def total_price(self) -> Money:
        return self.unit_price * self.quantity.value


# ---------------------------------------------------------------------------
# Constants for business rules
# ---------------------------------------------------------------------------
MAX_BOOKING_ITEMS = 50


@dataclass
class Booking:
    """Aggregate root for reservations.

    Use the ``Booking.create()`` factory for new bookings; it enforces all
    checkout rules.  The ``__init__`` is intentionally simple so the store
    can reconstitute persisted bookings without re-validating.

    Owner is either ``user_id`` (with ``user_email`` loaded alongside it)
    or ``guest``; never both.
    """

    id: str | None
    booking_date: datetime
    items: list[BookingItem]
    total_amount: Money
    discount_amount: Money
    final_amount: Money
    user_id: str | None = None
    user_email: str | None = None
    guest: GuestIdentity | None = None
    status: BookingStatus = BookingStatus.PENDING
    booking_reference: str | None = None
    payment_reference: str | None = None
    refunded_amount: Money | None = None
    refunded_at: datetime | None = None
    customer_notes: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    # --- Factory (used for NEW bookings only) ---------------------------------

    @staticmethod
    def create(
        booking_date: datetime,
        items: list[BookingItem],
        discount_amount: Money | None = None,
        user_id: str | None = None,
        user_email: str | None = None,
        guest: GuestIdentity | None = None,
        currency: str = "GBP",
        customer_notes: str | None = None,
    ) -> Booking:
        """Create a new PENDING booking, enforcing all invariants."""
        if (user_id is None) == (guest is None):
            raise ValidationError(
                "A booking must belong to exactly one of a registered user or a guest"
            )

        if not items:
            raise ValidationError("Booking must contain at least one item")

        if len(items) > MAX_BOOKING_ITEMS:
            raise ValidationError(f"Maximum {MAX_BOOKING_ITEMS} items per booking")

        if booking_date.tzinfo is None:
            raise ValidationError("Booking date must be timezone-aware")

        total = Money.zero(currency)
        for item in items:
            total = total + item.total_price

        discount = discount_amount or Money.zero(currency)
        if discount > total:
            raise ValidationError(
                f"Discount {discount} exceeds booking total {total}"
            )

        return Booking(
            id=None,
            booking_date=booking_date,
            items=list(items),
            total_amount=total,
            discount_amount=discount,
            final_amount=total - discount,
            user_id=user_id,
            user_email=user_email,
            guest=guest,
            customer_notes=customer_notes,
        )

    # --- Ownership ------------------------------------------------------------

    @property
    def is_guest_booking(self) -> bool:
        return self.user_id is None

    def check_caller(self, caller: Caller | None) -> None:
        """Owned bookings need the owner; guest bookings need an anonymous caller."""
        if self.is_guest_booking:
            if caller is not None:
                raise AccessDeniedError()
            return
        if caller is None:
            raise UnauthenticatedError()
        if caller.user_id != self.user_id:
            raise AccessDeniedError()

    @property
    def recipient_email(self) -> str:
        if self.guest is not None:
            return self.guest.email
        if not self.user_email:
            raise ValidationError(f"Booking {self.id} has no contact email")
        return self.user_email

    # --- State transitions ----------------------------------------------------

    def confirm(self, booking_reference: str, payment_reference: str) -> None:
        """Transition PENDING -> CONFIRMED.

        Inventory reservation and notification scheduling are coordinated
        by the application handler inside the same transaction.
        """
        if self.status is not BookingStatus.PENDING:
            raise InvalidStateError(self.status)
        if not booking_reference:
            raise ValidationError("A confirmed booking needs a booking reference")
        if self.booking_reference and self.booking_reference != booking_reference:
            raise ValidationError("Booking reference cannot change once assigned")
        if not payment_reference:
            raise ValidationError("Payment reference is required")
        self.booking_reference = booking_reference
        self.payment_reference = payment_reference
        self.status = BookingStatus.CONFIRMED

    def cancel(self) -> None:
        """Transition PENDING|CONFIRMED -> CANCELLED.

        For CONFIRMED bookings any restock must happen in the same
        transaction as the status write.
        """
        if self.status in (BookingStatus.CANCELLED, BookingStatus.REFUNDED):
            raise InvalidStateError(self.status, action="cancel")
        self.status = BookingStatus.CANCELLED

    def record_refund(self, amount: Money, refunded_at: datetime) -> None:
        """Add *amount* to the refunded total.

        The booking becomes REFUNDED once everything paid has been returned.
        """
        if self.status is not BookingStatus.CONFIRMED:
            raise InvalidStateError(self.status, action="refund")
        if amount.is_zero:
            raise ValidationError("Refund amount must be positive")
        if amount > self.refundable_amount:
            raise ValidationError(
                f"Refund {amount} exceeds refundable balance {self.refundable_amount}"
            )
        self.refunded_amount = (self.refunded_amount or Money.zero(self.currency)) + amount
        self.refunded_at = refunded_at
        if self.refunded_amount == self.final_amount:
            self.status = BookingStatus.REFUNDED

    # --- Computed properties --------------------------------------------------

    @property
    def currency(self) -> str:
        return self.final_amount.currency

    @property
    def service_date(self) -> date:
        """UTC calendar date whose availability the booking consumes.

        Availability days are UTC days, whatever offset the booking date was
        given in: 00:30 at +01:00 on 1 July draws on 30 June stock.
        """
        return self.booking_date.astimezone(timezone.utc).date()

    @property
    def refundable_amount(self) -> Money:
        return self.final_amount - (self.refunded_amount or Money.zero(self.currency))

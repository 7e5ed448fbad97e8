"""Abstract store for bookings, availability and the email queue.

Reads go through ``BookingStore`` directly.  Every write goes through a
``BookingTransaction`` handed to the callback of ``BookingStore.run``: the
callback's writes commit together when it returns, and none of them
persist if it raises.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Callable, TypeVar

from vbs.domain.model.availability import AvailabilityEntry
from vbs.domain.model.booking import Booking, BookingStatus
from vbs.domain.model.email import EmailQueueEntry, EmailStatus
from vbs.domain.model.user import User
from vbs.domain.model.value_objects import ItemKey, Money

T = TypeVar("T")

MAX_PAGE_SIZE = 100


class BookingSortField(Enum):
    CREATED_AT = "created_at"
    BOOKING_DATE = "booking_date"
    FINAL_AMOUNT = "final_amount"
    STATUS = "status"


@dataclass(frozen=True)
class BookingQuery:
    """Filters, ordering and paging for the admin booking list.

    ``search`` matches, case-insensitively and anywhere in the value, the
    booking reference, the guest name or email, or the owning user's name
    or email.  The date range is inclusive on ``booking_date``.
    """

    search: str | None = None
    status: BookingStatus | None = None
    date_from: datetime | None = None
    date_to: datetime | None = None
    sort_by: BookingSortField = BookingSortField.CREATED_AT
    descending: bool = True
    page: int = 1
    limit: int = 20

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class BookingPage:
    bookings: list[Booking]
    total: int


class BookingTransaction(ABC):
    """Write operations available inside one atomic unit of work."""

    @abstractmethod
    def add_booking(self, booking: Booking) -> Booking:
        """Insert a new booking with its items; assigns ids and returns it."""

    @abstractmethod
    def set_booking_confirmed(
        self,
        booking_id: str,
        booking_reference: str,
        payment_reference: str,
    ) -> None:
        """Flip a PENDING booking to CONFIRMED.

        Conditional on the stored status still being PENDING.  Raises
        AlreadyConfirmedError or InvalidStateError otherwise, and
        DuplicateReferenceError when the reference belongs to another
        booking (the transaction stays usable after that error).
        """

    @abstractmethod
    def set_booking_cancelled(self, booking_id: str, expected_status: BookingStatus) -> None:
        """Flip the booking to CANCELLED if its status is still *expected_status*."""

    @abstractmethod
    def record_refund(self, booking_id: str, amount: Money, refunded_at: datetime) -> None:
        """Add *amount* to the stored refunded total.

        The increment happens against the stored total, not a value read
        earlier, so concurrent refunds all count.  The status becomes
        REFUNDED when the total reaches ``final_amount``.  Raises
        StaleBookingError when the booking is no longer CONFIRMED or the
        new total would exceed ``final_amount``.
        """

    @abstractmethod
    def reserve_availability(
        self, item_key: ItemKey, day: date, quantity: int
    ) -> AvailabilityEntry | None:
        """Decrement availability only if at least *quantity* is left.

        Returns the updated entry, None when no entry exists for the item
        and date, and raises InsufficientAvailabilityError (leaving the
        counter untouched) when too little is left.
        """

    @abstractmethod
    def release_availability(
        self, item_key: ItemKey, day: date, quantity: int
    ) -> AvailabilityEntry | None:
        """Increment availability, never above the entry's total."""

    @abstractmethod
    def get_availability(self, item_key: ItemKey, day: date) -> AvailabilityEntry | None:
        """Read a capacity entry as seen inside this transaction."""

    @abstractmethod
    def save_availability(self, entry: AvailabilityEntry) -> None:
        """Insert or replace a capacity entry (capacity planning)."""

    @abstractmethod
    def enqueue_email(self, entry: EmailQueueEntry) -> EmailQueueEntry:
        """Persist a notification for the delivery worker; assigns its id."""

    @abstractmethod
    def save_user(self, user: User) -> None:
        """Insert or update a user account."""


class BookingStore(ABC):

    @abstractmethod
    def find_user(self, user_id: str) -> User | None:
        """Return the user with this id, or None."""

    @abstractmethod
    def find_booking_with_items(self, booking_id: str) -> Booking | None:
        """Return the booking, its items and owner snapshot, or None."""

    @abstractmethod
    def find_booking_by_reference(self, booking_reference: str) -> Booking | None:
        """Return the booking carrying this reference, or None."""

    @abstractmethod
    def list_bookings(self, query: BookingQuery) -> BookingPage:
        """Return one page of bookings matching *query* and the total match count."""

    @abstractmethod
    def find_availability(self, item_key: ItemKey, day: date) -> AvailabilityEntry | None:
        """Return the capacity entry for an item on a date, or None."""

    @abstractmethod
    def list_availability(self, day: date | None = None) -> list[AvailabilityEntry]:
        """Return capacity entries, optionally for one date only."""

    @abstractmethod
    def list_emails(self, status: EmailStatus | None = None) -> list[EmailQueueEntry]:
        """Return queued notifications ordered by scheduled time."""

    @abstractmethod
    def run(self, fn: Callable[[BookingTransaction], T]) -> T:
        """Run *fn* inside one transaction and return its result.

        Commits when *fn* returns; rolls back everything when it raises and
        re-raises.  Failures of the store itself surface as StorageError.
        """

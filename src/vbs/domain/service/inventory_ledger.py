"""Domain service: Inventory Ledger.

Coordinates the per-date capacity counters touched by a booking.  It only
ever works through a ``BookingTransaction``, so a failure on any item
rolls back the decrements already applied to earlier items.

An item with no availability entry for the date has no capacity limit.
That default is permissive: missing seed data means unlimited sales, so
it is logged every time it is relied on.
"""

from __future__ import annotations

import logging
from datetime import date

from vbs.domain.exceptions import InsufficientAvailabilityError, ValidationError
from vbs.domain.model.availability import AvailabilityEntry
from vbs.domain.model.booking import Booking
from vbs.domain.model.value_objects import ItemKey
from vbs.domain.repository.booking_store import BookingTransaction

logger = logging.getLogger(__name__)


class InventoryLedger:

    def __init__(self, tx: BookingTransaction) -> None:
        self._tx = tx

    def reserve(self, item_key: ItemKey, day: date, quantity: int) -> AvailabilityEntry | None:
        """Take *quantity* units of an item on a date, all or nothing."""
        if quantity <= 0:
            raise ValidationError("Reservation quantity must be positive")
        entry = self._tx.reserve_availability(item_key, day, quantity)
        if entry is None:
            logger.warning(
                f"No availability entry for {item_key} on {day.isoformat()}; "
                f"treating as unlimited"
            )
        return entry

    def release(self, item_key: ItemKey, day: date, quantity: int) -> AvailabilityEntry | None:
        """Give back *quantity* units of an item on a date."""
        if quantity <= 0:
            raise ValidationError("Release quantity must be positive")
        return self._tx.release_availability(item_key, day, quantity)

    def reserve_for_booking(self, booking: Booking) -> None:
        """Reserve every item of the booking on its date.

        Quantities for the same item on several lines are added up first,
        so the check is made once against the combined demand.
        """
        for item_key, (quantity, label) in self._demand(booking).items():
            try:
                self.reserve(item_key, booking.service_date, quantity)
            except InsufficientAvailabilityError as exc:
                raise InsufficientAvailabilityError(
                    exc.item_key, exc.day, exc.requested, exc.available, label=label
                ) from None

    def release_for_booking(self, booking: Booking) -> None:
        for item_key, (quantity, _label) in self._demand(booking).items():
            self.release(item_key, booking.service_date, quantity)

    @staticmethod
    def _demand(booking: Booking) -> dict[ItemKey, tuple[int, str]]:
        demand: dict[ItemKey, tuple[int, str]] = {}
        for item in booking.items:
            quantity, _ = demand.get(item.item_key, (0, item.name))
            demand[item.item_key] = (quantity + item.quantity.value, item.name)
        return demand

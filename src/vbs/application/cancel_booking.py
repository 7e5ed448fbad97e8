"""Application service: Cancel Booking use case (admin).

PENDING bookings are cancelled without inventory changes.  CONFIRMED
bookings give their units back to the availability counters when
``restock`` is set, in the same transaction as the status write.
"""

from __future__ import annotations

import logging

from vbs.application.access import require_admin
from vbs.application.dto import BookingDTO, to_booking_dto
from vbs.domain.exceptions import EntityNotFoundError
from vbs.domain.model.booking import BookingStatus
from vbs.domain.model.value_objects import Caller
from vbs.domain.repository.booking_store import BookingStore, BookingTransaction
from vbs.domain.service.inventory_ledger import InventoryLedger

logger = logging.getLogger(__name__)


class CancelBookingHandler:

    def __init__(self, store: BookingStore) -> None:
        self._store = store

    def handle(self, booking_id: str, caller: Caller | None, restock: bool = True) -> BookingDTO:
        admin = require_admin(caller)

        booking = self._store.find_booking_with_items(booking_id)
        if booking is None:
            raise EntityNotFoundError(f"Booking {booking_id} not found")

        previous = booking.status
        booking.cancel()

        def _commit(tx: BookingTransaction) -> None:
            # Raises StaleBookingError if the status moved since it was read.
            tx.set_booking_cancelled(booking_id, expected_status=previous)
            if previous is BookingStatus.CONFIRMED and restock:
                InventoryLedger(tx).release_for_booking(booking)

        self._store.run(_commit)

        logger.info(
            f"Booking {booking_id} cancelled by {admin.user_id} "
            f"(was {previous.value}, restock={restock})"
        )
        return to_booking_dto(booking)

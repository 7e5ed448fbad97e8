"""Application service: Set Availability use case (capacity planning)."""

from __future__ import annotations

import logging
from datetime import date

from vbs.domain.model.availability import AvailabilityEntry
from vbs.domain.model.value_objects import ItemKey
from vbs.domain.repository.booking_store import BookingStore, BookingTransaction

logger = logging.getLogger(__name__)


class SetAvailabilityHandler:

    def __init__(self, store: BookingStore) -> None:
        self._store = store

    def handle(self, item_key: ItemKey, day: date, total_quantity: int) -> AvailabilityEntry:
        """Create the entry, or change its total while keeping reservations."""

        def _save(tx: BookingTransaction) -> AvailabilityEntry:
            entry = tx.get_availability(item_key, day)
            if entry is None:
                entry = AvailabilityEntry(
                    item_key=item_key,
                    day=day,
                    total_quantity=total_quantity,
                    available_quantity=total_quantity,
                )
            else:
                entry.resize(total_quantity)
            tx.save_availability(entry)
            return entry

        entry = self._store.run(_save)
        logger.info(
            f"Availability for {item_key} on {day.isoformat()} set to "
            f"{entry.total_quantity} ({entry.available_quantity} available)"
        )
        return entry

"""Application service: Show Availability use case (query)."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from vbs.domain.repository.booking_store import BookingStore


@dataclass(frozen=True)
class AvailabilityLineDTO:
    item_type: str
    item_id: str
    day: str
    total: int
    reserved: int
    available: int


class ShowAvailabilityHandler:

    def __init__(self, store: BookingStore) -> None:
        self._store = store

    def handle(self, day: date | None = None) -> list[AvailabilityLineDTO]:
        entries = self._store.list_availability(day)
        return [
            AvailabilityLineDTO(
                item_type=entry.item_key.item_type.value,
                item_id=entry.item_key.item_id,
                day=entry.day.isoformat(),
                total=entry.total_quantity,
                reserved=entry.reserved_quantity,
                available=entry.available_quantity,
            )
            for entry in entries
        ]

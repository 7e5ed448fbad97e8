"""Application service: Show Booking use case (query)."""

from __future__ import annotations

from vbs.application.dto import BookingDTO, to_booking_dto
from vbs.domain.exceptions import EntityNotFoundError, ValidationError
from vbs.domain.model.value_objects import Caller
from vbs.domain.repository.booking_store import BookingStore


class ShowBookingHandler:

    def __init__(self, store: BookingStore) -> None:
        self._store = store

    def handle(
        self,
        booking_id: str | None = None,
        booking_reference: str | None = None,
        caller: Caller | None = None,
    ) -> BookingDTO:
        """Look a booking up by id or by its customer-facing reference.

        Admins see every booking; everyone else goes through the same
        ownership check as confirmation.
        """
        if booking_id is not None:
            booking = self._store.find_booking_with_items(booking_id)
        elif booking_reference is not None:
            booking = self._store.find_booking_by_reference(booking_reference.upper())
        else:
            raise ValidationError("A booking id or booking reference is required")

        if booking is None:
            raise EntityNotFoundError(f"Booking {booking_id or booking_reference} not found")

        if caller is None or not caller.is_admin:
            booking.check_caller(caller)
        return to_booking_dto(booking)

"""Application service: Create Booking use case (checkout).

Prices arrive already resolved by the storefront; this records them on
the items so later catalogue changes do not alter the booking.
"""

from __future__ import annotations

import logging

from vbs.application.dto import BookingDTO, to_booking_dto
from vbs.application.requests import BookingItemRequest, CreateBookingRequest
from vbs.domain.exceptions import EntityNotFoundError
from vbs.domain.model.booking import Booking, BookingItem
from vbs.domain.model.value_objects import GuestIdentity, ItemType, Money, Quantity
from vbs.domain.repository.booking_store import BookingStore

logger = logging.getLogger(__name__)


class CreateBookingHandler:

    def __init__(self, store: BookingStore) -> None:
        self._store = store

    def handle(self, request: CreateBookingRequest) -> BookingDTO:
        user_email = None
        guest = None
        if request.user_id is not None:
            user = self._store.find_user(request.user_id)
            if user is None:
                raise EntityNotFoundError(f"User {request.user_id} not found")
            user_email = user.email
        else:
            guest = GuestIdentity(name=request.guest_name, email=request.guest_email)  # type: ignore[arg-type]

        items = [self._to_item(line, request.currency) for line in request.items]

        booking = Booking.create(
            booking_date=request.booking_date,
            items=items,
            discount_amount=Money.of(request.discount_amount, request.currency),
            user_id=request.user_id,
            user_email=user_email,
            guest=guest,
            currency=request.currency,
            customer_notes=request.customer_notes,
        )
        booking = self._store.run(lambda tx: tx.add_booking(booking))

        logger.info(
            f"Booking {booking.id} created for {booking.service_date.isoformat()} "
            f"({len(booking.items)} items, {booking.final_amount})"
        )
        return to_booking_dto(booking)

    @staticmethod
    def _to_item(line: BookingItemRequest, currency: str) -> BookingItem:
        item_type = ItemType(line.item_type)
        return BookingItem(
            item_type=item_type,
            name=line.name or line.item_id,
            quantity=Quantity(line.quantity),
            unit_price=Money.of(line.unit_price, currency),
            package_id=line.item_id if item_type is ItemType.PACKAGE else None,
            extra_id=line.item_id if item_type is ItemType.EXTRA else None,
        )

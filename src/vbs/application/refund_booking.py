"""Application service: Refund Booking use case (admin).

The refund is issued at the provider first and recorded afterwards, so
no transaction is held open across the provider call.  If recording
fails, the money has already gone back to the customer: the failure is
logged at critical level and surfaced as PostPaymentCommitFailure.
The write adds the refund to the stored total, so refunds issued by two
admins at the same time are both counted.
Refunds never restock inventory.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Callable

from vbs.application.access import require_admin
from vbs.application.dto import RefundDTO, to_booking_dto
from vbs.application.requests import RefundBookingRequest
from vbs.domain.exceptions import (
    EntityNotFoundError,
    InvalidStateError,
    PostPaymentCommitFailure,
    StaleBookingError,
    StorageError,
    ValidationError,
)
from vbs.domain.gateway.payment_gateway import PaymentGateway
from vbs.domain.model.booking import BookingStatus
from vbs.domain.model.value_objects import Caller, Money
from vbs.domain.repository.booking_store import BookingStore

logger = logging.getLogger(__name__)


class RefundBookingHandler:

    def __init__(
        self,
        store: BookingStore,
        gateway: PaymentGateway,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ) -> None:
        self._store = store
        self._gateway = gateway
        self._clock = clock

    def handle(
        self, booking_id: str, request: RefundBookingRequest, caller: Caller | None
    ) -> RefundDTO:
        admin = require_admin(caller)

        booking = self._store.find_booking_with_items(booking_id)
        if booking is None:
            raise EntityNotFoundError(f"Booking {booking_id} not found")
        if booking.status is not BookingStatus.CONFIRMED:
            raise InvalidStateError(booking.status, action="refund")
        if not booking.payment_reference:
            raise ValidationError(f"Booking {booking_id} has no payment to refund")

        if request.type == "full":
            amount = booking.refundable_amount
        else:
            amount = Money.of(request.amount, booking.currency)  # type: ignore[arg-type]

        # Validates the amount against the refundable balance before any money moves.
        refunded_at = self._clock()
        booking.record_refund(amount, refunded_at)

        refund = self._gateway.issue_refund(
            booking.payment_reference,
            amount.to_minor_units(),
            metadata={
                "booking_id": booking_id,
                "booking_reference": booking.booking_reference or "",
                "reason": request.reason,
                "refund_type": request.type,
                "admin_id": admin.user_id,
            },
        )

        try:
            self._store.run(lambda tx: tx.record_refund(booking_id, amount, refunded_at))
        except (StorageError, StaleBookingError) as exc:
            logger.critical(
                f"Refund {refund.reference} issued for booking {booking_id} "
                f"but could not be recorded: {exc}",
                exc_info=True,
            )
            raise PostPaymentCommitFailure(
                booking_id,
                booking.payment_reference,
                f"Refund {refund.reference} was issued but could not be recorded",
            ) from exc

        # Another refund may have landed meanwhile; report what is stored.
        stored = self._store.find_booking_with_items(booking_id) or booking

        logger.info(
            f"Booking {booking_id} refunded {amount} by {admin.user_id} "
            f"({request.type}, refund {refund.reference}, now {stored.status.value})"
        )
        return RefundDTO(
            booking=to_booking_dto(stored),
            refund_reference=refund.reference,
            amount=refund.amount,
            currency=refund.currency,
            status=refund.status,
        )

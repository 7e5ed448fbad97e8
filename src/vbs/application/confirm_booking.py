"""Application service: Confirm Booking use case.

Takes a PENDING booking and the provider's payment reference and turns it
into a CONFIRMED booking with reserved inventory and queued emails.

Gates, in order; each one rejects without writing anything:

1. load and ownership: the booking must exist; an owned booking needs
   its owner as caller, a guest booking needs an anonymous caller
2. status: only PENDING proceeds (CONFIRMED raises AlreadyConfirmedError)
3. items: an empty booking has nothing to reserve
4. payment: the provider must report success for exactly ``final_amount``

Then one transaction assigns the reference, flips the status, decrements
availability for every item and queues the two emails.  The provider is
never called while the transaction is open.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from vbs.application.dto import (
    ConfirmedBookingDTO,
    NotificationScheduleDTO,
    PaymentConfirmationDTO,
    to_booking_dto,
)
from vbs.application.requests import ConfirmBookingRequest
from vbs.domain.exceptions import (
    AlreadyConfirmedError,
    DuplicateReferenceError,
    EmptyBookingError,
    EntityNotFoundError,
    InvalidStateError,
    PostPaymentCommitFailure,
    ReferenceCollisionExhaustedError,
    StorageError,
)
from vbs.domain.gateway.payment_gateway import PaymentGateway
from vbs.domain.model.booking import Booking, BookingStatus
from vbs.domain.model.value_objects import Caller
from vbs.domain.repository.booking_store import BookingStore, BookingTransaction
from vbs.domain.service.inventory_ledger import InventoryLedger
from vbs.domain.service.notification_scheduler import (
    DEFAULT_REMINDER_LEAD,
    NotificationScheduler,
    ScheduledNotifications,
)
from vbs.domain.service.payment_verifier import PaymentVerifier
from vbs.domain.service.reference_generator import ReferenceGenerator

logger = logging.getLogger(__name__)

DEFAULT_MAX_REFERENCE_ATTEMPTS = 5


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConfirmBookingHandler:

    def __init__(
        self,
        store: BookingStore,
        gateway: PaymentGateway,
        reference_generator: ReferenceGenerator | None = None,
        max_reference_attempts: int = DEFAULT_MAX_REFERENCE_ATTEMPTS,
        venue_name: str = "Country Days",
        reminder_lead: timedelta = DEFAULT_REMINDER_LEAD,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._verifier = PaymentVerifier(gateway)
        self._references = reference_generator or ReferenceGenerator()
        self._max_reference_attempts = max_reference_attempts
        self._venue_name = venue_name
        self._reminder_lead = reminder_lead
        self._clock = clock

    def handle(self, request: ConfirmBookingRequest, caller: Caller | None) -> ConfirmedBookingDTO:
        booking = self._load_pending_booking(request.booking_id, caller)

        # Resolved once so both emails go to the same address.
        recipient = booking.recipient_email

        payment = self._verifier.verify(request.payment_reference, booking.final_amount)

        try:
            scheduled = self._store.run(
                lambda tx: self._commit(tx, booking, request.payment_reference, recipient)
            )
        except StorageError as exc:
            logger.critical(
                f"Payment {request.payment_reference} verified for booking "
                f"{booking.id} but the confirmation could not be committed: {exc}",
                exc_info=True,
            )
            raise PostPaymentCommitFailure(
                booking.id,  # type: ignore[arg-type]
                request.payment_reference,
                "Payment received but the booking could not be confirmed; "
                "retry confirmation with the same payment reference",
            ) from exc

        logger.info(
            f"Booking {booking.id} confirmed as {booking.booking_reference} "
            f"(payment {payment.reference}, {len(booking.items)} items)"
        )

        return ConfirmedBookingDTO(
            booking=to_booking_dto(booking),
            payment_confirmation=PaymentConfirmationDTO(
                reference=payment.reference,
                amount=payment.amount,
                currency=payment.currency,
                status=payment.status,
            ),
            notifications=NotificationScheduleDTO(
                confirmation_scheduled_for=scheduled.confirmation.scheduled_for.isoformat(),
                reminder_scheduled_for=scheduled.reminder.scheduled_for.isoformat(),
            ),
        )

    # --- Gates ----------------------------------------------------------------

    def _load_pending_booking(self, booking_id: str, caller: Caller | None) -> Booking:
        booking = self._store.find_booking_with_items(booking_id)
        if booking is None:
            raise EntityNotFoundError(f"Booking {booking_id} not found")

        booking.check_caller(caller)

        if booking.status is BookingStatus.CONFIRMED:
            raise AlreadyConfirmedError(booking_id, booking.booking_reference)
        if booking.status is not BookingStatus.PENDING:
            raise InvalidStateError(booking.status)

        if not booking.items:
            raise EmptyBookingError(booking_id)

        return booking

    # --- Atomic unit ----------------------------------------------------------

    def _commit(
        self,
        tx: BookingTransaction,
        booking: Booking,
        payment_reference: str,
        recipient: str,
    ) -> ScheduledNotifications:
        reference = self._write_confirmation(tx, booking, payment_reference)
        booking.confirm(reference, payment_reference)

        InventoryLedger(tx).reserve_for_booking(booking)

        scheduler = NotificationScheduler(tx, self._venue_name, self._reminder_lead)
        return scheduler.schedule_for_booking(booking, recipient, now=self._clock())

    def _write_confirmation(
        self, tx: BookingTransaction, booking: Booking, payment_reference: str
    ) -> str:
        """Persist the status flip, generating a reference if there is none.

        A generated reference that is already taken is replaced and the
        write retried, up to the configured number of attempts.
        """
        if booking.booking_reference:
            tx.set_booking_confirmed(
                booking.id, booking.booking_reference, payment_reference  # type: ignore[arg-type]
            )
            return booking.booking_reference

        for attempt in range(1, self._max_reference_attempts + 1):
            candidate = self._references.generate()
            try:
                tx.set_booking_confirmed(booking.id, candidate, payment_reference)  # type: ignore[arg-type]
            except DuplicateReferenceError:
                logger.warning(
                    f"Booking reference {candidate} already taken "
                    f"(attempt {attempt}/{self._max_reference_attempts})"
                )
                continue
            return candidate

        raise ReferenceCollisionExhaustedError(self._max_reference_attempts)

"""Domain service: queue the confirmation and reminder emails for a booking.

Nothing is sent here.  Entries are written through the transaction so they
exist only if the confirmation itself commits; a separate worker delivers
them when ``scheduled_for`` comes round.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from vbs.domain.model.booking import Booking
from vbs.domain.model.email import EmailQueueEntry, EmailType
from vbs.domain.repository.booking_store import BookingTransaction

DEFAULT_REMINDER_LEAD = timedelta(hours=24)


@dataclass(frozen=True)
class ScheduledNotifications:
    confirmation: EmailQueueEntry
    reminder: EmailQueueEntry


class NotificationScheduler:

    def __init__(
        self,
        tx: BookingTransaction,
        venue_name: str,
        reminder_lead: timedelta = DEFAULT_REMINDER_LEAD,
    ) -> None:
        self._tx = tx
        self._venue_name = venue_name
        self._reminder_lead = reminder_lead

    def schedule_for_booking(
        self, booking: Booking, recipient: str, now: datetime
    ) -> ScheduledNotifications:
        """Queue one confirmation (due now) and one reminder per booking.

        Both go to *recipient*, resolved once by the caller.
        """
        content = booking_snapshot(booking)
        confirmation = self._tx.enqueue_email(
            EmailQueueEntry(
                recipient=recipient,
                subject=f"Booking Confirmation - {self._venue_name}",
                email_type=EmailType.BOOKING_CONFIRMATION,
                content=dict(content),
                scheduled_for=now,
            )
        )
        reminder = self._tx.enqueue_email(
            EmailQueueEntry(
                recipient=recipient,
                subject=f"Booking Reminder - {self._venue_name}",
                email_type=EmailType.BOOKING_REMINDER,
                content=dict(content),
                scheduled_for=booking.booking_date - self._reminder_lead,
            )
        )
        return ScheduledNotifications(confirmation=confirmation, reminder=reminder)


def booking_snapshot(booking: Booking) -> dict[str, Any]:
    """Plain-data copy of the booking for an email body."""
    return {
        "booking_id": booking.id,
        "booking_reference": booking.booking_reference,
        "booking_date": booking.booking_date.isoformat(),
        "final_amount": str(booking.final_amount.amount),
        "currency": booking.currency,
        "items": [
            {
                "item_type": item.item_type.value,
                "name": item.name,
                "quantity": item.quantity.value,
                "unit_price": str(item.unit_price.amount),
                "total_price": str(item.total_price.amount),
            }
            for item in booking.items
        ],
    }

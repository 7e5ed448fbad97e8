"""Application service: List Email Queue use case (query).

Read-only view of what the delivery worker will pick up.
"""

from __future__ import annotations

from dataclasses import dataclass

from vbs.domain.model.email import EmailStatus
from vbs.domain.repository.booking_store import BookingStore


@dataclass(frozen=True)
class EmailLineDTO:
    id: str
    recipient: str
    subject: str
    email_type: str
    status: str
    scheduled_for: str
    booking_reference: str | None


class ListEmailQueueHandler:

    def __init__(self, store: BookingStore) -> None:
        self._store = store

    def handle(self, status: EmailStatus | None = None) -> list[EmailLineDTO]:
        return [
            EmailLineDTO(
                id=entry.id,  # type: ignore[arg-type]
                recipient=entry.recipient,
                subject=entry.subject,
                email_type=entry.email_type.value,
                status=entry.status.value,
                scheduled_for=entry.scheduled_for.isoformat(),
                booking_reference=entry.content.get("booking_reference"),
            )
            for entry in self._store.list_emails(status)
        ]

"""EmailQueueEntry: one notification waiting for the delivery worker."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class EmailType(Enum):
    BOOKING_CONFIRMATION = "BOOKING_CONFIRMATION"
    BOOKING_REMINDER = "BOOKING_REMINDER"
    REFUND_NOTIFICATION = "REFUND_NOTIFICATION"
    ADMIN_NOTIFICATION = "ADMIN_NOTIFICATION"


class EmailStatus(Enum):
    PENDING = "PENDING"
    SENT = "SENT"
    FAILED = "FAILED"


@dataclass
class EmailQueueEntry:
    """A scheduled message.

    ``content`` is a plain-data snapshot of the booking taken when the
    entry was queued, so later changes to the booking do not alter it.
    """

    recipient: str
    subject: str
    email_type: EmailType
    content: dict[str, Any]
    scheduled_for: datetime
    status: EmailStatus = EmailStatus.PENDING
    id: str | None = None
    sent_at: datetime | None = None
    error: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

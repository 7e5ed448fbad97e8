"""Domain-level exceptions.

All business rule violations are expressed as subclasses of DomainException
so the CLI layer can catch them uniformly and display user-friendly messages.

Every exception carries an ``ErrorKind`` from a small, stable taxonomy.  The
kind (not the class) is what callers outside the core map to a response
status, so new exception classes never change the public contract.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - type checking only
    from vbs.domain.model.booking import BookingStatus
    from vbs.domain.model.value_objects import ItemKey


class ErrorKind(Enum):
    NOT_AUTHENTICATED = "not_authenticated"
    ACCESS_DENIED = "access_denied"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    UNPROCESSABLE = "unprocessable"
    INSUFFICIENT_AVAILABILITY = "insufficient_availability"
    MALFORMED_REQUEST = "malformed_request"
    GATEWAY_UNAVAILABLE = "gateway_unavailable"
    INTERNAL = "internal"

    @property
    def status(self) -> int:
        """HTTP-equivalent status for this kind."""
        return _STATUS_BY_KIND[self]


_STATUS_BY_KIND = {
    ErrorKind.NOT_AUTHENTICATED: 401,
    ErrorKind.ACCESS_DENIED: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.UNPROCESSABLE: 422,
    ErrorKind.INSUFFICIENT_AVAILABILITY: 409,
    ErrorKind.MALFORMED_REQUEST: 400,
    ErrorKind.GATEWAY_UNAVAILABLE: 503,
    ErrorKind.INTERNAL: 500,
}


class DomainException(Exception):
    """Base class for all domain errors."""

    kind: ErrorKind = ErrorKind.INTERNAL


class ValidationError(DomainException):
    """A business rule or invariant was violated."""

    kind = ErrorKind.UNPROCESSABLE


class MalformedRequestError(DomainException):
    """Input failed boundary validation before reaching a handler."""

    kind = ErrorKind.MALFORMED_REQUEST


class ConfigurationError(DomainException):
    """Settings could not be loaded."""


# --- Identity and lookup ------------------------------------------------------


class UnauthenticatedError(DomainException):
    kind = ErrorKind.NOT_AUTHENTICATED

    def __init__(self, message: str = "Authentication required") -> None:
        super().__init__(message)


class AccessDeniedError(DomainException):
    kind = ErrorKind.ACCESS_DENIED

    def __init__(self, message: str = "Access denied") -> None:
        super().__init__(message)


class EntityNotFoundError(DomainException):
    """A requested entity does not exist."""

    kind = ErrorKind.NOT_FOUND


# --- Booking state --------------------------------------------------------------


class AlreadyConfirmedError(DomainException):
    """The booking was confirmed earlier.

    Not a failure of the caller's intent: a retry after a lost response
    lands here, and may be reported as success.
    """

    kind = ErrorKind.CONFLICT

    def __init__(self, booking_id: str, booking_reference: str | None = None) -> None:
        self.booking_id = booking_id
        self.booking_reference = booking_reference
        super().__init__(f"Booking {booking_id} is already confirmed")


class InvalidStateError(DomainException):
    """The booking's status does not allow the requested transition."""

    kind = ErrorKind.CONFLICT

    def __init__(self, status: BookingStatus, action: str = "confirm") -> None:
        self.status = status
        super().__init__(f"Cannot {action} {status.value.lower()} booking")


class StaleBookingError(DomainException):
    """The booking changed between being read and being written."""

    kind = ErrorKind.CONFLICT

    def __init__(self, booking_id: str) -> None:
        self.booking_id = booking_id
        super().__init__(f"Booking {booking_id} was modified concurrently; reload and retry")


class EmptyBookingError(DomainException):
    kind = ErrorKind.UNPROCESSABLE

    def __init__(self, booking_id: str) -> None:
        self.booking_id = booking_id
        super().__init__(f"Booking {booking_id} has no items")


# --- Payment verification -----------------------------------------------------


class InvalidPaymentReferenceError(DomainException):
    kind = ErrorKind.UNPROCESSABLE

    def __init__(self, payment_reference: str) -> None:
        self.payment_reference = payment_reference
        super().__init__("Invalid payment reference")


class PaymentIncompleteError(DomainException):
    kind = ErrorKind.UNPROCESSABLE

    def __init__(self, payment_reference: str, status: str) -> None:
        self.payment_reference = payment_reference
        self.status = status
        super().__init__("Payment not completed")


class AmountMismatchError(DomainException):
    kind = ErrorKind.UNPROCESSABLE

    def __init__(
        self,
        expected_amount: int,
        expected_currency: str,
        actual_amount: int,
        actual_currency: str,
    ) -> None:
        self.expected_amount = expected_amount
        self.expected_currency = expected_currency
        self.actual_amount = actual_amount
        self.actual_currency = actual_currency
        super().__init__("Payment amount mismatch")


class GatewayUnavailableError(DomainException):
    """Transient failure talking to the payment provider.  Safe to retry."""

    kind = ErrorKind.GATEWAY_UNAVAILABLE


# --- Inventory ------------------------------------------------------------------


class InsufficientAvailabilityError(DomainException):
    kind = ErrorKind.INSUFFICIENT_AVAILABILITY

    def __init__(
        self,
        item_key: ItemKey,
        day: date,
        requested: int,
        available: int,
        label: str | None = None,
    ) -> None:
        self.item_key = item_key
        self.day = day
        self.requested = requested
        self.available = available
        self.label = label or str(item_key)
        super().__init__(
            f"Insufficient availability for {self.label} on {day.isoformat()} "
            f"(need {requested}, have {available} available)"
        )


# --- Persistence ------------------------------------------------------------------


class StorageError(DomainException):
    """The store could not complete a read or commit."""


class DuplicateReferenceError(DomainException):
    """A booking reference is already taken by another booking."""

    kind = ErrorKind.CONFLICT

    def __init__(self, reference: str) -> None:
        self.reference = reference
        super().__init__(f"Booking reference {reference} is already in use")


class ReferenceCollisionExhaustedError(DomainException):
    def __init__(self, attempts: int) -> None:
        self.attempts = attempts
        super().__init__(
            f"Could not assign a unique booking reference after {attempts} attempts"
        )


class PostPaymentCommitFailure(DomainException):
    """Money moved at the provider but the booking could not be updated.

    Retry the same operation with the same payment reference; do not
    charge or refund again.
    """

    def __init__(self, booking_id: str, payment_reference: str, message: str) -> None:
        self.booking_id = booking_id
        self.payment_reference = payment_reference
        super().__init__(message)

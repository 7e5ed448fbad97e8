"""Immutable values used by bookings, availability and payments.

Each one validates itself on construction; an instance that exists is valid.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from enum import Enum

from vbs.domain.exceptions import ValidationError

# Currencies whose minor unit is not 1/100 of the major unit.
_MINOR_UNIT_EXPONENTS = {
    "JPY": 0,
    "KRW": 0,
    "VND": 0,
    "CLP": 0,
    "ISK": 0,
    "BHD": 3,
    "KWD": 3,
    "OMR": 3,
    "JOD": 3,
    "TND": 3,
}

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def minor_unit_exponent(currency: str) -> int:
    return _MINOR_UNIT_EXPONENTS.get(currency.upper(), 2)


@dataclass(frozen=True)
class Money:
    """An amount in a currency, held as a Decimal in major units.

    Providers and the database work in integer minor units; use
    ``from_minor_units`` and ``to_minor_units`` at those edges.
    """

    amount: Decimal
    currency: str = "GBP"

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise ValidationError(
                f"Money amount must be a Decimal, got {type(self.amount).__name__}"
            )
        if self.amount < Decimal("0"):
            raise ValidationError(
                f"Money amount cannot be negative, got {self.amount}"
            )
        if not re.fullmatch(r"[A-Z]{3}", self.currency):
            raise ValidationError(f"Invalid currency code: {self.currency!r}")

    # --- Arithmetic helpers ---------------------------------------------------

    def __add__(self, other: Money) -> Money:
        self._assert_same_currency(other)
        return Money(self.amount + other.amount, self.currency)

    def __sub__(self, other: Money) -> Money:
        self._assert_same_currency(other)
        result = self.amount - other.amount
        if result < Decimal("0"):
            raise ValidationError("Money subtraction would result in a negative amount")
        return Money(result, self.currency)

    def __mul__(self, factor: int) -> Money:
        if not isinstance(factor, int):
            raise TypeError(f"Can only multiply Money by int, got {type(factor).__name__}")
        return Money(self.amount * factor, self.currency)

    def __lt__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount < other.amount

    def __le__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount <= other.amount

    def __gt__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount > other.amount

    def __ge__(self, other: Money) -> bool:
        self._assert_same_currency(other)
        return self.amount >= other.amount

    @property
    def is_zero(self) -> bool:
        return self.amount == Decimal("0")

    # --- Minor units ----------------------------------------------------------

    def to_minor_units(self) -> int:
        """Amount in the currency's smallest unit (pence for GBP).

        Half-up rounding, the same rule used when the charge was created.
        """
        scaled = self.amount.scaleb(minor_unit_exponent(self.currency))
        return int(scaled.quantize(Decimal("1"), rounding=ROUND_HALF_UP))

    @staticmethod
    def from_minor_units(value: int, currency: str = "GBP") -> Money:
        currency = currency.upper()
        return Money(Decimal(value).scaleb(-minor_unit_exponent(currency)), currency)

    # --- Display --------------------------------------------------------------

    def __str__(self) -> str:
        places = minor_unit_exponent(self.currency)
        return f"{self.currency} {self.amount:.{places}f}"

    # --- Internal helpers -----------------------------------------------------

    def _assert_same_currency(self, other: Money) -> None:
        if self.currency != other.currency:
            raise ValidationError(
                f"Cannot combine {self.currency} with {other.currency}"
            )

    # --- Factory --------------------------------------------------------------

    @staticmethod
    def of(amount: str | int | Decimal, currency: str = "GBP") -> Money:
        """Convenient factory that coerces to Decimal safely."""
        if isinstance(amount, float):
            raise ValidationError("Money cannot be built from a float")
        try:
            return Money(Decimal(str(amount)), currency.upper())
        except (InvalidOperation, ValueError) as exc:
            raise ValidationError(f"Invalid money amount: {amount!r}") from exc

    @staticmethod
    def zero(currency: str = "GBP") -> Money:
        return Money(Decimal("0"), currency.upper())


@dataclass(frozen=True)
class Quantity:
    """A positive integer quantity.

    Enforces the invariant that you cannot book zero or negative items.
    """

    value: int

    def __post_init__(self) -> None:
        if not isinstance(self.value, int) or isinstance(self.value, bool):
            raise ValidationError(
                f"Quantity must be an integer, got {type(self.value).__name__}"
            )
        if self.value <= 0:
            raise ValidationError("Quantity must be positive")

    def __str__(self) -> str:
        return str(self.value)


class ItemType(Enum):
    PACKAGE = "PACKAGE"
    EXTRA = "EXTRA"


@dataclass(frozen=True)
class ItemKey:
    """Identifies one inventoriable item: a package or an extra."""

    item_type: ItemType
    item_id: str

    def __post_init__(self) -> None:
        if not self.item_id or not self.item_id.strip():
            raise ValidationError("Item id is required")

    def __str__(self) -> str:
        return f"{self.item_type.value} {self.item_id}"


@dataclass(frozen=True)
class GuestIdentity:
    """Owner of a booking made without an account."""

    name: str
    email: str

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValidationError("Guest name is required")
        if not _EMAIL_RE.match(self.email or ""):
            raise ValidationError(f"Invalid guest email: {self.email!r}")


class UserRole(Enum):
    CUSTOMER = "CUSTOMER"
    ADMIN = "ADMIN"


@dataclass(frozen=True)
class Caller:
    """The authenticated user behind a request.  Guests have no Caller."""

    user_id: str
    role: UserRole = UserRole.CUSTOMER

    @property
    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN

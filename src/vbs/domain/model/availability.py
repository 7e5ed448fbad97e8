"""AvailabilityEntry: capacity of one package or extra on one date.

Entries are created ahead of time by capacity planning.  Confirmation
decrements ``available_quantity``; cancellation with restock puts it back.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from vbs.domain.exceptions import InsufficientAvailabilityError, ValidationError
from vbs.domain.model.value_objects import ItemKey


@dataclass
class AvailabilityEntry:
    """Per-(item, date) capacity counter.

    Invariants:
    - ``0 <= available_quantity <= total_quantity``
    - a reservation is all-or-nothing; it never clamps
    """

    item_key: ItemKey
    day: date
    total_quantity: int
    available_quantity: int

    def __post_init__(self) -> None:
        if self.total_quantity < 0:
            raise ValidationError("Total quantity cannot be negative")
        if not 0 <= self.available_quantity <= self.total_quantity:
            raise ValidationError(
                f"Available quantity {self.available_quantity} outside "
                f"0..{self.total_quantity} for {self.item_key}"
            )

    @property
    def reserved_quantity(self) -> int:
        return self.total_quantity - self.available_quantity

    def reserve(self, quantity: int) -> None:
        """Take *quantity* units for a confirmed booking.

        Raises InsufficientAvailabilityError if fewer units are available.
        """
        if quantity <= 0:
            raise ValidationError("Reservation quantity must be positive")
        if quantity > self.available_quantity:
            raise InsufficientAvailabilityError(
                self.item_key, self.day, quantity, self.available_quantity
            )
        self.available_quantity -= quantity

    def release(self, quantity: int) -> None:
        """Return previously reserved units (e.g. on cancellation)."""
        if quantity <= 0:
            raise ValidationError("Release quantity must be positive")
        if quantity > self.reserved_quantity:
            raise ValidationError(
                f"Cannot release {quantity} of {self.item_key} "
                f"(only {self.reserved_quantity} currently reserved)"
            )
        self.available_quantity += quantity

    def resize(self, total_quantity: int) -> None:
        """Change capacity, keeping what is already reserved."""
        if total_quantity < self.reserved_quantity:
            raise ValidationError(
                f"Cannot set capacity of {self.item_key} on {self.day.isoformat()} "
                f"to {total_quantity}: {self.reserved_quantity} already reserved"
            )
        self.available_quantity = total_quantity - self.reserved_quantity
        self.total_quantity = total_quantity

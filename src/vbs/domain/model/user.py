"""Registered customer or administrator.

Accounts are managed by the authentication service; bookings only need
the id, contact email and role.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

from vbs.domain.exceptions import ValidationError
from vbs.domain.model.value_objects import UserRole

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass
class User:

    id: str
    email: str
    name: str | None = None
    role: UserRole = UserRole.CUSTOMER

    def __post_init__(self) -> None:
        if not self.id or not self.id.strip():
            raise ValidationError("User id is required")
        if not _EMAIL_RE.match(self.email or ""):
            raise ValidationError(f"Invalid email: {self.email!r}")

    def change_email(self, email: str) -> None:
        """Bookings already confirmed keep the address they were queued with."""
        if not _EMAIL_RE.match(email or ""):
            raise ValidationError(f"Invalid email: {email!r}")
        self.email = email

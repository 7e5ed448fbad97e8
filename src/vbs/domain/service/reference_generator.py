"""Domain service: booking reference codes.

References are read out over the phone and typed from emails, so the
alphabet leaves out characters that are easily confused (0/O, 1/I).
Uniqueness is enforced by the store; this only makes clashes unlikely.
"""

from __future__ import annotations

import secrets

from vbs.domain.exceptions import ValidationError

REFERENCE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
MIN_REFERENCE_LENGTH = 6
MAX_REFERENCE_LENGTH = 12
DEFAULT_REFERENCE_LENGTH = 8


class ReferenceGenerator:

    def __init__(self, length: int = DEFAULT_REFERENCE_LENGTH) -> None:
        if not MIN_REFERENCE_LENGTH <= length <= MAX_REFERENCE_LENGTH:
            raise ValidationError(
                f"Reference length must be between {MIN_REFERENCE_LENGTH} "
                f"and {MAX_REFERENCE_LENGTH}, got {length}"
            )
        self._length = length

    @property
    def length(self) -> int:
        return self._length

    def generate(self) -> str:
        return "".join(secrets.choice(REFERENCE_ALPHABET) for _ in range(self._length))


def is_valid_reference(value: str | None) -> bool:
    if not value:
        return False
    return MIN_REFERENCE_LENGTH <= len(value) <= MAX_REFERENCE_LENGTH and all(
        ch in REFERENCE_ALPHABET for ch in value
    )

"""Abstract source of the caller's identity (session/auth middleware)."""

from __future__ import annotations

from abc import ABC, abstractmethod

from vbs.domain.model.value_objects import Caller


class IdentityProvider(ABC):

    @abstractmethod
    def current_caller(self) -> Caller | None:
        """Return the authenticated caller, or None for a guest."""

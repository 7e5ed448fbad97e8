"""Identity provider for the CLI.

The command line has no session, so the caller is named by a flag and
its role is looked up from the user accounts.  No flag means a guest.
"""

from __future__ import annotations

from vbs.domain.exceptions import UnauthenticatedError
from vbs.domain.gateway.identity_provider import IdentityProvider
from vbs.domain.model.value_objects import Caller
from vbs.domain.repository.booking_store import BookingStore


class AccountIdentityProvider(IdentityProvider):

    def __init__(self, store: BookingStore, user_id: str | None = None) -> None:
        self._store = store
        self._user_id = user_id

    def current_caller(self) -> Caller | None:
        if self._user_id is None:
            return None
        user = self._store.find_user(self._user_id)
        if user is None:
            raise UnauthenticatedError(f"Unknown user {self._user_id}")
        return Caller(user_id=user.id, role=user.role)

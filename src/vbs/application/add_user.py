"""Application service: Add User use case."""

from __future__ import annotations

from vbs.domain.model.user import User
from vbs.domain.model.value_objects import UserRole
from vbs.domain.repository.booking_store import BookingStore


class AddUserHandler:

    def __init__(self, store: BookingStore) -> None:
        self._store = store

    def handle(
        self,
        user_id: str,
        email: str,
        name: str | None = None,
        role: UserRole = UserRole.CUSTOMER,
    ) -> User:
        """Register an account, or update the email, name and role of an existing one."""
        user = self._store.find_user(user_id)
        if user is None:
            user = User(id=user_id, email=email, name=name, role=role)
        else:
            user.change_email(email)
            user.name = name or user.name
            user.role = role

        self._store.run(lambda tx: tx.save_user(user))
        return user

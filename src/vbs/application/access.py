"""Caller checks shared by the administrative use cases."""

from __future__ import annotations

from vbs.domain.exceptions import AccessDeniedError, UnauthenticatedError
from vbs.domain.model.value_objects import Caller


def require_admin(caller: Caller | None) -> Caller:
    if caller is None:
        raise UnauthenticatedError()
    if not caller.is_admin:
        raise AccessDeniedError("Admin access required")
    return caller

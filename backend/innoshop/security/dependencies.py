from __future__ import annotations

from fastapi import Depends, Request

from ..errors import AccessDeniedError, UnauthorizedError
from .principal import CurrentUser


def optional_user(request: Request) -> CurrentUser | None:
    user = getattr(request.state, "user", None)
    return user if isinstance(user, CurrentUser) else None


def current_user(user: CurrentUser | None = Depends(optional_user)) -> CurrentUser:
    if user is None:
        raise UnauthorizedError("User is not authenticated")
    return user


def require_admin(user: CurrentUser = Depends(current_user)) -> CurrentUser:
    if not user.is_admin:
        raise AccessDeniedError("Admin role is required")
    return user

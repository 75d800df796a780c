from __future__ import annotations

import uuid
from datetime import datetime

from ..schemas import ApiModel
from .models import User


class UserDto(ApiModel):
    id: uuid.UUID
    first_name: str
    last_name: str
    email: str
    role: str
    is_active: bool
    email_confirmed: bool
    created_at: datetime
    updated_at: datetime | None = None

    @classmethod
    def from_user(cls, user: User) -> "UserDto":
        return cls(
            id=user.id,
            first_name=user.first_name,
            last_name=user.last_name,
            email=user.email,
            role=getattr(user.role, "value", str(user.role)),
            is_active=user.is_active,
            email_confirmed=user.email_confirmed,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class AuthResponse(ApiModel):
    access_token: str
    refresh_token: str
    user: UserDto
    expires_at: datetime


# Request bodies. Missing string fields default to "" so the request
# validators report them with their own messages instead of a 422.


class RegisterUserBody(ApiModel):
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    password: str = ""


class LoginBody(ApiModel):
    email: str = ""
    password: str = ""


class ForgotPasswordBody(ApiModel):
    email: str = ""


class ResetPasswordBody(ApiModel):
    token: str = ""
    new_password: str = ""


class RefreshTokenBody(ApiModel):
    refresh_token: str = ""


class UpdateUserBody(ApiModel):
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None


class ChangePasswordBody(ApiModel):
    current_password: str = ""
    new_password: str = ""


class ToggleUserStatusBody(ApiModel):
    is_active: bool


class UpdateUserRoleBody(ApiModel):
    role: str = ""


class BulkUserStatusBody(ApiModel):
    user_ids: list[uuid.UUID] = []
    is_active: bool


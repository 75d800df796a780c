from __future__ import annotations

import uuid
from datetime import datetime, timedelta

from ..pipeline.contracts import Request

# ---- auth ----


class RegisterUser(Request):
    first_name: str
    last_name: str
    email: str
    password: str


class Login(Request):
    email: str
    password: str


class ConfirmEmail(Request):
    token: str


class ForgotPassword(Request):
    email: str


class ResetPassword(Request):
    token: str
    new_password: str


class RefreshToken(Request):
    refresh_token: str


# ---- users ----


class GetUserById(Request):
    user_id: uuid.UUID


class GetUserByEmail(Request):
    email: str


class UpdateUser(Request):
    user_id: uuid.UUID
    caller_id: uuid.UUID
    caller_is_admin: bool = False
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None


class DeleteUser(Request):
    user_id: uuid.UUID
    caller_id: uuid.UUID
    caller_is_admin: bool = False


class ChangePassword(Request):
    user_id: uuid.UUID
    current_password: str
    new_password: str


class ToggleUserStatus(Request):
    user_id: uuid.UUID
    is_active: bool


class UpdateUserRole(Request):
    user_id: uuid.UUID
    role: str


class GetUsers(Request):
    page: int = 1
    page_size: int = 10
    search: str | None = None
    role: str | None = None
    is_active: bool | None = None
    sort_by: str | None = None
    sort_descending: bool = False


class GetUsersByIds(Request):
    user_ids: list[uuid.UUID]


class GetUsersCount(Request):
    bypass_cache: bool = False

    @property
    def cache_key(self) -> str:
        return "users:count"

    @property
    def cache_ttl(self) -> timedelta | None:
        return timedelta(minutes=5)


class GetInactiveUsers(Request):
    older_than: datetime


class BulkUpdateUserStatus(Request):
    user_ids: list[uuid.UUID]
    is_active: bool


class CleanupInactiveUsers(Request):
    older_than: datetime


class CheckPasswordStrength(Request):
    password: str


class GenerateRandomPassword(Request):
    length: int = 12


class GetUserProductsCount(Request):
    user_id: uuid.UUID


class UserExists(Request):
    user_id: uuid.UUID


class IsUserActive(Request):
    user_id: uuid.UUID


class GetUserName(Request):
    user_id: uuid.UUID

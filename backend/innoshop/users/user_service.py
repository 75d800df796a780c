from __future__ import annotations

import uuid
from datetime import datetime, timedelta

import anyio.to_thread

from ..background import BackgroundTaskRunner
from ..db.columns import utc_now
from ..errors import AccessDeniedError, ConflictError, UserNotFoundError, ValidationError
from ..observability.logging import get_logger
from ..schemas import PagedResponse
from ..security.passwords import PasswordHasher
from ..security.principal import UserRole
from . import requests as rq
from .auth_service import new_account_token
from .email import EmailService
from .models import User
from .product_client import ProductServiceClient
from .repository import UserRepository, normalize_email
from .schemas import UserDto
from .validators import is_valid_email

log = get_logger("user_service")

# Accounts deactivated for longer than this are eligible for cleanup.
INACTIVE_USER_RETENTION = timedelta(days=183)


def default_inactive_cutoff() -> datetime:
    return utc_now() - INACTIVE_USER_RETENTION


class UserService:
    def __init__(
        self,
        *,
        users: UserRepository,
        hasher: PasswordHasher,
        emails: EmailService,
        products: ProductServiceClient,
        background: BackgroundTaskRunner,
    ):
        self.users = users
        self.hasher = hasher
        self.emails = emails
        self.products = products
        self.background = background

    async def _require(self, user_id: uuid.UUID) -> User:
        user = await self.users.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError.for_id(user_id)
        return user

    def _notify_products(self, user_id: uuid.UUID, is_active: bool) -> None:
        self.background.spawn(
            f"toggle_user_products:{user_id}",
            self.products.toggle_user_products(user_id, is_active),
        )

    async def get_user_by_id(self, req: rq.GetUserById) -> UserDto:
        return UserDto.from_user(await self._require(req.user_id))

    async def get_user_by_email(self, req: rq.GetUserByEmail) -> UserDto:
        user = await self.users.get_by_email(req.email)
        if user is None:
            raise UserNotFoundError(f"User with email '{req.email}' was not found.")
        return UserDto.from_user(user)

    async def update_user(self, req: rq.UpdateUser) -> UserDto:
        if req.caller_id != req.user_id and not req.caller_is_admin:
            raise AccessDeniedError("You can only update your own profile")

        user = await self._require(req.user_id)
        if req.first_name and req.first_name.strip():
            user.first_name = req.first_name.strip()
        if req.last_name and req.last_name.strip():
            user.last_name = req.last_name.strip()

        email_changed = False
        if req.email and req.email.strip():
            new_email = normalize_email(req.email)
            if new_email != user.email:
                if not is_valid_email(new_email):
                    raise ValidationError.single("email", "Invalid email format")
                if await self.users.exists_by_email(new_email):
                    raise ConflictError("Email is already registered")
                user.email = new_email
                user.email_confirmed = False
                user.email_confirmation_token = new_account_token()
                email_changed = True

        user.touch()
        await self.users.update(user)
        log.info("user_updated", user_id=str(user.id), email_changed=email_changed)

        if email_changed:
            self.background.spawn(
                "send_confirmation_email",
                self.emails.send_confirmation_email(user.email, user.email_confirmation_token or ""),
            )
        return UserDto.from_user(user)

    async def delete_user(self, req: rq.DeleteUser) -> None:
        if req.caller_id != req.user_id and not req.caller_is_admin:
            raise AccessDeniedError("You can only delete your own account")

        user = await self._require(req.user_id)
        await self.users.delete(user)
        log.info("user_deleted", user_id=str(user.id))
        self._notify_products(user.id, False)

    async def change_password(self, req: rq.ChangePassword) -> None:
        user = await self._require(req.user_id)
        if not await anyio.to_thread.run_sync(self.hasher.verify_password, req.current_password, user.password_hash):
            raise ValidationError.single("currentPassword", "Current password is incorrect")
        if not self.hasher.is_password_strong(req.new_password):
            raise ValidationError.single("newPassword", "New password does not meet security requirements")

        user.password_hash = await anyio.to_thread.run_sync(self.hasher.hash_password, req.new_password)
        user.touch()
        await self.users.update(user)
        log.info("password_changed", user_id=str(user.id))

    async def toggle_user_status(self, req: rq.ToggleUserStatus) -> None:
        user = await self._require(req.user_id)
        user.is_active = req.is_active
        user.touch()
        await self.users.update(user)
        log.info("user_status_changed", user_id=str(user.id), is_active=req.is_active)
        self._notify_products(user.id, req.is_active)

    async def update_user_role(self, req: rq.UpdateUserRole) -> None:
        role = UserRole.parse(req.role)
        if role is None:
            raise ValidationError.single("role", "Invalid role")

        user = await self._require(req.user_id)
        user.role = role
        user.touch()
        await self.users.update(user)
        log.info("user_role_changed", user_id=str(user.id), role=role.value)

    async def get_users(self, req: rq.GetUsers) -> PagedResponse[UserDto]:
        items, total = await self.users.list_paged(
            search=req.search,
            role=UserRole.parse(req.role) if req.role else None,
            is_active=req.is_active,
            sort_by=req.sort_by,
            sort_descending=req.sort_descending,
            page=req.page,
            page_size=req.page_size,
        )
        return PagedResponse[UserDto](
            items=[UserDto.from_user(u) for u in items],
            page=req.page,
            page_size=req.page_size,
            total_count=total,
        )

    async def get_users_by_ids(self, req: rq.GetUsersByIds) -> list[UserDto]:
        return [UserDto.from_user(u) for u in await self.users.get_by_ids(req.user_ids)]

    async def get_users_count(self, req: rq.GetUsersCount) -> int:
        return await self.users.count_all()

    async def get_inactive_users(self, req: rq.GetInactiveUsers) -> list[UserDto]:
        return [UserDto.from_user(u) for u in await self.users.get_inactive_users(req.older_than)]

    async def bulk_update_user_status(self, req: rq.BulkUpdateUserStatus) -> None:
        users = await self.users.get_by_ids(req.user_ids)
        for user in users:
            user.is_active = req.is_active
            user.touch()
        await self.users.update_many(users)
        log.info(
            "user_status_bulk_changed",
            requested=len(req.user_ids),
            updated=len(users),
            is_active=req.is_active,
        )
        for user in users:
            self._notify_products(user.id, req.is_active)

    async def cleanup_inactive_users(self, req: rq.CleanupInactiveUsers) -> int:
        stale = await self.users.get_inactive_users(req.older_than)
        deleted = await self.users.delete_many(stale)
        log.info("inactive_users_cleaned_up", deleted=deleted, older_than=req.older_than.isoformat())
        return deleted

    async def check_password_strength(self, req: rq.CheckPasswordStrength) -> bool:
        return self.hasher.is_password_strong(req.password)

    async def generate_random_password(self, req: rq.GenerateRandomPassword) -> str:
        return self.hasher.generate_random_password(req.length)

    async def get_user_products_count(self, req: rq.GetUserProductsCount) -> int:
        await self._require(req.user_id)
        return await self.products.get_user_products_count(req.user_id)

    async def user_exists(self, req: rq.UserExists) -> bool:
        return await self.users.get_by_id(req.user_id) is not None

    async def is_user_active(self, req: rq.IsUserActive) -> bool:
        return (await self._require(req.user_id)).is_active

    async def get_user_name(self, req: rq.GetUserName) -> str:
        return (await self._require(req.user_id)).full_name

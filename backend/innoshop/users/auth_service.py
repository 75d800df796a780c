from __future__ import annotations

import secrets
import uuid
from datetime import timedelta

import anyio.to_thread

from ..background import BackgroundTaskRunner
from ..db.columns import utc_now
from ..errors import (
    BusinessRuleError,
    ConflictError,
    EmailNotConfirmedError,
    InvalidTokenError,
    UnauthorizedError,
    ValidationError,
)
from ..observability.logging import get_logger
from ..security.passwords import PasswordHasher
from ..security.principal import UserRole
from ..security.tokens import TokenService
from ..settings import Settings
from . import requests as rq
from .email import EmailService
from .models import User
from .repository import UserRepository, normalize_email
from .schemas import AuthResponse, UserDto
from .validators import is_valid_email

log = get_logger("auth_service")

RESET_TOKEN_LIFETIME = timedelta(hours=24)


def new_account_token() -> str:
    """Opaque URL-safe token for confirmation and reset links."""
    return secrets.token_urlsafe(32)


class AuthService:
    def __init__(
        self,
        *,
        settings: Settings,
        users: UserRepository,
        tokens: TokenService,
        hasher: PasswordHasher,
        emails: EmailService,
        background: BackgroundTaskRunner,
    ):
        self.settings = settings
        self.users = users
        self.tokens = tokens
        self.hasher = hasher
        self.emails = emails
        self.background = background

    async def _hash(self, password: str) -> str:
        return await anyio.to_thread.run_sync(self.hasher.hash_password, password)

    async def _verify(self, password: str, hashed: str) -> bool:
        return await anyio.to_thread.run_sync(self.hasher.verify_password, password, hashed)

    async def register(self, req: rq.RegisterUser) -> UserDto:
        email = normalize_email(req.email)
        if await self.users.exists_by_email(email):
            raise ConflictError("Email is already registered")
        if not is_valid_email(email):
            raise ValidationError.single("email", "Invalid email format")
        if not self.hasher.is_password_strong(req.password):
            raise ValidationError.single("password", "Password does not meet security requirements")

        user = User(
            id=uuid.uuid4(),
            first_name=req.first_name.strip(),
            last_name=req.last_name.strip(),
            email=email,
            password_hash=await self._hash(req.password),
            role=UserRole.USER,
            is_active=True,
            email_confirmed=False,
            email_confirmation_token=new_account_token(),
            created_at=utc_now(),
        )
        await self.users.add(user)
        log.info("user_registered", user_id=str(user.id))

        self.background.spawn(
            "send_confirmation_email",
            self.emails.send_confirmation_email(user.email, user.email_confirmation_token or ""),
        )
        return UserDto.from_user(user)

    async def login(self, req: rq.Login) -> AuthResponse:
        user = await self.users.get_by_email(req.email)
        if user is None or not await self._verify(req.password, user.password_hash):
            log.info("login_failed", reason="invalid_credentials")
            raise UnauthorizedError("Invalid email or password")
        if not user.is_active:
            raise BusinessRuleError("Account is deactivated. Please contact administrator.")
        if not user.email_confirmed:
            raise EmailNotConfirmedError("Please confirm your email address before logging in.")

        log.info("user_logged_in", user_id=str(user.id))
        return self._auth_response(user)

    async def confirm_email(self, req: rq.ConfirmEmail) -> None:
        user = await self.users.get_by_email_confirmation_token(req.token)
        if user is None:
            raise InvalidTokenError("Invalid email confirmation token")

        user.email_confirmed = True
        user.email_confirmation_token = None
        user.touch()
        await self.users.update(user)
        log.info("email_confirmed", user_id=str(user.id))

        self.background.spawn("send_welcome_email", self.emails.send_welcome_email(user.email, user.first_name))

    async def forgot_password(self, req: rq.ForgotPassword) -> None:
        user = await self.users.get_by_email(req.email)
        if user is None:
            # Unknown addresses get the same response as known ones.
            log.info("password_reset_unknown_email")
            return
        if not user.is_active:
            raise BusinessRuleError("Account is deactivated")

        user.password_reset_token = new_account_token()
        user.reset_token_expires = utc_now() + RESET_TOKEN_LIFETIME
        user.touch()
        await self.users.update(user)
        log.info("password_reset_requested", user_id=str(user.id))

        self.background.spawn(
            "send_password_reset_email",
            self.emails.send_password_reset_email(user.email, user.password_reset_token),
        )

    async def reset_password(self, req: rq.ResetPassword) -> None:
        user = await self.users.get_by_password_reset_token(req.token)
        if user is None or user.reset_token_expires is None or user.reset_token_expires < utc_now():
            raise InvalidTokenError("Invalid or expired reset token")
        if not self.hasher.is_password_strong(req.new_password):
            raise ValidationError.single("newPassword", "New password does not meet security requirements")

        user.password_hash = await self._hash(req.new_password)
        user.password_reset_token = None
        user.reset_token_expires = None
        user.touch()
        await self.users.update(user)
        log.info("password_reset_completed", user_id=str(user.id))

    async def refresh_token(self, req: rq.RefreshToken) -> AuthResponse:
        user_id = self.tokens.get_user_id_from_token(req.refresh_token, token_use="refresh")
        if user_id is None:
            raise UnauthorizedError("Invalid refresh token")

        user = await self.users.get_by_id(user_id)
        if user is None or not user.is_active or not user.email_confirmed:
            raise UnauthorizedError("User not found or inactive")

        log.info("token_refreshed", user_id=str(user.id))
        return self._auth_response(user)

    def _auth_response(self, user: User) -> AuthResponse:
        return AuthResponse(
            access_token=self.tokens.generate_access_token(user),
            refresh_token=self.tokens.generate_refresh_token(user),
            user=UserDto.from_user(user),
            expires_at=utc_now() + timedelta(hours=int(self.settings.jwt_expiry_hours)),
        )

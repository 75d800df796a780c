from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

from jose import JWTError, jwt

from ..observability.logging import get_logger
from ..settings import Settings
from .principal import SERVICE_USER_ID, CurrentUser, UserRole

ALGORITHM = "HS256"

log = get_logger("tokens")


class TokenSubject(Protocol):
    id: uuid.UUID
    email: str
    role: Any
    is_active: bool
    email_confirmed: bool


def _role_value(role: Any) -> str:
    return str(getattr(role, "value", role) or "")


def _as_bool(v: Any) -> bool:
    if isinstance(v, bool):
        return v
    return str(v or "").strip().lower() == "true"


class TokenService:
    """
    HS256 bearer tokens shared by both services.

    Access and refresh tokens carry the same identity claims and differ only in
    `token_use` and lifetime.
    """

    def __init__(self, settings: Settings):
        self._key = settings.signing_key
        self._issuer = settings.jwt_issuer
        self._audience = settings.jwt_audience
        self._access_ttl = timedelta(hours=int(settings.jwt_expiry_hours))
        self._refresh_ttl = timedelta(days=int(settings.jwt_refresh_expiry_days))
        self._service_ttl = timedelta(minutes=int(settings.service_token_expiry_minutes))

    def _encode(self, claims: dict[str, Any], *, ttl: timedelta, token_use: str) -> str:
        now = datetime.now(timezone.utc)
        payload = {
            **claims,
            "token_use": token_use,
            "jti": str(uuid.uuid4()),
            "iss": self._issuer,
            "aud": self._audience,
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
        }
        return jwt.encode(payload, self._key, algorithm=ALGORITHM)

    @staticmethod
    def _identity_claims(user: TokenSubject) -> dict[str, Any]:
        return {
            "sub": str(user.id),
            "email": user.email,
            "role": _role_value(user.role),
            "is_active": bool(user.is_active),
            "email_confirmed": bool(user.email_confirmed),
        }

    def generate_access_token(self, user: TokenSubject) -> str:
        return self._encode(self._identity_claims(user), ttl=self._access_ttl, token_use="access")

    def generate_refresh_token(self, user: TokenSubject) -> str:
        return self._encode(self._identity_claims(user), ttl=self._refresh_ttl, token_use="refresh")

    def generate_service_token(self, service_name: str) -> str:
        claims = {
            "sub": str(SERVICE_USER_ID),
            "email": None,
            "role": UserRole.ADMIN.value,
            "is_active": True,
            "email_confirmed": True,
            "service": str(service_name or "").strip() or "unknown",
        }
        return self._encode(claims, ttl=self._service_ttl, token_use="access")

    def validate_token(self, token: str, token_use: str = "access") -> dict[str, Any] | None:
        """Decoded claims, or None when the token is invalid, expired or of another use."""
        if not token:
            return None
        try:
            claims = jwt.decode(
                token,
                self._key,
                algorithms=[ALGORITHM],
                audience=self._audience,
                issuer=self._issuer,
                options={"leeway": 0, "require_exp": True, "require_sub": True},
            )
        except JWTError as e:
            log.info("token_rejected", reason=str(e), token_use=token_use)
            return None

        if claims.get("token_use") != token_use:
            log.info("token_rejected", reason="token_use mismatch", token_use=token_use)
            return None
        return claims

    def get_user_id_from_token(self, token: str, token_use: str = "access") -> uuid.UUID | None:
        claims = self.validate_token(token, token_use)
        if not claims:
            return None
        try:
            return uuid.UUID(str(claims.get("sub") or ""))
        except ValueError:
            return None

    def current_user_from_token(self, token: str) -> CurrentUser | None:
        claims = self.validate_token(token, "access")
        if not claims:
            return None
        try:
            user_id = uuid.UUID(str(claims.get("sub") or ""))
        except ValueError:
            return None
        email = claims.get("email")
        return CurrentUser(
            id=user_id,
            email=str(email) if email else None,
            role=str(claims.get("role") or UserRole.USER.value),
            is_active=_as_bool(claims.get("is_active")),
            email_confirmed=_as_bool(claims.get("email_confirmed")),
            claims=claims,
        )

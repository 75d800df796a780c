from __future__ import annotations

import uuid
from dataclasses import dataclass

from jose import jwt

from innoshop.security.passwords import SPECIAL_CHARS, PasswordHasher
from innoshop.security.principal import SERVICE_USER_ID, UserRole
from innoshop.security.tokens import ALGORITHM, TokenService
from innoshop.settings import Settings


@dataclass
class _Subject:
    id: uuid.UUID
    email: str = "jane@example.com"
    role: UserRole = UserRole.USER
    is_active: bool = True
    email_confirmed: bool = True


def _tokens(**overrides) -> TokenService:
    values = {"APP_ENV": "test", "JWT_SECRET": "unit-test-secret-0123456789abcdef0123456789"}
    values.update(overrides)
    return TokenService(Settings(**values))


def test_hash_and_verify_round_trip():
    hasher = PasswordHasher(rounds=4)
    hashed = hasher.hash_password("Password123!")
    assert hashed != "Password123!"
    assert hasher.verify_password("Password123!", hashed)
    assert not hasher.verify_password("Password123?", hashed)
    assert not hasher.verify_password("", hashed)
    assert not hasher.verify_password("Password123!", "not-a-bcrypt-hash")


def test_password_strength_policy():
    strong = PasswordHasher.is_password_strong
    assert strong("Password123!")
    assert not strong("weak")
    assert not strong("password123!")
    assert not strong("PASSWORD123!")
    assert not strong("Password!!!")
    assert not strong("Password123")
    assert not strong("Pa1!")


def test_generated_passwords_cover_every_class():
    for length in (8, 12, 64):
        pw = PasswordHasher.generate_random_password(length)
        assert len(pw) == length
        assert any(c.isupper() for c in pw)
        assert any(c.islower() for c in pw)
        assert any(c.isdigit() for c in pw)
        assert any(c in SPECIAL_CHARS for c in pw)
        assert PasswordHasher.is_password_strong(pw)


def test_access_token_carries_identity_claims():
    tokens = _tokens()
    user = _Subject(id=uuid.uuid4(), role=UserRole.ADMIN)
    claims = tokens.validate_token(tokens.generate_access_token(user))

    assert claims is not None
    assert claims["sub"] == str(user.id)
    assert claims["email"] == user.email
    assert claims["role"] == "Admin"
    assert claims["is_active"] is True
    assert claims["email_confirmed"] is True
    assert claims["jti"]
    assert claims["iss"] == "InnoShop-UserService"
    assert claims["aud"] == "InnoShop-Client"

    current = tokens.current_user_from_token(tokens.generate_access_token(user))
    assert current is not None and current.id == user.id and current.is_admin


def test_refresh_and_access_tokens_are_not_interchangeable():
    tokens = _tokens()
    user = _Subject(id=uuid.uuid4())
    refresh = tokens.generate_refresh_token(user)
    access = tokens.generate_access_token(user)

    assert tokens.validate_token(refresh) is None
    assert tokens.get_user_id_from_token(refresh, token_use="refresh") == user.id
    assert tokens.get_user_id_from_token(access, token_use="refresh") is None


def test_tokens_signed_with_another_key_or_expired_are_rejected():
    user = _Subject(id=uuid.uuid4())
    other = _tokens(JWT_SECRET="a-completely-different-secret-value-0000000000")
    tokens = _tokens()
    assert tokens.validate_token(other.generate_access_token(user)) is None

    expired = _tokens(JWT_EXPIRY_HOURS=-1)
    assert tokens.validate_token(expired.generate_access_token(user)) is None
    assert tokens.validate_token("") is None
    assert tokens.validate_token("garbage") is None


def test_service_token_is_an_admin_principal():
    tokens = _tokens()
    current = tokens.current_user_from_token(tokens.generate_service_token("ProductService"))
    assert current is not None
    assert current.id == SERVICE_USER_ID
    assert current.is_service and current.is_admin

    raw = jwt.get_unverified_claims(tokens.generate_service_token("ProductService"))
    assert raw["service"] == "ProductService"
    assert jwt.get_unverified_header(tokens.generate_service_token("x"))["alg"] == ALGORITHM


def test_role_parsing_is_case_insensitive():
    assert UserRole.parse("admin") is UserRole.ADMIN
    assert UserRole.parse(" USER ") is UserRole.USER
    assert UserRole.parse("root") is None
    assert UserRole.parse(None) is None

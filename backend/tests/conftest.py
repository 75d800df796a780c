from __future__ import annotations

import sys
import uuid
from pathlib import Path

import pytest

# Ensure `backend/` is on sys.path so `import innoshop.*` works in tests.
BACKEND_DIR = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(BACKEND_DIR))

from fastapi.testclient import TestClient  # noqa: E402

from innoshop.settings import Settings  # noqa: E402
from innoshop.users.email import EmailSender  # noqa: E402
from innoshop.users.repository import UserRepository  # noqa: E402

STRONG_PASSWORD = "Password123!"


class RecordingEmailSender(EmailSender):
    def __init__(self) -> None:
        self.sent: list[dict[str, str]] = []

    async def send(self, *, to_email: str, subject: str, html: str) -> str | None:
        self.sent.append({"to": to_email, "subject": subject, "html": html})
        return None


class FakeProductClient:
    def __init__(self) -> None:
        self.toggles: list[tuple[uuid.UUID, bool]] = []
        self.counts: dict[uuid.UUID, int] = {}

    async def toggle_user_products(self, user_id: uuid.UUID, is_active: bool) -> None:
        self.toggles.append((user_id, is_active))

    async def get_user_products_count(self, user_id: uuid.UUID) -> int:
        return self.counts.get(user_id, 0)

    async def check_health(self) -> bool:
        return True


class FakeUserClient:
    """Users are active unless listed in `inactive`."""

    def __init__(self) -> None:
        self.inactive: set[uuid.UUID] = set()
        self.active_checks = 0

    async def validate_user_active(self, user_id: uuid.UUID) -> bool:
        self.active_checks += 1
        return user_id not in self.inactive


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        APP_ENV="test",
        USERS_DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'users.db'}",
        PRODUCTS_DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'products.db'}",
        JWT_SECRET="unit-test-secret-0123456789abcdef0123456789",
        BCRYPT_ROUNDS=4,
        EMAIL_BACKEND="log",
    )


@pytest.fixture
def email_sender() -> RecordingEmailSender:
    return RecordingEmailSender()


@pytest.fixture
def product_client() -> FakeProductClient:
    return FakeProductClient()


@pytest.fixture
def user_client() -> FakeUserClient:
    return FakeUserClient()


@pytest.fixture
def users_client(settings, email_sender, product_client):
    from innoshop.users.main import create_app

    app = create_app(settings, email_sender=email_sender, product_client=product_client)
    with TestClient(app) as client:
        yield client


@pytest.fixture
def products_client(settings, user_client):
    from innoshop.products.main import create_app

    app = create_app(settings, user_client=user_client)
    with TestClient(app) as client:
        yield client


def drain_background(client: TestClient) -> None:
    """Let fire-and-forget tasks spawned by previous requests finish."""
    client.portal.call(client.app.state.background.drain)


def stored_user(client: TestClient, email: str):
    repo = UserRepository(client.app.state.db)
    return client.portal.call(repo.get_by_email, email)


def service_headers(client: TestClient) -> dict[str, str]:
    """Bearer header for an Admin caller (the service principal)."""
    token = client.app.state.tokens.generate_service_token("tests")
    return {"Authorization": f"Bearer {token}"}


def register(client: TestClient, email: str, password: str = STRONG_PASSWORD, **extra):
    body = {"firstName": "Jane", "lastName": "Doe", "email": email, "password": password, **extra}
    return client.post("/api/auth/register", json=body)


def register_confirmed(client: TestClient, email: str, password: str = STRONG_PASSWORD) -> dict:
    """Register, confirm and log in; returns the login response body."""
    r = register(client, email, password)
    assert r.status_code == 201, r.text
    token = stored_user(client, email).email_confirmation_token
    r = client.post("/api/auth/confirm-email", params={"token": token})
    assert r.status_code == 200, r.text
    r = client.post("/api/auth/login", json={"email": email, "password": password})
    assert r.status_code == 200, r.text
    return r.json()


def bearer(auth_body: dict) -> dict[str, str]:
    return {"Authorization": f"Bearer {auth_body['accessToken']}"}

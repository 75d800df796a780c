from __future__ import annotations

import json
import uuid

import anyio
import httpx
import pytest

from innoshop.errors import ServiceCommunicationError, UserNotFoundError
from innoshop.products.user_client import UserServiceClient
from innoshop.security.principal import SERVICE_USER_ID
from innoshop.security.tokens import TokenService
from innoshop.settings import Settings
from innoshop.users.product_client import ProductServiceClient

USER_ID = uuid.UUID("3f1c2d9e-8a7b-4c6d-9e0f-1a2b3c4d5e6f")


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(Settings(APP_ENV="test", JWT_SECRET="unit-test-secret-0123456789abcdef0123456789"))


def _product_client(tokens, handler) -> ProductServiceClient:
    return ProductServiceClient(
        base_url="http://products.test",
        tokens=tokens,
        caller="UserService",
        transport=httpx.MockTransport(handler),
    )


def _user_client(tokens, handler) -> UserServiceClient:
    return UserServiceClient(
        base_url="http://users.test/",
        tokens=tokens,
        caller="ProductService",
        transport=httpx.MockTransport(handler),
    )


def test_toggle_user_products_posts_camel_case_with_service_token(tokens):
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"message": "ok", "updatedCount": 1})

    anyio.run(_product_client(tokens, handler).toggle_user_products, USER_ID, False)

    [request] = seen
    assert request.method == "POST"
    assert str(request.url) == "http://products.test/api/products/toggle-user-products"
    assert json.loads(request.content) == {"userId": str(USER_ID), "isActive": False}

    scheme, token = request.headers["Authorization"].split()
    assert scheme == "Bearer"
    caller = tokens.current_user_from_token(token)
    assert caller is not None and caller.id == SERVICE_USER_ID and caller.is_admin


def test_toggle_user_products_swallows_failures(tokens):
    def refused(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    def rejected(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, text="boom")

    for handler in (refused, rejected):
        assert anyio.run(_product_client(tokens, handler).toggle_user_products, USER_ID, True) is None


def test_products_count_accepts_bare_and_wrapped_numbers(tokens):
    bodies = iter([7, {"count": 3}])

    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == f"/api/products/user/{USER_ID}/count"
        return httpx.Response(200, json=next(bodies))

    client = _product_client(tokens, handler)
    assert anyio.run(client.get_user_products_count, USER_ID) == 7
    assert anyio.run(client.get_user_products_count, USER_ID) == 3


def test_products_count_falls_back_to_zero(tokens):
    def refused(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timed out", request=request)

    def garbage(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, text="not json")

    def forbidden(request: httpx.Request) -> httpx.Response:
        return httpx.Response(403)

    for handler in (refused, garbage, forbidden):
        assert anyio.run(_product_client(tokens, handler).get_user_products_count, USER_ID) == 0


def test_product_health_check(tokens):
    assert anyio.run(_product_client(tokens, lambda r: httpx.Response(200, json={})).check_health) is True
    assert anyio.run(_product_client(tokens, lambda r: httpx.Response(503)).check_health) is False


def test_user_active_check(tokens):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == f"/api/users/{USER_ID}/active"
        return httpx.Response(200, json=True)

    assert anyio.run(_user_client(tokens, handler).validate_user_active, USER_ID) is True


def test_unknown_user_is_not_found(tokens):
    client = _user_client(tokens, lambda r: httpx.Response(404))
    with pytest.raises(UserNotFoundError):
        anyio.run(client.validate_user_active, USER_ID)


def test_unexpected_status_degrades_to_negative_answer(tokens):
    client = _user_client(tokens, lambda r: httpx.Response(500))
    assert anyio.run(client.validate_user_active, USER_ID) is False


def test_transport_failures_raise_service_communication_error(tokens):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    with pytest.raises(ServiceCommunicationError) as ei:
        anyio.run(_user_client(tokens, handler).validate_user_active, USER_ID)
    assert ei.value.service_name == "UserService"
    assert ei.value.operation == "ValidateUserActive"
    assert isinstance(ei.value.__cause__, httpx.ReadTimeout)


def test_unreadable_body_raises_service_communication_error(tokens):
    client = _user_client(tokens, lambda r: httpx.Response(200, text="<html>"))
    with pytest.raises(ServiceCommunicationError):
        anyio.run(client.validate_user_active, USER_ID)

from __future__ import annotations

from conftest import bearer, register_confirmed, service_headers


def test_request_id_is_generated_and_returned(users_client):
    r = users_client.get("/")
    assert r.status_code == 200
    assert "X-Request-Id" in r.headers
    assert r.headers["X-Request-Id"]


def test_request_id_is_propagated_from_client(users_client):
    r = users_client.get("/", headers={"X-Request-Id": "abc-123"})
    assert r.status_code == 200
    assert r.headers.get("X-Request-Id") == "abc-123"


def test_root_and_health_describe_the_service(users_client, products_client):
    root = users_client.get("/").json()
    assert root["status"] == "running"
    assert root["message"] == "InnoShop User Service"

    assert users_client.get("/health").json() == {"status": "healthy", "service": "UserService"}
    assert products_client.get("/health").json() == {"status": "healthy", "service": "ProductService"}


def test_malformed_bodies_are_problem_json(users_client):
    # isActive is required and has no default.
    r = users_client.post("/api/users/bulk/status", json={}, headers=service_headers(users_client))
    assert r.status_code == 422
    assert r.headers.get("content-type", "").startswith("application/problem+json")
    body = r.json()
    assert body["title"] == "Validation Failed"
    assert body["status"] == 422
    assert "errors" in body and isinstance(body["errors"], list)
    assert body.get("requestId")


def test_request_validation_errors_are_keyed_by_wire_field(users_client):
    r = users_client.post("/api/auth/forgot-password", json={"email": "not-an-email"})
    assert r.status_code == 400
    assert r.headers.get("content-type", "").startswith("application/problem+json")
    body = r.json()
    assert body["title"] == "Validation Error"
    assert body["errors"] == {"email": ["Invalid email format"]}
    assert body["instance"] == "/api/auth/forgot-password"
    assert body["type"] == "https://www.rfc-editor.org/rfc/rfc9110#section-15.5.1"


def test_404_is_problem_json(users_client):
    r = users_client.get("/this-route-does-not-exist")
    assert r.status_code == 404
    assert r.headers.get("content-type", "").startswith("application/problem+json")
    body = r.json()
    assert body["status"] == 404
    assert body["detail"] == "Route not found"
    assert body.get("requestId")


def test_auth_denied_is_problem_json(users_client, products_client):
    for client, path in ((users_client, "/api/users/me"), (products_client, "/api/products")):
        r = client.get(path)
        assert r.status_code == 401
        assert r.headers.get("content-type", "").startswith("application/problem+json")
        body = r.json()
        assert body["status"] == 401
        assert body["detail"] == "Missing bearer token"
        assert body.get("requestId")


def test_invalid_bearer_token_is_rejected(users_client):
    r = users_client.get("/api/users/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid or expired token"


def test_non_admin_is_forbidden_from_admin_routes(users_client):
    auth = register_confirmed(users_client, "jane@example.com")
    r = users_client.get("/api/users", headers=bearer(auth))
    assert r.status_code == 403
    assert r.json()["title"] == "Forbidden"

from __future__ import annotations

import uuid
from dataclasses import dataclass, field

from conftest import service_headers

from innoshop.security.principal import UserRole


@dataclass
class Owner:
    id: uuid.UUID = field(default_factory=uuid.uuid4)
    email: str = "owner@example.com"
    role: UserRole = UserRole.USER
    is_active: bool = True
    email_confirmed: bool = True


def auth_headers(client, owner: Owner) -> dict[str, str]:
    token = client.app.state.tokens.generate_access_token(owner)
    return {"Authorization": f"Bearer {token}"}


def create(client, owner: Owner, name: str, price: float = 10.5, **extra):
    body = {"name": name, "description": "A perfectly ordinary product", "price": price, **extra}
    return client.post("/api/products", json=body, headers=auth_headers(client, owner))


def test_create_and_fetch_product(products_client, user_client):
    owner = Owner()
    r = create(products_client, owner, "  Coffee Mug ", price=12.99)
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["name"] == "Coffee Mug"
    assert body["price"] == 12.99
    assert body["isAvailable"] is True
    assert body["userId"] == str(owner.id)
    assert r.headers["Location"] == f"/api/products/{body['id']}"
    assert user_client.active_checks == 1

    r = products_client.get(f"/api/products/{body['id']}", headers=auth_headers(products_client, owner))
    assert r.status_code == 200
    assert r.json()["description"] == "A perfectly ordinary product"


def test_create_validates_every_field(products_client):
    r = products_client.post(
        "/api/products",
        json={"name": "<script>", "description": "short", "price": 0},
        headers=auth_headers(products_client, Owner()),
    )
    assert r.status_code == 400
    errors = r.json()["errors"]
    assert errors["name"] == ["Product name contains invalid characters"]
    assert errors["description"] == ["Product description must be between 10 and 1000 characters"]
    assert errors["price"] == ["Price must be greater than 0"]


def test_duplicate_name_for_same_owner_conflicts(products_client):
    owner = Owner()
    first = create(products_client, owner, "Lamp").json()
    r = create(products_client, owner, "Lamp")
    assert r.status_code == 409
    assert r.json()["detail"] == f"Product with name 'Lamp' already exists (ID: {first['id']})"

    # Names are unique per owner only.
    assert create(products_client, Owner(), "Lamp").status_code == 201


def test_inactive_owner_cannot_create(products_client, user_client):
    owner = Owner()
    user_client.inactive.add(owner.id)
    r = create(products_client, owner, "Lamp")
    assert r.status_code == 409
    assert r.json()["title"] == "Business Rule Violation"
    assert r.json()["detail"] == f"User with ID '{owner.id}' is not active."


def test_only_the_owner_may_modify(products_client):
    owner, other = Owner(), Owner()
    product = create(products_client, owner, "Lamp").json()
    path = f"/api/products/{product['id']}"
    other_headers = auth_headers(products_client, other)

    assert products_client.put(path, json={"name": "Stolen"}, headers=other_headers).status_code == 403
    assert products_client.delete(path, headers=other_headers).status_code == 403
    assert products_client.patch(f"{path}/toggle-status", headers=other_headers).status_code == 403

    r = products_client.put(path, json={"price": 99.5}, headers=auth_headers(products_client, owner))
    assert r.status_code == 200
    assert r.json()["price"] == 99.5
    assert r.json()["name"] == "Lamp"
    assert r.json()["updatedAt"]


def test_soft_deleted_products_disappear(products_client):
    owner = Owner()
    headers = auth_headers(products_client, owner)
    product = create(products_client, owner, "Lamp").json()
    path = f"/api/products/{product['id']}"

    r = products_client.delete(path, headers=headers)
    assert r.status_code == 204

    assert products_client.get(path, headers=headers).status_code == 404
    assert products_client.get("/api/products/my", headers=headers).json() == []
    r = products_client.get("/api/products/count", headers={**headers, "Cache-Control": "no-cache"})
    assert r.json() == 0


def test_toggle_status_flips_availability(products_client):
    owner = Owner()
    headers = auth_headers(products_client, owner)
    product = create(products_client, owner, "Lamp").json()
    path = f"/api/products/{product['id']}/toggle-status"

    assert products_client.patch(path, headers=headers).json() == {"isAvailable": False}
    assert products_client.patch(path, headers=headers).json() == {"isAvailable": True}


def test_bulk_update_only_touches_owned_products(products_client):
    owner, other = Owner(), Owner()
    mine = [create(products_client, owner, f"Item {i}").json()["id"] for i in range(2)]
    theirs = create(products_client, other, "Item 9").json()["id"]
    headers = auth_headers(products_client, owner)

    r = products_client.post(
        "/api/products/bulk-update-status",
        json={"productIds": [*mine, theirs], "isAvailable": False},
        headers=headers,
    )
    assert r.status_code == 200
    assert all(p["isAvailable"] is False for p in products_client.get("/api/products/my", headers=headers).json())
    assert products_client.get(f"/api/products/{theirs}", headers=headers).json()["isAvailable"] is True

    r = products_client.post(
        "/api/products/bulk-update-status",
        json={"productIds": [theirs], "isAvailable": False},
        headers=headers,
    )
    assert r.status_code == 404
    assert r.json()["detail"] == "No valid products found for bulk update"

    r = products_client.post("/api/products/bulk-update-status", json={"productIds": [], "isAvailable": False}, headers=headers)
    assert r.status_code == 400


def test_listing_filters_sorts_and_pages(products_client):
    owner, other = Owner(), Owner()
    create(products_client, owner, "Alpha", price=5)
    create(products_client, owner, "Bravo", price=15)
    create(products_client, other, "Charlie", price=25)
    headers = auth_headers(products_client, owner)

    r = products_client.get("/api/products", params={"sortBy": "price", "sortDescending": True}, headers=headers)
    page = r.json()
    assert [p["name"] for p in page["items"]] == ["Charlie", "Bravo", "Alpha"]
    assert page["pageSize"] == 20
    assert page["totalCount"] == 3

    r = products_client.get(
        "/api/products",
        params={"minPrice": 10, "userId": str(owner.id)},
        headers={**headers, "Cache-Control": "no-cache"},
    )
    assert [p["name"] for p in r.json()["items"]] == ["Bravo"]

    r = products_client.get("/api/products", params={"search": "alp"}, headers=headers)
    assert [p["name"] for p in r.json()["items"]] == ["Alpha"]

    r = products_client.get("/api/products", params={"minPrice": 20, "maxPrice": 10}, headers=headers)
    assert r.status_code == 400
    assert r.json()["errors"]["maxPrice"] == ["Maximum price must be greater than minimum price"]


def test_cached_reads_are_stale_until_bypassed(products_client):
    owner = Owner()
    headers = auth_headers(products_client, owner)
    create(products_client, owner, "Alpha", price=5)

    assert products_client.get("/api/products/count", headers=headers).json() == 1
    assert products_client.get("/api/products/total-value", headers=headers).json() == {"totalValue": 5.0}

    create(products_client, owner, "Bravo", price=7.25)

    # Cached entries are not invalidated by writes.
    assert products_client.get("/api/products/count", headers=headers).json() == 1
    assert products_client.get("/api/products/total-value", headers=headers).json() == {"totalValue": 5.0}

    fresh = {**headers, "Cache-Control": "no-cache"}
    assert products_client.get("/api/products/count", headers=fresh).json() == 2
    assert products_client.get("/api/products/total-value", headers=fresh).json() == {"totalValue": 12.25}


def test_recent_products_are_newest_first(products_client):
    owner = Owner()
    headers = auth_headers(products_client, owner)
    for name in ("First", "Second", "Third"):
        create(products_client, owner, name)

    r = products_client.get("/api/products/recent", params={"count": 2}, headers=headers)
    assert [p["name"] for p in r.json()] == ["Third", "Second"]

    r = products_client.get("/api/products/recent", params={"count": 101}, headers=headers)
    assert r.status_code == 400


def test_toggle_user_products_is_for_admins(products_client, user_client):
    owner = Owner()
    for name in ("Alpha", "Bravo"):
        create(products_client, owner, name)
    body = {"userId": str(owner.id), "isActive": False}

    r = products_client.post("/api/products/toggle-user-products", json=body, headers=auth_headers(products_client, owner))
    assert r.status_code == 403

    # The owner is typically deactivated by the time this is called.
    user_client.inactive.add(owner.id)
    admin = service_headers(products_client)
    r = products_client.post("/api/products/toggle-user-products", json=body, headers=admin)
    assert r.status_code == 200
    assert r.json() == {"message": "Successfully updated 2 products", "updatedCount": 2}

    r = products_client.post(
        "/api/products/toggle-user-products",
        json={"userId": str(uuid.uuid4()), "isActive": False},
        headers=admin,
    )
    assert r.json()["message"] == "No products found for user"

    assert products_client.get(f"/api/products/user/{owner.id}/count", headers=admin).json() == 2

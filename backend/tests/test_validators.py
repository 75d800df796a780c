from __future__ import annotations

import uuid
from decimal import Decimal

import anyio

from innoshop.products import requests as prq
from innoshop.products import validators as pv
from innoshop.users import requests as urq
from innoshop.users import validators as uv


def errors_for(rule_set, request) -> dict[str, list[str]]:
    return anyio.run(rule_set.validate, request).errors


def test_valid_registration_passes():
    req = urq.RegisterUser(first_name="Anne-Marie", last_name="O'Neil", email="anne@example.com", password="Password123!")
    assert errors_for(uv.register_user, req) == {}


def test_names_accept_cyrillic_and_reject_digits():
    ok = urq.RegisterUser(first_name="Иван", last_name="Петров", email="ivan@example.com", password="Password123!")
    assert errors_for(uv.register_user, ok) == {}

    bad = ok.model_copy(update={"first_name": "R2D2"})
    assert errors_for(uv.register_user, bad) == {
        "firstName": ["First name can only contain letters, spaces, hyphens and apostrophes"]
    }


def test_update_only_checks_supplied_fields():
    uid = uuid.uuid4()
    base = {"user_id": uid, "caller_id": uid, "caller_is_admin": False}
    assert errors_for(uv.update_user, urq.UpdateUser(**base)) == {}
    assert errors_for(uv.update_user, urq.UpdateUser(**base, email="bad")) == {"email": ["Invalid email format"]}
    assert errors_for(uv.update_user, urq.UpdateUser(**base, first_name=" ")) == {
        "firstName": ["First name cannot be empty", "First name must be between 2 and 50 characters"]
    }


def test_reset_password_token_and_new_password():
    req = urq.ResetPassword(token="short", new_password="Password123!")
    assert errors_for(uv.reset_password, req) == {"token": ["Invalid reset token"]}

    req = urq.ResetPassword(token="", new_password="")
    errors = errors_for(uv.reset_password, req)
    assert errors["token"][0] == "Reset token is required"
    assert errors["newPassword"][0] == "New password is required"


def test_paging_bounds_for_user_listing():
    assert errors_for(uv.get_users, urq.GetUsers()) == {}
    errors = errors_for(uv.get_users, urq.GetUsers(page=1001, page_size=101, role="owner", search="x" * 51))
    assert errors == {
        "page": ["Page must be less than or equal to 1000"],
        "pageSize": ["Page size must be less than or equal to 100"],
        "search": ["Search term must not exceed 50 characters"],
        "role": ["Invalid role specified"],
    }


def test_bulk_user_status_limit():
    ids = [uuid.uuid4() for _ in range(101)]
    req = urq.BulkUpdateUserStatus(user_ids=ids, is_active=True)
    assert errors_for(uv.bulk_update_user_status, req) == {"userIds": ["Cannot update more than 100 users at once"]}


def test_generated_password_length_bounds():
    assert errors_for(uv.generate_random_password, urq.GenerateRandomPassword(length=8)) == {}
    assert errors_for(uv.generate_random_password, urq.GenerateRandomPassword(length=129)) == {
        "length": ["Password length must not exceed 128 characters"]
    }


def test_product_price_bounds():
    def create(price: str):
        return prq.CreateProduct(
            user_id=uuid.uuid4(),
            name="Desk Lamp",
            description="A lamp for the desk",
            price=Decimal(price),
        )

    assert errors_for(pv.create_product, create("0.01")) == {}
    assert errors_for(pv.create_product, create("1000000")) == {}
    assert errors_for(pv.create_product, create("1000000.01")) == {
        "price": ["Price must be less than or equal to 1,000,000"]
    }


def test_product_update_ignores_omitted_fields():
    req = prq.UpdateProduct(product_id=uuid.uuid4(), user_id=uuid.uuid4())
    assert errors_for(pv.update_product, req) == {}

    req = prq.UpdateProduct(product_id=uuid.uuid4(), user_id=uuid.uuid4(), name="x", price=Decimal("-1"))
    assert errors_for(pv.update_product, req) == {
        "name": ["Product name must be between 2 and 100 characters"],
        "price": ["Price must be greater than 0"],
    }


def test_product_listing_rules():
    assert errors_for(pv.get_products, prq.GetProducts(sort_by="Price")) == {}
    errors = errors_for(pv.get_products, prq.GetProducts(page=0, sort_by="rating", min_price=Decimal("-1")))
    assert errors == {
        "page": ["Page must be greater than 0"],
        "minPrice": ["Minimum price must be greater than or equal to 0"],
        "sortBy": ["Invalid sort field"],
    }


def test_bulk_product_status_limit():
    req = prq.BulkUpdateStatus(user_id=uuid.uuid4(), product_ids=[uuid.uuid4() for _ in range(51)], is_available=True)
    assert errors_for(pv.bulk_update_status, req) == {"productIds": ["Cannot update more than 50 products at once"]}

from __future__ import annotations

from ..pipeline.mediator import Mediator
from ..pipeline.validation import (
    Rule,
    RuleSet,
    greater_than,
    greater_than_or_equal,
    has_value,
    is_blank,
    length,
    less_than_or_equal,
    matches,
    max_length,
    must,
    not_empty,
)
from . import requests as rq

PRODUCT_NAME_PATTERN = r"^[a-zA-Z0-9\s\-_.,!?()]+$"
PRODUCT_SORT_FIELDS = ("name", "price", "createdat", "updatedat")
MAX_PRICE = 1_000_000


def _price_rules(*, optional: bool) -> list[Rule]:
    when = (lambda r: r.price is not None) if optional else None
    return [
        greater_than("price", 0, "Price must be greater than 0", when=when),
        less_than_or_equal("price", MAX_PRICE, "Price must be less than or equal to 1,000,000", when=when),
    ]


create_product = RuleSet(
    [
        not_empty("name", "Product name is required"),
        length("name", 2, 100, "Product name must be between 2 and 100 characters"),
        matches("name", PRODUCT_NAME_PATTERN, "Product name contains invalid characters"),
        not_empty("description", "Product description is required"),
        length("description", 10, 1000, "Product description must be between 10 and 1000 characters"),
        *_price_rules(optional=False),
    ]
)

update_product = RuleSet(
    [
        not_empty("name", "Product name cannot be empty", when=has_value("name")),
        length("name", 2, 100, "Product name must be between 2 and 100 characters", when=has_value("name")),
        matches("name", PRODUCT_NAME_PATTERN, "Product name contains invalid characters", when=has_value("name")),
        not_empty("description", "Product description cannot be empty", when=has_value("description")),
        length(
            "description",
            10,
            1000,
            "Product description must be between 10 and 1000 characters",
            when=has_value("description"),
        ),
        *_price_rules(optional=True),
    ]
)


def _filter_rules() -> list[Rule]:
    return [
        max_length("search", 50, "Search term must not exceed 50 characters"),
        greater_than_or_equal("min_price", 0, "Minimum price must be greater than or equal to 0"),
        greater_than("max_price", 0, "Maximum price must be greater than 0"),
        must(
            "max_price",
            lambda r: r.max_price > r.min_price,
            "Maximum price must be greater than minimum price",
            when=lambda r: r.min_price is not None and r.max_price is not None,
        ),
    ]


get_products = RuleSet(
    [
        greater_than("page", 0, "Page must be greater than 0"),
        less_than_or_equal("page", 1000, "Page must be less than or equal to 1000"),
        greater_than("page_size", 0, "Page size must be greater than 0"),
        less_than_or_equal("page_size", 100, "Page size must be less than or equal to 100"),
        *_filter_rules(),
        must(
            "sort_by",
            lambda r: str(r.sort_by).strip().lower() in PRODUCT_SORT_FIELDS,
            "Invalid sort field",
            when=lambda r: not is_blank(r.sort_by),
        ),
    ]
)

get_products_count = RuleSet(_filter_rules())

bulk_update_status = RuleSet(
    [
        not_empty("product_ids", "At least one product ID is required"),
        must("product_ids", lambda r: len(r.product_ids) <= 50, "Cannot update more than 50 products at once"),
    ]
)

get_recent_products = RuleSet(
    [
        greater_than("count", 0, "Count must be greater than 0"),
        less_than_or_equal("count", 100, "Count must be less than or equal to 100"),
    ]
)


def register_validators(mediator: Mediator) -> None:
    mediator.add_validator(rq.CreateProduct, create_product)
    mediator.add_validator(rq.UpdateProduct, update_product)
    mediator.add_validator(rq.GetProducts, get_products)
    mediator.add_validator(rq.GetProductsCount, get_products_count)
    mediator.add_validator(rq.BulkUpdateStatus, bulk_update_status)
    mediator.add_validator(rq.GetRecentProducts, get_recent_products)

from __future__ import annotations

import uuid
from datetime import timedelta
from decimal import Decimal

from ..pipeline.contracts import Request


class ProductFilters(Request):
    search: str | None = None
    min_price: Decimal | None = None
    max_price: Decimal | None = None
    is_available: bool | None = None
    user_id: uuid.UUID | None = None

    def key_part(self) -> str:
        return ":".join(
            str(v if v is not None else "")
            for v in (self.search, self.min_price, self.max_price, self.is_available, self.user_id)
        )


class GetProductById(Request):
    product_id: uuid.UUID


class GetProducts(ProductFilters):
    page: int = 1
    page_size: int = 20
    sort_by: str | None = None
    sort_descending: bool = False
    bypass_cache: bool = False

    @property
    def cache_key(self) -> str:
        return (
            f"products:list:{self.key_part()}:{str(self.sort_by or '').lower()}:"
            f"{self.sort_descending}:{self.page}:{self.page_size}"
        )

    @property
    def cache_ttl(self) -> timedelta | None:
        return timedelta(minutes=5)


class GetProductsByUser(Request):
    user_id: uuid.UUID


class CreateProduct(Request):
    user_id: uuid.UUID
    name: str
    description: str
    price: Decimal
    is_available: bool = True


class UpdateProduct(Request):
    product_id: uuid.UUID
    user_id: uuid.UUID
    name: str | None = None
    description: str | None = None
    price: Decimal | None = None
    is_available: bool | None = None


class DeleteProduct(Request):
    product_id: uuid.UUID
    user_id: uuid.UUID


class ToggleProductStatus(Request):
    product_id: uuid.UUID
    user_id: uuid.UUID


class BulkUpdateStatus(Request):
    user_id: uuid.UUID
    product_ids: list[uuid.UUID]
    is_available: bool


class GetRecentProducts(Request):
    count: int = 10
    bypass_cache: bool = False

    @property
    def cache_key(self) -> str:
        return f"products:recent:{self.count}"

    @property
    def cache_ttl(self) -> timedelta | None:
        return timedelta(minutes=2)


class GetProductsCount(ProductFilters):
    bypass_cache: bool = False

    @property
    def cache_key(self) -> str:
        return f"products:count:{self.key_part()}"

    @property
    def cache_ttl(self) -> timedelta | None:
        return timedelta(minutes=5)


class GetTotalProductsValue(Request):
    user_id: uuid.UUID | None = None
    bypass_cache: bool = False

    @property
    def cache_key(self) -> str:
        return f"products:total-value:{self.user_id or 'all'}"

    @property
    def cache_ttl(self) -> timedelta | None:
        return timedelta(minutes=10)


class ToggleUserProducts(Request):
    user_id: uuid.UUID
    is_active: bool


class GetUserProductsCount(Request):
    user_id: uuid.UUID

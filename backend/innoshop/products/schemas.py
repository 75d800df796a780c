from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Annotated

from pydantic import PlainSerializer

from ..schemas import ApiModel
from .models import Product

# Prices are exact in storage and plain JSON numbers on the wire.
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class ProductDto(ApiModel):
    id: uuid.UUID
    name: str
    description: str
    price: Money
    is_available: bool
    user_id: uuid.UUID
    created_at: datetime
    updated_at: datetime | None = None

    @classmethod
    def from_product(cls, product: Product) -> "ProductDto":
        return cls(
            id=product.id,
            name=product.name,
            description=product.description,
            price=product.price,
            is_available=product.is_available,
            user_id=product.user_id,
            created_at=product.created_at,
            updated_at=product.updated_at,
        )


class CreateProductBody(ApiModel):
    name: str = ""
    description: str = ""
    price: Decimal = Decimal("0")
    is_available: bool = True


class UpdateProductBody(ApiModel):
    name: str | None = None
    description: str | None = None
    price: Decimal | None = None
    is_available: bool | None = None


class BulkUpdateStatusBody(ApiModel):
    product_ids: list[uuid.UUID] = []
    is_available: bool


class ToggleUserProductsBody(ApiModel):
    user_id: uuid.UUID
    is_active: bool


class AvailabilityResponse(ApiModel):
    is_available: bool


class TotalValueResponse(ApiModel):
    total_value: Money


class ToggleUserProductsResponse(ApiModel):
    message: str
    updated_count: int = 0

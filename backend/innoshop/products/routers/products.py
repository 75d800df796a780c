from __future__ import annotations

import uuid
from decimal import Decimal

from fastapi import APIRouter, Depends, Query, Request, Response

from ...pipeline.mediator import Mediator
from ...routers.deps import get_mediator, no_cache_requested
from ...schemas import MessageResponse, PagedResponse
from ...security.dependencies import current_user, require_admin
from ...security.principal import CurrentUser
from .. import requests as rq
from ..schemas import (
    AvailabilityResponse,
    BulkUpdateStatusBody,
    CreateProductBody,
    ProductDto,
    ToggleUserProductsBody,
    ToggleUserProductsResponse,
    TotalValueResponse,
    UpdateProductBody,
)

router = APIRouter(tags=["products"])


def _filters(
    search: str | None = Query(None),
    min_price: Decimal | None = Query(None, alias="minPrice"),
    max_price: Decimal | None = Query(None, alias="maxPrice"),
    is_available: bool | None = Query(None, alias="isAvailable"),
    user_id: uuid.UUID | None = Query(None, alias="userId"),
) -> dict:
    return {
        "search": search,
        "min_price": min_price,
        "max_price": max_price,
        "is_available": is_available,
        "user_id": user_id,
    }


# Static paths are declared before /{product_id} so they are matched first.


@router.get("", response_model=PagedResponse[ProductDto])
async def list_products(
    request: Request,
    page: int = Query(1),
    page_size: int = Query(20, alias="pageSize"),
    sort_by: str | None = Query(None, alias="sortBy"),
    sort_descending: bool = Query(False, alias="sortDescending"),
    filters: dict = Depends(_filters),
    _user: CurrentUser = Depends(current_user),
    mediator: Mediator = Depends(get_mediator),
):
    return await mediator.send(
        rq.GetProducts(
            **filters,
            page=page,
            page_size=page_size,
            sort_by=sort_by,
            sort_descending=sort_descending,
            bypass_cache=no_cache_requested(request),
        )
    )


@router.get("/my", response_model=list[ProductDto])
async def my_products(user: CurrentUser = Depends(current_user), mediator: Mediator = Depends(get_mediator)):
    return await mediator.send(rq.GetProductsByUser(user_id=user.id))


@router.get("/recent", response_model=list[ProductDto])
async def recent_products(
    request: Request,
    count: int = Query(10),
    _user: CurrentUser = Depends(current_user),
    mediator: Mediator = Depends(get_mediator),
):
    return await mediator.send(rq.GetRecentProducts(count=count, bypass_cache=no_cache_requested(request)))


@router.get("/count")
async def count_products(
    request: Request,
    filters: dict = Depends(_filters),
    _user: CurrentUser = Depends(current_user),
    mediator: Mediator = Depends(get_mediator),
) -> int:
    return await mediator.send(rq.GetProductsCount(**filters, bypass_cache=no_cache_requested(request)))


@router.get("/total-value", response_model=TotalValueResponse)
async def total_value(
    request: Request,
    user_id: uuid.UUID | None = Query(None, alias="userId"),
    _user: CurrentUser = Depends(current_user),
    mediator: Mediator = Depends(get_mediator),
):
    total = await mediator.send(
        rq.GetTotalProductsValue(user_id=user_id, bypass_cache=no_cache_requested(request))
    )
    return TotalValueResponse(total_value=total)


@router.post("", response_model=ProductDto, status_code=201)
async def create_product(
    body: CreateProductBody,
    response: Response,
    user: CurrentUser = Depends(current_user),
    mediator: Mediator = Depends(get_mediator),
):
    product = await mediator.send(
        rq.CreateProduct(
            user_id=user.id,
            name=body.name,
            description=body.description,
            price=body.price,
            is_available=body.is_available,
        )
    )
    response.headers["Location"] = f"/api/products/{product.id}"
    return product


@router.post("/bulk-update-status", response_model=MessageResponse)
async def bulk_update_status(
    body: BulkUpdateStatusBody,
    user: CurrentUser = Depends(current_user),
    mediator: Mediator = Depends(get_mediator),
):
    await mediator.send(
        rq.BulkUpdateStatus(user_id=user.id, product_ids=body.product_ids, is_available=body.is_available)
    )
    return MessageResponse(message="Products status updated successfully")


@router.post("/toggle-user-products", response_model=ToggleUserProductsResponse)
async def toggle_user_products(
    body: ToggleUserProductsBody,
    _admin: CurrentUser = Depends(require_admin),
    mediator: Mediator = Depends(get_mediator),
):
    updated = await mediator.send(rq.ToggleUserProducts(user_id=body.user_id, is_active=body.is_active))
    if not updated:
        return ToggleUserProductsResponse(message="No products found for user")
    return ToggleUserProductsResponse(message=f"Successfully updated {updated} products", updated_count=updated)


@router.get("/user/{user_id}/count")
async def user_products_count(
    user_id: uuid.UUID,
    _admin: CurrentUser = Depends(require_admin),
    mediator: Mediator = Depends(get_mediator),
) -> int:
    return await mediator.send(rq.GetUserProductsCount(user_id=user_id))


@router.get("/{product_id}", response_model=ProductDto)
async def get_product(
    product_id: uuid.UUID,
    _user: CurrentUser = Depends(current_user),
    mediator: Mediator = Depends(get_mediator),
):
    return await mediator.send(rq.GetProductById(product_id=product_id))


@router.put("/{product_id}", response_model=ProductDto)
async def update_product(
    product_id: uuid.UUID,
    body: UpdateProductBody,
    user: CurrentUser = Depends(current_user),
    mediator: Mediator = Depends(get_mediator),
):
    return await mediator.send(
        rq.UpdateProduct(
            product_id=product_id,
            user_id=user.id,
            name=body.name,
            description=body.description,
            price=body.price,
            is_available=body.is_available,
        )
    )


@router.delete("/{product_id}", status_code=204)
async def delete_product(
    product_id: uuid.UUID,
    user: CurrentUser = Depends(current_user),
    mediator: Mediator = Depends(get_mediator),
):
    await mediator.send(rq.DeleteProduct(product_id=product_id, user_id=user.id))
    return Response(status_code=204)


@router.patch("/{product_id}/toggle-status", response_model=AvailabilityResponse)
async def toggle_product_status(
    product_id: uuid.UUID,
    user: CurrentUser = Depends(current_user),
    mediator: Mediator = Depends(get_mediator),
):
    is_available = await mediator.send(rq.ToggleProductStatus(product_id=product_id, user_id=user.id))
    return AvailabilityResponse(is_available=is_available)

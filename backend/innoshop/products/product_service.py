from __future__ import annotations

import uuid
from decimal import Decimal

from ..db.columns import utc_now
from ..errors import AccessDeniedError, ConflictError, ProductNotFoundError, UserNotActiveError
from ..observability.logging import get_logger
from ..schemas import PagedResponse
from . import requests as rq
from .models import Product
from .repository import ProductRepository
from .schemas import ProductDto
from .user_client import UserServiceClient

log = get_logger("product_service")


class ProductService:
    def __init__(self, *, products: ProductRepository, users: UserServiceClient):
        self.products = products
        self.users = users

    async def _require_active_user(self, user_id: uuid.UUID) -> None:
        if not await self.users.validate_user_active(user_id):
            raise UserNotActiveError.for_id(user_id)

    async def _owned(self, product_id: uuid.UUID, user_id: uuid.UUID) -> Product:
        product = await self.products.get_by_id(product_id)
        if product is None or product.user_id != user_id:
            raise AccessDeniedError(f"User '{user_id}' does not have access to product '{product_id}'")
        return product

    async def _ensure_unique_name(self, name: str, user_id: uuid.UUID, *, exclude: uuid.UUID | None = None) -> None:
        existing = await self.products.get_by_name_and_user(name, user_id)
        if existing is not None and existing.id != exclude:
            raise ConflictError(f"Product with name '{name}' already exists (ID: {existing.id})")

    async def get_product_by_id(self, req: rq.GetProductById) -> ProductDto:
        product = await self.products.get_by_id(req.product_id)
        if product is None:
            raise ProductNotFoundError.for_id(req.product_id)
        return ProductDto.from_product(product)

    async def get_products(self, req: rq.GetProducts) -> PagedResponse[ProductDto]:
        items, total = await self.products.list_paged(
            req,
            sort_by=req.sort_by,
            sort_descending=req.sort_descending,
            page=req.page,
            page_size=req.page_size,
        )
        return PagedResponse[ProductDto](
            items=[ProductDto.from_product(p) for p in items],
            page=req.page,
            page_size=req.page_size,
            total_count=total,
        )

    async def get_products_by_user(self, req: rq.GetProductsByUser) -> list[ProductDto]:
        await self._require_active_user(req.user_id)
        return [ProductDto.from_product(p) for p in await self.products.get_by_user_id(req.user_id)]

    async def create_product(self, req: rq.CreateProduct) -> ProductDto:
        await self._require_active_user(req.user_id)
        name = req.name.strip()
        await self._ensure_unique_name(name, req.user_id)

        product = Product(
            id=uuid.uuid4(),
            name=name,
            description=req.description.strip(),
            price=req.price,
            is_available=req.is_available,
            user_id=req.user_id,
            is_deleted=False,
            created_at=utc_now(),
        )
        await self.products.add(product)
        log.info("product_created", product_id=str(product.id), user_id=str(req.user_id))
        return ProductDto.from_product(product)

    async def update_product(self, req: rq.UpdateProduct) -> ProductDto:
        product = await self._owned(req.product_id, req.user_id)

        if req.name and req.name.strip():
            name = req.name.strip()
            if name != product.name:
                await self._ensure_unique_name(name, req.user_id, exclude=product.id)
            product.name = name
        if req.description and req.description.strip():
            product.description = req.description.strip()
        if req.price is not None:
            product.price = req.price
        if req.is_available is not None:
            product.is_available = req.is_available

        product.touch()
        await self.products.update(product)
        log.info("product_updated", product_id=str(product.id), user_id=str(req.user_id))
        return ProductDto.from_product(product)

    async def delete_product(self, req: rq.DeleteProduct) -> None:
        product = await self._owned(req.product_id, req.user_id)
        product.is_deleted = True
        product.touch()
        await self.products.update(product)
        log.info("product_deleted", product_id=str(product.id), user_id=str(req.user_id))

    async def toggle_product_status(self, req: rq.ToggleProductStatus) -> bool:
        product = await self._owned(req.product_id, req.user_id)
        product.is_available = not product.is_available
        product.touch()
        await self.products.update(product)
        log.info("product_status_toggled", product_id=str(product.id), is_available=product.is_available)
        return product.is_available

    async def bulk_update_status(self, req: rq.BulkUpdateStatus) -> int:
        products = [p for p in await self.products.get_by_ids(req.product_ids) if p.user_id == req.user_id]
        if not products:
            raise ProductNotFoundError("No valid products found for bulk update")

        for p in products:
            p.is_available = req.is_available
            p.touch()
        await self.products.bulk_update(products)
        log.info(
            "product_status_bulk_changed",
            user_id=str(req.user_id),
            requested=len(req.product_ids),
            updated=len(products),
            is_available=req.is_available,
        )
        return len(products)

    async def get_recent_products(self, req: rq.GetRecentProducts) -> list[ProductDto]:
        return [ProductDto.from_product(p) for p in await self.products.get_recent(req.count)]

    async def get_products_count(self, req: rq.GetProductsCount) -> int:
        return await self.products.count(req)

    async def get_total_products_value(self, req: rq.GetTotalProductsValue) -> Decimal:
        return await self.products.total_value(req.user_id)

    async def toggle_user_products(self, req: rq.ToggleUserProducts) -> int:
        # The owner is usually already deactivated here, so the user service
        # is not consulted.
        products = await self.products.get_by_user_id(req.user_id)
        for p in products:
            p.is_available = req.is_active
            p.touch()
        if products:
            await self.products.bulk_update(products)
        log.info(
            "user_products_toggled",
            user_id=str(req.user_id),
            is_active=req.is_active,
            updated=len(products),
        )
        return len(products)

    async def get_user_products_count(self, req: rq.GetUserProductsCount) -> int:
        return len(await self.products.get_by_user_id(req.user_id))

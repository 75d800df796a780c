from __future__ import annotations

import uuid
from collections.abc import Iterable, Sequence
from decimal import Decimal

from sqlalchemy import ColumnElement, Select, func, or_, select

from ..db.engine import Database
from .models import Product
from .requests import ProductFilters

_SORT_COLUMNS = {
    "name": Product.name,
    "price": Product.price,
    "createdat": Product.created_at,
    "updatedat": Product.updated_at,
}


def _live() -> ColumnElement[bool]:
    return Product.is_deleted.is_(False)


def _filter_clauses(filters: ProductFilters | None) -> list[ColumnElement[bool]]:
    clauses = [_live()]
    if filters is None:
        return clauses
    term = str(filters.search or "").strip().lower()
    if term:
        clauses.append(
            or_(
                func.lower(Product.name).contains(term, autoescape=True),
                func.lower(Product.description).contains(term, autoescape=True),
            )
        )
    if filters.min_price is not None:
        clauses.append(Product.price >= filters.min_price)
    if filters.max_price is not None:
        clauses.append(Product.price <= filters.max_price)
    if filters.is_available is not None:
        clauses.append(Product.is_available == filters.is_available)
    if filters.user_id is not None:
        clauses.append(Product.user_id == filters.user_id)
    return clauses


def _ordered(stmt: Select, sort_by: str | None, descending: bool) -> Select:
    column = _SORT_COLUMNS.get(str(sort_by or "").strip().lower())
    if column is None:
        # Unknown or missing sort field: newest first.
        return stmt.order_by(Product.created_at.desc(), Product.id)
    return stmt.order_by(column.desc() if descending else column.asc(), Product.id)


class ProductRepository:
    """Async data access for products. Soft-deleted rows are never returned."""

    def __init__(self, db: Database):
        self._db = db

    async def get_by_id(self, product_id: uuid.UUID) -> Product | None:
        stmt = select(Product).where(Product.id == product_id, _live())
        async with self._db.session() as s:
            return (await s.execute(stmt)).scalar_one_or_none()

    async def get_by_user_id(self, user_id: uuid.UUID) -> list[Product]:
        stmt = (
            select(Product)
            .where(Product.user_id == user_id, _live())
            .order_by(Product.created_at.desc(), Product.id)
        )
        async with self._db.session() as s:
            return list((await s.execute(stmt)).scalars().all())

    async def list_paged(
        self,
        filters: ProductFilters | None = None,
        *,
        sort_by: str | None = None,
        sort_descending: bool = False,
        page: int = 1,
        page_size: int = 20,
    ) -> tuple[list[Product], int]:
        clauses = _filter_clauses(filters)
        count_stmt = select(func.count()).select_from(Product).where(*clauses)
        stmt = (
            _ordered(select(Product).where(*clauses), sort_by, sort_descending)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        async with self._db.session() as s:
            total = int((await s.execute(count_stmt)).scalar_one())
            items = list((await s.execute(stmt)).scalars().all())
        return items, total

    async def count(self, filters: ProductFilters | None = None) -> int:
        stmt = select(func.count()).select_from(Product).where(*_filter_clauses(filters))
        async with self._db.session() as s:
            return int((await s.execute(stmt)).scalar_one())

    async def add(self, product: Product) -> Product:
        async with self._db.session() as s:
            s.add(product)
        return product

    async def update(self, product: Product) -> Product:
        async with self._db.session() as s:
            await s.merge(product)
        return product

    async def bulk_update(self, products: Iterable[Product]) -> None:
        async with self._db.session() as s:
            for product in products:
                await s.merge(product)

    async def get_by_ids(self, product_ids: Sequence[uuid.UUID]) -> list[Product]:
        if not product_ids:
            return []
        stmt = select(Product).where(Product.id.in_(list(product_ids)), _live())
        async with self._db.session() as s:
            return list((await s.execute(stmt)).scalars().all())

    async def get_by_name_and_user(self, name: str, user_id: uuid.UUID) -> Product | None:
        stmt = select(Product).where(Product.name == name, Product.user_id == user_id, _live()).limit(1)
        async with self._db.session() as s:
            return (await s.execute(stmt)).scalar_one_or_none()

    async def get_recent(self, count: int = 10) -> list[Product]:
        stmt = select(Product).where(_live()).order_by(Product.created_at.desc(), Product.id).limit(count)
        async with self._db.session() as s:
            return list((await s.execute(stmt)).scalars().all())

    async def total_value(self, user_id: uuid.UUID | None = None) -> Decimal:
        clauses = [_live()]
        if user_id is not None:
            clauses.append(Product.user_id == user_id)
        stmt = select(func.coalesce(func.sum(Product.price), 0)).where(*clauses)
        async with self._db.session() as s:
            total = (await s.execute(stmt)).scalar_one()
        return Decimal(str(total or 0)).quantize(Decimal("0.01"))

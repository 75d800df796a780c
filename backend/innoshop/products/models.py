from __future__ import annotations

import uuid
from decimal import Decimal

from sqlalchemy import Boolean, Index, Numeric, String, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ..db.columns import TimestampMixin


class ProductsBase(DeclarativeBase):
    pass


class Product(TimestampMixin, ProductsBase):
    __tablename__ = "products"
    __table_args__ = (Index("ix_products_user_id_name", "user_id", "name"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str] = mapped_column(String(1000), nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(18, 2), nullable=False)
    is_available: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    # Owner; lives in the user service's database, so there is no foreign key.
    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    is_deleted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

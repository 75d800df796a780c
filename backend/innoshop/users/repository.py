from __future__ import annotations

import uuid
from collections.abc import AsyncIterator, Iterable, Sequence
from contextlib import asynccontextmanager
from datetime import datetime

from sqlalchemy import ColumnElement, exists, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..db.engine import Database
from ..errors import ConflictError
from ..security.principal import UserRole
from .models import User

_SORT_COLUMNS = {
    "email": User.email,
    "firstname": User.first_name,
    "lastname": User.last_name,
    "createdat": User.created_at,
}


def normalize_email(email: str | None) -> str:
    return str(email or "").strip().lower()


class UserRepository:
    """Async data access for users. Each call is its own unit of work."""

    def __init__(self, db: Database):
        self._db = db

    async def get_by_id(self, user_id: uuid.UUID) -> User | None:
        async with self._db.session() as s:
            return await s.get(User, user_id)

    async def get_by_email(self, email: str) -> User | None:
        stmt = select(User).where(func.lower(User.email) == normalize_email(email))
        async with self._db.session() as s:
            return (await s.execute(stmt)).scalar_one_or_none()

    async def exists_by_email(self, email: str) -> bool:
        stmt = select(exists().where(func.lower(User.email) == normalize_email(email)))
        async with self._db.session() as s:
            return bool((await s.execute(stmt)).scalar())

    async def get_by_email_confirmation_token(self, token: str) -> User | None:
        stmt = select(User).where(User.email_confirmation_token == token)
        async with self._db.session() as s:
            return (await s.execute(stmt)).scalar_one_or_none()

    async def get_by_password_reset_token(self, token: str) -> User | None:
        stmt = select(User).where(User.password_reset_token == token)
        async with self._db.session() as s:
            return (await s.execute(stmt)).scalar_one_or_none()

    @asynccontextmanager
    async def _unique_email_session(self) -> AsyncIterator[AsyncSession]:
        """A session whose commit maps a unique-email violation to ConflictError."""
        try:
            async with self._db.session() as s:
                yield s
        except IntegrityError as exc:
            # Another writer took the address between the existence check and commit.
            if "email" not in str(exc.orig).lower():
                raise
            raise ConflictError("Email is already registered") from exc

    async def add(self, user: User) -> User:
        async with self._unique_email_session() as s:
            s.add(user)
        return user

    async def update(self, user: User) -> User:
        async with self._unique_email_session() as s:
            await s.merge(user)
        return user

    async def update_many(self, users: Iterable[User]) -> None:
        async with self._db.session() as s:
            for user in users:
                await s.merge(user)

    async def delete(self, user: User) -> None:
        async with self._db.session() as s:
            row = await s.get(User, user.id)
            if row is not None:
                await s.delete(row)

    async def delete_many(self, users: Iterable[User]) -> int:
        deleted = 0
        async with self._db.session() as s:
            for user in users:
                row = await s.get(User, user.id)
                if row is not None:
                    await s.delete(row)
                    deleted += 1
        return deleted

    async def list_paged(
        self,
        *,
        search: str | None = None,
        role: UserRole | None = None,
        is_active: bool | None = None,
        sort_by: str | None = None,
        sort_descending: bool = False,
        page: int = 1,
        page_size: int = 10,
    ) -> tuple[list[User], int]:
        filters: list[ColumnElement[bool]] = []
        term = str(search or "").strip().lower()
        if term:
            filters.append(
                or_(
                    func.lower(User.first_name).contains(term, autoescape=True),
                    func.lower(User.last_name).contains(term, autoescape=True),
                    func.lower(User.email).contains(term, autoescape=True),
                )
            )
        if role is not None:
            filters.append(User.role == role)
        if is_active is not None:
            filters.append(User.is_active == is_active)

        column = _SORT_COLUMNS.get(str(sort_by or "").strip().lower(), User.created_at)
        order = column.desc() if sort_descending else column.asc()

        count_stmt = select(func.count()).select_from(User).where(*filters)
        stmt = (
            select(User)
            .where(*filters)
            .order_by(order, User.id)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        async with self._db.session() as s:
            total = int((await s.execute(count_stmt)).scalar_one())
            items = list((await s.execute(stmt)).scalars().all())
        return items, total

    async def get_by_ids(self, user_ids: Sequence[uuid.UUID]) -> list[User]:
        if not user_ids:
            return []
        stmt = select(User).where(User.id.in_(list(user_ids)))
        async with self._db.session() as s:
            return list((await s.execute(stmt)).scalars().all())

    async def count_all(self) -> int:
        async with self._db.session() as s:
            return int((await s.execute(select(func.count()).select_from(User))).scalar_one())

    async def get_inactive_users(self, older_than: datetime) -> list[User]:
        last_change = func.coalesce(User.updated_at, User.created_at)
        stmt = (
            select(User)
            .where(User.is_active.is_(False), last_change < older_than)
            .order_by(last_change)
        )
        async with self._db.session() as s:
            return list((await s.execute(stmt)).scalars().all())

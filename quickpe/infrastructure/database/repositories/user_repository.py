"""SQLAlchemy implementation of the user repository."""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from sqlalchemy import func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from quickpe.db.models import User as UserModel
from quickpe.modules.users.exceptions import UserNotFoundError
from quickpe.modules.users.models import User, UserPage


class SqlUserRepository:
    """User repository backed by SQLAlchemy models."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, user_id: str) -> User | None:
        stmt = select(UserModel).where(UserModel.id == user_id)
        result = await self._session.execute(stmt)
        return self._to_domain(result.scalar_one_or_none())

    async def get_by_username(self, username: str) -> User | None:
        stmt = select(UserModel).where(UserModel.username == username)
        result = await self._session.execute(stmt)
        return self._to_domain(result.scalar_one_or_none())

    async def get_by_quickpe_id(self, quickpe_id: str) -> User | None:
        stmt = select(UserModel).where(UserModel.quickpe_id == quickpe_id.strip().upper())
        result = await self._session.execute(stmt)
        return self._to_domain(result.scalar_one_or_none())

    async def quickpe_id_exists(self, quickpe_id: str) -> bool:
        stmt = select(func.count()).select_from(UserModel).where(UserModel.quickpe_id == quickpe_id)
        result = await self._session.execute(stmt)
        return bool(result.scalar_one())

    async def get_many(self, user_ids: Sequence[str]) -> dict[str, User]:
        if not user_ids:
            return {}
        stmt = select(UserModel).where(UserModel.id.in_(set(user_ids)))
        result = await self._session.execute(stmt)
        return {model.id: self._to_domain(model) for model in result.scalars().all()}

    async def search(self, term: str | None, *, exclude_id: str | None, limit: int, offset: int) -> UserPage:
        stmt = select(UserModel)
        if term:
            pattern = f"%{term.strip()}%"
            stmt = stmt.where(
                or_(
                    UserModel.first_name.ilike(pattern),
                    UserModel.last_name.ilike(pattern),
                    UserModel.username.ilike(pattern),
                    UserModel.quickpe_id.ilike(pattern),
                )
            )
        if exclude_id:
            stmt = stmt.where(UserModel.id != exclude_id)

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await self._session.execute(count_stmt)).scalar_one()

        stmt = stmt.order_by(UserModel.first_name, UserModel.last_name, UserModel.id).offset(offset).limit(limit)
        result = await self._session.execute(stmt)
        return UserPage(users=[self._to_domain(model) for model in result.scalars().all()], total=int(total))

    async def create_user(
        self,
        *,
        username: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        quickpe_id: str,
        role: str,
    ) -> User:
        model = UserModel(
            username=username,
            password_hash=password_hash,
            first_name=first_name,
            last_name=last_name,
            quickpe_id=quickpe_id,
            role=role,
            is_active=True,
        )
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_domain(model)

    async def update_user(
        self,
        user_id: str,
        *,
        first_name: str,
        last_name: str,
        is_active: bool,
        role: str,
    ) -> User:
        stmt = select(UserModel).where(UserModel.id == user_id)
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        if model is None:
            raise UserNotFoundError(user_id)

        model.first_name = first_name
        model.last_name = last_name
        model.is_active = is_active
        model.role = role

        await self._session.flush()
        await self._session.refresh(model)
        return self._to_domain(model)

    async def set_password_hash(self, user_id: str, password_hash: str) -> None:
        stmt = update(UserModel).where(UserModel.id == user_id).values(password_hash=password_hash)
        await self._session.execute(stmt)

    async def set_last_login(self, user_id: str, timestamp: datetime) -> None:
        stmt = (
            update(UserModel)
            .where(UserModel.id == user_id)
            .values(last_login_at=timestamp)
        )
        await self._session.execute(stmt)

    @staticmethod
    def _to_domain(model: UserModel | None) -> User | None:
        if model is None:
            return None
        return User(
            id=str(model.id),
            username=model.username,
            first_name=model.first_name,
            last_name=model.last_name,
            quickpe_id=model.quickpe_id,
            role=model.role or "user",
            is_active=bool(model.is_active),
            password_hash=model.password_hash,
            created_at=model.created_at,
            updated_at=model.updated_at,
            last_login_at=model.last_login_at,
        )

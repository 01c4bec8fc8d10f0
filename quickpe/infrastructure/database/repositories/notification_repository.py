"""SQLAlchemy implementation for notification repository"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Sequence

from sqlalchemy import desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from quickpe.db.models import Notification as NotificationModel
from quickpe.modules.notifications.models import Notification


class SqlNotificationRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def add(
        self,
        *,
        user_id: str,
        type: str,
        title: str,
        message: str,
        data: dict[str, Any],
        transaction_id: str | None,
    ) -> Notification:
        model = NotificationModel(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            data=data,
            transaction_id=transaction_id,
        )
        self.session.add(model)
        await self.session.flush()
        await self.session.refresh(model)
        return self._to_domain(model)

    async def list_for_user(self, user_id: str, limit: int) -> Sequence[Notification]:
        stmt = (
            select(NotificationModel)
            .where(NotificationModel.user_id == user_id)
            .order_by(desc(NotificationModel.created_at), desc(NotificationModel.id))
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()]

    async def count_unread(self, user_id: str) -> int:
        stmt = (
            select(func.count())
            .select_from(NotificationModel)
            .where(NotificationModel.user_id == user_id, NotificationModel.read.is_(False))
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def mark_read(self, notification_id: str, user_id: str, timestamp: datetime) -> Notification | None:
        stmt = select(NotificationModel).where(
            NotificationModel.id == notification_id,
            NotificationModel.user_id == user_id,
        )
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        if model is None:
            return None
        if not model.read:
            model.read = True
            model.read_at = timestamp
            await self.session.flush()
        return self._to_domain(model)

    async def mark_all_read(self, user_id: str, timestamp: datetime) -> int:
        stmt = (
            update(NotificationModel)
            .where(NotificationModel.user_id == user_id, NotificationModel.read.is_(False))
            .values(read=True, read_at=timestamp)
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return int(result.rowcount or 0)

    @staticmethod
    def _to_domain(model: NotificationModel) -> Notification:
        return Notification(
            id=model.id,
            user_id=model.user_id,
            type=model.type,
            title=model.title,
            message=model.message,
            data=dict(model.data or {}),
            transaction_id=model.transaction_id,
            read=bool(model.read),
            read_at=model.read_at,
            created_at=model.created_at,
        )

"""Notification inbox use cases."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Sequence

from sqlalchemy.ext.asyncio import AsyncSession

from .exceptions import NotificationNotFoundError
from .models import Notification
from .repository import NotificationRepository

INBOX_LIMIT = 50


class NotificationService:
    def __init__(self, repository: NotificationRepository) -> None:
        self._repository = repository

    @classmethod
    def with_session(cls, session: AsyncSession) -> "NotificationService":
        from quickpe.infrastructure.database.repositories.notification_repository import (
            SqlNotificationRepository,
        )

        return cls(SqlNotificationRepository(session))

    async def create(
        self,
        user_id: str,
        type: str,
        title: str,
        message: str,
        *,
        data: dict[str, Any] | None = None,
        transaction_id: str | None = None,
    ) -> Notification:
        return await self._repository.add(
            user_id=user_id,
            type=type,
            title=title,
            message=message,
            data=data or {},
            transaction_id=transaction_id,
        )

    async def list_recent(self, user_id: str, limit: int = INBOX_LIMIT) -> Sequence[Notification]:
        return await self._repository.list_for_user(user_id, max(1, min(limit, INBOX_LIMIT)))

    async def unread_count(self, user_id: str) -> int:
        return await self._repository.count_unread(user_id)

    async def mark_read(self, notification_id: str, user_id: str) -> Notification:
        notification = await self._repository.mark_read(notification_id, user_id, datetime.now(timezone.utc))
        if notification is None:
            raise NotificationNotFoundError(notification_id)
        return notification

    async def mark_all_read(self, user_id: str) -> int:
        return await self._repository.mark_all_read(user_id, datetime.now(timezone.utc))

"""Repository protocol for notifications."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Protocol, Sequence

from .models import Notification


class NotificationRepository(Protocol):
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
        ...

    async def list_for_user(self, user_id: str, limit: int) -> Sequence[Notification]:
        ...

    async def count_unread(self, user_id: str) -> int:
        ...

    async def mark_read(self, notification_id: str, user_id: str, timestamp: datetime) -> Notification | None:
        ...

    async def mark_all_read(self, user_id: str, timestamp: datetime) -> int:
        ...

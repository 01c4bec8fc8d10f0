"""Repository protocol for money requests."""

from __future__ import annotations

from datetime import datetime
from typing import Optional, Protocol

from .models import MoneyRequest, NewMoneyRequest, RequestDirection


class MoneyRequestRepository(Protocol):
    async def add(self, request: NewMoneyRequest) -> MoneyRequest:
        ...

    async def get(self, request_id: str) -> MoneyRequest | None:
        ...

    async def list_for_user(
        self,
        user_id: str,
        direction: RequestDirection,
        *,
        status: Optional[str],
        offset: int,
        limit: int,
    ) -> tuple[list[MoneyRequest], int]:
        ...

    async def requested_total(self, requester_id: str, requestee_id: str, since: datetime) -> int:
        """Sum of pending and approved requests between the pair created at or after ``since``."""
        ...

    async def expire_pending(self, now: datetime) -> int:
        ...

    async def close_pending(
        self,
        request_id: str,
        status: str,
        *,
        responded_at: datetime,
        transaction_id: str | None = None,
        rejection_reason: str | None = None,
    ) -> bool:
        """Move a still-pending, unexpired request to ``status``; False if it was no longer open."""
        ...

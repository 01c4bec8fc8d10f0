"""Platform-wide figures for the admin dashboard."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from .models import PlatformSummary
from .repository import AnalyticsRepository

logger = logging.getLogger(__name__)


class AnalyticsService:
    def __init__(self, repository: AnalyticsRepository) -> None:
        self._repository = repository

    @classmethod
    def with_session(cls, session: AsyncSession) -> "AnalyticsService":
        from quickpe.infrastructure.database.repositories.analytics_repository import (
            SqlAnalyticsRepository,
        )

        return cls(SqlAnalyticsRepository(session))

    async def summary(self, now: datetime | None = None) -> PlatformSummary:
        now = now or datetime.now(timezone.utc)
        transfers, transfer_volume = await self._repository.ledger_totals("transfer")
        _, deposit_volume = await self._repository.ledger_totals("deposit")
        summary = PlatformSummary(
            total_users=await self._repository.count_users(),
            active_users=await self._repository.count_users(active_only=True),
            total_transfers=transfers,
            transfer_volume_paise=transfer_volume,
            deposit_volume_paise=deposit_volume,
            transfers_last_24h=await self._repository.count_transfers_since(now - timedelta(hours=24)),
        )
        logger.debug("Analytics summary computed: %s", summary)
        return summary

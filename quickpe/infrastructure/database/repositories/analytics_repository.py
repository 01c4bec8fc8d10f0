"""SQLAlchemy aggregate queries backing the admin analytics."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from quickpe.db.models import LedgerEntry as LedgerEntryModel
from quickpe.db.models import User as UserModel


class SqlAnalyticsRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def count_users(self, *, active_only: bool = False) -> int:
        stmt = select(func.count()).select_from(UserModel)
        if active_only:
            stmt = stmt.where(UserModel.is_active.is_(True))
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def ledger_totals(self, category: str) -> tuple[int, int]:
        # Every movement has exactly one credit leg, so counting credits counts movements.
        stmt = select(
            func.count(LedgerEntryModel.id),
            func.coalesce(func.sum(LedgerEntryModel.amount_paise), 0),
        ).where(
            LedgerEntryModel.category == category,
            LedgerEntryModel.type == "credit",
        )
        result = await self.session.execute(stmt)
        count, volume = result.one()
        return int(count), int(volume)

    async def count_transfers_since(self, since: datetime) -> int:
        stmt = select(func.count(LedgerEntryModel.id)).where(
            LedgerEntryModel.category == "transfer",
            LedgerEntryModel.type == "credit",
            LedgerEntryModel.created_at >= since,
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

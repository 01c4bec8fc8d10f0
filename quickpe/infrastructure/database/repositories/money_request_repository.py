"""SQLAlchemy implementation of the money request repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import desc, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from quickpe.db.models import MoneyRequest as MoneyRequestModel, utcnow
from quickpe.modules.money_requests.models import (
    APPROVED,
    EXPIRED,
    PENDING,
    MoneyRequest,
    NewMoneyRequest,
    RequestDirection,
)


def _utc(value: datetime | None) -> datetime | None:
    # SQLite hands back naive datetimes; everything is written in UTC.
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


class SqlMoneyRequestRepository:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def add(self, request: NewMoneyRequest) -> MoneyRequest:
        model = MoneyRequestModel(
            request_id=request.request_id,
            requester_id=request.requester_id,
            requester_name=request.requester_name,
            requester_quickpe_id=request.requester_quickpe_id,
            requestee_id=request.requestee_id,
            requestee_name=request.requestee_name,
            requestee_quickpe_id=request.requestee_quickpe_id,
            amount_paise=request.amount_paise,
            description=request.description,
            status=PENDING,
            expires_at=request.expires_at,
            created_at=request.created_at,
        )
        self.session.add(model)
        await self.session.flush()
        await self.session.refresh(model)
        return self._to_domain(model)

    async def get(self, request_id: str) -> MoneyRequest | None:
        stmt = (
            select(MoneyRequestModel)
            .where(MoneyRequestModel.id == request_id)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_domain(model) if model is not None else None

    async def list_for_user(
        self,
        user_id: str,
        direction: RequestDirection,
        *,
        status: Optional[str],
        offset: int,
        limit: int,
    ) -> tuple[list[MoneyRequest], int]:
        owner = MoneyRequestModel.requestee_id if direction == "received" else MoneyRequestModel.requester_id
        stmt = select(MoneyRequestModel).where(owner == user_id)
        if status:
            stmt = stmt.where(MoneyRequestModel.status == status)

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await self.session.execute(count_stmt)).scalar_one()

        stmt = (
            stmt.order_by(desc(MoneyRequestModel.created_at), desc(MoneyRequestModel.id))
            .offset(offset)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return [self._to_domain(model) for model in result.scalars().all()], int(total)

    async def requested_total(self, requester_id: str, requestee_id: str, since: datetime) -> int:
        stmt = select(func.coalesce(func.sum(MoneyRequestModel.amount_paise), 0)).where(
            MoneyRequestModel.requester_id == requester_id,
            MoneyRequestModel.requestee_id == requestee_id,
            MoneyRequestModel.created_at >= since,
            MoneyRequestModel.status.in_((PENDING, APPROVED)),
        )
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def expire_pending(self, now: datetime) -> int:
        stmt = (
            update(MoneyRequestModel)
            .where(MoneyRequestModel.status == PENDING, MoneyRequestModel.expires_at < now)
            .values(status=EXPIRED, responded_at=now, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return int(result.rowcount or 0)

    async def close_pending(
        self,
        request_id: str,
        status: str,
        *,
        responded_at: datetime,
        transaction_id: str | None = None,
        rejection_reason: str | None = None,
    ) -> bool:
        stmt = (
            update(MoneyRequestModel)
            .where(
                MoneyRequestModel.id == request_id,
                MoneyRequestModel.status == PENDING,
                MoneyRequestModel.expires_at >= responded_at,
            )
            .values(
                status=status,
                responded_at=responded_at,
                transaction_id=transaction_id,
                rejection_reason=rejection_reason,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount == 1

    @staticmethod
    def _to_domain(model: MoneyRequestModel) -> MoneyRequest:
        return MoneyRequest(
            id=model.id,
            request_id=model.request_id,
            requester_id=model.requester_id,
            requester_name=model.requester_name,
            requester_quickpe_id=model.requester_quickpe_id,
            requestee_id=model.requestee_id,
            requestee_name=model.requestee_name,
            requestee_quickpe_id=model.requestee_quickpe_id,
            amount_paise=int(model.amount_paise),
            description=model.description,
            status=model.status,
            expires_at=_utc(model.expires_at),
            created_at=_utc(model.created_at),
            transaction_id=model.transaction_id,
            rejection_reason=model.rejection_reason,
            responded_at=_utc(model.responded_at),
        )

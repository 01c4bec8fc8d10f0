"""SQLAlchemy implementation of the transaction log."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import desc, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from quickpe.db.models import Account as AccountModel, LedgerEntry, User as UserModel, utcnow
from quickpe.modules.transactions.models import Counterparty, EntryType, NewLedgerEntry, TransactionRecord


class SqlTransactionLog:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def append(self, entry: NewLedgerEntry) -> int:
        row = LedgerEntry(
            transaction_id=entry.transaction_id,
            account_id=entry.account_id,
            from_account_id=entry.from_account_id,
            to_account_id=entry.to_account_id,
            type=entry.type,
            category=entry.category,
            amount_paise=entry.amount_paise,
            balance_after_paise=entry.balance_after_paise,
            description=entry.description,
            idempotency_key=entry.idempotency_key,
            created_at=entry.created_at or utcnow(),
        )
        self.session.add(row)
        await self.session.flush()
        return int(row.id)

    async def find_by_idempotency_key(self, account_id: str, idempotency_key: str) -> TransactionRecord | None:
        stmt = select(LedgerEntry).where(
            LedgerEntry.account_id == account_id,
            LedgerEntry.idempotency_key == idempotency_key,
        )
        result = await self.session.execute(stmt)
        return self._to_domain(result.scalars().first())

    async def get_leg(self, transaction_id: str, type: EntryType) -> TransactionRecord | None:
        stmt = select(LedgerEntry).where(
            LedgerEntry.transaction_id == transaction_id,
            LedgerEntry.type == type,
        )
        result = await self.session.execute(stmt)
        return self._to_domain(result.scalars().first())

    async def list_by_account(
        self,
        account_id: str,
        *,
        offset: int,
        limit: int,
        type: EntryType | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
        search: str | None = None,
    ) -> tuple[list[TransactionRecord], int]:
        stmt = select(LedgerEntry).where(LedgerEntry.account_id == account_id)
        if type:
            stmt = stmt.where(LedgerEntry.type == type)
        if start is not None:
            stmt = stmt.where(LedgerEntry.created_at >= start)
        if end is not None:
            stmt = stmt.where(LedgerEntry.created_at <= end)
        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(
                or_(
                    LedgerEntry.description.ilike(pattern),
                    LedgerEntry.transaction_id.ilike(pattern),
                )
            )

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await self.session.execute(count_stmt)).scalar_one()

        stmt = stmt.order_by(desc(LedgerEntry.created_at), desc(LedgerEntry.id)).offset(offset).limit(limit)
        result = await self.session.execute(stmt)
        records = [self._to_domain(row) for row in result.scalars().all()]
        await self._attach_counterparties(records)
        return records, int(total)

    async def _attach_counterparties(self, records: list[TransactionRecord]) -> None:
        account_ids = {record.counterparty_account_id for record in records} - {None}
        if not account_ids:
            return
        stmt = (
            select(AccountModel.id, UserModel.id, UserModel.first_name, UserModel.last_name, UserModel.quickpe_id)
            .join(UserModel, UserModel.id == AccountModel.user_id)
            .where(AccountModel.id.in_(account_ids))
        )
        result = await self.session.execute(stmt)
        parties = {
            account_id: Counterparty(user_id=user_id, name=f"{first} {last}".strip(), quickpe_id=quickpe_id)
            for account_id, user_id, first, last, quickpe_id in result.all()
        }
        for record in records:
            record.counterparty = parties.get(record.counterparty_account_id)

    @staticmethod
    def _to_domain(row: LedgerEntry | None) -> TransactionRecord | None:
        if row is None:
            return None
        return TransactionRecord(
            id=int(row.id),
            transaction_id=row.transaction_id,
            account_id=row.account_id,
            from_account_id=row.from_account_id,
            to_account_id=row.to_account_id,
            type=row.type,
            category=row.category,
            amount_paise=int(row.amount_paise),
            balance_after_paise=int(row.balance_after_paise),
            description=row.description,
            idempotency_key=row.idempotency_key,
            created_at=row.created_at,
        )

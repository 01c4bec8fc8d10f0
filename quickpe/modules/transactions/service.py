"""Transaction history and statement export."""

from __future__ import annotations

import csv
import io
from dataclasses import dataclass
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from quickpe.core.money import to_rupees

from .models import HistoryFilters, TransactionPage, TransactionRecord
from .repository import TransactionLog

STATEMENT_PAGE_SIZE = 500
STATEMENT_HEADER = (
    "Date",
    "Transaction ID",
    "Type",
    "Category",
    "Counterparty",
    "QuickPe ID",
    "Description",
    "Amount (INR)",
    "Balance After (INR)",
)


@dataclass(slots=True)
class TransactionHistoryService:
    log: TransactionLog
    max_page_size: int = 100

    @classmethod
    def with_session(cls, session: AsyncSession, max_page_size: int = 100) -> "TransactionHistoryService":
        from quickpe.infrastructure.database.repositories.ledger_repository import SqlTransactionLog

        return cls(SqlTransactionLog(session), max_page_size)

    async def list_history(
        self,
        account_id: str,
        *,
        page: int = 1,
        page_size: int = 10,
        filters: HistoryFilters | None = None,
        now: datetime | None = None,
    ) -> TransactionPage:
        page = max(page, 1)
        page_size = min(max(page_size, 1), self.max_page_size)
        filters = filters or HistoryFilters()
        start, end = filters.date_range(now or datetime.now(timezone.utc))

        records, total = await self.log.list_by_account(
            account_id,
            offset=(page - 1) * page_size,
            limit=page_size,
            type=filters.type,
            start=start,
            end=end,
            search=filters.search,
        )
        return TransactionPage(records=records, total=total, page=page, page_size=page_size)

    async def export_csv(
        self,
        account_id: str,
        filters: HistoryFilters | None = None,
        now: datetime | None = None,
    ) -> str:
        """Render every matching ledger leg, newest first, reading in fixed-size batches."""
        filters = filters or HistoryFilters()
        now = now or datetime.now(timezone.utc)
        start, end = filters.date_range(now)
        # Pinning the upper bound keeps offsets stable while new legs are written.
        end = min(end, now) if end is not None else now

        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(STATEMENT_HEADER)
        offset = 0
        while True:
            records, total = await self.log.list_by_account(
                account_id,
                offset=offset,
                limit=STATEMENT_PAGE_SIZE,
                type=filters.type,
                start=start,
                end=end,
                search=filters.search,
            )
            for record in records:
                writer.writerow(_statement_row(record))
            offset += len(records)
            if not records or offset >= total:
                break
        return buffer.getvalue()


def _statement_row(record: TransactionRecord) -> tuple[str, ...]:
    party = record.counterparty
    return (
        record.created_at.isoformat() if record.created_at else "",
        record.transaction_id,
        record.type,
        record.category,
        party.name if party else "",
        party.quickpe_id if party else "",
        record.description or "",
        str(to_rupees(record.amount_paise)),
        str(to_rupees(record.balance_after_paise)),
    )

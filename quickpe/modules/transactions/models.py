"""Domain models for the transaction log."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Literal, Optional

EntryType = Literal["debit", "credit"]
DatePreset = Literal["today", "week", "month", "3months"]


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Ledger timestamps are stored as UTC; naive input is taken to be UTC already."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


@dataclass(slots=True)
class Counterparty:
    user_id: str
    name: str
    quickpe_id: str


@dataclass(slots=True)
class NewLedgerEntry:
    transaction_id: str
    account_id: str
    from_account_id: Optional[str]
    to_account_id: str
    type: EntryType
    category: str
    amount_paise: int
    balance_after_paise: int
    description: Optional[str] = None
    idempotency_key: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(slots=True)
class TransactionRecord:
    id: int
    transaction_id: str
    account_id: str
    from_account_id: Optional[str]
    to_account_id: str
    type: str
    category: str
    amount_paise: int
    balance_after_paise: int
    description: Optional[str]
    idempotency_key: Optional[str]
    created_at: datetime
    counterparty: Optional[Counterparty] = None

    @property
    def counterparty_account_id(self) -> Optional[str]:
        if self.category == "deposit":
            return None
        return self.to_account_id if self.type == "debit" else self.from_account_id


@dataclass(slots=True)
class HistoryFilters:
    type: Optional[EntryType] = None
    date_preset: Optional[DatePreset] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    search: Optional[str] = None

    def date_range(self, now: datetime) -> tuple[Optional[datetime], Optional[datetime]]:
        """Resolve the preset against ``now``; explicit start/end take precedence."""
        start, end = None, None
        if self.date_preset == "today":
            start = now.replace(hour=0, minute=0, second=0, microsecond=0)
            end = start + timedelta(days=1)
        elif self.date_preset == "week":
            start, end = now - timedelta(days=7), now
        elif self.date_preset == "month":
            start, end = now.replace(day=1, hour=0, minute=0, second=0, microsecond=0), now
        elif self.date_preset == "3months":
            start, end = now - timedelta(days=90), now

        if self.start is not None or self.end is not None:
            start, end = _as_utc(self.start), _as_utc(self.end)
        return start, end


@dataclass(slots=True)
class TransactionPage:
    records: list[TransactionRecord] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 10

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.page_size) if self.page_size else 0

    @property
    def has_next(self) -> bool:
        return self.page * self.page_size < self.total

    @property
    def has_prev(self) -> bool:
        return self.page > 1

"""Repository protocol for the append-only transaction log."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from .models import EntryType, NewLedgerEntry, TransactionRecord


class TransactionLog(Protocol):
    async def append(self, entry: NewLedgerEntry) -> int:
        ...

    async def find_by_idempotency_key(self, account_id: str, idempotency_key: str) -> TransactionRecord | None:
        ...

    async def get_leg(self, transaction_id: str, type: EntryType) -> TransactionRecord | None:
        ...

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
        ...

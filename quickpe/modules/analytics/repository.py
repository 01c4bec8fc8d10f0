"""Repository protocol for admin analytics."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol


class AnalyticsRepository(Protocol):
    async def count_users(self, *, active_only: bool = False) -> int:
        ...

    async def ledger_totals(self, category: str) -> tuple[int, int]:
        """Return ``(count, volume_paise)`` of credit legs in ``category``."""
        ...

    async def count_transfers_since(self, since: datetime) -> int:
        ...

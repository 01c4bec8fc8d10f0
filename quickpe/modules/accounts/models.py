"""Domain models for wallet accounts."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(slots=True)
class AccountSnapshot:
    id: str
    user_id: str
    balance_paise: int
    currency: str
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status == "active"

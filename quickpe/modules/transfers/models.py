"""Domain models for transfers and deposits."""

from __future__ import annotations

import secrets
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from quickpe.core.money import AmountFormatError, AmountInput, to_paise

from .exceptions import InvalidAmount

_BASE36 = "0123456789ABCDEFGHIJKLMNOPQRSTUVWXYZ"


def _base36(value: int) -> str:
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits)) or "0"


def generate_reference(prefix: str) -> str:
    """Human-referenceable id: ``prefix`` + base36 epoch millis + 6 random base36 chars."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(6))
    return f"{prefix}{_base36(int(time.time() * 1000))}{suffix}"


def generate_transaction_id() -> str:
    return generate_reference("TXN")


def parse_amount(value: AmountInput) -> int:
    """Rupee amount from a request body as paise; raises ``InvalidAmount``."""
    try:
        return to_paise(value)
    except AmountFormatError as exc:
        raise InvalidAmount(str(exc)) from exc


@dataclass(slots=True)
class TransferResult:
    transaction_id: str
    from_user_id: str
    to_user_id: str
    from_account_id: str
    to_account_id: str
    amount_paise: int
    sender_balance_paise: int
    recipient_balance_paise: Optional[int]
    description: Optional[str]
    created_at: datetime
    replayed: bool = False

    @property
    def success(self) -> bool:
        return True


@dataclass(slots=True)
class DepositResult:
    transaction_id: str
    user_id: str
    account_id: str
    amount_paise: int
    balance_paise: int
    created_at: datetime

"""Events emitted after a money movement has committed."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol, Union


@dataclass(slots=True, frozen=True)
class TransferCompleted:
    transaction_id: str
    from_user_id: str
    to_user_id: str
    amount_paise: int
    sender_balance_paise: int
    recipient_balance_paise: Optional[int]
    description: Optional[str]
    created_at: datetime


@dataclass(slots=True, frozen=True)
class DepositCompleted:
    transaction_id: str
    user_id: str
    amount_paise: int
    balance_paise: int
    created_at: datetime


TransferEvent = Union[TransferCompleted, DepositCompleted]


class TransferEventPublisher(Protocol):
    """Receives events only after commit. Delivery is at-least-once at best."""

    async def publish(self, event: TransferEvent) -> None:
        ...


class NullPublisher:
    async def publish(self, event: TransferEvent) -> None:
        return None


__all__ = [
    "TransferCompleted",
    "DepositCompleted",
    "TransferEvent",
    "TransferEventPublisher",
    "NullPublisher",
]

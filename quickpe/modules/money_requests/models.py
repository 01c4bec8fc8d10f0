"""Domain models for peer money requests."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal, Optional

from quickpe.modules.transfers.models import generate_reference

PENDING = "pending"
APPROVED = "approved"
REJECTED = "rejected"
CANCELLED = "cancelled"
EXPIRED = "expired"

REQUEST_STATUSES = (PENDING, APPROVED, REJECTED, CANCELLED, EXPIRED)

RequestStatus = Literal["pending", "approved", "rejected", "cancelled", "expired"]
RequestDirection = Literal["received", "sent"]


def generate_request_id() -> str:
    return generate_reference("REQ")


@dataclass(slots=True)
class MoneyRequest:
    id: str
    request_id: str
    requester_id: str
    requester_name: str
    requester_quickpe_id: str
    requestee_id: str
    requestee_name: str
    requestee_quickpe_id: str
    amount_paise: int
    description: Optional[str]
    status: str
    expires_at: datetime
    created_at: datetime
    transaction_id: Optional[str] = None
    rejection_reason: Optional[str] = None
    responded_at: Optional[datetime] = None

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def can_respond(self, now: datetime) -> bool:
        return self.status == PENDING and not self.is_expired(now)


@dataclass(slots=True)
class NewMoneyRequest:
    request_id: str
    requester_id: str
    requester_name: str
    requester_quickpe_id: str
    requestee_id: str
    requestee_name: str
    requestee_quickpe_id: str
    amount_paise: int
    description: Optional[str]
    expires_at: datetime
    created_at: datetime


@dataclass(slots=True)
class MoneyRequestPage:
    requests: list[MoneyRequest] = field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 10


@dataclass(slots=True)
class ApprovalResult:
    request: MoneyRequest
    transaction_id: str
    balance_paise: int
    replayed: bool = False

"""Notification domain model."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

TRANSFER_SENT = "TRANSFER_SENT"
TRANSFER_RECEIVED = "TRANSFER_RECEIVED"
MONEY_ADDED = "MONEY_ADDED"
MONEY_REQUEST_RECEIVED = "MONEY_REQUEST_RECEIVED"
MONEY_REQUEST_REJECTED = "MONEY_REQUEST_REJECTED"


@dataclass(slots=True)
class Notification:
    id: str
    user_id: str
    type: str
    title: str
    message: str
    data: dict[str, Any] = field(default_factory=dict)
    transaction_id: Optional[str] = None
    read: bool = False
    read_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    def to_message(self) -> dict[str, Any]:
        """Payload pushed over the websocket as ``notification:new``."""
        return {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "data": self.data,
            "transaction_id": self.transaction_id,
            "read": self.read,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

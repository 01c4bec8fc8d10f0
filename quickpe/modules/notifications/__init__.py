"""Notification inbox and realtime delivery."""

from .exceptions import NotificationError, NotificationNotFoundError
from .models import (
    MONEY_ADDED,
    MONEY_REQUEST_RECEIVED,
    MONEY_REQUEST_REJECTED,
    TRANSFER_RECEIVED,
    TRANSFER_SENT,
    Notification,
)
from .service import NotificationService

__all__ = [
    "Notification",
    "NotificationService",
    "NotificationError",
    "NotificationNotFoundError",
    "TRANSFER_SENT",
    "TRANSFER_RECEIVED",
    "MONEY_ADDED",
    "MONEY_REQUEST_RECEIVED",
    "MONEY_REQUEST_REJECTED",
]

"""Transfer domain exports.

``TransferService`` is imported from :mod:`quickpe.modules.transfers.service`.
"""

from .events import DepositCompleted, NullPublisher, TransferCompleted, TransferEvent, TransferEventPublisher
from .exceptions import (
    IdempotencyKeyReused,
    InsufficientBalance,
    InvalidAmount,
    RecipientNotFound,
    SelfTransferRejected,
    TransferError,
    TransferFailed,
)
from .models import DepositResult, TransferResult, generate_reference, parse_amount

__all__ = [
    "TransferResult",
    "DepositResult",
    "TransferCompleted",
    "DepositCompleted",
    "TransferEvent",
    "TransferEventPublisher",
    "NullPublisher",
    "TransferError",
    "InvalidAmount",
    "InsufficientBalance",
    "RecipientNotFound",
    "SelfTransferRejected",
    "IdempotencyKeyReused",
    "TransferFailed",
    "parse_amount",
    "generate_reference",
]

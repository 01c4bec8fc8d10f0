"""Transfer domain specific exceptions."""

from __future__ import annotations


class TransferError(Exception):
    """Base class for transfer domain errors."""

    code = "transfer_error"
    status_code = 400
    default_message = "Transfer rejected"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidAmount(TransferError):
    """Raised when an amount is missing, non-integral in paise, zero or negative."""

    code = "invalid_amount"
    default_message = "Invalid amount"


class InsufficientBalance(TransferError):
    """Raised when the sender's balance read inside the transaction is below the amount."""

    code = "insufficient_balance"
    default_message = "Insufficient balance"

    def __init__(self, account_id: str, requested: int, available: int | None) -> None:
        self.account_id = account_id
        self.requested = requested
        self.available = available
        super().__init__()


class RecipientNotFound(TransferError):
    """Raised when the recipient identifier does not resolve to an account."""

    code = "recipient_not_found"
    status_code = 404
    default_message = "Recipient account not found"

    def __init__(self, identifier: str) -> None:
        self.identifier = identifier
        super().__init__()


class SelfTransferRejected(TransferError):
    code = "self_transfer"
    default_message = "Cannot send money to yourself"


class TransferFailed(TransferError):
    """Catch-all for persistence and transaction failures. Never carries driver details."""

    code = "transfer_failed"
    status_code = 500
    default_message = "Transfer failed"


class IdempotencyKeyReused(TransferError):
    """Raised when an idempotency key already settled a different transfer."""

    code = "idempotency_key_reused"
    status_code = 409
    default_message = "Idempotency key already used for a different transfer"

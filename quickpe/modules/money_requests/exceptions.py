"""Money request domain specific exceptions."""

from __future__ import annotations

from quickpe.modules.transfers.exceptions import TransferError


class MoneyRequestError(TransferError):
    """Base class for money request errors.

    Shares the transfer error taxonomy so a rejection raised while settling an
    approval aborts the transfer and reaches the client unchanged.
    """

    code = "money_request_error"
    default_message = "Money request rejected"


class MoneyRequestNotFound(MoneyRequestError):
    code = "money_request_not_found"
    status_code = 404
    default_message = "Money request not found"


class MoneyRequestForbidden(MoneyRequestError):
    """Raised when a user acts on a request that is not addressed to them."""

    code = "money_request_forbidden"
    status_code = 403
    default_message = "Unauthorized to respond to this request"


class MoneyRequestClosed(MoneyRequestError):
    """Raised when a request is expired or has already been answered."""

    code = "money_request_closed"
    default_message = "Request already responded to"


class RequesteeNotFound(MoneyRequestError):
    code = "requestee_not_found"
    status_code = 404
    default_message = "Recipient not found. Please check QuickPe ID."


class RequesteeInactive(MoneyRequestError):
    code = "requestee_inactive"
    status_code = 403
    default_message = "Recipient account is deactivated"


class SelfRequestRejected(MoneyRequestError):
    code = "self_request"
    default_message = "Cannot request money from yourself"


class RequestLimitExceeded(MoneyRequestError):
    """Raised for a single request above the cap or a pair's daily total above the limit."""

    code = "request_limit_exceeded"

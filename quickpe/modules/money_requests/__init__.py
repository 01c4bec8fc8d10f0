"""Peer money requests.

``MoneyRequestService`` is imported from :mod:`quickpe.modules.money_requests.service`.
"""

from .exceptions import (
    MoneyRequestClosed,
    MoneyRequestError,
    MoneyRequestForbidden,
    MoneyRequestNotFound,
    RequesteeInactive,
    RequesteeNotFound,
    RequestLimitExceeded,
    SelfRequestRejected,
)
from .models import (
    APPROVED,
    CANCELLED,
    EXPIRED,
    PENDING,
    REJECTED,
    REQUEST_STATUSES,
    ApprovalResult,
    MoneyRequest,
    MoneyRequestPage,
    NewMoneyRequest,
)
from .repository import MoneyRequestRepository

__all__ = [
    "MoneyRequest",
    "NewMoneyRequest",
    "MoneyRequestPage",
    "ApprovalResult",
    "MoneyRequestRepository",
    "PENDING",
    "APPROVED",
    "REJECTED",
    "CANCELLED",
    "EXPIRED",
    "REQUEST_STATUSES",
    "MoneyRequestError",
    "MoneyRequestNotFound",
    "MoneyRequestForbidden",
    "MoneyRequestClosed",
    "RequesteeNotFound",
    "RequesteeInactive",
    "SelfRequestRejected",
    "RequestLimitExceeded",
]

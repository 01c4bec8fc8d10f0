"""Wallet account exports"""

from .exceptions import AccountError, AccountNotFoundError
from .models import AccountSnapshot
from .repository import AccountStore
from .service import AccountService

__all__ = [
    "AccountSnapshot",
    "AccountStore",
    "AccountService",
    "AccountError",
    "AccountNotFoundError",
]

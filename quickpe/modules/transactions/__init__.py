"""Transaction log exports"""

from .models import Counterparty, HistoryFilters, NewLedgerEntry, TransactionPage, TransactionRecord
from .repository import TransactionLog
from .service import TransactionHistoryService

__all__ = [
    "Counterparty",
    "HistoryFilters",
    "NewLedgerEntry",
    "TransactionPage",
    "TransactionRecord",
    "TransactionLog",
    "TransactionHistoryService",
]

"""Repository protocol for the account store."""

from __future__ import annotations

from typing import Protocol, Sequence

from .models import AccountSnapshot


class AccountStore(Protocol):
    """Balance holder per user.

    ``adjust_balance`` is the only write path for balances; it never lets a
    balance go negative and reports a rejected update by returning ``None``.
    Callers that need a consistent view call ``lock_accounts`` inside the same
    transaction first.
    """

    async def get_by_id(self, account_id: str) -> AccountSnapshot | None:
        ...

    async def get_by_user_id(self, user_id: str) -> AccountSnapshot | None:
        ...

    async def get_balance(self, account_id: str) -> int:
        ...

    async def resolve_identifier(self, identifier: str) -> str | None:
        ...

    async def lock_accounts(self, account_ids: Sequence[str]) -> dict[str, AccountSnapshot]:
        ...

    async def adjust_balance(self, account_id: str, delta_paise: int) -> int | None:
        ...

    async def create_account(self, user_id: str, opening_balance_paise: int = 0) -> AccountSnapshot:
        ...

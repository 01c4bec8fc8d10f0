"""Read-side account use cases."""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from .exceptions import AccountNotFoundError
from .models import AccountSnapshot
from .repository import AccountStore


@dataclass(slots=True)
class AccountService:
    store: AccountStore

    @classmethod
    def with_session(cls, session: AsyncSession) -> "AccountService":
        from quickpe.infrastructure.database.repositories.account_repository import SqlAccountStore

        return cls(SqlAccountStore(session))

    async def get_for_user(self, user_id: str) -> AccountSnapshot:
        account = await self.store.get_by_user_id(user_id)
        if account is None:
            raise AccountNotFoundError(user_id)
        return account

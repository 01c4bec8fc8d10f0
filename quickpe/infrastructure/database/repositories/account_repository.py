"""SQLAlchemy implementation of the account store."""

from __future__ import annotations

from typing import Sequence

from sqlalchemy import or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from quickpe.db.models import Account as AccountModel, User as UserModel, utcnow
from quickpe.modules.accounts.exceptions import AccountNotFoundError
from quickpe.modules.accounts.models import AccountSnapshot


class SqlAccountStore:
    """Account store backed by SQLAlchemy models."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, account_id: str) -> AccountSnapshot | None:
        stmt = select(AccountModel).where(AccountModel.id == account_id)
        result = await self._session.execute(stmt)
        return self._to_domain(result.scalar_one_or_none())

    async def get_by_user_id(self, user_id: str) -> AccountSnapshot | None:
        stmt = (
            select(AccountModel)
            .where(AccountModel.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return self._to_domain(result.scalar_one_or_none())

    async def get_balance(self, account_id: str) -> int:
        stmt = select(AccountModel.balance_paise).where(AccountModel.id == account_id)
        result = await self._session.execute(stmt)
        balance = result.scalar_one_or_none()
        if balance is None:
            raise AccountNotFoundError(account_id)
        return int(balance)

    async def resolve_identifier(self, identifier: str) -> str | None:
        """Map a user id or QuickPe id (``QPK-…``) to an account id."""
        identifier = identifier.strip()
        if not identifier:
            return None
        stmt = (
            select(AccountModel.id)
            .join(UserModel, UserModel.id == AccountModel.user_id)
            .where(or_(UserModel.id == identifier, UserModel.quickpe_id == identifier.upper()))
        )
        result = await self._session.execute(stmt)
        return result.scalars().first()

    async def lock_accounts(self, account_ids: Sequence[str]) -> dict[str, AccountSnapshot]:
        # Ordered by id so two opposite transfers between the same pair lock in the same order.
        stmt = (
            select(AccountModel)
            .where(AccountModel.id.in_(sorted(set(account_ids))))
            .order_by(AccountModel.id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return {model.id: self._to_domain(model) for model in result.scalars().all()}

    async def adjust_balance(self, account_id: str, delta_paise: int) -> int | None:
        stmt = (
            update(AccountModel)
            .where(
                AccountModel.id == account_id,
                AccountModel.balance_paise + delta_paise >= 0,
            )
            .values(balance_paise=AccountModel.balance_paise + delta_paise, updated_at=utcnow())
            .execution_options(synchronize_session="fetch")
            .returning(AccountModel.balance_paise)
        )
        result = await self._session.execute(stmt)
        balance = result.scalar_one_or_none()
        return int(balance) if balance is not None else None

    async def create_account(self, user_id: str, opening_balance_paise: int = 0) -> AccountSnapshot:
        model = AccountModel(user_id=user_id, balance_paise=opening_balance_paise, currency="INR")
        self._session.add(model)
        await self._session.flush()
        await self._session.refresh(model)
        return self._to_domain(model)

    @staticmethod
    def _to_domain(model: AccountModel | None) -> AccountSnapshot | None:
        if model is None:
            return None
        return AccountSnapshot(
            id=str(model.id),
            user_id=str(model.user_id),
            balance_paise=int(model.balance_paise),
            currency=model.currency,
            status=model.status or "active",
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

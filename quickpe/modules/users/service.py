"""Domain services for user management and authentication."""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timezone

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from quickpe.core.config import Settings
from quickpe.core.crypto import DEFAULT_BCRYPT_ROUNDS, generate_quickpe_id, hash_password, verify_password
from quickpe.modules.accounts.repository import AccountStore

from .exceptions import InvalidCredentialsError, UserAlreadyExistsError, UserError, UserNotFoundError
from .models import UNSET, User, UserCreateInput, UserPage, UserUpdateInput
from .repository import UserRepository

logger = logging.getLogger(__name__)

QUICKPE_ID_ATTEMPTS = 10


class UserService:
    """Encapsulates signup, signin and profile use cases."""

    def __init__(
        self,
        repository: UserRepository,
        accounts: AccountStore,
        *,
        password_rounds: int = DEFAULT_BCRYPT_ROUNDS,
        opening_balance_range: tuple[int, int] = (100, 1_000_000),
    ) -> None:
        self._repository = repository
        self._accounts = accounts
        self._password_rounds = password_rounds
        self._opening_balance_range = opening_balance_range

    @classmethod
    def with_session(cls, session: AsyncSession, settings: Settings) -> "UserService":
        from quickpe.infrastructure.database.repositories.account_repository import SqlAccountStore
        from quickpe.infrastructure.database.repositories.user_repository import SqlUserRepository

        return cls(
            SqlUserRepository(session),
            SqlAccountStore(session),
            password_rounds=settings.security.bcrypt_rounds,
            opening_balance_range=(
                settings.wallet.signup_balance_min_paise,
                settings.wallet.signup_balance_max_paise,
            ),
        )

    async def get_by_id(self, user_id: str) -> User | None:
        return await self._repository.get_by_id(user_id)

    async def get_by_username(self, username: str) -> User | None:
        return await self._repository.get_by_username(username.strip().lower())

    async def search(
        self,
        term: str | None,
        *,
        exclude_id: str | None = None,
        limit: int = 20,
        offset: int = 0,
    ) -> UserPage:
        return await self._repository.search(term, exclude_id=exclude_id, limit=limit, offset=offset)

    async def signup(self, payload: UserCreateInput) -> User:
        """Create the user and its wallet account with a randomised opening balance."""
        username = payload.username.strip().lower()
        if await self._repository.get_by_username(username) is not None:
            raise UserAlreadyExistsError(username)

        try:
            user = await self._repository.create_user(
                username=username,
                password_hash=hash_password(payload.password, self._password_rounds),
                first_name=payload.first_name.strip(),
                last_name=payload.last_name.strip(),
                quickpe_id=await self._unique_quickpe_id(),
                role=payload.role,
            )
        except IntegrityError as exc:
            # A concurrent signup claimed the username between the check and the insert.
            logger.warning("Signup for %s lost a race on the unique username", username)
            raise UserAlreadyExistsError(username) from exc
        low, high = self._opening_balance_range
        opening_balance = low + secrets.randbelow(max(high - low, 0) + 1)
        await self._accounts.create_account(user.id, opening_balance)
        logger.info("User %s signed up as %s", user.id, user.quickpe_id)
        return user

    async def authenticate(self, username: str, password: str) -> User:
        user = await self._repository.get_by_username(username.strip().lower())
        if user is None or not user.is_active or not verify_password(password, user.password_hash):
            raise InvalidCredentialsError(username)
        await self._repository.set_last_login(user.id, datetime.now(timezone.utc))
        return user

    async def update_user(self, user_id: str, payload: UserUpdateInput) -> User:
        current = await self._repository.get_by_id(user_id)
        if current is None:
            raise UserNotFoundError(user_id)

        first_name = payload.first_name if payload.first_name not in (UNSET, None) else current.first_name
        last_name = payload.last_name if payload.last_name not in (UNSET, None) else current.last_name
        is_active = payload.is_active if payload.is_active not in (UNSET, None) else current.is_active
        role = payload.role if payload.role not in (UNSET, None) else current.role

        return await self._repository.update_user(
            user_id,
            first_name=first_name,
            last_name=last_name,
            is_active=is_active,
            role=role,
        )

    async def change_password(self, user_id: str, current_password: str, new_password: str) -> None:
        user = await self._repository.get_by_id(user_id)
        if user is None:
            raise UserNotFoundError(user_id)
        if not verify_password(current_password, user.password_hash):
            raise InvalidCredentialsError(user.username)
        await self._repository.set_password_hash(user_id, hash_password(new_password, self._password_rounds))

    async def _unique_quickpe_id(self) -> str:
        for _ in range(QUICKPE_ID_ATTEMPTS):
            candidate = generate_quickpe_id()
            if not await self._repository.quickpe_id_exists(candidate):
                return candidate
        raise UserError("Failed to generate unique QuickPe ID")

from __future__ import annotations

from dataclasses import dataclass

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select

from quickpe.core.config import DatabaseSettings, SecuritySettings, Settings, WalletSettings
from quickpe.core.container import ApplicationContainer
from quickpe.core.security import create_access_token
from quickpe.db.models import Account
from quickpe.infrastructure.database.repositories.account_repository import SqlAccountStore
from quickpe.infrastructure.database.repositories.user_repository import SqlUserRepository
from quickpe.main import create_app
from quickpe.modules.users import User, UserCreateInput, UserService


@dataclass
class Member:
    user: User
    account_id: str
    token: str

    @property
    def id(self) -> str:
        return self.user.id

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        environment="test",
        database=DatabaseSettings(url=f"sqlite+aiosqlite:///{tmp_path / 'quickpe-test.db'}"),
        security=SecuritySettings(secret_key="test-secret-key", bcrypt_rounds=4),
        wallet=WalletSettings(transfer_timeout_seconds=10.0, max_deposit_paise=5_000_000),
    )


@pytest.fixture
async def app(settings):
    application = create_app(settings)
    await application.state.container.init_infrastructure()
    yield application
    await application.state.container.dispose()


@pytest.fixture
def container(app) -> ApplicationContainer:
    return app.state.container


@pytest.fixture
async def client(app):
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http


@pytest.fixture
def make_member(container):
    """Create a user with an exact opening balance in paise."""
    counter = {"n": 0}

    async def _make(first_name: str, balance_paise: int, *, role: str = "user") -> Member:
        counter["n"] += 1
        async with container.session_factory() as session:
            service = UserService(
                SqlUserRepository(session),
                SqlAccountStore(session),
                password_rounds=4,
                opening_balance_range=(balance_paise, balance_paise),
            )
            user = await service.signup(
                UserCreateInput(
                    username=f"{first_name.lower()}{counter['n']}@example.com",
                    password="secret123",
                    first_name=first_name,
                    last_name="Tester",
                    role=role,
                )
            )
            account = await SqlAccountStore(session).get_by_user_id(user.id)
            await session.commit()
        return Member(user=user, account_id=account.id, token=create_access_token(user, container.settings))

    return _make


@pytest.fixture
def balance_of(container):
    async def _balance(member: Member) -> int:
        async with container.session_factory() as session:
            return await SqlAccountStore(session).get_balance(member.account_id)

    return _balance


@pytest.fixture
def total_balance(container):
    async def _total() -> int:
        async with container.session_factory() as session:
            result = await session.execute(select(func.coalesce(func.sum(Account.balance_paise), 0)))
            return int(result.scalar_one())

    return _total

"""Repository protocol for users."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, Sequence

from .models import User, UserPage


class UserRepository(Protocol):
    """Abstract repository interface for user persistence."""

    async def get_by_id(self, user_id: str) -> User | None:
        ...

    async def get_by_username(self, username: str) -> User | None:
        ...

    async def get_by_quickpe_id(self, quickpe_id: str) -> User | None:
        ...

    async def quickpe_id_exists(self, quickpe_id: str) -> bool:
        ...

    async def get_many(self, user_ids: Sequence[str]) -> dict[str, User]:
        ...

    async def search(self, term: str | None, *, exclude_id: str | None, limit: int, offset: int) -> UserPage:
        ...

    async def create_user(
        self,
        *,
        username: str,
        password_hash: str,
        first_name: str,
        last_name: str,
        quickpe_id: str,
        role: str,
    ) -> User:
        ...

    async def update_user(
        self,
        user_id: str,
        *,
        first_name: str,
        last_name: str,
        is_active: bool,
        role: str,
    ) -> User:
        ...

    async def set_password_hash(self, user_id: str, password_hash: str) -> None:
        ...

    async def set_last_login(self, user_id: str, timestamp: datetime) -> None:
        ...

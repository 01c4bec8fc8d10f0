"""Database session provider."""

from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncSession

from quickpe.infrastructure.database.session import session_scope


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    async with session_scope(request.app.state.container.session_factory) as session:
        yield session


__all__ = ["get_db_session"]

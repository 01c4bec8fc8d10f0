"""Simple dependency container for wiring core services."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from quickpe.core.config import Settings, get_settings
from quickpe.infrastructure.database.session import build_engine, build_session_factory, init_db
from quickpe.modules.notifications.dispatcher import NotificationDispatcher
from quickpe.modules.transfers.service import TransferService
from quickpe.websocket.manager import ConnectionManager

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class ApplicationContainer:
    settings: Settings
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]
    connections: ConnectionManager
    dispatcher: NotificationDispatcher
    transfer_service: TransferService

    @classmethod
    def build(cls, settings: Settings | None = None) -> "ApplicationContainer":
        settings = settings or get_settings()
        engine = build_engine(settings)
        session_factory = build_session_factory(engine)
        connections = ConnectionManager(
            timeout=settings.websocket.timeout,
            check_interval=settings.websocket.heartbeat_interval,
        )
        dispatcher = NotificationDispatcher(session_factory, connections)
        return cls(
            settings=settings,
            engine=engine,
            session_factory=session_factory,
            connections=connections,
            dispatcher=dispatcher,
            transfer_service=TransferService.from_settings(session_factory, settings, dispatcher),
        )

    async def init_infrastructure(self) -> None:
        """Create missing tables; production deployments run Alembic first."""
        await init_db(self.engine)
        logger.info("Database ready at %s", self.engine.url.render_as_string(hide_password=True))

    async def dispose(self) -> None:
        await self.connections.close_all()
        await self.engine.dispose()


__all__ = ["ApplicationContainer"]

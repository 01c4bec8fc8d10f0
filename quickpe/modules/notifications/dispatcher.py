"""Turns committed money movements into stored notifications and realtime pushes."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from quickpe.core.money import format_inr, to_rupees
from quickpe.modules.money_requests.models import PENDING, REJECTED, MoneyRequest
from quickpe.modules.transfers.events import DepositCompleted, TransferCompleted, TransferEvent
from quickpe.websocket.manager import ConnectionManager

from .models import (
    MONEY_ADDED,
    MONEY_REQUEST_RECEIVED,
    MONEY_REQUEST_REJECTED,
    TRANSFER_RECEIVED,
    TRANSFER_SENT,
    Notification,
)
from .service import NotificationService

logger = logging.getLogger(__name__)


class NotificationDispatcher:
    """Transfer event publisher backed by the notifications table.

    Runs in its own session, so a failure here cannot touch the money movement
    that produced the event.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        connections: ConnectionManager,
    ) -> None:
        self._session_factory = session_factory
        self._connections = connections

    async def publish(self, event: TransferEvent) -> None:
        if isinstance(event, TransferCompleted):
            await self._on_transfer(event)
        elif isinstance(event, DepositCompleted):
            await self._on_deposit(event)
        else:
            logger.warning("Ignoring unknown event %r", event)

    async def publish_request(self, request: MoneyRequest) -> None:
        """Notify the other party about a new or rejected money request. Call after commit."""
        amount = format_inr(request.amount_paise)
        data: dict[str, Any] = {
            "request_id": request.id,
            "reference": request.request_id,
            "amount_paise": request.amount_paise,
            "description": request.description,
        }
        if request.status == PENDING:
            user_id, type, title = request.requestee_id, MONEY_REQUEST_RECEIVED, "Money Request Received"
            message = f"{request.requester_name} requested {amount}"
            data["requester_name"] = request.requester_name
        elif request.status == REJECTED:
            user_id, type, title = request.requester_id, MONEY_REQUEST_REJECTED, "Request Rejected"
            message = f"{request.requestee_name} rejected your request for {amount}"
            data["reason"] = request.rejection_reason
        else:
            return

        async with self._session_factory() as session:
            notification = await NotificationService.with_session(session).create(
                user_id, type, title, message, data=data
            )
            await session.commit()
        await self._push(notification, None)

    async def _on_transfer(self, event: TransferCompleted) -> None:
        from quickpe.infrastructure.database.repositories.user_repository import SqlUserRepository

        amount = format_inr(event.amount_paise)
        async with self._session_factory() as session:
            users = SqlUserRepository(session)
            sender = await users.get_by_id(event.from_user_id)
            recipient = await users.get_by_id(event.to_user_id)
            sender_name = sender.full_name if sender else "a QuickPe user"
            recipient_name = recipient.full_name if recipient else "a QuickPe user"

            service = NotificationService.with_session(session)
            sent = await service.create(
                event.from_user_id,
                TRANSFER_SENT,
                "Money Sent",
                f"You sent {amount} to {recipient_name}",
                data={
                    "amount_paise": event.amount_paise,
                    "counterparty": recipient_name,
                    "description": event.description,
                },
                transaction_id=event.transaction_id,
            )
            received = await service.create(
                event.to_user_id,
                TRANSFER_RECEIVED,
                "Money Received",
                f"You received {amount} from {sender_name}",
                data={
                    "amount_paise": event.amount_paise,
                    "counterparty": sender_name,
                    "description": event.description,
                },
                transaction_id=event.transaction_id,
            )
            await session.commit()

        await self._push(sent, event.sender_balance_paise)
        await self._push(received, event.recipient_balance_paise)

    async def _on_deposit(self, event: DepositCompleted) -> None:
        async with self._session_factory() as session:
            service = NotificationService.with_session(session)
            added = await service.create(
                event.user_id,
                MONEY_ADDED,
                "Money Added",
                f"{format_inr(event.amount_paise)} was added to your wallet",
                data={"amount_paise": event.amount_paise},
                transaction_id=event.transaction_id,
            )
            await session.commit()

        await self._push(added, event.balance_paise)

    async def _push(self, notification: Notification, balance_paise: int | None) -> None:
        await self._connections.send_to_web(
            notification.user_id,
            {"type": "notification:new", "data": notification.to_message()},
        )
        if balance_paise is None:
            return
        payload: dict[str, Any] = {
            "balance_paise": balance_paise,
            "balance": str(to_rupees(balance_paise)),
            "transaction_id": notification.transaction_id,
        }
        await self._connections.send_to_web(
            notification.user_id,
            {"type": "balance:updated", "data": payload},
        )

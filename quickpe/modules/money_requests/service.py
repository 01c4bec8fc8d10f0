"""Money request use cases: ask a peer to pay, then approve, reject or cancel.

Approving a request is an ordinary peer transfer from the requestee to the
requester. The request is marked approved from inside the transfer's own
database transaction, so the status and the money always move together.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from quickpe.core.config import Settings
from quickpe.core.money import format_inr
from quickpe.modules.transfers.exceptions import InvalidAmount
from quickpe.modules.transfers.models import TransferResult
from quickpe.modules.transfers.service import TransferService
from quickpe.modules.users.models import User
from quickpe.modules.users.repository import UserRepository

from .exceptions import (
    MoneyRequestClosed,
    MoneyRequestForbidden,
    MoneyRequestNotFound,
    RequesteeInactive,
    RequesteeNotFound,
    RequestLimitExceeded,
    SelfRequestRejected,
)
from .models import (
    APPROVED,
    CANCELLED,
    PENDING,
    REJECTED,
    ApprovalResult,
    MoneyRequest,
    MoneyRequestPage,
    NewMoneyRequest,
    RequestDirection,
    generate_request_id,
)
from .repository import MoneyRequestRepository

logger = logging.getLogger(__name__)

RepositoryFactory = Callable[[AsyncSession], MoneyRequestRepository]

MAX_PAGE_SIZE = 50


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MoneyRequestService:
    def __init__(
        self,
        repository: MoneyRequestRepository,
        users: UserRepository,
        transfers: TransferService,
        *,
        repository_factory: RepositoryFactory,
        max_amount_paise: int = 8_000_000,
        daily_limit_paise: int = 8_000_000,
        ttl: timedelta = timedelta(hours=24),
    ) -> None:
        self._repository = repository
        self._users = users
        self._transfers = transfers
        self._repository_factory = repository_factory
        self._max_amount_paise = max_amount_paise
        self._daily_limit_paise = daily_limit_paise
        self._ttl = ttl

    @classmethod
    def with_session(
        cls,
        session: AsyncSession,
        settings: Settings,
        transfers: TransferService,
    ) -> "MoneyRequestService":
        from quickpe.infrastructure.database.repositories.money_request_repository import (
            SqlMoneyRequestRepository,
        )
        from quickpe.infrastructure.database.repositories.user_repository import SqlUserRepository

        return cls(
            SqlMoneyRequestRepository(session),
            SqlUserRepository(session),
            transfers,
            repository_factory=SqlMoneyRequestRepository,
            max_amount_paise=settings.wallet.money_request_max_paise,
            daily_limit_paise=settings.wallet.money_request_daily_limit_paise,
            ttl=timedelta(hours=settings.wallet.money_request_ttl_hours),
        )

    async def create(
        self,
        requester: User,
        to_identifier: str,
        amount_paise: int,
        *,
        description: str | None = None,
        now: datetime | None = None,
    ) -> MoneyRequest:
        """Ask the user behind ``to_identifier`` (user id or QuickPe id) to pay ``amount_paise``."""
        if isinstance(amount_paise, bool) or not isinstance(amount_paise, int) or amount_paise <= 0:
            raise InvalidAmount()
        if amount_paise > self._max_amount_paise:
            raise RequestLimitExceeded(f"Maximum request amount is {format_inr(self._max_amount_paise)}")

        requestee = await self._find_user((to_identifier or "").strip())
        if requestee is None:
            raise RequesteeNotFound()
        if requestee.id == requester.id:
            raise SelfRequestRejected()
        if not requestee.is_active:
            raise RequesteeInactive()

        now = now or _utcnow()
        start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)
        requested_today = await self._repository.requested_total(requester.id, requestee.id, start_of_day)
        if requested_today + amount_paise > self._daily_limit_paise:
            logger.warning(
                "Daily request limit hit: %s -> %s requested=%d today=%d",
                requester.id,
                requestee.id,
                amount_paise,
                requested_today,
            )
            raise RequestLimitExceeded(
                f"Daily request limit of {format_inr(self._daily_limit_paise)} to this person would be exceeded"
            )

        request = await self._repository.add(
            NewMoneyRequest(
                request_id=generate_request_id(),
                requester_id=requester.id,
                requester_name=requester.full_name,
                requester_quickpe_id=requester.quickpe_id,
                requestee_id=requestee.id,
                requestee_name=requestee.full_name,
                requestee_quickpe_id=requestee.quickpe_id,
                amount_paise=amount_paise,
                description=(description or "").strip() or f"Money request from {requester.first_name}",
                expires_at=now + self._ttl,
                created_at=now,
            )
        )
        logger.info("Money request %s: %s asked %s for %d", request.request_id, requester.id, requestee.id, amount_paise)
        return request

    async def list_requests(
        self,
        user_id: str,
        direction: RequestDirection,
        *,
        status: str | None = None,
        page: int = 1,
        page_size: int = 10,
        now: datetime | None = None,
    ) -> MoneyRequestPage:
        """Requests received or sent by ``user_id``, newest first. Stale pending requests expire first."""
        expired = await self._repository.expire_pending(now or _utcnow())
        if expired:
            logger.info("Expired %d pending money requests", expired)

        page = max(page, 1)
        page_size = min(max(page_size, 1), MAX_PAGE_SIZE)
        requests, total = await self._repository.list_for_user(
            user_id,
            direction,
            status=status,
            offset=(page - 1) * page_size,
            limit=page_size,
        )
        return MoneyRequestPage(requests=requests, total=total, page=page, page_size=page_size)

    async def approve(self, request_id: str, user_id: str, *, now: datetime | None = None) -> ApprovalResult:
        """Pay the request from the requestee's wallet.

        Transfer errors such as ``InsufficientBalance`` propagate unchanged and
        leave the request pending. A repeated approval of the same request is
        an idempotent replay of the original transfer.
        """
        now = now or _utcnow()
        request = await self._get(request_id)
        if request.requestee_id != user_id:
            raise MoneyRequestForbidden("Unauthorized to approve this request")
        if not request.can_respond(now):
            if request.status == PENDING:
                raise MoneyRequestClosed("Request has expired")
            raise MoneyRequestClosed()

        async def settle(session: AsyncSession, transfer: TransferResult) -> None:
            closed = await self._repository_factory(session).close_pending(
                request.id,
                APPROVED,
                responded_at=now,
                transaction_id=transfer.transaction_id,
            )
            if not closed:
                raise MoneyRequestClosed()

        transfer = await self._transfers.transfer(
            user_id,
            request.requester_id,
            request.amount_paise,
            description=request.description or f"Money request {request.request_id}",
            idempotency_key=f"money-request:{request.id}",
            on_settle=settle,
        )
        logger.info("Money request %s approved with %s", request.request_id, transfer.transaction_id)
        return ApprovalResult(
            request=await self._get(request.id),
            transaction_id=transfer.transaction_id,
            balance_paise=transfer.sender_balance_paise,
            replayed=transfer.replayed,
        )

    async def reject(
        self,
        request_id: str,
        user_id: str,
        *,
        reason: str | None = None,
        now: datetime | None = None,
    ) -> MoneyRequest:
        now = now or _utcnow()
        request = await self._get(request_id)
        if request.requestee_id != user_id:
            raise MoneyRequestForbidden("Unauthorized to reject this request")
        closed = request.can_respond(now) and await self._repository.close_pending(
            request.id,
            REJECTED,
            responded_at=now,
            rejection_reason=(reason or "").strip() or None,
        )
        if not closed:
            raise MoneyRequestClosed("Request cannot be rejected")
        logger.info("Money request %s rejected by %s", request.request_id, user_id)
        return await self._get(request.id)

    async def cancel(self, request_id: str, user_id: str, *, now: datetime | None = None) -> MoneyRequest:
        now = now or _utcnow()
        request = await self._get(request_id)
        if request.requester_id != user_id:
            raise MoneyRequestForbidden("Unauthorized to cancel this request")
        closed = request.can_respond(now) and await self._repository.close_pending(
            request.id,
            CANCELLED,
            responded_at=now,
        )
        if not closed:
            raise MoneyRequestClosed("Only pending requests can be cancelled")
        logger.info("Money request %s cancelled", request.request_id)
        return await self._get(request.id)

    async def _get(self, request_id: str) -> MoneyRequest:
        request = await self._repository.get(request_id)
        if request is None:
            raise MoneyRequestNotFound()
        return request

    async def _find_user(self, identifier: str) -> User | None:
        if not identifier:
            return None
        if identifier.upper().startswith("QPK-"):
            return await self._users.get_by_quickpe_id(identifier)
        return await self._users.get_by_id(identifier)

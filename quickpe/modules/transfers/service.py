"""Atomic money movement between wallet accounts.

Every transfer or deposit runs in its own session and database transaction.
Balances are only ever changed through the account store's guarded update,
the ledger legs are written in the same transaction, and post-commit events
go out only once the commit has succeeded.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional, TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from quickpe.core.config import Settings
from quickpe.modules.accounts.exceptions import AccountError, AccountNotFoundError
from quickpe.modules.accounts.repository import AccountStore
from quickpe.modules.transactions.models import NewLedgerEntry, TransactionRecord
from quickpe.modules.transactions.repository import TransactionLog

from .events import DepositCompleted, NullPublisher, TransferCompleted, TransferEvent, TransferEventPublisher
from .exceptions import (
    IdempotencyKeyReused,
    InsufficientBalance,
    InvalidAmount,
    RecipientNotFound,
    SelfTransferRejected,
    TransferError,
    TransferFailed,
)
from .models import DepositResult, TransferResult, generate_transaction_id

logger = logging.getLogger(__name__)

T = TypeVar("T")

StoreFactory = Callable[[AsyncSession], AccountStore]
LogFactory = Callable[[AsyncSession], TransactionLog]
# Runs inside the transfer transaction once both legs are written; raising aborts the transfer.
SettleHook = Callable[[AsyncSession, TransferResult], Awaitable[None]]

RETRY_BACKOFF_SECONDS = 0.05
DEFAULT_TRANSFER_DESCRIPTION = "Money Transfer"
DEFAULT_DEPOSIT_DESCRIPTION = "Account deposit"


class _DuplicateRequest(Exception):
    """A concurrent request with the same idempotency key committed first."""


@dataclass(slots=True, frozen=True)
class _TransferRequest:
    from_user_id: str
    to_identifier: str
    amount_paise: int
    description: Optional[str]
    idempotency_key: Optional[str]
    on_settle: Optional[SettleHook] = None


class TransferService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        publisher: TransferEventPublisher | None = None,
        *,
        store_factory: StoreFactory | None = None,
        log_factory: LogFactory | None = None,
        timeout_seconds: float = 10.0,
        max_retries: int = 3,
        max_deposit_paise: int = 10_000_000,
    ) -> None:
        if store_factory is None:
            from quickpe.infrastructure.database.repositories.account_repository import SqlAccountStore

            store_factory = SqlAccountStore
        if log_factory is None:
            from quickpe.infrastructure.database.repositories.ledger_repository import SqlTransactionLog

            log_factory = SqlTransactionLog

        self._session_factory = session_factory
        self._publisher = publisher or NullPublisher()
        self._store_factory = store_factory
        self._log_factory = log_factory
        self._timeout_seconds = timeout_seconds
        self._max_retries = max_retries
        self._max_deposit_paise = max_deposit_paise

    @classmethod
    def from_settings(
        cls,
        session_factory: async_sessionmaker[AsyncSession],
        settings: Settings,
        publisher: TransferEventPublisher | None = None,
    ) -> "TransferService":
        return cls(
            session_factory,
            publisher,
            timeout_seconds=settings.wallet.transfer_timeout_seconds,
            max_retries=settings.wallet.transfer_max_retries,
            max_deposit_paise=settings.wallet.max_deposit_paise,
        )

    async def transfer(
        self,
        from_user_id: str,
        to_identifier: str,
        amount_paise: int,
        *,
        description: str | None = None,
        idempotency_key: str | None = None,
        on_settle: SettleHook | None = None,
    ) -> TransferResult:
        """Move ``amount_paise`` from the caller's account to the resolved recipient.

        Raises ``InvalidAmount`` before any store access, ``RecipientNotFound``,
        ``SelfTransferRejected``, ``InsufficientBalance`` or
        ``IdempotencyKeyReused`` after aborting the transaction, and
        ``TransferFailed`` for anything unexpected. A repeated idempotency key
        returns the original result with ``replayed=True``.

        ``on_settle`` runs in the same database transaction as the ledger
        writes, so whatever it records commits or rolls back with the money.
        """
        _validate_amount(amount_paise)
        request = _TransferRequest(
            from_user_id=from_user_id,
            to_identifier=(to_identifier or "").strip(),
            amount_paise=amount_paise,
            description=(description or "").strip() or None,
            idempotency_key=(idempotency_key or "").strip() or None,
            on_settle=on_settle,
        )
        if not request.to_identifier:
            raise RecipientNotFound("")

        try:
            result = await self._run(lambda session: self._transfer_once(session, request), label="transfer")
        except _DuplicateRequest:
            result = await self._run(lambda session: self._replay(session, request), label="transfer replay")

        if result.replayed:
            logger.warning(
                "Idempotent replay of %s for user %s (key=%s)",
                result.transaction_id,
                from_user_id,
                request.idempotency_key,
            )
            return result

        logger.info(
            "Transfer %s committed: %s -> %s amount=%d",
            result.transaction_id,
            result.from_account_id,
            result.to_account_id,
            result.amount_paise,
        )
        await self._publish(
            TransferCompleted(
                transaction_id=result.transaction_id,
                from_user_id=result.from_user_id,
                to_user_id=result.to_user_id,
                amount_paise=result.amount_paise,
                sender_balance_paise=result.sender_balance_paise,
                recipient_balance_paise=result.recipient_balance_paise,
                description=result.description,
                created_at=result.created_at,
            )
        )
        return result

    async def deposit(self, user_id: str, amount_paise: int, *, description: str | None = None) -> DepositResult:
        _validate_amount(amount_paise)
        if amount_paise > self._max_deposit_paise:
            raise InvalidAmount("Amount exceeds the deposit limit")

        result = await self._run(
            lambda session: self._deposit_once(session, user_id, amount_paise, description),
            label="deposit",
        )
        logger.info("Deposit %s committed: account=%s amount=%d", result.transaction_id, result.account_id, amount_paise)
        await self._publish(
            DepositCompleted(
                transaction_id=result.transaction_id,
                user_id=result.user_id,
                amount_paise=result.amount_paise,
                balance_paise=result.balance_paise,
                created_at=result.created_at,
            )
        )
        return result

    async def _run(self, operation: Callable[[AsyncSession], Awaitable[T]], *, label: str) -> T:
        attempts = self._max_retries + 1
        for attempt in range(1, attempts + 1):
            try:
                return await asyncio.wait_for(self._in_transaction(operation), timeout=self._timeout_seconds)
            except (TransferError, AccountError, _DuplicateRequest):
                raise
            except asyncio.TimeoutError as exc:
                logger.error("%s did not commit within %.1fs; rolled back", label, self._timeout_seconds)
                raise TransferFailed() from exc
            except OperationalError as exc:
                if attempt < attempts:
                    logger.warning("%s hit a write conflict (attempt %d/%d): %s", label, attempt, attempts, exc)
                    await asyncio.sleep(RETRY_BACKOFF_SECONDS * attempt)
                    continue
                logger.exception("%s failed after %d attempts", label, attempts)
                raise TransferFailed() from exc
            except Exception as exc:
                logger.exception("%s failed", label)
                raise TransferFailed() from exc
        raise TransferFailed()

    async def _in_transaction(self, operation: Callable[[AsyncSession], Awaitable[T]]) -> T:
        async with self._session_factory() as session:
            async with session.begin():
                return await operation(session)

    async def _transfer_once(self, session: AsyncSession, request: _TransferRequest) -> TransferResult:
        store = self._store_factory(session)
        log = self._log_factory(session)

        sender = await store.get_by_user_id(request.from_user_id)
        if sender is None:
            logger.error("No wallet account for authenticated user %s", request.from_user_id)
            raise TransferFailed()

        recipient_id = await store.resolve_identifier(request.to_identifier)
        if recipient_id is None:
            logger.warning("Transfer from %s to unknown recipient %r", sender.id, request.to_identifier)
            raise RecipientNotFound(request.to_identifier)

        if request.idempotency_key:
            existing = await log.find_by_idempotency_key(sender.id, request.idempotency_key)
            if existing is not None:
                return await self._replayed(store, log, existing, request, recipient_id)

        if recipient_id == sender.id:
            raise SelfTransferRejected()

        locked = await store.lock_accounts([sender.id, recipient_id])
        if recipient_id not in locked:
            raise RecipientNotFound(request.to_identifier)
        available = locked[sender.id].balance_paise
        if available < request.amount_paise:
            logger.warning(
                "Insufficient balance on %s: requested=%d available=%d",
                sender.id,
                request.amount_paise,
                available,
            )
            raise InsufficientBalance(sender.id, request.amount_paise, available)

        sender_balance = await store.adjust_balance(sender.id, -request.amount_paise)
        if sender_balance is None:
            logger.warning("Guarded debit rejected on %s for %d", sender.id, request.amount_paise)
            raise InsufficientBalance(sender.id, request.amount_paise, None)
        recipient_balance = await store.adjust_balance(recipient_id, request.amount_paise)
        if recipient_balance is None:
            raise RecipientNotFound(request.to_identifier)

        transaction_id = generate_transaction_id()
        created_at = datetime.now(timezone.utc)
        description = request.description or DEFAULT_TRANSFER_DESCRIPTION
        try:
            await log.append(
                NewLedgerEntry(
                    transaction_id=transaction_id,
                    account_id=sender.id,
                    from_account_id=sender.id,
                    to_account_id=recipient_id,
                    type="debit",
                    category="transfer",
                    amount_paise=request.amount_paise,
                    balance_after_paise=sender_balance,
                    description=description,
                    idempotency_key=request.idempotency_key,
                    created_at=created_at,
                )
            )
        except IntegrityError as exc:
            if request.idempotency_key:
                raise _DuplicateRequest() from exc
            raise
        await log.append(
            NewLedgerEntry(
                transaction_id=transaction_id,
                account_id=recipient_id,
                from_account_id=sender.id,
                to_account_id=recipient_id,
                type="credit",
                category="transfer",
                amount_paise=request.amount_paise,
                balance_after_paise=recipient_balance,
                description=description,
                created_at=created_at,
            )
        )

        result = TransferResult(
            transaction_id=transaction_id,
            from_user_id=request.from_user_id,
            to_user_id=locked[recipient_id].user_id,
            from_account_id=sender.id,
            to_account_id=recipient_id,
            amount_paise=request.amount_paise,
            sender_balance_paise=sender_balance,
            recipient_balance_paise=recipient_balance,
            description=description,
            created_at=created_at,
        )
        if request.on_settle is not None:
            await request.on_settle(session, result)
        return result

    async def _replay(self, session: AsyncSession, request: _TransferRequest) -> TransferResult:
        store = self._store_factory(session)
        log = self._log_factory(session)
        sender = await store.get_by_user_id(request.from_user_id)
        recipient_id = await store.resolve_identifier(request.to_identifier)
        existing = None
        if sender is not None and request.idempotency_key:
            existing = await log.find_by_idempotency_key(sender.id, request.idempotency_key)
        if existing is None or recipient_id is None:
            raise TransferFailed()
        return await self._replayed(store, log, existing, request, recipient_id)

    @staticmethod
    async def _replayed(
        store: AccountStore,
        log: TransactionLog,
        debit_leg: TransactionRecord,
        request: _TransferRequest,
        recipient_id: str,
    ) -> TransferResult:
        if debit_leg.amount_paise != request.amount_paise or debit_leg.to_account_id != recipient_id:
            raise IdempotencyKeyReused()
        recipient = await store.get_by_id(debit_leg.to_account_id)
        credit_leg = await log.get_leg(debit_leg.transaction_id, "credit")
        return TransferResult(
            transaction_id=debit_leg.transaction_id,
            from_user_id=request.from_user_id,
            to_user_id=recipient.user_id if recipient else "",
            from_account_id=debit_leg.account_id,
            to_account_id=debit_leg.to_account_id,
            amount_paise=debit_leg.amount_paise,
            sender_balance_paise=debit_leg.balance_after_paise,
            recipient_balance_paise=credit_leg.balance_after_paise if credit_leg else None,
            description=debit_leg.description,
            created_at=debit_leg.created_at,
            replayed=True,
        )

    async def _deposit_once(
        self,
        session: AsyncSession,
        user_id: str,
        amount_paise: int,
        description: str | None,
    ) -> DepositResult:
        store = self._store_factory(session)
        log = self._log_factory(session)

        account = await store.get_by_user_id(user_id)
        if account is None:
            raise AccountNotFoundError(user_id)
        await store.lock_accounts([account.id])
        balance = await store.adjust_balance(account.id, amount_paise)
        if balance is None:
            raise AccountNotFoundError(user_id)

        transaction_id = generate_transaction_id()
        created_at = datetime.now(timezone.utc)
        await log.append(
            NewLedgerEntry(
                transaction_id=transaction_id,
                account_id=account.id,
                from_account_id=None,
                to_account_id=account.id,
                type="credit",
                category="deposit",
                amount_paise=amount_paise,
                balance_after_paise=balance,
                description=(description or "").strip() or DEFAULT_DEPOSIT_DESCRIPTION,
                created_at=created_at,
            )
        )
        return DepositResult(
            transaction_id=transaction_id,
            user_id=user_id,
            account_id=account.id,
            amount_paise=amount_paise,
            balance_paise=balance,
            created_at=created_at,
        )

    async def _publish(self, event: TransferEvent) -> None:
        try:
            await self._publisher.publish(event)
        except Exception:  # pylint: disable=broad-except
            # The money movement is already committed; delivery is best effort.
            logger.exception("Post-commit publish failed for %s", event.transaction_id)


def _validate_amount(amount_paise: object) -> None:
    if isinstance(amount_paise, bool) or not isinstance(amount_paise, int) or amount_paise <= 0:
        raise InvalidAmount()

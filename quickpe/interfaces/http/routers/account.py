"""Wallet endpoints: balance, deposits, transfers and history."""
import logging
from datetime import datetime
from typing import Literal, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession

from quickpe.core.config import Settings
from quickpe.core.money import to_rupees
from quickpe.core.security import get_current_user
from quickpe.interfaces.http.deps import get_app_settings, get_db_session, get_transfer_service
from quickpe.modules.accounts import AccountError, AccountService
from quickpe.modules.transactions import HistoryFilters, TransactionHistoryService, TransactionRecord
from quickpe.modules.transfers import TransferError, parse_amount
from quickpe.modules.transfers.service import TransferService
from quickpe.modules.users import User
from quickpe.schemas import (
    BalanceResponse,
    CounterpartyResponse,
    DepositRequest,
    DepositResponse,
    PaginationResponse,
    TransactionListResponse,
    TransactionResponse,
    TransferRequest,
    TransferResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _http_error(exc: TransferError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.message)


async def _account_id_for(user: User, db: AsyncSession) -> str:
    try:
        account = await AccountService.with_session(db).get_for_user(user.id)
    except AccountError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account not found") from exc
    return account.id


def _history_filters(
    type: Optional[Literal["credit", "debit"]] = Query(None),
    date_filter: Optional[Literal["today", "week", "month", "3months"]] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    search: Optional[str] = Query(None, max_length=100),
) -> HistoryFilters:
    return HistoryFilters(
        type=type,
        date_preset=date_filter,
        start=start_date,
        end=end_date,
        search=(search or "").strip() or None,
    )


def _to_response(record: TransactionRecord) -> TransactionResponse:
    party = record.counterparty
    return TransactionResponse(
        id=record.id,
        transaction_id=record.transaction_id,
        type=record.type,
        category=record.category,
        amount_paise=record.amount_paise,
        amount=str(to_rupees(record.amount_paise)),
        balance_after_paise=record.balance_after_paise,
        description=record.description,
        counterparty=(
            CounterpartyResponse(user_id=party.user_id, name=party.name, quickpe_id=party.quickpe_id)
            if party
            else None
        ),
        created_at=record.created_at,
    )


@router.get("/balance", response_model=BalanceResponse)
async def get_balance(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> BalanceResponse:
    try:
        account = await AccountService.with_session(db).get_for_user(user.id)
    except AccountError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account not found") from exc
    return BalanceResponse(
        balance_paise=account.balance_paise,
        balance=str(to_rupees(account.balance_paise)),
        currency=account.currency,
    )


@router.post("/deposit", response_model=DepositResponse)
async def deposit(
    payload: DepositRequest,
    user: User = Depends(get_current_user),
    service: TransferService = Depends(get_transfer_service),
) -> DepositResponse:
    try:
        amount_paise = parse_amount(payload.amount)
        result = await service.deposit(user.id, amount_paise, description=payload.description)
    except TransferError as exc:
        raise _http_error(exc) from exc
    except AccountError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Account not found") from exc

    return DepositResponse(
        transaction_id=result.transaction_id,
        new_balance_paise=result.balance_paise,
        new_balance=str(to_rupees(result.balance_paise)),
    )


@router.post("/transfer", response_model=TransferResponse)
async def transfer(
    payload: TransferRequest,
    user: User = Depends(get_current_user),
    service: TransferService = Depends(get_transfer_service),
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key", max_length=100),
) -> TransferResponse:
    if not (payload.to or "").strip() or payload.amount is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid input")

    try:
        amount_paise = parse_amount(payload.amount)
        result = await service.transfer(
            user.id,
            payload.to,
            amount_paise,
            description=payload.description,
            idempotency_key=idempotency_key or payload.idempotency_key,
        )
    except TransferError as exc:
        if exc.status_code >= 500:
            logger.error("Transfer from user %s failed: %s", user.id, exc.code)
        raise _http_error(exc) from exc

    return TransferResponse(
        transaction_id=result.transaction_id,
        new_balance_paise=result.sender_balance_paise,
        new_balance=str(to_rupees(result.sender_balance_paise)),
        replayed=result.replayed,
    )


@router.get("/transactions", response_model=TransactionListResponse)
async def list_transactions(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    filters: HistoryFilters = Depends(_history_filters),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> TransactionListResponse:
    account_id = await _account_id_for(user, db)
    service = TransactionHistoryService.with_session(db, settings.wallet.history_max_page_size)
    history = await service.list_history(account_id, page=page, page_size=limit, filters=filters)
    return TransactionListResponse(
        transactions=[_to_response(record) for record in history.records],
        pagination=PaginationResponse(
            page=history.page,
            limit=history.page_size,
            total=history.total,
            total_pages=history.total_pages,
            has_next=history.has_next,
            has_prev=history.has_prev,
        ),
    )


@router.get("/statements/csv", summary="Download the filtered history as CSV")
async def export_statement(
    filters: HistoryFilters = Depends(_history_filters),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> Response:
    account_id = await _account_id_for(user, db)
    content = await TransactionHistoryService.with_session(db).export_csv(account_id, filters)
    filename = f"quickpe-statement-{datetime.now().strftime('%Y%m%d')}.csv"
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )

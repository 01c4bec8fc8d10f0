"""Money request endpoints: ask a peer to pay, then approve, reject or cancel."""
import logging
import math
from typing import Literal, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from quickpe.core.config import Settings
from quickpe.core.money import to_rupees
from quickpe.core.security import get_current_user
from quickpe.interfaces.http.deps import get_app_settings, get_db_session, get_dispatcher, get_transfer_service
from quickpe.modules.money_requests import MoneyRequest, MoneyRequestPage
from quickpe.modules.money_requests.service import MoneyRequestService
from quickpe.modules.notifications.dispatcher import NotificationDispatcher
from quickpe.modules.transfers import TransferError, parse_amount
from quickpe.modules.transfers.service import TransferService
from quickpe.modules.users import User
from quickpe.schemas import (
    MoneyRequestActionResponse,
    MoneyRequestApprovalResponse,
    MoneyRequestCreate,
    MoneyRequestListResponse,
    MoneyRequestReject,
    MoneyRequestResponse,
    PaginationResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()

StatusFilter = Literal["pending", "approved", "rejected", "cancelled", "expired", "all"]


def _service(
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
    transfers: TransferService = Depends(get_transfer_service),
) -> MoneyRequestService:
    return MoneyRequestService.with_session(db, settings, transfers)


def _http_error(exc: TransferError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.message)


async def _notify(dispatcher: NotificationDispatcher, request: MoneyRequest) -> None:
    try:
        await dispatcher.publish_request(request)
    except Exception:  # pylint: disable=broad-except
        logger.exception("Notification for money request %s failed", request.request_id)


def _to_list_response(result: MoneyRequestPage) -> MoneyRequestListResponse:
    return MoneyRequestListResponse(
        requests=[MoneyRequestResponse.model_validate(item) for item in result.requests],
        pagination=PaginationResponse(
            page=result.page,
            limit=result.page_size,
            total=result.total,
            total_pages=math.ceil(result.total / result.page_size),
            has_next=result.page * result.page_size < result.total,
            has_prev=result.page > 1,
        ),
    )


@router.post(
    "",
    response_model=MoneyRequestActionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Ask another user to pay you",
)
async def create_request(
    payload: MoneyRequestCreate,
    user: User = Depends(get_current_user),
    service: MoneyRequestService = Depends(_service),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    db: AsyncSession = Depends(get_db_session),
) -> MoneyRequestActionResponse:
    if not (payload.to or "").strip() or payload.amount is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid input")
    try:
        request = await service.create(
            user,
            payload.to,
            parse_amount(payload.amount),
            description=payload.description,
        )
    except TransferError as exc:
        raise _http_error(exc) from exc
    await db.commit()

    await _notify(dispatcher, request)
    return MoneyRequestActionResponse(
        message="Money request sent successfully",
        request=MoneyRequestResponse.model_validate(request),
    )


@router.get("/received", response_model=MoneyRequestListResponse)
async def received_requests(
    status_filter: StatusFilter = Query("pending", alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    user: User = Depends(get_current_user),
    service: MoneyRequestService = Depends(_service),
    db: AsyncSession = Depends(get_db_session),
) -> MoneyRequestListResponse:
    result = await service.list_requests(
        user.id,
        "received",
        status=None if status_filter == "all" else status_filter,
        page=page,
        page_size=limit,
    )
    await db.commit()
    return _to_list_response(result)


@router.get("/sent", response_model=MoneyRequestListResponse)
async def sent_requests(
    status_filter: StatusFilter = Query("all", alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1),
    user: User = Depends(get_current_user),
    service: MoneyRequestService = Depends(_service),
    db: AsyncSession = Depends(get_db_session),
) -> MoneyRequestListResponse:
    result = await service.list_requests(
        user.id,
        "sent",
        status=None if status_filter == "all" else status_filter,
        page=page,
        page_size=limit,
    )
    await db.commit()
    return _to_list_response(result)


@router.post("/{request_id}/approve", response_model=MoneyRequestApprovalResponse)
async def approve_request(
    request_id: str,
    user: User = Depends(get_current_user),
    service: MoneyRequestService = Depends(_service),
) -> MoneyRequestApprovalResponse:
    try:
        result = await service.approve(request_id, user.id)
    except TransferError as exc:
        if exc.status_code >= 500:
            logger.error("Approval of money request %s by %s failed: %s", request_id, user.id, exc.code)
        raise _http_error(exc) from exc

    return MoneyRequestApprovalResponse(
        message="Money request approved successfully",
        request=MoneyRequestResponse.model_validate(result.request),
        transaction_id=result.transaction_id,
        new_balance_paise=result.balance_paise,
        new_balance=str(to_rupees(result.balance_paise)),
        replayed=result.replayed,
    )


@router.post("/{request_id}/reject", response_model=MoneyRequestActionResponse)
async def reject_request(
    request_id: str,
    payload: Optional[MoneyRequestReject] = Body(None),
    user: User = Depends(get_current_user),
    service: MoneyRequestService = Depends(_service),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    db: AsyncSession = Depends(get_db_session),
) -> MoneyRequestActionResponse:
    try:
        request = await service.reject(request_id, user.id, reason=payload.reason if payload else None)
    except TransferError as exc:
        raise _http_error(exc) from exc
    await db.commit()

    await _notify(dispatcher, request)
    return MoneyRequestActionResponse(
        message="Money request rejected",
        request=MoneyRequestResponse.model_validate(request),
    )


@router.post("/{request_id}/cancel", response_model=MoneyRequestActionResponse)
async def cancel_request(
    request_id: str,
    user: User = Depends(get_current_user),
    service: MoneyRequestService = Depends(_service),
    db: AsyncSession = Depends(get_db_session),
) -> MoneyRequestActionResponse:
    try:
        request = await service.cancel(request_id, user.id)
    except TransferError as exc:
        raise _http_error(exc) from exc
    await db.commit()

    return MoneyRequestActionResponse(
        message="Money request cancelled",
        request=MoneyRequestResponse.model_validate(request),
    )

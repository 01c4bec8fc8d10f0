"""Administrative endpoints for user oversight and platform analytics."""
import math
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from quickpe.core.config import Settings
from quickpe.core.money import to_rupees
from quickpe.core.security import get_current_admin
from quickpe.interfaces.http.deps import get_app_settings, get_db_session
from quickpe.modules.accounts import AccountNotFoundError, AccountService
from quickpe.modules.analytics import AnalyticsService
from quickpe.modules.users import User, UserService
from quickpe.schemas import (
    AdminUserListResponse,
    AdminUserResponse,
    AnalyticsResponse,
    PaginationResponse,
    UserResponse,
)

router = APIRouter()


@router.get("/users", response_model=AdminUserListResponse)
async def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    search: Optional[str] = Query(None, max_length=100),
    _: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> AdminUserListResponse:
    service = UserService.with_session(db, settings)
    result = await service.search(search, limit=limit, offset=(page - 1) * limit)
    return AdminUserListResponse(
        users=[UserResponse.model_validate(user) for user in result.users],
        pagination=PaginationResponse(
            page=page,
            limit=limit,
            total=result.total,
            total_pages=math.ceil(result.total / limit),
            has_next=page * limit < result.total,
            has_prev=page > 1,
        ),
    )


@router.get("/users/{user_id}", response_model=AdminUserResponse)
async def get_user(
    user_id: str,
    _: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> AdminUserResponse:
    user = await UserService.with_session(db, settings).get_by_id(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    response = AdminUserResponse.model_validate(user)
    try:
        account = await AccountService.with_session(db).get_for_user(user.id)
    except AccountNotFoundError:
        return response
    response.balance_paise = account.balance_paise
    response.balance = str(to_rupees(account.balance_paise))
    return response


@router.get("/analytics", response_model=AnalyticsResponse)
async def analytics(
    _: User = Depends(get_current_admin),
    db: AsyncSession = Depends(get_db_session),
) -> AnalyticsResponse:
    summary = await AnalyticsService.with_session(db).summary()
    return AnalyticsResponse(
        total_users=summary.total_users,
        active_users=summary.active_users,
        total_transfers=summary.total_transfers,
        transfer_volume_paise=summary.transfer_volume_paise,
        deposit_volume_paise=summary.deposit_volume_paise,
        transfers_last_24h=summary.transfers_last_24h,
    )

"""Profile and directory endpoints for signed-in users."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from quickpe.core.config import Settings
from quickpe.core.security import get_current_user
from quickpe.interfaces.http.deps import get_app_settings, get_db_session
from quickpe.modules.users import (
    InvalidCredentialsError,
    User,
    UserNotFoundError,
    UserService,
    UserUpdateInput,
)
from quickpe.schemas import (
    PasswordChangeRequest,
    SuccessResponse,
    UserDirectoryResponse,
    UserResponse,
    UserSummary,
    UserUpdate,
)

router = APIRouter()

DIRECTORY_LIMIT = 20


@router.get("/me", response_model=UserResponse)
async def current_profile(user: User = Depends(get_current_user)) -> UserResponse:
    return UserResponse.model_validate(user)


@router.put("/me", response_model=UserResponse)
async def update_profile(
    payload: UserUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> UserResponse:
    service = UserService.with_session(db, settings)
    try:
        updated = await service.update_user(
            user.id,
            UserUpdateInput(first_name=payload.first_name, last_name=payload.last_name),
        )
    except UserNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found") from exc
    await db.commit()
    return UserResponse.model_validate(updated)


@router.put("/me/password", response_model=SuccessResponse)
async def change_password(
    payload: PasswordChangeRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> SuccessResponse:
    service = UserService.with_session(db, settings)
    try:
        await service.change_password(user.id, payload.current_password, payload.new_password)
    except InvalidCredentialsError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Current password is incorrect") from exc
    await db.commit()
    return SuccessResponse(message="Password updated")


@router.get("/bulk", response_model=UserDirectoryResponse, summary="Find people to pay")
async def search_users(
    filter: Optional[str] = Query(None, max_length=100),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
    settings: Settings = Depends(get_app_settings),
) -> UserDirectoryResponse:
    service = UserService.with_session(db, settings)
    page = await service.search(filter, exclude_id=user.id, limit=DIRECTORY_LIMIT)
    return UserDirectoryResponse(users=[UserSummary.model_validate(found) for found in page.users])

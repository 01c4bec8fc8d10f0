"""Notification inbox endpoints."""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from quickpe.core.security import get_current_user
from quickpe.interfaces.http.deps import get_db_session
from quickpe.modules.notifications import NotificationNotFoundError, NotificationService
from quickpe.modules.users import User
from quickpe.schemas import (
    NotificationListResponse,
    NotificationResponse,
    SuccessResponse,
    UnreadCountResponse,
)

router = APIRouter()


@router.get("", response_model=NotificationListResponse, summary="Newest notifications first")
async def list_notifications(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NotificationListResponse:
    service = NotificationService.with_session(db)
    notifications = await service.list_recent(user.id)
    return NotificationListResponse(
        notifications=[NotificationResponse.model_validate(item) for item in notifications],
        unread_count=await service.unread_count(user.id),
    )


@router.get("/unread-count", response_model=UnreadCountResponse)
async def unread_count(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> UnreadCountResponse:
    return UnreadCountResponse(unread_count=await NotificationService.with_session(db).unread_count(user.id))


@router.put("/read-all", response_model=SuccessResponse)
async def mark_all_read(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> SuccessResponse:
    updated = await NotificationService.with_session(db).mark_all_read(user.id)
    await db.commit()
    return SuccessResponse(message=f"Marked {updated} notifications as read")


@router.put("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
) -> NotificationResponse:
    try:
        notification = await NotificationService.with_session(db).mark_read(notification_id, user.id)
    except NotificationNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found") from exc
    await db.commit()
    return NotificationResponse.model_validate(notification)

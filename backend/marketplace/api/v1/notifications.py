"""Notification API routes: the caller's inbox."""

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from marketplace.api.deps import get_current_active_user, get_db
from marketplace.models.user import User
from marketplace.schemas.common import MessageResponse
from marketplace.schemas.notification import NotificationPageResponse, NotificationResponse
from marketplace.services import notification_service

router = APIRouter(prefix="/api/v1/notifications", tags=["notifications"])


@router.get("", response_model=NotificationPageResponse)
async def list_notifications(
    include_read: bool = Query(False),
    cursor: uuid.UUID | None = Query(None),
    limit: int = Query(50, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> NotificationPageResponse:
    """Newest first. Unread only unless ``include_read`` is set."""
    page = await notification_service.list_notifications(
        db, current_user, include_read=include_read, cursor=cursor, limit=limit
    )
    return NotificationPageResponse(
        notifications=[NotificationResponse.model_validate(n) for n in page.notifications],
        next_cursor=page.next_cursor,
    )


@router.post("/read-all", response_model=MessageResponse)
async def mark_all_as_read(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> MessageResponse:
    count = await notification_service.mark_all_as_read(db, current_user)
    return MessageResponse(message=f"Marked {count} notifications as read")


@router.post("/{notification_id}/read", response_model=MessageResponse)
async def mark_as_read(
    notification_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> MessageResponse:
    await notification_service.mark_as_read(db, current_user, notification_id)
    return MessageResponse(message="Notification marked as read")


@router.delete("/{notification_id}", response_model=MessageResponse)
async def delete_notification(
    notification_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_active_user),
) -> MessageResponse:
    await notification_service.delete_notification(db, current_user, notification_id)
    return MessageResponse(message="Notification deleted")

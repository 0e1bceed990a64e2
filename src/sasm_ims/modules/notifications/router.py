"""
Notifications Router

Endpoints (any signed-in account, own notifications only):
- GET /notifications - List notifications, newest first
- GET /notifications/unread-count - Number of unread notifications
- PUT /notifications/mark-all-read - Mark every notification as read
- PUT /notifications/bulk-read - Mark the given notifications as read
- PUT /notifications/{id}/read - Mark one notification as read
- DELETE /notifications/bulk - Delete the given notifications
- DELETE /notifications/{id} - Delete one notification
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from sasm_ims.core.auth import CurrentUser, get_current_user
from sasm_ims.core.database import get_db
from sasm_ims.modules.notifications import service
from sasm_ims.modules.notifications.schemas import (
    DeleteResponse,
    MarkedNotificationResponse,
    MarkReadResponse,
    NotificationIdsRequest,
    NotificationListResponse,
    NotificationResponse,
    UnreadCountResponse,
)

router = APIRouter()


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    is_read: bool | None = Query(None),
    limit: int = Query(50, ge=1, le=service.MAX_PAGE_SIZE),
    skip: int = Query(0, ge=0),
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> NotificationListResponse:
    result = await service.list_notifications(
        db, current_user, is_read=is_read, skip=skip, limit=limit
    )
    return NotificationListResponse.model_validate(result, from_attributes=True)


@router.get("/unread-count", response_model=UnreadCountResponse)
async def get_unread_count(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> UnreadCountResponse:
    return UnreadCountResponse(unread_count=await service.get_unread_count(db, current_user))


@router.put("/mark-all-read", response_model=MarkReadResponse)
async def mark_all_read(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MarkReadResponse:
    modified = await service.mark_all_as_read(db, current_user)
    return MarkReadResponse(message="All notifications marked as read", modified_count=modified)


@router.put("/bulk-read", response_model=MarkReadResponse)
async def mark_many_read(
    data: NotificationIdsRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MarkReadResponse:
    modified = await service.mark_many_as_read(db, current_user, data.notification_ids)
    return MarkReadResponse(
        message=f"{modified} notification(s) marked as read", modified_count=modified
    )


@router.put("/{notification_id}/read", response_model=MarkedNotificationResponse)
async def mark_read(
    notification_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MarkedNotificationResponse:
    """
    Raises:
        404: Notification not found
    """
    notification = await service.mark_as_read(db, current_user, notification_id)
    return MarkedNotificationResponse(
        message="Notification marked as read",
        notification=NotificationResponse.model_validate(notification),
    )


@router.delete("/bulk", response_model=DeleteResponse)
async def delete_many(
    data: NotificationIdsRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> DeleteResponse:
    deleted = await service.delete_notifications(db, current_user, data.notification_ids)
    return DeleteResponse(
        message=f"{deleted} notification(s) deleted successfully", deleted_count=deleted
    )


@router.delete("/{notification_id}", response_model=DeleteResponse)
async def delete_one(
    notification_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> DeleteResponse:
    """
    Raises:
        404: Notification not found
    """
    await service.delete_notification(db, current_user, notification_id)
    return DeleteResponse(message="Notification deleted successfully", deleted_count=1)

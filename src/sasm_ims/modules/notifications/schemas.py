"""Notification schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .models import NotificationType


class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    message: str
    type: NotificationType
    is_read: bool
    related_application_id: UUID | None = None
    created_at: datetime


class NotificationListResponse(BaseModel):
    notifications: list[NotificationResponse]
    count: int


class UnreadCountResponse(BaseModel):
    unread_count: int


class NotificationIdsRequest(BaseModel):
    """Request body for the bulk endpoints."""

    notification_ids: list[UUID] = Field(..., min_length=1, max_length=100)


class MarkReadResponse(BaseModel):
    message: str
    modified_count: int


class MarkedNotificationResponse(BaseModel):
    message: str
    notification: NotificationResponse


class DeleteResponse(BaseModel):
    message: str
    deleted_count: int

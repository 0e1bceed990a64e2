"""
Notification Service

Notifications are created as a side effect of other actions (email
verification, application review). Creation is best-effort, like audit
logging: it runs in its own database session, and a failure is logged and
swallowed so it never fails the action that triggered it.
"""

import logging
from uuid import UUID

from fastapi import status
from sqlalchemy.ext.asyncio import AsyncSession

from sasm_ims.core.auth import CurrentUser
from sasm_ims.core.database import async_session_maker
from sasm_ims.core.errors import AppError
from sasm_ims.modules.notifications import repository
from sasm_ims.modules.notifications.models import Notification, NotificationType

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100

WELCOME_TITLE = "Welcome to SASM-IMS!"
WELCOME_MESSAGE = (
    "Welcome to the Student Assistant and Student Marshal Information Management "
    "System. Get started by completing your profile and submitting your application."
)


class NotificationNotFoundError(AppError):
    def __init__(self):
        super().__init__(
            "Notification not found",
            error_code="NOTIFICATION_NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
        )


async def create_notification(
    *,
    account_id: UUID,
    title: str,
    message: str,
    type: NotificationType = NotificationType.INFO,
    related_application_id: UUID | None = None,
) -> Notification | None:
    """
    Store a notification for an account.

    Returns:
        The stored notification, or None if it could not be written
    """
    try:
        notification = Notification(
            account_id=account_id,
            title=title,
            message=message,
            type=type,
            is_read=False,
            related_application_id=related_application_id,
        )
        async with async_session_maker() as db:
            return await repository.create(db, notification)
    except Exception as e:
        logger.error(f"Failed to create notification for account {account_id}: {e}")
        return None


async def notify_welcome(account_id: UUID) -> Notification | None:
    return await create_notification(
        account_id=account_id,
        title=WELCOME_TITLE,
        message=WELCOME_MESSAGE,
        type=NotificationType.INFO,
    )


# ============================================
# Account-facing operations
# ============================================


async def list_notifications(
    db: AsyncSession,
    current_user: CurrentUser,
    is_read: bool | None = None,
    skip: int = 0,
    limit: int = 50,
) -> dict:
    """The caller's notifications, newest first, with the page size returned."""
    limit = min(max(1, limit), MAX_PAGE_SIZE)
    notifications = await repository.get_for_account(
        db, current_user.id, is_read=is_read, skip=max(0, skip), limit=limit
    )
    return {"notifications": notifications, "count": len(notifications)}


async def get_unread_count(db: AsyncSession, current_user: CurrentUser) -> int:
    return await repository.count_unread(db, current_user.id)


async def mark_as_read(
    db: AsyncSession, current_user: CurrentUser, notification_id: UUID
) -> Notification:
    """
    Raises:
        NotificationNotFoundError: Unknown or owned by another account
    """
    notification = await repository.get_by_id(db, notification_id, current_user.id)
    if not notification:
        raise NotificationNotFoundError()

    if not notification.is_read:
        notification.is_read = True
        await db.commit()
        await db.refresh(notification)
    return notification


async def mark_many_as_read(
    db: AsyncSession, current_user: CurrentUser, notification_ids: list[UUID]
) -> int:
    modified = await repository.mark_read(db, current_user.id, notification_ids)
    await db.commit()
    return modified


async def mark_all_as_read(db: AsyncSession, current_user: CurrentUser) -> int:
    modified = await repository.mark_read(db, current_user.id)
    await db.commit()
    logger.info(f"Account {current_user.id} marked {modified} notification(s) as read")
    return modified


async def delete_notification(
    db: AsyncSession, current_user: CurrentUser, notification_id: UUID
) -> None:
    """
    Raises:
        NotificationNotFoundError: Unknown or owned by another account
    """
    deleted = await repository.delete_many(db, current_user.id, [notification_id])
    if not deleted:
        raise NotificationNotFoundError()
    await db.commit()


async def delete_notifications(
    db: AsyncSession, current_user: CurrentUser, notification_ids: list[UUID]
) -> int:
    deleted = await repository.delete_many(db, current_user.id, notification_ids)
    await db.commit()
    logger.info(f"Account {current_user.id} deleted {deleted} notification(s)")
    return deleted

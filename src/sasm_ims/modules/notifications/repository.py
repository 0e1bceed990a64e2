"""
Notification Repository

Database operations for notifications. Every query is scoped to the owning
account.
"""

from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Notification


async def create(db: AsyncSession, notification: Notification) -> Notification:
    db.add(notification)
    await db.commit()
    await db.refresh(notification)
    return notification


async def get_for_account(
    db: AsyncSession,
    account_id: UUID,
    is_read: bool | None = None,
    skip: int = 0,
    limit: int = 50,
) -> list[Notification]:
    """Notifications of an account, newest first."""
    query = select(Notification).where(Notification.account_id == account_id)
    if is_read is not None:
        query = query.where(Notification.is_read == is_read)

    query = query.order_by(Notification.created_at.desc()).offset(skip).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


async def count_unread(db: AsyncSession, account_id: UUID) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(Notification)
        .where(Notification.account_id == account_id, Notification.is_read.is_(False))
    )
    return result.scalar() or 0


async def get_by_id(
    db: AsyncSession, notification_id: UUID, account_id: UUID
) -> Notification | None:
    result = await db.execute(
        select(Notification).where(
            Notification.id == notification_id,
            Notification.account_id == account_id,
        )
    )
    return result.scalar_one_or_none()


async def mark_read(db: AsyncSession, account_id: UUID, ids: list[UUID] | None = None) -> int:
    """
    Mark unread notifications as read; all of them when ``ids`` is None.

    Returns:
        Number of notifications changed
    """
    stmt = (
        update(Notification)
        .where(Notification.account_id == account_id, Notification.is_read.is_(False))
        .values(is_read=True)
    )
    if ids is not None:
        stmt = stmt.where(Notification.id.in_(ids))
    result = await db.execute(stmt)
    return result.rowcount


async def delete_many(db: AsyncSession, account_id: UUID, ids: list[UUID]) -> int:
    """
    Delete the given notifications of an account.

    Returns:
        Number of notifications deleted
    """
    result = await db.execute(
        delete(Notification).where(
            Notification.account_id == account_id,
            Notification.id.in_(ids),
        )
    )
    return result.rowcount

"""
Audit Log Repository

Database operations for audit entries.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import AuditLog


async def create(db: AsyncSession, entry: AuditLog) -> AuditLog:
    """Persist an audit entry."""
    db.add(entry)
    await db.commit()
    await db.refresh(entry)
    return entry


async def get_logs(
    db: AsyncSession,
    *,
    account_id: UUID,
    profile_id: UUID | None = None,
    module: str | None = None,
    action: str | None = None,
    start_date: datetime | None = None,
    end_date: datetime | None = None,
    skip: int = 0,
    limit: int = 100,
) -> tuple[list[AuditLog], int]:
    """
    Filtered audit entries for an account, newest first.

    Returns:
        Tuple of (entries, total count matching filters)
    """
    query = select(AuditLog).where(AuditLog.account_id == account_id)

    if profile_id:
        query = query.where(AuditLog.profile_id == profile_id)
    if module:
        query = query.where(AuditLog.module == module)
    if action:
        query = query.where(AuditLog.action == action)
    if start_date:
        query = query.where(AuditLog.timestamp >= start_date)
    if end_date:
        query = query.where(AuditLog.timestamp <= end_date)

    count_query = select(func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    query = query.order_by(AuditLog.timestamp.desc()).offset(skip).limit(limit)
    result = await db.execute(query)

    return list(result.scalars().all()), total

"""
Leave Request Repository
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sasm_ims.modules.leaves.models import Leave, LeaveStatus


async def create(db: AsyncSession, leave: Leave) -> Leave:
    db.add(leave)
    await db.commit()
    await db.refresh(leave)
    return leave


async def get_by_id(db: AsyncSession, id: UUID) -> Leave | None:
    return await db.get(Leave, id)


async def get_by_account(db: AsyncSession, account_id: UUID) -> list[Leave]:
    result = await db.execute(
        select(Leave).where(Leave.account_id == account_id).order_by(Leave.created_at.desc())
    )
    return list(result.scalars().all())


async def get_leaves(
    db: AsyncSession,
    *,
    status: LeaveStatus | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[Leave], int]:
    """
    Leave requests, newest first.

    Returns:
        Tuple of (leaves, total count matching filters)
    """
    query = select(Leave)
    if status:
        query = query.where(Leave.status == status)

    count_query = select(func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    query = query.order_by(Leave.created_at.desc()).offset(skip).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all()), total

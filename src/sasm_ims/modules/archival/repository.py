"""
Archival Repository

Queries over the live tables (records due for archiving) and the archive
tables. Functions are generic over the model so the three record kinds
share one implementation.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, or_, select, union
from sqlalchemy.ext.asyncio import AsyncSession

from sasm_ims.modules.archival.models import (
    ArchivedApplication,
    ArchivedLeave,
    ArchivedReApplication,
)

ARCHIVE_MODELS = (ArchivedApplication, ArchivedReApplication, ArchivedLeave)


async def get_records_due(
    db: AsyncSession,
    model: Any,
    status: Any,
    cutoff: datetime,
) -> list[Any]:
    """Rows of ``model`` in ``status`` last updated before ``cutoff``, oldest first."""
    result = await db.execute(
        select(model)
        .where(model.status == status, model.updated_at < cutoff)
        .order_by(model.updated_at.asc())
    )
    return list(result.scalars().all())


async def archive_exists(db: AsyncSession, archive_model: Any, original_id: UUID) -> bool:
    result = await db.execute(
        select(archive_model.id).where(archive_model.original_id == original_id)
    )
    return result.scalar_one_or_none() is not None


async def delete_expired(db: AsyncSession, archive_model: Any, now: datetime) -> int:
    """Delete archive rows whose deletion date has passed. Returns the count."""
    result = await db.execute(
        delete(archive_model).where(archive_model.scheduled_deletion_date <= now)
    )
    await db.commit()
    return result.rowcount or 0


async def count_archived(db: AsyncSession, archive_model: Any) -> int:
    result = await db.execute(select(func.count()).select_from(archive_model))
    return result.scalar() or 0


async def count_due_for_deletion(db: AsyncSession, archive_model: Any, now: datetime) -> int:
    result = await db.execute(
        select(func.count())
        .select_from(archive_model)
        .where(archive_model.scheduled_deletion_date <= now)
    )
    return result.scalar() or 0


def _name_filter(archive_model: Any, search: str):
    pattern = f"%{search}%"
    if archive_model is ArchivedLeave:
        return ArchivedLeave.name.ilike(pattern)
    return or_(
        archive_model.first_name.ilike(pattern),
        archive_model.last_name.ilike(pattern),
        archive_model.email.ilike(pattern),
    )


async def list_archived(
    db: AsyncSession,
    archive_model: Any,
    *,
    semester_year: str | None = None,
    search: str | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[Any], int]:
    """
    Archive rows, most recently archived first.

    Returns:
        Tuple of (rows, total count matching filters)
    """
    query = select(archive_model)
    if semester_year:
        query = query.where(archive_model.semester_year == semester_year)
    if search:
        query = query.where(_name_filter(archive_model, search))

    count_query = select(func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    query = query.order_by(archive_model.archived_at.desc()).offset(skip).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all()), total


async def get_semesters(db: AsyncSession) -> list[str]:
    """Distinct semester labels across all archive tables, newest first."""
    query = union(*(select(m.semester_year) for m in ARCHIVE_MODELS))
    result = await db.execute(query)
    return sorted({row[0] for row in result.all()}, reverse=True)


async def get_latest_archived_application(
    db: AsyncSession, account_id: UUID
) -> ArchivedApplication | None:
    result = await db.execute(
        select(ArchivedApplication)
        .where(ArchivedApplication.account_id == account_id)
        .order_by(ArchivedApplication.archived_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_archived(db: AsyncSession, archive_model: Any, id: UUID) -> Any | None:
    return await db.get(archive_model, id)


async def delete_original(db: AsyncSession, model: Any, id: UUID) -> None:
    """Delete a live row; the caller commits."""
    await db.execute(delete(model).where(model.id == id))

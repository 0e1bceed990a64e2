"""
Office Profile Repository

Database operations for office profiles. Every lookup is scoped to the
owning account.
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import OfficeProfile


async def create(db: AsyncSession, profile: OfficeProfile) -> OfficeProfile:
    db.add(profile)
    await db.commit()
    await db.refresh(profile)
    return profile


async def get_by_id(db: AsyncSession, profile_id: UUID, account_id: UUID) -> OfficeProfile | None:
    """Get a profile belonging to the given account."""
    result = await db.execute(
        select(OfficeProfile).where(
            OfficeProfile.id == profile_id,
            OfficeProfile.account_id == account_id,
        )
    )
    return result.scalar_one_or_none()


async def get_active_profiles(db: AsyncSession, account_id: UUID) -> list[OfficeProfile]:
    """Active profiles, most recently used first (never-used last)."""
    result = await db.execute(
        select(OfficeProfile)
        .where(OfficeProfile.account_id == account_id, OfficeProfile.is_active.is_(True))
        .order_by(
            OfficeProfile.last_accessed_at.desc().nulls_last(),
            OfficeProfile.created_at.desc(),
        )
    )
    return list(result.scalars().all())


async def count_profiles(db: AsyncSession, account_id: UUID, active_only: bool = False) -> int:
    query = select(func.count()).select_from(OfficeProfile).where(
        OfficeProfile.account_id == account_id
    )
    if active_only:
        query = query.where(OfficeProfile.is_active.is_(True))
    result = await db.execute(query)
    return result.scalar() or 0


async def name_taken(
    db: AsyncSession,
    account_id: UUID,
    profile_name: str,
    exclude_id: UUID | None = None,
) -> bool:
    """Check whether another profile of the account already uses the name."""
    query = select(OfficeProfile.id).where(
        OfficeProfile.account_id == account_id,
        OfficeProfile.profile_name == profile_name,
    )
    if exclude_id is not None:
        query = query.where(OfficeProfile.id != exclude_id)
    result = await db.execute(query.limit(1))
    return result.scalar_one_or_none() is not None


async def delete(db: AsyncSession, profile: OfficeProfile) -> None:
    await db.delete(profile)
    await db.commit()

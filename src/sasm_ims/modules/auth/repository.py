"""
Auth Repository

Database operations for sessions and verification codes.
"""

from datetime import UTC, datetime, timedelta
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sasm_ims.core.config import settings

from .models import Session, VerificationCode, VerificationCodeType

# ============================================
# Session Repository
# ============================================


def session_expiry(now: datetime | None = None) -> datetime:
    """Expiry for a new or extended session."""
    return (now or datetime.now(UTC)) + timedelta(days=settings.session_expire_days)


async def create_session(
    db: AsyncSession,
    account_id: UUID,
    user_agent: str | None = None,
    profile_id: UUID | None = None,
) -> Session:
    """Create a session. Flushed, not committed."""
    now = datetime.now(UTC)
    session = Session(
        account_id=account_id,
        profile_id=profile_id,
        user_agent=user_agent,
        created_at=now,
        expires_at=session_expiry(now),
    )
    db.add(session)
    await db.flush()
    return session


async def get_session(db: AsyncSession, session_id: UUID) -> Session | None:
    """Get session by ID."""
    return await db.get(Session, session_id)


async def get_active_sessions(db: AsyncSession, account_id: UUID) -> list[Session]:
    """Non-expired sessions for an account, newest first."""
    result = await db.execute(
        select(Session)
        .where(Session.account_id == account_id, Session.expires_at > datetime.now(UTC))
        .order_by(Session.created_at.desc())
    )
    return list(result.scalars().all())


async def delete_session(
    db: AsyncSession, session_id: UUID, account_id: UUID | None = None
) -> bool:
    """
    Delete a session, optionally scoped to an account.

    Returns:
        True if a row was deleted
    """
    stmt = delete(Session).where(Session.id == session_id)
    if account_id is not None:
        stmt = stmt.where(Session.account_id == account_id)
    result = await db.execute(stmt)
    return result.rowcount > 0


async def delete_sessions_for_account(
    db: AsyncSession,
    account_id: UUID,
    except_session_id: UUID | None = None,
) -> int:
    """Delete every session of an account, optionally keeping one."""
    stmt = delete(Session).where(Session.account_id == account_id)
    if except_session_id is not None:
        stmt = stmt.where(Session.id != except_session_id)
    result = await db.execute(stmt)
    return result.rowcount


# ============================================
# VerificationCode Repository
# ============================================


async def create_verification_code(
    db: AsyncSession,
    account_id: UUID,
    code_type: VerificationCodeType,
    code_hash: str,
    expires_at: datetime,
) -> VerificationCode:
    """Store a hashed verification code. Flushed, not committed."""
    code = VerificationCode(
        account_id=account_id,
        type=code_type,
        code_hash=code_hash,
        expires_at=expires_at,
        created_at=datetime.now(UTC),
    )
    db.add(code)
    await db.flush()
    return code


async def get_valid_code(
    db: AsyncSession,
    code_hash: str,
    code_type: VerificationCodeType,
) -> VerificationCode | None:
    """Get an unexpired code of the given type by its hash."""
    result = await db.execute(
        select(VerificationCode).where(
            VerificationCode.code_hash == code_hash,
            VerificationCode.type == code_type,
            VerificationCode.expires_at > datetime.now(UTC),
        )
    )
    return result.scalar_one_or_none()


async def count_codes_since(
    db: AsyncSession,
    account_id: UUID,
    code_type: VerificationCodeType,
    since: datetime,
) -> int:
    """Count codes of a type issued to an account since ``since``."""
    result = await db.execute(
        select(func.count())
        .select_from(VerificationCode)
        .where(
            VerificationCode.account_id == account_id,
            VerificationCode.type == code_type,
            VerificationCode.created_at > since,
        )
    )
    return result.scalar() or 0


async def delete_code(db: AsyncSession, code_id: UUID) -> None:
    await db.execute(delete(VerificationCode).where(VerificationCode.id == code_id))


async def delete_codes_for_account(
    db: AsyncSession,
    account_id: UUID,
    code_type: VerificationCodeType,
) -> int:
    """Delete all codes of a type for an account."""
    result = await db.execute(
        delete(VerificationCode).where(
            VerificationCode.account_id == account_id,
            VerificationCode.type == code_type,
        )
    )
    return result.rowcount

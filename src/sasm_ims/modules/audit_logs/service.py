"""
Audit Log Service

Audit writes are best-effort: they run in their own database session so a
failure can neither roll back nor fail the action being audited. Failures
are logged and swallowed.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any
from uuid import UUID

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession

from sasm_ims.core.database import async_session_maker
from sasm_ims.core.rate_limit import client_ip
from sasm_ims.modules.audit_logs import repository
from sasm_ims.modules.audit_logs.models import AuditLog

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 500


class AuditAction:
    CREATE_PROFILE = "CREATE_PROFILE"
    SELECT_PROFILE = "SELECT_PROFILE"
    UPDATE_PROFILE = "UPDATE_PROFILE"
    DELETE_PROFILE = "DELETE_PROFILE"
    RESET_PROFILE_PIN = "RESET_PROFILE_PIN"
    UPDATE_APPLICATION_STATUS = "UPDATE_APPLICATION_STATUS"
    UPDATE_REAPPLICATION_STATUS = "UPDATE_REAPPLICATION_STATUS"
    DECIDE_LEAVE = "DECIDE_LEAVE"
    RUN_ARCHIVAL = "RUN_ARCHIVAL"


class AuditModule:
    PROFILES = "Profiles"
    APPLICATIONS = "Applications"
    LEAVE_REQUESTS = "Leave Requests"
    ARCHIVES = "Archives"


@dataclass
class RequestContext:
    """Client details recorded with an audit entry."""

    ip_address: str | None = None
    user_agent: str | None = None

    @classmethod
    def from_request(cls, request: Request) -> "RequestContext":
        return cls(ip_address=client_ip(request), user_agent=request.headers.get("user-agent"))


async def create_audit_log(
    *,
    account_id: UUID,
    actor_name: str,
    actor_email: str,
    action: str,
    module: str,
    profile_id: UUID | None = None,
    target_type: str | None = None,
    target_id: UUID | str | None = None,
    target_name: str | None = None,
    details: dict[str, Any] | None = None,
    old_value: dict[str, Any] | None = None,
    new_value: dict[str, Any] | None = None,
    context: RequestContext | None = None,
) -> AuditLog | None:
    """
    Record an audit entry.

    Returns:
        The stored entry, or None if it could not be written
    """
    context = context or RequestContext()
    try:
        entry = AuditLog(
            account_id=account_id,
            profile_id=profile_id,
            actor_name=actor_name,
            actor_email=actor_email,
            action=action,
            module=module,
            target_type=target_type,
            target_id=str(target_id) if target_id is not None else None,
            target_name=target_name,
            details=jsonable_encoder(details or {}),
            old_value=jsonable_encoder(old_value) if old_value is not None else None,
            new_value=jsonable_encoder(new_value) if new_value is not None else None,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
        )
        async with async_session_maker() as db:
            return await repository.create(db, entry)
    except Exception as e:
        logger.error(f"Failed to write audit log {action} for account {account_id}: {e}")
        return None


async def get_audit_logs(
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
) -> dict:
    """
    Audit entries for an account, newest first.

    Returns:
        Dict with logs, total, skip and limit
    """
    limit = min(max(1, limit), MAX_PAGE_SIZE)
    skip = max(0, skip)

    logs, total = await repository.get_logs(
        db,
        account_id=account_id,
        profile_id=profile_id,
        module=module,
        action=action,
        start_date=start_date,
        end_date=end_date,
        skip=skip,
        limit=limit,
    )
    return {"logs": logs, "total": total, "skip": skip, "limit": limit}

"""
Leave Request Service

Scholars file leave requests; HR or an office profile with the approve
permission decides them once. Decisions are audited.
"""

import logging
import math
from datetime import UTC, datetime
from uuid import UUID

from fastapi import status
from sqlalchemy.ext.asyncio import AsyncSession

from sasm_ims.core.auth import CurrentUser
from sasm_ims.core.errors import AppError, app_assert
from sasm_ims.modules.audit_logs.service import (
    AuditAction,
    AuditModule,
    RequestContext,
    create_audit_log,
)
from sasm_ims.modules.leaves import repository
from sasm_ims.modules.leaves.models import Leave, LeaveStatus
from sasm_ims.modules.leaves.schemas import LeaveCreate, LeaveDecision
from sasm_ims.modules.office_profiles.service import describe_actor

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


class LeaveNotFoundError(AppError):
    def __init__(self):
        super().__init__(
            "Leave request not found",
            error_code="LEAVE_NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
        )


async def submit_leave(db: AsyncSession, current_user: CurrentUser, data: LeaveCreate) -> Leave:
    leave = await repository.create(
        db,
        Leave(
            account_id=current_user.id,
            status=LeaveStatus.PENDING,
            **data.model_dump(),
        ),
    )
    logger.info(
        f"Account {current_user.id} filed leave {leave.id} "
        f"({leave.date_from.isoformat()} to {leave.date_to.isoformat()})"
    )
    return leave


async def get_my_leaves(db: AsyncSession, current_user: CurrentUser) -> list[Leave]:
    return await repository.get_by_account(db, current_user.id)


async def list_leaves(
    db: AsyncSession,
    *,
    status_filter: LeaveStatus | None = None,
    page: int = 1,
    limit: int = 20,
) -> dict:
    page = max(1, page)
    limit = min(max(1, limit), MAX_PAGE_SIZE)
    leaves, total = await repository.get_leaves(
        db, status=status_filter, skip=(page - 1) * limit, limit=limit
    )
    return {
        "leaves": leaves,
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": math.ceil(total / limit) if total > 0 else 0,
    }


async def decide_leave(
    db: AsyncSession,
    current_user: CurrentUser,
    leave_id: UUID,
    data: LeaveDecision,
    context: RequestContext | None = None,
) -> Leave:
    """
    Approve or disapprove a pending leave request.

    Raises:
        LeaveNotFoundError: No such leave request
        AppError 400: Leave was already decided
    """
    leave = await repository.get_by_id(db, leave_id)
    if not leave:
        raise LeaveNotFoundError()

    app_assert(
        leave.status == LeaveStatus.PENDING,
        status.HTTP_400_BAD_REQUEST,
        "Only pending leave requests can be decided",
        "LEAVE_ALREADY_DECIDED",
    )

    account, actor_name, actor_profile_id = await describe_actor(db, current_user)

    leave.status = data.status
    leave.remarks = data.remarks
    leave.allow_resubmit = data.allow_resubmit
    leave.decided_by = account.id
    leave.decided_by_profile = actor_name if actor_profile_id else None
    leave.decided_at = datetime.now(UTC)
    await db.commit()
    await db.refresh(leave)

    logger.info(f"Leave {leave.id} {data.status.value} by {current_user.id}")

    await create_audit_log(
        account_id=account.id,
        profile_id=actor_profile_id,
        actor_name=actor_name,
        actor_email=account.email,
        action=AuditAction.DECIDE_LEAVE,
        module=AuditModule.LEAVE_REQUESTS,
        target_type="Leave",
        target_id=leave.id,
        target_name=leave.name,
        details={"remarks": data.remarks} if data.remarks else None,
        old_value={"status": LeaveStatus.PENDING.value},
        new_value={"status": data.status.value},
        context=context,
    )
    return leave

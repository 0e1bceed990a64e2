"""
Leave Requests Router

Endpoints:
- POST /leaves - File a leave request (students)
- GET /leaves/mine - The caller's leave requests
- GET /leaves - List leave requests for review
- PATCH /leaves/{id}/decision - Approve or disapprove a pending request
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from sasm_ims.core.auth import CurrentUser, require_roles
from sasm_ims.core.database import get_db
from sasm_ims.modules.audit_logs.service import RequestContext
from sasm_ims.modules.leaves import service
from sasm_ims.modules.leaves.models import LeaveStatus
from sasm_ims.modules.leaves.schemas import (
    LeaveCreate,
    LeaveDecision,
    LeaveListResponse,
    LeaveResponse,
)
from sasm_ims.modules.office_profiles.models import Permission
from sasm_ims.modules.office_profiles.permissions import require_permission

router = APIRouter()


@router.post("", response_model=LeaveResponse, status_code=status.HTTP_201_CREATED)
async def submit_leave(
    data: LeaveCreate,
    current_user: CurrentUser = Depends(require_roles("student")),
    db: AsyncSession = Depends(get_db),
) -> LeaveResponse:
    leave = await service.submit_leave(db, current_user, data)
    return LeaveResponse.model_validate(leave)


@router.get("/mine", response_model=list[LeaveResponse])
async def get_my_leaves(
    current_user: CurrentUser = Depends(require_roles("student")),
    db: AsyncSession = Depends(get_db),
) -> list[LeaveResponse]:
    leaves = await service.get_my_leaves(db, current_user)
    return [LeaveResponse.model_validate(leave) for leave in leaves]


@router.get("", response_model=LeaveListResponse)
async def list_leaves(
    status_filter: LeaveStatus | None = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=service.MAX_PAGE_SIZE),
    current_user: CurrentUser = Depends(require_permission(Permission.VIEW_LEAVE_REQUESTS)),
    db: AsyncSession = Depends(get_db),
) -> LeaveListResponse:
    result = await service.list_leaves(db, status_filter=status_filter, page=page, limit=limit)
    return LeaveListResponse.model_validate(result, from_attributes=True)


@router.patch("/{leave_id}/decision", response_model=LeaveResponse)
async def decide_leave(
    leave_id: UUID,
    data: LeaveDecision,
    request: Request,
    current_user: CurrentUser = Depends(require_permission(Permission.APPROVE_LEAVE_REQUESTS)),
    db: AsyncSession = Depends(get_db),
) -> LeaveResponse:
    """
    Raises:
        400: Leave request already decided
        404: Leave request not found
    """
    leave = await service.decide_leave(
        db, current_user, leave_id, data, context=RequestContext.from_request(request)
    )
    return LeaveResponse.model_validate(leave)

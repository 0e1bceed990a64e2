"""
Archival Router

HR-only endpoints for the retention pipeline and archive browsing.

Endpoints:
- POST /archival/run - Run all archival tasks now
- GET /archival/status - Archive counts and rows due for deletion
- GET /archival/semesters - Distinct semester labels
- GET /archival/applications - Browse archived applications
- GET /archival/reapplications - Browse archived re-applications
- GET /archival/leaves - Browse archived leave requests
- GET /archival/{kind}/{id} - One archive row with its original snapshot
"""

import logging
from typing import Literal
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from sasm_ims.core.auth import CurrentUser, require_roles
from sasm_ims.core.database import get_db
from sasm_ims.modules.archival import service
from sasm_ims.modules.archival.schemas import (
    ArchivalRunResponse,
    ArchivalStatusResponse,
    ArchivedApplicationList,
    ArchivedLeaveList,
    ArchivedReApplicationList,
    ArchivedRecordDetail,
    SemesterListResponse,
)
from sasm_ims.modules.audit_logs.service import (
    AuditAction,
    AuditModule,
    RequestContext,
    create_audit_log,
)
from sasm_ims.modules.office_profiles.service import describe_actor

logger = logging.getLogger(__name__)

router = APIRouter()

hr_only = require_roles("hr")


@router.post("/run", response_model=ArchivalRunResponse)
async def run_archival(
    request: Request,
    current_user: CurrentUser = Depends(hr_only),
    db: AsyncSession = Depends(get_db),
) -> ArchivalRunResponse:
    """Archive old rejected/disapproved records and purge expired archives."""
    logger.info(f"Manual archival run requested by {current_user.id}")
    result = await service.run_archival_tasks()

    account, actor_name, actor_profile_id = await describe_actor(db, current_user)
    await create_audit_log(
        account_id=account.id,
        profile_id=actor_profile_id,
        actor_name=actor_name,
        actor_email=account.email,
        action=AuditAction.RUN_ARCHIVAL,
        module=AuditModule.ARCHIVES,
        details=result,
        context=RequestContext.from_request(request),
    )
    return ArchivalRunResponse(**result)


@router.get("/status", response_model=ArchivalStatusResponse)
async def get_status(
    current_user: CurrentUser = Depends(hr_only),
    db: AsyncSession = Depends(get_db),
) -> ArchivalStatusResponse:
    return ArchivalStatusResponse(**await service.get_archival_status(db))


@router.get("/semesters", response_model=SemesterListResponse)
async def get_semesters(
    current_user: CurrentUser = Depends(hr_only),
    db: AsyncSession = Depends(get_db),
) -> SemesterListResponse:
    return SemesterListResponse(semester_years=await service.get_semesters(db))


@router.get("/applications", response_model=ArchivedApplicationList)
async def list_archived_applications(
    semester_year: str | None = Query(None, max_length=50),
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=service.MAX_PAGE_SIZE),
    current_user: CurrentUser = Depends(hr_only),
    db: AsyncSession = Depends(get_db),
) -> ArchivedApplicationList:
    result = await service.list_archived(
        db, "applications", semester_year=semester_year, search=search, page=page, limit=limit
    )
    return ArchivedApplicationList.model_validate(result, from_attributes=True)


@router.get("/reapplications", response_model=ArchivedReApplicationList)
async def list_archived_reapplications(
    semester_year: str | None = Query(None, max_length=50),
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=service.MAX_PAGE_SIZE),
    current_user: CurrentUser = Depends(hr_only),
    db: AsyncSession = Depends(get_db),
) -> ArchivedReApplicationList:
    result = await service.list_archived(
        db, "reapplications", semester_year=semester_year, search=search, page=page, limit=limit
    )
    return ArchivedReApplicationList.model_validate(result, from_attributes=True)


@router.get("/leaves", response_model=ArchivedLeaveList)
async def list_archived_leaves(
    semester_year: str | None = Query(None, max_length=50),
    search: str | None = Query(None, max_length=100),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=service.MAX_PAGE_SIZE),
    current_user: CurrentUser = Depends(hr_only),
    db: AsyncSession = Depends(get_db),
) -> ArchivedLeaveList:
    result = await service.list_archived(
        db, "leaves", semester_year=semester_year, search=search, page=page, limit=limit
    )
    return ArchivedLeaveList.model_validate(result, from_attributes=True)


@router.get("/{kind}/{record_id}", response_model=ArchivedRecordDetail)
async def get_archived_record(
    kind: Literal["applications", "reapplications", "leaves"],
    record_id: UUID,
    current_user: CurrentUser = Depends(hr_only),
    db: AsyncSession = Depends(get_db),
) -> ArchivedRecordDetail:
    """
    Raises:
        404: Archive row not found
    """
    record = await service.get_archived_record(db, kind, record_id)
    return ArchivedRecordDetail.model_validate(record)

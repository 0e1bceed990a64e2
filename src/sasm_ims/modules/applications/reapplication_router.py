"""
Re-applications Router

Endpoints:
- POST /reapplications - Submit a re-application (students)
- GET /reapplications/mine - The caller's re-applications
- GET /reapplications - List re-applications (HR)
- PATCH /reapplications/{id}/status - Decide a re-application (HR)
"""

from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from sasm_ims.core.auth import CurrentUser, require_roles
from sasm_ims.core.database import get_db
from sasm_ims.modules.applications import service
from sasm_ims.modules.applications.models import ReApplicationStatus
from sasm_ims.modules.applications.schemas import (
    ReApplicationCreate,
    ReApplicationListResponse,
    ReApplicationResponse,
    ReApplicationStatusUpdate,
)
from sasm_ims.modules.audit_logs.service import RequestContext

router = APIRouter()


@router.post("", response_model=ReApplicationResponse, status_code=status.HTTP_201_CREATED)
async def submit_reapplication(
    data: ReApplicationCreate,
    current_user: CurrentUser = Depends(require_roles("student")),
    db: AsyncSession = Depends(get_db),
) -> ReApplicationResponse:
    """
    Raises:
        409: A re-application is already in progress
    """
    reapplication = await service.submit_reapplication(db, current_user, data)
    return ReApplicationResponse.model_validate(reapplication)


@router.get("/mine", response_model=list[ReApplicationResponse])
async def get_my_reapplications(
    current_user: CurrentUser = Depends(require_roles("student")),
    db: AsyncSession = Depends(get_db),
) -> list[ReApplicationResponse]:
    reapplications = await service.get_my_reapplications(db, current_user)
    return [ReApplicationResponse.model_validate(r) for r in reapplications]


@router.get("", response_model=ReApplicationListResponse)
async def list_reapplications(
    status_filter: ReApplicationStatus | None = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=service.MAX_PAGE_SIZE),
    current_user: CurrentUser = Depends(require_roles("hr")),
    db: AsyncSession = Depends(get_db),
) -> ReApplicationListResponse:
    result = await service.list_reapplications(
        db, status_filter=status_filter, page=page, limit=limit
    )
    return ReApplicationListResponse.model_validate(result, from_attributes=True)


@router.patch("/{reapplication_id}/status", response_model=ReApplicationResponse)
async def update_status(
    reapplication_id: UUID,
    data: ReApplicationStatusUpdate,
    request: Request,
    current_user: CurrentUser = Depends(require_roles("hr")),
    db: AsyncSession = Depends(get_db),
) -> ReApplicationResponse:
    """
    Raises:
        404: Re-application not found
        409: Transition not allowed
    """
    reapplication = await service.update_reapplication_status(
        db,
        current_user,
        reapplication_id,
        data,
        context=RequestContext.from_request(request),
    )
    return ReApplicationResponse.model_validate(reapplication)

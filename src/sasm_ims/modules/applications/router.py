"""
Applications Router

Endpoints:
- POST /applications - Submit an application (students)
- GET /applications/mine - The caller's applications
- GET /applications/stats - Counts per status
- GET /applications - List applications for review
- GET /applications/{id} - Application details
- PATCH /applications/{id}/status - Move an application through review
- DELETE /applications/{id} - Delete the caller's pending application

Review endpoints admit HR and office profiles holding the matching
permission flag.
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from sasm_ims.core.auth import CurrentUser, get_current_user, require_roles
from sasm_ims.core.database import get_db
from sasm_ims.modules.applications import service
from sasm_ims.modules.applications.models import Application, ApplicationStatus, Position
from sasm_ims.modules.applications.schemas import (
    ApplicationCreate,
    ApplicationListItem,
    ApplicationListResponse,
    ApplicationResponse,
    ApplicationStats,
    ApplicationStatusUpdate,
)
from sasm_ims.modules.audit_logs.service import RequestContext
from sasm_ims.modules.auth.schemas import MessageResponse
from sasm_ims.modules.office_profiles.models import Permission
from sasm_ims.modules.office_profiles.permissions import require_permission

logger = logging.getLogger(__name__)

router = APIRouter()


def _application_to_list_item(application: Application) -> ApplicationListItem:
    return ApplicationListItem.model_validate(application)


@router.post("", response_model=ApplicationResponse, status_code=status.HTTP_201_CREATED)
async def submit_application(
    data: ApplicationCreate,
    current_user: CurrentUser = Depends(require_roles("student")),
    db: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    """
    Submit a scholarship application.

    Raises:
        400: Validation failed (terms not accepted, missing relatives)
        409: An application is already in progress
    """
    application = await service.submit_application(db, current_user, data)
    return ApplicationResponse.model_validate(application)


@router.get("/mine", response_model=list[ApplicationResponse])
async def get_my_applications(
    current_user: CurrentUser = Depends(require_roles("student")),
    db: AsyncSession = Depends(get_db),
) -> list[ApplicationResponse]:
    """The caller's applications, newest first."""
    applications = await service.get_my_applications(db, current_user)
    return [ApplicationResponse.model_validate(a) for a in applications]


@router.get("/stats", response_model=ApplicationStats)
async def get_stats(
    current_user: CurrentUser = Depends(require_permission(Permission.VIEW_APPLICATIONS)),
    db: AsyncSession = Depends(get_db),
) -> ApplicationStats:
    return ApplicationStats(**await service.get_application_stats(db))


@router.get("", response_model=ApplicationListResponse)
async def list_applications(
    status_filter: ApplicationStatus | None = Query(None, alias="status"),
    position: Position | None = Query(None),
    search: str | None = Query(None, max_length=100),
    sort_by: str = Query("submitted_at", pattern="^(submitted_at|last_name|updated_at)$"),
    sort_order: str = Query("desc", pattern="^(asc|desc)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=service.MAX_PAGE_SIZE),
    current_user: CurrentUser = Depends(require_permission(Permission.VIEW_APPLICATIONS)),
    db: AsyncSession = Depends(get_db),
) -> ApplicationListResponse:
    """Paginated applications, filterable by status, position and name/email."""
    result = await service.list_applications(
        db,
        status_filter=status_filter,
        position=position,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        page=page,
        limit=limit,
    )
    return ApplicationListResponse(
        applications=[_application_to_list_item(a) for a in result["applications"]],
        total=result["total"],
        page=result["page"],
        limit=result["limit"],
        total_pages=result["total_pages"],
    )


@router.get("/{application_id}", response_model=ApplicationResponse)
async def get_application(
    application_id: UUID,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    """
    Raises:
        403: Not the owner and lacking view_applications
        404: Application not found
    """
    application = await service.get_application(db, current_user, application_id)
    return ApplicationResponse.model_validate(application)


@router.patch("/{application_id}/status", response_model=ApplicationResponse)
async def update_status(
    application_id: UUID,
    data: ApplicationStatusUpdate,
    request: Request,
    current_user: CurrentUser = Depends(require_permission(Permission.EDIT_APPLICATIONS)),
    db: AsyncSession = Depends(get_db),
) -> ApplicationResponse:
    """
    Change an application's status.

    Raises:
        400: Interview date missing when scheduling an interview
        404: Application not found
        409: Transition not allowed
    """
    application = await service.update_application_status(
        db,
        current_user,
        application_id,
        data,
        context=RequestContext.from_request(request),
    )
    return ApplicationResponse.model_validate(application)


@router.delete("/{application_id}", response_model=MessageResponse)
async def delete_application(
    application_id: UUID,
    current_user: CurrentUser = Depends(require_roles("student")),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """
    Raises:
        400: Application is no longer pending
        404: Application not found
    """
    await service.delete_application(db, current_user, application_id)
    return MessageResponse(message="Application deleted successfully")

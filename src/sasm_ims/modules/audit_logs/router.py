"""
Audit log router.

Endpoints:
- GET /audit-logs - Filtered audit trail for the caller's account
"""

from datetime import datetime
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from sasm_ims.core.auth import CurrentUser, require_roles
from sasm_ims.core.database import get_db
from sasm_ims.modules.audit_logs import service
from sasm_ims.modules.audit_logs.schemas import AuditLogListResponse

router = APIRouter()


@router.get("", response_model=AuditLogListResponse)
async def list_audit_logs(
    profile_id: UUID | None = Query(None),
    module: str | None = Query(None, max_length=100),
    action: str | None = Query(None, max_length=100),
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=service.MAX_PAGE_SIZE),
    current_user: CurrentUser = Depends(require_roles("office", "hr")),
    db: AsyncSession = Depends(get_db),
) -> AuditLogListResponse:
    """List audit entries recorded under the caller's account, newest first."""
    result = await service.get_audit_logs(
        db,
        account_id=current_user.id,
        profile_id=profile_id,
        module=module,
        action=action,
        start_date=start_date,
        end_date=end_date,
        skip=skip,
        limit=limit,
    )
    return AuditLogListResponse.model_validate(result, from_attributes=True)

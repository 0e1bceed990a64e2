"""
Applications Service

Business logic for scholarship applications and re-applications:

- A student may only have one application in progress at a time
- HR (or office profiles with the edit permission) move applications
  through the review workflow; every change is audited and the applicant
  is notified
- Re-applications link the scholar's latest application, falling back to
  the archive once the original has been archived
"""

import logging
import math
from datetime import UTC, datetime
from uuid import UUID

from fastapi import status
from sqlalchemy.ext.asyncio import AsyncSession

from sasm_ims.core.auth import CurrentUser
from sasm_ims.core.errors import AppError, app_assert
from sasm_ims.modules.applications import repository
from sasm_ims.modules.applications.messages import build_status_message
from sasm_ims.modules.applications.models import (
    Application,
    ApplicationStatus,
    Position,
    ReApplication,
    ReApplicationStatus,
)
from sasm_ims.modules.applications.repository import InvalidStatusTransitionError
from sasm_ims.modules.applications.schemas import (
    ApplicationCreate,
    ApplicationStatusUpdate,
    ReApplicationCreate,
    ReApplicationStatusUpdate,
)
from sasm_ims.modules.archival import repository as archival_repository
from sasm_ims.modules.audit_logs.service import (
    AuditAction,
    AuditModule,
    RequestContext,
    create_audit_log,
)
from sasm_ims.modules.notifications.service import create_notification
from sasm_ims.modules.office_profiles.models import Permission
from sasm_ims.modules.office_profiles.permissions import check_permission
from sasm_ims.modules.office_profiles.service import describe_actor
from sasm_ims.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


# ============================================
# Service Errors
# ============================================


class ApplicationNotFoundError(AppError):
    def __init__(self, application_id: UUID | None = None):
        super().__init__(
            "Application not found",
            error_code="APPLICATION_NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
        )
        self.application_id = application_id


class ReApplicationNotFoundError(AppError):
    def __init__(self):
        super().__init__(
            "Re-application not found",
            error_code="REAPPLICATION_NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
        )


class ActiveApplicationExistsError(AppError):
    def __init__(self, message: str = "You already have an application in progress"):
        super().__init__(
            message,
            error_code="ACTIVE_APPLICATION_EXISTS",
            status_code=status.HTTP_409_CONFLICT,
        )


class StatusTransitionError(AppError):
    def __init__(self, error: InvalidStatusTransitionError):
        super().__init__(
            f"Cannot change status from {error.current_status.value} "
            f"to {error.new_status.value}",
            error_code="INVALID_STATUS_TRANSITION",
            status_code=status.HTTP_409_CONFLICT,
        )


def _paginate(page: int, limit: int) -> tuple[int, int, int]:
    """Clamp page/limit and return (page, limit, skip)."""
    page = max(1, page)
    limit = min(max(1, limit), MAX_PAGE_SIZE)
    return page, limit, (page - 1) * limit


# ============================================
# Applications
# ============================================


async def submit_application(
    db: AsyncSession,
    current_user: CurrentUser,
    data: ApplicationCreate,
) -> Application:
    """
    Submit a new application for the calling student.

    Raises:
        ActiveApplicationExistsError: Student already has a non-terminal application
    """
    existing = await repository.get_open_application(db, current_user.id)
    if existing:
        logger.warning(
            f"Duplicate application attempt by {current_user.id} "
            f"(open application {existing.id}, status {existing.status.value})"
        )
        raise ActiveApplicationExistsError()

    application = await repository.create(db, current_user.id, data)
    logger.info(f"Created application {application.id} for account {current_user.id}")
    return application


async def get_my_applications(db: AsyncSession, current_user: CurrentUser) -> list[Application]:
    return await repository.get_by_account(db, current_user.id)


async def get_application(
    db: AsyncSession,
    current_user: CurrentUser,
    application_id: UUID,
) -> Application:
    """
    Get an application visible to the caller.

    Owners always see their own application; anyone else needs
    ``view_applications`` (HR always has it).

    Raises:
        ApplicationNotFoundError: No such application
        AppError 403: Caller may not view it
    """
    application = await repository.get_by_id(db, application_id)
    if not application:
        raise ApplicationNotFoundError(application_id)

    if application.account_id != current_user.id:
        await check_permission(db, current_user, Permission.VIEW_APPLICATIONS)

    return application


async def list_applications(
    db: AsyncSession,
    *,
    status_filter: ApplicationStatus | None = None,
    position: Position | None = None,
    search: str | None = None,
    sort_by: str = "submitted_at",
    sort_order: str = "desc",
    page: int = 1,
    limit: int = 20,
) -> dict:
    """
    Paginated applications for review.

    Returns:
        Dict with applications, total, page, limit, total_pages
    """
    page, limit, skip = _paginate(page, limit)
    applications, total = await repository.get_applications_for_review(
        db,
        status=status_filter,
        position=position,
        search=search,
        sort_by=sort_by,
        sort_order=sort_order,
        skip=skip,
        limit=limit,
    )
    return {
        "applications": applications,
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": math.ceil(total / limit) if total > 0 else 0,
    }


async def get_application_stats(db: AsyncSession) -> dict:
    by_status = await repository.count_by_status(db)
    return {"total": sum(by_status.values()), "by_status": by_status}


async def update_application_status(
    db: AsyncSession,
    current_user: CurrentUser,
    application_id: UUID,
    data: ApplicationStatusUpdate,
    context: RequestContext | None = None,
) -> Application:
    """
    Move an application to a new status.

    Raises:
        ApplicationNotFoundError: No such application
        AppError 400: Scheduling an interview without a date
        StatusTransitionError: Transition not allowed from the current status
    """
    application = await repository.get_by_id(db, application_id)
    if not application:
        raise ApplicationNotFoundError(application_id)

    if data.status == ApplicationStatus.INTERVIEW_SCHEDULED:
        app_assert(
            data.interview_date or application.interview_date,
            status.HTTP_400_BAD_REQUEST,
            "Interview date is required when scheduling an interview",
            "INTERVIEW_DATE_REQUIRED",
        )

    old_status = application.status
    updates = data.model_dump(exclude={"status"}, exclude_none=True)

    try:
        application = await repository.update_status(
            db,
            application,
            data.status,
            reviewed_by=current_user.id,
            reviewed_at=datetime.now(UTC),
            **updates,
        )
    except InvalidStatusTransitionError as e:
        logger.warning(f"Rejected status change for application {application_id}: {e}")
        raise StatusTransitionError(e) from e

    logger.info(
        f"Application {application.id} moved {old_status.value} -> {data.status.value} "
        f"by {current_user.id}"
    )

    account, actor_name, actor_profile_id = await describe_actor(db, current_user)
    await create_audit_log(
        account_id=account.id,
        profile_id=actor_profile_id,
        actor_name=actor_name,
        actor_email=account.email,
        action=AuditAction.UPDATE_APPLICATION_STATUS,
        module=AuditModule.APPLICATIONS,
        target_type="Application",
        target_id=application.id,
        target_name=application.full_name,
        details={"comments": data.hr_comments} if data.hr_comments else None,
        old_value={"status": old_status.value},
        new_value={"status": data.status.value},
        context=context,
    )

    title, message, notification_type = build_status_message(application, data.hr_comments)
    await create_notification(
        account_id=application.account_id,
        title=title,
        message=message,
        type=notification_type,
        related_application_id=application.id,
    )
    return application


async def delete_application(
    db: AsyncSession,
    current_user: CurrentUser,
    application_id: UUID,
) -> None:
    """
    Delete the caller's own pending application.

    Raises:
        ApplicationNotFoundError: No such application owned by the caller
        AppError 400: Application is no longer pending
    """
    application = await repository.get_by_id(db, application_id)
    if not application or application.account_id != current_user.id:
        raise ApplicationNotFoundError(application_id)

    app_assert(
        application.status == ApplicationStatus.PENDING,
        status.HTTP_400_BAD_REQUEST,
        "You can only delete pending applications",
        "APPLICATION_NOT_PENDING",
    )

    await repository.delete(db, application)
    logger.info(f"Account {current_user.id} deleted application {application_id}")


# ============================================
# Re-applications
# ============================================


async def _previous_application_id(db: AsyncSession, account_id: UUID) -> UUID | None:
    latest = await repository.get_latest_for_account(db, account_id)
    if latest:
        return latest.id

    archived = await archival_repository.get_latest_archived_application(db, account_id)
    if archived:
        return archived.original_id

    return None


async def submit_reapplication(
    db: AsyncSession,
    current_user: CurrentUser,
    data: ReApplicationCreate,
) -> ReApplication:
    """
    Submit a re-application for the calling scholar.

    Raises:
        AppError 404: Account not found
        ActiveApplicationExistsError: A re-application is already being processed
    """
    account = await UserRepository.get_by_id(db, current_user.id)
    app_assert(account, status.HTTP_404_NOT_FOUND, "User not found", "USER_NOT_FOUND")

    if await repository.get_open_reapplication(db, account.id):
        raise ActiveApplicationExistsError("You already have a re-application in progress")

    reapplication = await repository.create_reapplication(
        db,
        ReApplication(
            account_id=account.id,
            previous_application_id=await _previous_application_id(db, account.id),
            first_name=account.first_name,
            last_name=account.last_name,
            email=account.email,
            position=data.position,
            effectivity_date=data.effectivity_date,
            years_in_service=data.years_in_service,
            term=data.term,
            academic_year=data.academic_year,
            reapplication_reasons=data.reapplication_reasons,
            college=data.college,
            course_year=data.course_year,
            recent_grades_url=data.recent_grades_url,
            status=ReApplicationStatus.PENDING,
        ),
    )
    logger.info(
        f"Created re-application {reapplication.id} for account {account.id} "
        f"(previous application {reapplication.previous_application_id})"
    )
    return reapplication


async def get_my_reapplications(
    db: AsyncSession, current_user: CurrentUser
) -> list[ReApplication]:
    return await repository.get_reapplications_by_account(db, current_user.id)


async def list_reapplications(
    db: AsyncSession,
    *,
    status_filter: ReApplicationStatus | None = None,
    page: int = 1,
    limit: int = 20,
) -> dict:
    page, limit, skip = _paginate(page, limit)
    reapplications, total = await repository.get_reapplications_for_review(
        db, status=status_filter, skip=skip, limit=limit
    )
    return {
        "reapplications": reapplications,
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": math.ceil(total / limit) if total > 0 else 0,
    }


async def update_reapplication_status(
    db: AsyncSession,
    current_user: CurrentUser,
    reapplication_id: UUID,
    data: ReApplicationStatusUpdate,
    context: RequestContext | None = None,
) -> ReApplication:
    """
    Raises:
        ReApplicationNotFoundError: No such re-application
        StatusTransitionError: Transition not allowed from the current status
    """
    reapplication = await repository.get_reapplication(db, reapplication_id)
    if not reapplication:
        raise ReApplicationNotFoundError()

    old_status = reapplication.status
    try:
        reapplication = await repository.update_reapplication_status(
            db,
            reapplication,
            data.status,
            reviewed_by=current_user.id,
            reviewed_at=datetime.now(UTC),
            **data.model_dump(exclude={"status"}, exclude_none=True),
        )
    except InvalidStatusTransitionError as e:
        raise StatusTransitionError(e) from e

    logger.info(
        f"Re-application {reapplication.id} moved {old_status.value} -> {data.status.value}"
    )

    account, actor_name, actor_profile_id = await describe_actor(db, current_user)
    await create_audit_log(
        account_id=account.id,
        profile_id=actor_profile_id,
        actor_name=actor_name,
        actor_email=account.email,
        action=AuditAction.UPDATE_REAPPLICATION_STATUS,
        module=AuditModule.APPLICATIONS,
        target_type="ReApplication",
        target_id=reapplication.id,
        target_name=reapplication.full_name,
        old_value={"status": old_status.value},
        new_value={"status": data.status.value},
        context=context,
    )
    return reapplication

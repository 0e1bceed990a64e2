"""
Applications Repository

Database operations for applications and re-applications, including the
status state machines that guard HR workflow changes.
"""

from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Application, ApplicationStatus, Position, ReApplication, ReApplicationStatus
from .schemas import ApplicationCreate

# Valid status transitions for applications
VALID_STATUS_TRANSITIONS: dict[ApplicationStatus, set[ApplicationStatus]] = {
    ApplicationStatus.PENDING: {
        ApplicationStatus.UNDER_REVIEW,
        ApplicationStatus.ON_HOLD,
        ApplicationStatus.REJECTED,
        ApplicationStatus.WITHDRAWN,
    },
    ApplicationStatus.UNDER_REVIEW: {
        ApplicationStatus.INTERVIEW_SCHEDULED,
        ApplicationStatus.ON_HOLD,
        ApplicationStatus.REJECTED,
        ApplicationStatus.WITHDRAWN,
    },
    ApplicationStatus.INTERVIEW_SCHEDULED: {
        ApplicationStatus.PASSED_INTERVIEW,
        ApplicationStatus.FAILED_INTERVIEW,
        ApplicationStatus.ON_HOLD,
        ApplicationStatus.WITHDRAWN,
    },
    ApplicationStatus.PASSED_INTERVIEW: {
        ApplicationStatus.HOURS_COMPLETED,
        ApplicationStatus.ACCEPTED,
        ApplicationStatus.ON_HOLD,
        ApplicationStatus.REJECTED,
        ApplicationStatus.WITHDRAWN,
    },
    ApplicationStatus.FAILED_INTERVIEW: {
        ApplicationStatus.INTERVIEW_SCHEDULED,  # re-interview
        ApplicationStatus.REJECTED,
    },
    ApplicationStatus.HOURS_COMPLETED: {
        ApplicationStatus.ACCEPTED,
        ApplicationStatus.REJECTED,
    },
    ApplicationStatus.ON_HOLD: {
        ApplicationStatus.PENDING,
        ApplicationStatus.UNDER_REVIEW,
        ApplicationStatus.INTERVIEW_SCHEDULED,
        ApplicationStatus.REJECTED,
        ApplicationStatus.WITHDRAWN,
    },
    # Terminal states
    ApplicationStatus.ACCEPTED: set(),
    ApplicationStatus.REJECTED: set(),
    ApplicationStatus.WITHDRAWN: set(),
}

TERMINAL_STATUSES = {
    status for status, targets in VALID_STATUS_TRANSITIONS.items() if not targets
}

VALID_REAPPLICATION_TRANSITIONS: dict[ReApplicationStatus, set[ReApplicationStatus]] = {
    ReApplicationStatus.PENDING: {
        ReApplicationStatus.UNDER_REVIEW,
        ReApplicationStatus.APPROVED,
        ReApplicationStatus.REJECTED,
        ReApplicationStatus.WITHDRAWN,
    },
    ReApplicationStatus.UNDER_REVIEW: {
        ReApplicationStatus.APPROVED,
        ReApplicationStatus.REJECTED,
        ReApplicationStatus.WITHDRAWN,
    },
    ReApplicationStatus.APPROVED: set(),
    ReApplicationStatus.REJECTED: set(),
    ReApplicationStatus.WITHDRAWN: set(),
}


class InvalidStatusTransitionError(ValueError):
    """Raised when an invalid status transition is attempted."""

    def __init__(self, current_status, new_status, valid_transitions):
        self.current_status = current_status
        self.new_status = new_status
        super().__init__(
            f"Invalid status transition: {current_status.value} -> {new_status.value}. "
            f"Valid transitions: {sorted(s.value for s in valid_transitions)}"
        )


def check_transition(current_status, new_status, transitions: dict) -> None:
    """
    Validate a status change against a transition table.

    Setting the current status again is allowed (e.g. to update comments),
    except from a terminal status: closed records accept no changes at all.

    Raises:
        InvalidStatusTransitionError: If the change is not allowed
    """
    valid = transitions.get(current_status, set())
    if not valid:
        raise InvalidStatusTransitionError(current_status, new_status, valid)
    if new_status != current_status and new_status not in valid:
        raise InvalidStatusTransitionError(current_status, new_status, valid)


# ============================================
# Application Repository
# ============================================


async def create(db: AsyncSession, account_id: UUID, data: ApplicationCreate) -> Application:
    """Create a new application."""
    new_application = Application(
        account_id=account_id,
        position=data.position,
        # Personal
        first_name=data.personal.first_name,
        last_name=data.personal.last_name,
        age=data.personal.age,
        gender=data.personal.gender,
        civil_status=data.personal.civil_status,
        citizenship=data.personal.citizenship,
        # Address
        home_address=data.address.home_address,
        baguio_address=data.address.baguio_address,
        # Contact
        email=data.contact.email.lower(),
        home_contact=data.contact.home_contact,
        baguio_contact=data.contact.baguio_contact,
        # Family
        father_name=data.family.father_name,
        father_occupation=data.family.father_occupation,
        mother_name=data.family.mother_name,
        mother_occupation=data.family.mother_occupation,
        emergency_contact=data.family.emergency_contact,
        emergency_contact_number=data.family.emergency_contact_number,
        # Details
        relatives=[r.model_dump() for r in data.relatives] if data.relatives else None,
        education=data.education.model_dump() if data.education else None,
        seminars=[s.model_dump() for s in data.seminars] if data.seminars else None,
        # Uploads
        profile_photo_url=data.uploads.profile_photo_url,
        signature_url=data.uploads.signature_url,
        certificate_urls=data.uploads.certificate_urls or None,
        agreed_to_terms=data.agreed_to_terms,
        status=ApplicationStatus.PENDING,
    )

    db.add(new_application)
    await db.commit()
    await db.refresh(new_application)

    return new_application


async def get_by_id(db: AsyncSession, id: UUID) -> Application | None:
    """Get application by ID."""
    return await db.get(Application, id)


async def get_by_account(db: AsyncSession, account_id: UUID) -> list[Application]:
    """Applications of an account, newest first."""
    result = await db.execute(
        select(Application)
        .where(Application.account_id == account_id)
        .order_by(Application.submitted_at.desc())
    )
    return list(result.scalars().all())


async def get_open_application(db: AsyncSession, account_id: UUID) -> Application | None:
    """The account's application that is still in progress, if any."""
    result = await db.execute(
        select(Application)
        .where(
            Application.account_id == account_id,
            Application.status.not_in(TERMINAL_STATUSES),
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_latest_for_account(db: AsyncSession, account_id: UUID) -> Application | None:
    result = await db.execute(
        select(Application)
        .where(Application.account_id == account_id)
        .order_by(Application.submitted_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def update_status(
    db: AsyncSession,
    application: Application,
    status: ApplicationStatus,
    **kwargs,
) -> Application:
    """
    Update application status and optional fields.

    Raises:
        InvalidStatusTransitionError: If status transition is not allowed
    """
    check_transition(application.status, status, VALID_STATUS_TRANSITIONS)

    application.status = status
    for key, value in kwargs.items():
        if hasattr(application, key):
            setattr(application, key, value)

    await db.commit()
    await db.refresh(application)

    return application


async def delete(db: AsyncSession, application: Application) -> None:
    await db.delete(application)
    await db.commit()


async def get_applications_for_review(
    db: AsyncSession,
    *,
    status: ApplicationStatus | None = None,
    position: Position | None = None,
    search: str | None = None,
    sort_by: str = "submitted_at",
    sort_order: str = "desc",
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[Application], int]:
    """
    Applications with filters, sorting and pagination for the HR dashboard.

    Returns:
        Tuple of (list of applications, total count matching filters)
    """
    query = select(Application)

    if status:
        query = query.where(Application.status == status)
    if position:
        query = query.where(Application.position == position)
    if search:
        pattern = f"%{search}%"
        query = query.where(
            Application.first_name.ilike(pattern)
            | Application.last_name.ilike(pattern)
            | Application.email.ilike(pattern)
        )

    count_query = select(func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    valid_sort_columns = {"submitted_at", "last_name", "updated_at"}
    if sort_by not in valid_sort_columns:
        sort_by = "submitted_at"

    sort_column = getattr(Application, sort_by)
    query = query.order_by(sort_column.asc() if sort_order.lower() == "asc" else sort_column.desc())
    query = query.offset(skip).limit(limit)

    result = await db.execute(query)
    return list(result.scalars().all()), total


async def count_by_status(db: AsyncSession) -> dict[str, int]:
    """Application counts grouped by status (zero for unused statuses)."""
    result = await db.execute(
        select(Application.status, func.count()).group_by(Application.status)
    )
    counts = {status.value: 0 for status in ApplicationStatus}
    for status, count in result.all():
        counts[status.value] = count
    return counts


# ============================================
# ReApplication Repository
# ============================================


async def create_reapplication(db: AsyncSession, reapplication: ReApplication) -> ReApplication:
    db.add(reapplication)
    await db.commit()
    await db.refresh(reapplication)
    return reapplication


async def get_reapplication(db: AsyncSession, id: UUID) -> ReApplication | None:
    return await db.get(ReApplication, id)


async def get_reapplications_by_account(db: AsyncSession, account_id: UUID) -> list[ReApplication]:
    result = await db.execute(
        select(ReApplication)
        .where(ReApplication.account_id == account_id)
        .order_by(ReApplication.submitted_at.desc())
    )
    return list(result.scalars().all())


async def get_open_reapplication(db: AsyncSession, account_id: UUID) -> ReApplication | None:
    result = await db.execute(
        select(ReApplication)
        .where(
            ReApplication.account_id == account_id,
            ReApplication.status.in_(
                [ReApplicationStatus.PENDING, ReApplicationStatus.UNDER_REVIEW]
            ),
        )
        .limit(1)
    )
    return result.scalar_one_or_none()


async def get_reapplications_for_review(
    db: AsyncSession,
    *,
    status: ReApplicationStatus | None = None,
    skip: int = 0,
    limit: int = 20,
) -> tuple[list[ReApplication], int]:
    query = select(ReApplication)
    if status:
        query = query.where(ReApplication.status == status)

    count_query = select(func.count()).select_from(query.subquery())
    total_result = await db.execute(count_query)
    total = total_result.scalar() or 0

    query = query.order_by(ReApplication.submitted_at.desc()).offset(skip).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all()), total


async def update_reapplication_status(
    db: AsyncSession,
    reapplication: ReApplication,
    status: ReApplicationStatus,
    **kwargs,
) -> ReApplication:
    """
    Raises:
        InvalidStatusTransitionError: If status transition is not allowed
    """
    check_transition(reapplication.status, status, VALID_REAPPLICATION_TRANSITIONS)

    reapplication.status = status
    for key, value in kwargs.items():
        if hasattr(reapplication, key):
            setattr(reapplication, key, value)

    await db.commit()
    await db.refresh(reapplication)
    return reapplication

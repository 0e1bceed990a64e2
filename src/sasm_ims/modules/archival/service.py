"""
Archival Service

Retention pipeline for decided records:

1. Rejected applications and re-applications, and disapproved leave
   requests, untouched for a year are copied to the archive tables and
   removed from the live tables
2. Archive rows are deleted once their scheduled deletion date (two years
   after archiving) has passed

Design Principles:
- Each pass loads its batch in one session, then handles every record in
  its own transaction (insert archive row + delete original)
- A record already present in the archive is only removed from the live
  table and is not counted
- Failures on one record are logged and counted; the pass continues
"""

import logging
import math
from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta
from typing import Any
from uuid import UUID

from fastapi import status
from fastapi.encoders import jsonable_encoder
from sqlalchemy import inspect
from sqlalchemy.ext.asyncio import AsyncSession

from sasm_ims.core.database import async_session_maker
from sasm_ims.core.errors import app_assert
from sasm_ims.modules.applications.models import (
    Application,
    ApplicationStatus,
    ReApplication,
    ReApplicationStatus,
)
from sasm_ims.modules.archival import repository
from sasm_ims.modules.archival.models import (
    ArchivedApplication,
    ArchivedLeave,
    ArchivedReApplication,
)
from sasm_ims.modules.leaves.models import Leave, LeaveStatus

logger = logging.getLogger(__name__)

ONE_YEAR = timedelta(days=365)
TWO_YEARS = timedelta(days=730)

REJECTED_REASON = "Auto-archived - Rejected over 1 year"
DISAPPROVED_REASON = "Auto-archived - Disapproved over 1 year"

MAX_PAGE_SIZE = 100

ARCHIVE_KINDS = {
    "applications": ArchivedApplication,
    "reapplications": ArchivedReApplication,
    "leaves": ArchivedLeave,
}


def get_semester_year(value: date | datetime) -> str:
    """
    Academic semester label for a date.

    January to May belong to the second semester of the academic year that
    started the previous August; the rest of the year is the first semester.
    The academic year rolls over in August.

    Example:
        get_semester_year(date(2024, 3, 1)) -> "2023-2024 Second Semester"
    """
    semester = "Second" if value.month <= 5 else "First"
    if value.month >= 8:
        academic_year = f"{value.year}-{value.year + 1}"
    else:
        academic_year = f"{value.year - 1}-{value.year}"
    return f"{academic_year} {semester} Semester"


def _snapshot(record: Any) -> dict[str, Any]:
    """All column values of a row as JSON-safe data."""
    mapper = inspect(record).mapper
    return jsonable_encoder({attr.key: getattr(record, attr.key) for attr in mapper.column_attrs})


def _archive_fields(record: Any, reason: str, now: datetime, archived_by: UUID | None) -> dict:
    return {
        "original_id": record.id,
        "account_id": record.account_id,
        "original_record": _snapshot(record),
        "original_status": record.status.value,
        "archived_at": now,
        "archived_by": archived_by,
        "archived_reason": reason,
        "semester_year": get_semester_year(now),
        "scheduled_deletion_date": now + TWO_YEARS,
    }


def build_archived_application(
    record: Application, reason: str, now: datetime, archived_by: UUID | None = None
) -> ArchivedApplication:
    return ArchivedApplication(
        **_archive_fields(record, reason, now, archived_by),
        first_name=record.first_name,
        last_name=record.last_name,
        email=record.email,
        position=record.position.value,
        submitted_at=record.submitted_at,
    )


def build_archived_reapplication(
    record: ReApplication, reason: str, now: datetime, archived_by: UUID | None = None
) -> ArchivedReApplication:
    return ArchivedReApplication(
        **_archive_fields(record, reason, now, archived_by),
        first_name=record.first_name,
        last_name=record.last_name,
        email=record.email,
        position=record.position.value,
        academic_year=record.academic_year,
        submitted_at=record.submitted_at,
    )


def build_archived_leave(
    record: Leave, reason: str, now: datetime, archived_by: UUID | None = None
) -> ArchivedLeave:
    return ArchivedLeave(
        **_archive_fields(record, reason, now, archived_by),
        name=record.name,
        type_of_leave=record.type_of_leave,
        date_from=record.date_from,
        date_to=record.date_to,
    )


async def _archive_one(
    record: Any,
    archive_model: Any,
    build: Callable[..., Any],
    reason: str,
    now: datetime,
) -> bool:
    """
    Archive one record and delete the original in a single transaction.

    Returns:
        True if an archive row was written, False if one already existed
    """
    model = type(record)
    async with async_session_maker() as db:
        if await repository.archive_exists(db, archive_model, record.id):
            logger.info(f"{model.__name__} {record.id} already archived, removing original")
            await repository.delete_original(db, model, record.id)
            await db.commit()
            return False

        db.add(build(record, reason, now))
        await repository.delete_original(db, model, record.id)
        await db.commit()
        return True


async def _archive_pass(
    model: Any,
    final_status: Any,
    archive_model: Any,
    build: Callable[..., Any],
    reason: str,
) -> dict[str, int]:
    now = datetime.now(UTC)
    cutoff = now - ONE_YEAR

    async with async_session_maker() as db:
        records = await repository.get_records_due(db, model, final_status, cutoff)

    logger.info(f"Found {len(records)} {model.__name__} records to archive")

    archived = 0
    errors = 0
    for record in records:
        try:
            if await _archive_one(record, archive_model, build, reason, now):
                archived += 1
        except Exception as e:
            logger.error(f"Error archiving {model.__name__} {record.id}: {e}")
            errors += 1

    logger.info(f"Archived {archived} {model.__name__} records ({errors} errors)")
    return {"archived": archived, "errors": errors}


async def archive_old_rejected_applications() -> dict[str, int]:
    return await _archive_pass(
        Application,
        ApplicationStatus.REJECTED,
        ArchivedApplication,
        build_archived_application,
        REJECTED_REASON,
    )


async def archive_old_rejected_reapplications() -> dict[str, int]:
    return await _archive_pass(
        ReApplication,
        ReApplicationStatus.REJECTED,
        ArchivedReApplication,
        build_archived_reapplication,
        REJECTED_REASON,
    )


async def archive_old_disapproved_leaves() -> dict[str, int]:
    return await _archive_pass(
        Leave,
        LeaveStatus.DISAPPROVED,
        ArchivedLeave,
        build_archived_leave,
        DISAPPROVED_REASON,
    )


async def delete_expired_archived_records() -> dict[str, Any]:
    """
    Delete archive rows past their scheduled deletion date.

    Returns:
        Dict with per-kind deletion counts and an error count
    """
    now = datetime.now(UTC)
    deleted = {kind: 0 for kind in ARCHIVE_KINDS}
    errors = 0

    for kind, archive_model in ARCHIVE_KINDS.items():
        try:
            async with async_session_maker() as db:
                deleted[kind] = await repository.delete_expired(db, archive_model, now)
        except Exception as e:
            logger.error(f"Error deleting expired archived {kind}: {e}")
            errors += 1

    logger.info(f"Deleted expired archive records: {deleted}")
    return {"deleted": deleted, "errors": errors}


async def run_archival_tasks() -> dict[str, Any]:
    """
    Run every archival pass followed by the deletion pass.

    Returns:
        Dict with archived and deleted counts per kind, total errors and
        the execution timestamp
    """
    logger.info("Starting archival tasks")

    applications = await archive_old_rejected_applications()
    reapplications = await archive_old_rejected_reapplications()
    leaves = await archive_old_disapproved_leaves()
    expired = await delete_expired_archived_records()

    result = {
        "archived": {
            "applications": applications["archived"],
            "reapplications": reapplications["archived"],
            "leaves": leaves["archived"],
        },
        "deleted": expired["deleted"],
        "errors": (
            applications["errors"]
            + reapplications["errors"]
            + leaves["errors"]
            + expired["errors"]
        ),
        "executed_at": datetime.now(UTC).isoformat(),
    }

    logger.info(f"Archival tasks completed: {result}")
    return result


# ============================================
# Archive browsing
# ============================================


async def get_archival_status(db: AsyncSession) -> dict[str, Any]:
    """Archived counts per kind and how many are past their deletion date."""
    now = datetime.now(UTC)
    archived = {}
    due = {}
    for kind, archive_model in ARCHIVE_KINDS.items():
        archived[kind] = await repository.count_archived(db, archive_model)
        due[kind] = await repository.count_due_for_deletion(db, archive_model, now)
    return {
        "archived": archived,
        "due_for_deletion": due,
        "retention": {"archive_after_days": ONE_YEAR.days, "delete_after_days": TWO_YEARS.days},
    }


async def list_archived(
    db: AsyncSession,
    kind: str,
    *,
    semester_year: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 20,
) -> dict[str, Any]:
    page = max(1, page)
    limit = min(max(1, limit), MAX_PAGE_SIZE)
    records, total = await repository.list_archived(
        db,
        ARCHIVE_KINDS[kind],
        semester_year=semester_year,
        search=search,
        skip=(page - 1) * limit,
        limit=limit,
    )
    return {
        "records": records,
        "total": total,
        "page": page,
        "limit": limit,
        "total_pages": math.ceil(total / limit) if total > 0 else 0,
    }


async def get_semesters(db: AsyncSession) -> list[str]:
    return await repository.get_semesters(db)


async def get_archived_record(db: AsyncSession, kind: str, record_id: UUID) -> Any:
    """
    Raises:
        AppError 404: No such archive row
    """
    record = await repository.get_archived(db, ARCHIVE_KINDS[kind], record_id)
    app_assert(record, status.HTTP_404_NOT_FOUND, "Archived record not found", "ARCHIVE_NOT_FOUND")
    return record

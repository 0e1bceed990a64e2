"""
Archive Schemas
"""

from datetime import date, datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ArchiveBase(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    original_id: UUID
    account_id: UUID
    original_status: str
    archived_at: datetime
    archived_by: UUID | None
    archived_reason: str
    semester_year: str
    scheduled_deletion_date: datetime


class ArchivedApplicationResponse(ArchiveBase):
    first_name: str
    last_name: str
    email: str
    position: str
    submitted_at: datetime | None


class ArchivedReApplicationResponse(ArchiveBase):
    first_name: str
    last_name: str
    email: str
    position: str
    academic_year: str | None
    submitted_at: datetime | None


class ArchivedLeaveResponse(ArchiveBase):
    name: str
    type_of_leave: str
    date_from: date
    date_to: date


class ArchivedRecordDetail(BaseModel):
    """An archive row with the full snapshot of the original record."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    original_id: UUID
    original_status: str
    original_record: dict[str, Any]
    archived_at: datetime
    archived_reason: str
    semester_year: str
    scheduled_deletion_date: datetime


class ArchivedApplicationList(BaseModel):
    records: list[ArchivedApplicationResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class ArchivedReApplicationList(BaseModel):
    records: list[ArchivedReApplicationResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class ArchivedLeaveList(BaseModel):
    records: list[ArchivedLeaveResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class ArchivalCounts(BaseModel):
    applications: int
    reapplications: int
    leaves: int


class ArchivalRunResponse(BaseModel):
    archived: ArchivalCounts
    deleted: ArchivalCounts
    errors: int
    executed_at: str


class RetentionPolicy(BaseModel):
    archive_after_days: int
    delete_after_days: int


class ArchivalStatusResponse(BaseModel):
    archived: ArchivalCounts
    due_for_deletion: ArchivalCounts
    retention: RetentionPolicy


class SemesterListResponse(BaseModel):
    semester_years: list[str]

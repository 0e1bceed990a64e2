"""
Archive Models

Snapshots of records removed from the live tables by the retention job.
Each archive row keeps the full original record as JSON plus a few columns
for browsing, and is itself deleted after ``scheduled_deletion_date``.
"""

import uuid
from datetime import date, datetime

from sqlalchemy import Date, DateTime, Index, String, func
from sqlalchemy.dialects.postgresql import JSON, UUID
from sqlalchemy.orm import Mapped, declared_attr, mapped_column

from sasm_ims.modules.shared import BaseModel


class ArchiveMixin:
    """Columns shared by every archive table."""

    # id of the archived row; unique so a record is never archived twice
    original_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), unique=True, nullable=False
    )
    account_id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), nullable=False, index=True)
    original_record: Mapped[dict] = mapped_column(JSON, nullable=False)
    original_status: Mapped[str] = mapped_column(String(50), nullable=False)

    archived_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    # Null for automatic runs
    archived_by: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    archived_reason: Mapped[str] = mapped_column(String(200), nullable=False)
    semester_year: Mapped[str] = mapped_column(String(50), nullable=False)
    scheduled_deletion_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False
    )

    @declared_attr.directive
    def __table_args__(cls):
        return (
            Index(f"ix_{cls.__tablename__}_semester_year", "semester_year"),
            Index(f"ix_{cls.__tablename__}_deletion", "scheduled_deletion_date"),
        )


class ArchivedApplication(ArchiveMixin, BaseModel):
    __tablename__ = "archived_applications"

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    position: Mapped[str] = mapped_column(String(50), nullable=False)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class ArchivedReApplication(ArchiveMixin, BaseModel):
    __tablename__ = "archived_reapplications"

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    position: Mapped[str] = mapped_column(String(50), nullable=False)
    academic_year: Mapped[str | None] = mapped_column(String(20), nullable=True)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


class ArchivedLeave(ArchiveMixin, BaseModel):
    __tablename__ = "archived_leaves"

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    type_of_leave: Mapped[str] = mapped_column(String(100), nullable=False)
    date_from: Mapped[date] = mapped_column(Date, nullable=False)
    date_to: Mapped[date] = mapped_column(Date, nullable=False)

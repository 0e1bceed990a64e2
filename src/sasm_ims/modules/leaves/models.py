"""
Leave Request Models

Scholars file leave requests for days they cannot render duty; HR or an
office profile with the approve permission decides them.
"""

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    String,
    Text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from sasm_ims.modules.shared import BaseModel


class LeaveStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DISAPPROVED = "disapproved"


class Leave(BaseModel):
    """A leave request filed by a scholar."""

    __tablename__ = "leaves"

    account_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    school_dept: Mapped[str] = mapped_column(String(200), nullable=False)
    course_year: Mapped[str] = mapped_column(String(100), nullable=False)
    type_of_leave: Mapped[str] = mapped_column(String(100), nullable=False)
    date_from: Mapped[date] = mapped_column(Date, nullable=False)
    date_to: Mapped[date] = mapped_column(Date, nullable=False)
    days_hours: Mapped[str] = mapped_column(String(50), nullable=False)
    reasons: Mapped[str] = mapped_column(Text, nullable=False)
    signature_name: Mapped[str] = mapped_column(String(200), nullable=False)
    signature_date: Mapped[date] = mapped_column(Date, nullable=False)
    proof_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    status: Mapped[LeaveStatus] = mapped_column(
        Enum(LeaveStatus, name="leave_status"),
        nullable=False,
        default=LeaveStatus.PENDING,
    )
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)
    decided_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    # Profile name at decision time; profiles may later be renamed or deleted
    decided_by_profile: Mapped[str | None] = mapped_column(String(100), nullable=True)
    decided_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    allow_resubmit: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    __table_args__ = (
        Index("ix_leaves_status_updated", "status", "updated_at"),
        CheckConstraint("date_to >= date_from", name="ck_leaves_date_range"),
    )

    def __repr__(self) -> str:
        return f"<Leave(id={self.id}, account_id={self.account_id}, status={self.status.value})>"

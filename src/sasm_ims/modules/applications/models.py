"""
Application Models

Scholarship applications (student assistant / student marshal) and
re-applications for the following term.
"""

import enum
import uuid
from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import JSON, UUID
from sqlalchemy.orm import Mapped, mapped_column

from sasm_ims.modules.shared import BaseModel


class Position(str, enum.Enum):
    """Scholarship positions."""

    STUDENT_ASSISTANT = "student_assistant"
    STUDENT_MARSHAL = "student_marshal"


class ApplicationStatus(str, enum.Enum):
    """Status of an application."""

    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    INTERVIEW_SCHEDULED = "interview_scheduled"
    PASSED_INTERVIEW = "passed_interview"
    FAILED_INTERVIEW = "failed_interview"
    HOURS_COMPLETED = "hours_completed"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"
    ON_HOLD = "on_hold"


class ReApplicationStatus(str, enum.Enum):
    """Status of a re-application."""

    PENDING = "pending"
    UNDER_REVIEW = "under_review"
    APPROVED = "approved"
    REJECTED = "rejected"
    WITHDRAWN = "withdrawn"


class Term(str, enum.Enum):
    FIRST = "first"
    SECOND = "second"
    SHORT = "short"


class Gender(str, enum.Enum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


class CivilStatus(str, enum.Enum):
    SINGLE = "Single"
    MARRIED = "Married"
    WIDOWED = "Widowed"
    SEPARATED = "Separated"


class Application(BaseModel):
    """
    A student's application for a scholarship position.

    HR moves it through the review/interview workflow; rejected applications
    are archived a year after their last update.
    """

    __tablename__ = "applications"

    account_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    position: Mapped[Position] = mapped_column(Enum(Position, name="position"), nullable=False)

    # Personal information
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    age: Mapped[int] = mapped_column(Integer, nullable=False)
    gender: Mapped[Gender] = mapped_column(Enum(Gender, name="gender"), nullable=False)
    civil_status: Mapped[CivilStatus] = mapped_column(
        Enum(CivilStatus, name="civil_status"), nullable=False
    )
    citizenship: Mapped[str] = mapped_column(String(100), nullable=False)

    # Addresses
    home_address: Mapped[str] = mapped_column(String(500), nullable=False)
    baguio_address: Mapped[str] = mapped_column(String(500), nullable=False)

    # Contact
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    home_contact: Mapped[str] = mapped_column(String(30), nullable=False)
    baguio_contact: Mapped[str] = mapped_column(String(30), nullable=False)

    # Family and emergency contact
    father_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    father_occupation: Mapped[str | None] = mapped_column(String(200), nullable=True)
    mother_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    mother_occupation: Mapped[str | None] = mapped_column(String(200), nullable=True)
    emergency_contact: Mapped[str] = mapped_column(String(200), nullable=False)
    emergency_contact_number: Mapped[str] = mapped_column(String(30), nullable=False)

    # Stored as JSON arrays/objects
    relatives: Mapped[list | None] = mapped_column(JSON, nullable=True)
    education: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    seminars: Mapped[list | None] = mapped_column(JSON, nullable=True)

    # Uploads (URLs provided by the client)
    profile_photo_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    signature_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    certificate_urls: Mapped[list | None] = mapped_column(JSON, nullable=True)

    agreed_to_terms: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    # Workflow
    status: Mapped[ApplicationStatus] = mapped_column(
        Enum(ApplicationStatus, name="application_status"),
        nullable=False,
        default=ApplicationStatus.PENDING,
    )
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    hr_comments: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Interview
    interview_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    interview_time: Mapped[str | None] = mapped_column(String(20), nullable=True)
    interview_location: Mapped[str | None] = mapped_column(String(200), nullable=True)
    interview_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_applications_status_updated", "status", "updated_at"),
        Index("ix_applications_position", "position"),
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class ReApplication(BaseModel):
    """A returning scholar's request to continue in the position."""

    __tablename__ = "reapplications"

    account_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # No FK: the referenced application may since have been archived
    previous_application_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), nullable=True
    )

    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    position: Mapped[Position] = mapped_column(
        Enum(Position, name="position", create_type=False), nullable=False
    )

    effectivity_date: Mapped[date] = mapped_column(Date, nullable=False)
    years_in_service: Mapped[int] = mapped_column(Integer, nullable=False)
    term: Mapped[Term] = mapped_column(Enum(Term, name="term"), nullable=False)
    academic_year: Mapped[str] = mapped_column(String(20), nullable=False)
    reapplication_reasons: Mapped[str] = mapped_column(Text, nullable=False)
    college: Mapped[str] = mapped_column(String(200), nullable=False)
    course_year: Mapped[str] = mapped_column(String(100), nullable=False)
    recent_grades_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    status: Mapped[ReApplicationStatus] = mapped_column(
        Enum(ReApplicationStatus, name="reapplication_status"),
        nullable=False,
        default=ReApplicationStatus.PENDING,
    )
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
    hr_comments: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (Index("ix_reapplications_status_updated", "status", "updated_at"),)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

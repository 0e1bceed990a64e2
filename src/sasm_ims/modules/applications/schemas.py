"""
Application Schemas

Pydantic schemas for request validation and response serialization.
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from sasm_ims.modules.applications.models import (
    ApplicationStatus,
    CivilStatus,
    Gender,
    Position,
    ReApplicationStatus,
    Term,
)

# ============================================
# Application submission
# ============================================


class PersonalInfo(BaseModel):
    """Personal information section."""

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    age: int = Field(..., ge=15, le=30)
    gender: Gender
    civil_status: CivilStatus
    citizenship: str = Field(..., min_length=1, max_length=100)


class AddressInfo(BaseModel):
    home_address: str = Field(..., min_length=1, max_length=500)
    baguio_address: str = Field(..., min_length=1, max_length=500)


class ContactInfo(BaseModel):
    email: EmailStr
    home_contact: str = Field(..., min_length=1, max_length=30)
    baguio_contact: str = Field(..., min_length=1, max_length=30)


class FamilyInfo(BaseModel):
    father_name: str | None = Field(None, max_length=200)
    father_occupation: str | None = Field(None, max_length=200)
    mother_name: str | None = Field(None, max_length=200)
    mother_occupation: str | None = Field(None, max_length=200)
    emergency_contact: str = Field(..., min_length=1, max_length=200)
    emergency_contact_number: str = Field(..., min_length=1, max_length=30)


class Relative(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    department: str = Field(..., min_length=1, max_length=200)
    relationship: str = Field(..., min_length=1, max_length=100)


class EducationInfo(BaseModel):
    elementary: str | None = Field(None, max_length=200)
    elementary_years: str | None = Field(None, max_length=20)
    high_school: str | None = Field(None, max_length=200)
    high_school_years: str | None = Field(None, max_length=20)
    college: str | None = Field(None, max_length=200)
    college_years: str | None = Field(None, max_length=20)
    others: str | None = Field(None, max_length=200)
    others_years: str | None = Field(None, max_length=20)


class Seminar(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    sponsoring_agency: str = Field(..., min_length=1, max_length=200)
    inclusive_date: str = Field(..., min_length=1, max_length=100)
    place: str = Field(..., min_length=1, max_length=200)


class UploadsInfo(BaseModel):
    profile_photo_url: str | None = Field(None, max_length=500)
    signature_url: str | None = Field(None, max_length=500)
    certificate_urls: list[str] = Field(default_factory=list, max_length=10)


class ApplicationCreate(BaseModel):
    """Request body for POST /applications."""

    position: Position
    personal: PersonalInfo
    address: AddressInfo
    contact: ContactInfo
    family: FamilyInfo
    has_relative_working: bool = False
    relatives: list[Relative] = Field(default_factory=list, max_length=10)
    education: EducationInfo | None = None
    seminars: list[Seminar] = Field(default_factory=list, max_length=20)
    uploads: UploadsInfo = Field(default_factory=UploadsInfo)
    agreed_to_terms: bool

    @model_validator(mode="after")
    def validate_application(self) -> "ApplicationCreate":
        """Validate conditional fields."""
        if not self.agreed_to_terms:
            raise ValueError("You must agree to the terms and conditions")
        if self.has_relative_working and not self.relatives:
            raise ValueError("relatives is required when has_relative_working is true")
        return self


# ============================================
# Application review
# ============================================


class ApplicationStatusUpdate(BaseModel):
    """Request body for PATCH /applications/{id}/status."""

    status: ApplicationStatus
    hr_comments: str | None = Field(None, max_length=2000)
    interview_date: date | None = None
    interview_time: str | None = Field(None, max_length=20)
    interview_location: str | None = Field(None, max_length=200)
    interview_notes: str | None = Field(None, max_length=2000)


class ApplicationListItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    account_id: UUID
    position: Position
    first_name: str
    last_name: str
    email: str
    status: ApplicationStatus
    submitted_at: datetime
    reviewed_at: datetime | None
    interview_date: date | None


class ApplicationResponse(ApplicationListItem):
    """Full application."""

    age: int
    gender: Gender
    civil_status: CivilStatus
    citizenship: str
    home_address: str
    baguio_address: str
    home_contact: str
    baguio_contact: str
    father_name: str | None
    father_occupation: str | None
    mother_name: str | None
    mother_occupation: str | None
    emergency_contact: str
    emergency_contact_number: str
    relatives: list | None
    education: dict | None
    seminars: list | None
    profile_photo_url: str | None
    signature_url: str | None
    certificate_urls: list | None
    agreed_to_terms: bool
    reviewed_by: UUID | None
    hr_comments: str | None
    interview_time: str | None
    interview_location: str | None
    interview_notes: str | None
    created_at: datetime
    updated_at: datetime


class ApplicationListResponse(BaseModel):
    applications: list[ApplicationListItem]
    total: int
    page: int
    limit: int
    total_pages: int


class ApplicationStats(BaseModel):
    """Application counts per status plus the overall total."""

    total: int
    by_status: dict[str, int]


# ============================================
# Re-applications
# ============================================


class ReApplicationCreate(BaseModel):
    """Request body for POST /reapplications."""

    position: Position
    effectivity_date: date
    years_in_service: int = Field(..., ge=0, le=10)
    term: Term
    academic_year: str = Field(..., pattern=r"^\d{4}-\d{4}$")
    reapplication_reasons: str = Field(..., min_length=1, max_length=2000)
    college: str = Field(..., min_length=1, max_length=200)
    course_year: str = Field(..., min_length=1, max_length=100)
    recent_grades_url: str | None = Field(None, max_length=500)


class ReApplicationStatusUpdate(BaseModel):
    status: ReApplicationStatus
    hr_comments: str | None = Field(None, max_length=2000)


class ReApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    account_id: UUID
    previous_application_id: UUID | None
    first_name: str
    last_name: str
    email: str
    position: Position
    effectivity_date: date
    years_in_service: int
    term: Term
    academic_year: str
    reapplication_reasons: str
    college: str
    course_year: str
    recent_grades_url: str | None
    status: ReApplicationStatus
    submitted_at: datetime
    reviewed_at: datetime | None
    reviewed_by: UUID | None
    hr_comments: str | None


class ReApplicationListResponse(BaseModel):
    reapplications: list[ReApplicationResponse]
    total: int
    page: int
    limit: int
    total_pages: int

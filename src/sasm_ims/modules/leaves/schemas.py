"""
Leave Request Schemas
"""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from sasm_ims.modules.leaves.models import LeaveStatus


class LeaveCreate(BaseModel):
    """Request body for POST /leaves."""

    name: str = Field(..., min_length=1, max_length=200)
    school_dept: str = Field(..., min_length=1, max_length=200)
    course_year: str = Field(..., min_length=1, max_length=100)
    type_of_leave: str = Field(..., min_length=1, max_length=100)
    date_from: date
    date_to: date
    days_hours: str = Field(..., min_length=1, max_length=50)
    reasons: str = Field(..., min_length=1, max_length=2000)
    signature_name: str = Field(..., min_length=1, max_length=200)
    signature_date: date
    proof_url: str | None = Field(None, max_length=500)

    @model_validator(mode="after")
    def check_date_range(self) -> "LeaveCreate":
        if self.date_to < self.date_from:
            raise ValueError("date_to cannot be before date_from")
        return self


class LeaveDecision(BaseModel):
    """Request body for PATCH /leaves/{id}/decision."""

    status: LeaveStatus
    remarks: str | None = Field(None, max_length=2000)
    allow_resubmit: bool = False

    @field_validator("status")
    @classmethod
    def check_decision(cls, v: LeaveStatus) -> LeaveStatus:
        if v == LeaveStatus.PENDING:
            raise ValueError("Decision must be approved or disapproved")
        return v


class LeaveResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    account_id: UUID
    name: str
    school_dept: str
    course_year: str
    type_of_leave: str
    date_from: date
    date_to: date
    days_hours: str
    reasons: str
    signature_name: str
    signature_date: date
    proof_url: str | None
    status: LeaveStatus
    remarks: str | None
    decided_by: UUID | None
    decided_by_profile: str | None
    decided_at: datetime | None
    allow_resubmit: bool
    created_at: datetime
    updated_at: datetime


class LeaveListResponse(BaseModel):
    leaves: list[LeaveResponse]
    total: int
    page: int
    limit: int
    total_pages: int

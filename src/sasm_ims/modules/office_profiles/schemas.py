"""
Office Profile Schemas

Pydantic schemas for request validation and response serialization.
"""

from datetime import datetime
from typing import Annotated
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, StringConstraints

ProfileName = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]


class ProfilePermissions(BaseModel):
    """Permission flags; all granted unless stated otherwise."""

    view_applications: bool = True
    edit_applications: bool = True
    view_requirements: bool = True
    process_requirements: bool = True
    view_dtr: bool = True
    edit_dtr: bool = True
    view_leave_requests: bool = True
    approve_leave_requests: bool = True
    view_scholars: bool = True
    edit_scholars: bool = True
    view_evaluations: bool = True
    submit_evaluations: bool = True


class CreateProfileRequest(BaseModel):
    """Request body for POST /office/profiles."""

    profile_name: ProfileName
    pin: str = Field(..., max_length=10)
    permissions: ProfilePermissions | None = None
    avatar: str | None = Field(None, max_length=500)


class SelectProfileRequest(BaseModel):
    """Request body for POST /office/profiles/select."""

    profile_id: UUID
    pin: str = Field(..., max_length=10)


class UpdateProfileRequest(BaseModel):
    """Request body for PATCH /office/profiles/{id}. Omitted fields are unchanged."""

    profile_name: ProfileName | None = None
    pin: str | None = Field(None, max_length=10)
    permissions: dict[str, bool] | None = None
    is_active: bool | None = None
    avatar: str | None = Field(None, max_length=500)


class ResetPinRequest(BaseModel):
    """Request body for POST /office/profiles/reset-pin."""

    profile_id: UUID
    account_password: str = Field(..., min_length=1, max_length=50)
    new_pin: str = Field(..., max_length=10)


class ProfileResponse(BaseModel):
    """An office profile; the PIN is never returned."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    profile_name: str
    avatar: str
    permissions: dict[str, bool]
    is_active: bool
    last_accessed_at: datetime | None
    created_at: datetime


class ProfileListResponse(BaseModel):
    profiles: list[ProfileResponse]
    has_profiles: bool


class SelectProfileResponse(BaseModel):
    message: str = "Profile selected successfully"
    profile: ProfileResponse
    account_email: str
    redirect_url: str


class ProfileMessageResponse(BaseModel):
    message: str

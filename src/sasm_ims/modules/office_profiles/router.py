"""
Office Profiles Router

Endpoints (office accounts only):
- GET /office/profiles - List active profiles
- POST /office/profiles - Create a profile
- POST /office/profiles/select - Unlock a profile with its PIN
- POST /office/profiles/reset-pin - Reset a PIN using the account password
- PATCH /office/profiles/{id} - Update a profile
- DELETE /office/profiles/{id} - Delete a profile
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from sasm_ims.core.auth import CurrentUser, get_current_user
from sasm_ims.core.cookies import set_auth_cookies
from sasm_ims.core.database import get_db
from sasm_ims.core.rate_limit import PROFILE_SELECT_LIMIT, enforce_rate_limit
from sasm_ims.modules.audit_logs.service import RequestContext
from sasm_ims.modules.office_profiles import service
from sasm_ims.modules.office_profiles.models import OfficeProfile
from sasm_ims.modules.office_profiles.schemas import (
    CreateProfileRequest,
    ProfileListResponse,
    ProfileMessageResponse,
    ProfileResponse,
    ResetPinRequest,
    SelectProfileRequest,
    SelectProfileResponse,
    UpdateProfileRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _to_response(profile: OfficeProfile) -> ProfileResponse:
    return ProfileResponse(**service.profile_summary(profile))


@router.get("", response_model=ProfileListResponse)
async def list_profiles(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ProfileListResponse:
    """Active profiles, most recently used first."""
    profiles = await service.get_profiles(db, current_user)
    return ProfileListResponse(
        profiles=[_to_response(p) for p in profiles],
        has_profiles=bool(profiles),
    )


@router.post("", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
async def create_profile(
    data: CreateProfileRequest,
    request: Request,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    """
    Create a profile.

    Raises:
        400: Profile limit reached, or PIN not 4 digits
        403: Not an office account
        409: Duplicate profile name
    """
    profile = await service.create_profile(
        db, current_user, data, context=RequestContext.from_request(request)
    )
    return _to_response(profile)


@router.post("/select", response_model=SelectProfileResponse)
async def select_profile(
    data: SelectProfileRequest,
    request: Request,
    response: Response,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> SelectProfileResponse:
    """
    Unlock a profile; new cookies carry the profile scope.

    Raises:
        401: Profile disabled or incorrect PIN
        404: Profile not found
        429: Too many attempts
    """
    await enforce_rate_limit(f"profile_select:{current_user.id}", *PROFILE_SELECT_LIMIT)

    result = await service.select_profile(
        db,
        current_user,
        data.profile_id,
        data.pin,
        user_agent=request.headers.get("user-agent"),
        context=RequestContext.from_request(request),
    )
    set_auth_cookies(response, result.tokens.access_token, result.tokens.refresh_token)

    return SelectProfileResponse(
        profile=_to_response(result.profile),
        account_email=result.account_email,
        redirect_url=result.redirect_url,
    )


@router.post("/reset-pin", response_model=ProfileMessageResponse)
async def reset_pin(
    data: ResetPinRequest,
    request: Request,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ProfileMessageResponse:
    """
    Reset a profile PIN.

    Raises:
        400: New PIN not 4 digits
        401: Incorrect account password
        404: Profile not found
    """
    await service.reset_profile_pin(
        db,
        current_user,
        data.profile_id,
        data.account_password,
        data.new_pin,
        context=RequestContext.from_request(request),
    )
    return ProfileMessageResponse(message="PIN reset successfully")


@router.patch("/{profile_id}", response_model=ProfileResponse)
async def update_profile(
    profile_id: UUID,
    data: UpdateProfileRequest,
    request: Request,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ProfileResponse:
    """Update a profile."""
    profile = await service.update_profile(
        db, current_user, profile_id, data, context=RequestContext.from_request(request)
    )
    return _to_response(profile)


@router.delete("/{profile_id}", response_model=ProfileMessageResponse)
async def delete_profile(
    profile_id: UUID,
    request: Request,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> ProfileMessageResponse:
    """
    Delete a profile.

    Raises:
        400: Last remaining profile
        404: Profile not found
    """
    await service.delete_profile(
        db, current_user, profile_id, context=RequestContext.from_request(request)
    )
    return ProfileMessageResponse(message="Profile deleted successfully")

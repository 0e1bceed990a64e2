"""
Authentication router.

Endpoints:
- POST /auth/signup - Register a student account
- POST /auth/signin - Sign in (sets token cookies)
- GET /auth/refresh - Refresh the access token from the refresh cookie
- GET /auth/signout - Sign out the current device
- GET /auth/email/verify/{code} - Verify an email address
- POST /auth/email/resend - Resend the verification email
- POST /auth/password/forgot - Email a password reset link
- POST /auth/password/reset - Reset the password with a code
- POST /auth/password/change - Change password (authenticated)
- POST /auth/email/change - Start an email change (authenticated)
- DELETE /auth/email/cancel - Cancel a pending email change (authenticated)
"""

import logging

from fastapi import APIRouter, Depends, Request, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from sasm_ims.core.auth import CurrentUser, get_current_user
from sasm_ims.core.cookies import (
    ACCESS_COOKIE,
    REFRESH_COOKIE,
    clear_auth_cookies,
    set_access_cookie,
    set_auth_cookies,
    set_refresh_cookie,
)
from sasm_ims.core.database import get_db
from sasm_ims.core.rate_limit import SIGNIN_LIMIT, client_ip, enforce_rate_limit
from sasm_ims.modules.auth import service
from sasm_ims.modules.auth.schemas import (
    ChangeEmailRequest,
    ChangePasswordRequest,
    EmailRequest,
    MessageResponse,
    ResetPasswordRequest,
    SigninRequest,
    SigninResponse,
    SignupRequest,
    VerifyEmailResponse,
)
from sasm_ims.modules.users.schemas import UserResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/signup", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def signup(
    data: SignupRequest,
    db: AsyncSession = Depends(get_db),
) -> UserResponse:
    """
    Register a student account.

    A verification link is emailed; the account can sign in right away.

    Raises:
        409: Email already registered
    """
    user = await service.signup(db, data)
    return UserResponse.model_validate(user)


@router.post("/signin", response_model=SigninResponse)
async def signin(
    credentials: SigninRequest,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> SigninResponse:
    """
    Authenticate and set the access and refresh cookies.

    Raises:
        401: Invalid credentials
        429: Too many attempts from this address
    """
    await enforce_rate_limit(f"signin:{client_ip(request)}", *SIGNIN_LIMIT)

    result = await service.signin(
        db,
        email=credentials.email,
        password=credentials.password,
        user_agent=request.headers.get("user-agent"),
    )
    set_auth_cookies(response, result.tokens.access_token, result.tokens.refresh_token)

    return SigninResponse(
        user=UserResponse.model_validate(result.user),
        redirect_url=result.redirect_url,
    )


@router.get("/refresh", response_model=MessageResponse)
async def refresh(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """
    Issue a new access token (and, near session expiry, a new refresh token).

    Errors on this endpoint clear both cookies.
    """
    tokens = await service.refresh_user_access_token(db, request.cookies.get(REFRESH_COOKIE))

    set_access_cookie(response, tokens.access_token)
    if tokens.refresh_token:
        set_refresh_cookie(response, tokens.refresh_token)

    return MessageResponse(message="Access token refreshed")


@router.get("/signout", response_model=MessageResponse)
async def signout(
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Delete the current session (if identifiable) and clear cookies."""
    await service.signout(
        db,
        access_token=request.cookies.get(ACCESS_COOKIE),
        refresh_token=request.cookies.get(REFRESH_COOKIE),
    )
    clear_auth_cookies(response)
    return MessageResponse(message="Logout successful")


@router.get("/email/verify/{code}", response_model=VerifyEmailResponse)
async def verify_email(
    code: str,
    request: Request,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> VerifyEmailResponse:
    """
    Verify an email address.

    A sign-up verification also signs the student in; an email-change
    confirmation only updates the address.

    Raises:
        404: Invalid or expired code
    """
    result = await service.verify_email(db, code, user_agent=request.headers.get("user-agent"))

    if result.tokens:
        set_auth_cookies(response, result.tokens.access_token, result.tokens.refresh_token)

    return VerifyEmailResponse(
        message="Email was successfully changed" if result.email_changed else "Email verified",
        user=UserResponse.model_validate(result.user),
        email_changed=result.email_changed,
    )


@router.post("/email/resend", response_model=MessageResponse)
async def resend_verification(
    data: EmailRequest,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """
    Send a fresh verification email.

    Raises:
        404: Unknown email
        409: Already verified
    """
    await service.resend_verification_email(db, data.email)
    return MessageResponse(message="Verification email sent")


@router.post("/password/forgot", response_model=MessageResponse)
async def forgot_password(
    data: EmailRequest,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """Email a reset link. Always succeeds so addresses cannot be enumerated."""
    await service.request_password_reset(db, data.email)
    return MessageResponse(message="If the email exists, a password reset link has been sent")


@router.post("/password/reset", response_model=MessageResponse)
async def reset_password(
    data: ResetPasswordRequest,
    response: Response,
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """
    Reset the password and sign out every device.

    Raises:
        404: Invalid or expired code
        409: Password unchanged
    """
    await service.reset_password(db, data.verification_code, data.password)
    clear_auth_cookies(response)
    return MessageResponse(message="Password reset successful")


@router.post("/password/change", response_model=MessageResponse)
async def change_password(
    data: ChangePasswordRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """
    Change the password; other devices are signed out.

    Raises:
        401: Current password is incorrect
        409: Password unchanged
    """
    await service.change_password(db, current_user, data.current_password, data.new_password)
    return MessageResponse(message="Password changed successfully")


@router.post("/email/change", response_model=MessageResponse)
async def change_email(
    data: ChangeEmailRequest,
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """
    Request an email change; the new address receives a confirmation link.

    Raises:
        409: Address in use or unchanged
        429: Requested again within 5 minutes
    """
    await service.change_email(db, current_user, data.new_email)
    return MessageResponse(message="Verification email sent to your new email address")


@router.delete("/email/cancel", response_model=MessageResponse)
async def cancel_email_change(
    current_user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> MessageResponse:
    """
    Cancel a pending email change.

    Raises:
        400: Nothing pending
    """
    await service.cancel_email_change(db, current_user)
    return MessageResponse(message="Email change cancelled")

"""
Auth Service

Business logic for account authentication:

- Sign-up with emailed address verification
- Sign-in creating a session and a token pair
- Access-token refresh with sliding session extension
- Sign-out, session listing and revocation
- Password reset / change and email change

Tokens:
    The access token names the account, session, role and (for office
    accounts) the selected profile. The refresh token only names the
    session; the session row is the source of truth for whether a device is
    still signed in.
"""

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from uuid import UUID

from fastapi import status
from sqlalchemy.ext.asyncio import AsyncSession

from sasm_ims.core.auth import CurrentUser
from sasm_ims.core.config import settings
from sasm_ims.core.email import (
    send_email_change_verification,
    send_password_reset_email,
    send_verification_email,
)
from sasm_ims.core.errors import AppError, app_assert
from sasm_ims.core.security import (
    TOKEN_TYPE_REFRESH,
    create_access_token,
    create_refresh_token,
    decode_token,
    generate_verification_code,
    hash_password,
    hash_verification_code,
    verify_password,
)
from sasm_ims.modules.auth import repository
from sasm_ims.modules.auth.models import Session, VerificationCodeType
from sasm_ims.modules.auth.schemas import SignupRequest
from sasm_ims.modules.notifications.service import notify_welcome
from sasm_ims.modules.users.models import User, UserRole
from sasm_ims.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

# Constants
VERIFICATION_CODE_TTL = timedelta(minutes=15)
CODE_THROTTLE_WINDOW = timedelta(minutes=5)
MAX_RESET_CODES_PER_WINDOW = 2

ROLE_REDIRECTS = {
    UserRole.STUDENT: "/student-dashboard",
    UserRole.HR: "/hr-dashboard",
    UserRole.OFFICE: "/profile-selector",
}


class InvalidCredentialsError(AppError):
    """Raised when an email/password pair does not match an account."""

    def __init__(self):
        super().__init__(
            "Invalid email or password.",
            error_code="INVALID_CREDENTIALS",
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


class InvalidVerificationCodeError(AppError):
    """Raised when a verification code is unknown, of the wrong kind, or expired."""

    def __init__(self):
        super().__init__(
            "Invalid or expired verification code",
            error_code="INVALID_VERIFICATION_CODE",
            status_code=status.HTTP_404_NOT_FOUND,
        )


class SessionExpiredError(AppError):
    def __init__(self):
        super().__init__(
            "Session expired",
            error_code="SESSION_EXPIRED",
            status_code=status.HTTP_401_UNAUTHORIZED,
        )


@dataclass
class AuthTokens:
    """Tokens to set as cookies. ``refresh_token`` is None when it was not rotated."""

    access_token: str
    refresh_token: str | None = None


@dataclass
class SigninResult:
    user: User
    tokens: AuthTokens
    redirect_url: str


@dataclass
class VerifyEmailResult:
    user: User
    tokens: AuthTokens | None
    email_changed: bool


# ============================================
# Token helpers
# ============================================


def issue_tokens(
    account_id: UUID,
    role: UserRole,
    session: Session,
    include_refresh: bool = True,
) -> AuthTokens:
    """
    Issue an access token (and optionally a refresh token) for a session.

    The session's profile scope is carried into the access token.
    """
    claims: dict[str, str] = {
        "session_id": str(session.id),
        "role": role.value,
    }
    if session.profile_id is not None:
        claims["profile_id"] = str(session.profile_id)

    access_token = create_access_token(subject=str(account_id), additional_claims=claims)
    refresh_token = None
    if include_refresh:
        refresh_token = create_refresh_token(
            subject=str(account_id),
            additional_claims={"session_id": str(session.id)},
        )
    return AuthTokens(access_token=access_token, refresh_token=refresh_token)


def redirect_for(role: UserRole) -> str:
    return ROLE_REDIRECTS.get(role, "/")


async def _issue_code(
    db: AsyncSession,
    account_id: UUID,
    code_type: VerificationCodeType,
) -> tuple[str, datetime]:
    """Create a verification code and return the plain code with its expiry."""
    code = generate_verification_code()
    expires_at = datetime.now(UTC) + VERIFICATION_CODE_TTL
    await repository.create_verification_code(
        db,
        account_id=account_id,
        code_type=code_type,
        code_hash=hash_verification_code(code),
        expires_at=expires_at,
    )
    return code, expires_at


async def _get_account(db: AsyncSession, account_id: UUID) -> User:
    user = await UserRepository.get_by_id(db, account_id)
    app_assert(user, status.HTTP_404_NOT_FOUND, "User not found", "USER_NOT_FOUND")
    return user


# ============================================
# Sign-up / sign-in
# ============================================


async def signup(db: AsyncSession, data: SignupRequest) -> User:
    """
    Register a student account and email a verification link.

    No session is created; the student signs in after verifying (or the
    verification link itself signs them in).

    Raises:
        AppError 409: If the email is already registered
    """
    email = data.email.lower()
    logger.info("Processing sign-up")

    app_assert(
        not await UserRepository.email_exists(db, email),
        status.HTTP_409_CONFLICT,
        "User already in use.",
        "EMAIL_IN_USE",
    )

    user = await UserRepository.create(
        db,
        email=email,
        password_hash=hash_password(data.password),
        first_name=data.first_name,
        last_name=data.last_name,
        role=UserRole.STUDENT,
    )
    code, _ = await _issue_code(db, user.id, VerificationCodeType.EMAIL_VERIFICATION)
    await db.commit()

    sent = await send_verification_email(user.email, user.first_name, code)
    if not sent:
        logger.warning(f"Verification email could not be sent to account {user.id}")

    logger.info(f"Account {user.id} signed up")
    return user


async def signin(
    db: AsyncSession,
    email: str,
    password: str,
    user_agent: str | None = None,
) -> SigninResult:
    """
    Authenticate with email and password and open a new session.

    Raises:
        InvalidCredentialsError: Unknown email or wrong password
    """
    user = await UserRepository.get_by_email(db, email)

    if not user or not verify_password(password, user.password_hash):
        logger.warning("Sign-in rejected: invalid credentials")
        raise InvalidCredentialsError()

    session = await repository.create_session(db, account_id=user.id, user_agent=user_agent)
    await db.commit()

    tokens = issue_tokens(user.id, user.role, session)
    logger.info(f"Account {user.id} signed in (role: {user.role.value}, session: {session.id})")

    return SigninResult(user=user, tokens=tokens, redirect_url=redirect_for(user.role))


async def refresh_user_access_token(db: AsyncSession, refresh_token: str | None) -> AuthTokens:
    """
    Issue a fresh access token from a refresh token.

    When the session expires within the refresh threshold (24 hours by
    default) it is extended by a full session lifetime and a new refresh
    token is issued as well.

    Raises:
        AppError 401: Missing/invalid refresh token
        SessionExpiredError: Session gone or past its expiry
    """
    app_assert(
        refresh_token,
        status.HTTP_401_UNAUTHORIZED,
        "Missing refresh token",
        "INVALID_REFRESH_TOKEN",
    )
    payload = decode_token(refresh_token, token_type=TOKEN_TYPE_REFRESH)
    app_assert(
        payload and payload.get("session_id"),
        status.HTTP_401_UNAUTHORIZED,
        "Invalid refresh token",
        "INVALID_REFRESH_TOKEN",
    )

    try:
        session_id = UUID(payload["session_id"])
    except ValueError as e:
        raise AppError(
            "Invalid refresh token",
            error_code="INVALID_REFRESH_TOKEN",
            status_code=status.HTTP_401_UNAUTHORIZED,
        ) from e

    now = datetime.now(UTC)
    session = await repository.get_session(db, session_id)
    if not session or session.expires_at <= now:
        raise SessionExpiredError()

    user = await _get_account(db, session.account_id)

    needs_refresh = session.expires_at - now <= timedelta(
        hours=settings.session_refresh_threshold_hours
    )
    if needs_refresh:
        session.expires_at = repository.session_expiry(now)
        await db.commit()
        logger.info(f"Extended session {session.id} to {session.expires_at.isoformat()}")

    return issue_tokens(user.id, user.role, session, include_refresh=needs_refresh)


def session_id_from_tokens(access_token: str | None, refresh_token: str | None) -> UUID | None:
    """Resolve a session ID from the access token, else from the refresh token."""
    for token, token_type in ((access_token, "access"), (refresh_token, TOKEN_TYPE_REFRESH)):
        if not token:
            continue
        payload = decode_token(token, token_type=token_type)
        if payload and payload.get("session_id"):
            try:
                return UUID(payload["session_id"])
            except ValueError:
                continue
    return None


async def signout(db: AsyncSession, access_token: str | None, refresh_token: str | None) -> None:
    """
    Delete the caller's session if it can be identified.

    Sign-out always succeeds for the client; a failure to delete the session
    row is logged.
    """
    session_id = session_id_from_tokens(access_token, refresh_token)
    if session_id is None:
        return

    try:
        await repository.delete_session(db, session_id)
        await db.commit()
        logger.info(f"Session {session_id} signed out")
    except Exception as e:
        await db.rollback()
        logger.error(f"Failed to delete session {session_id} on sign-out: {e}")


# ============================================
# Email verification
# ============================================


async def verify_email(
    db: AsyncSession,
    code: str,
    user_agent: str | None = None,
) -> VerifyEmailResult:
    """
    Consume an email verification code.

    For a pending email change the new address replaces the old one and no
    tokens are issued. Otherwise the account is marked verified, greeted with
    a welcome notification and signed in with a new session.

    Raises:
        InvalidVerificationCodeError: Unknown or expired code
        AppError 409: Pending address was taken by another account meanwhile
    """
    record = await repository.get_valid_code(
        db, hash_verification_code(code), VerificationCodeType.EMAIL_VERIFICATION
    )
    if not record:
        raise InvalidVerificationCodeError()

    user = await _get_account(db, record.account_id)

    if user.pending_email:
        new_email = user.pending_email
        existing = await UserRepository.get_by_email(db, new_email)
        app_assert(
            existing is None or existing.id == user.id,
            status.HTTP_409_CONFLICT,
            "Email is already in use by another account",
            "EMAIL_IN_USE",
        )
        user.email = new_email
        user.pending_email = None
        user.is_verified = True
        await repository.delete_code(db, record.id)
        await db.commit()
        logger.info(f"Account {user.id} confirmed email change")
        return VerifyEmailResult(user=user, tokens=None, email_changed=True)

    user.is_verified = True
    await repository.delete_code(db, record.id)
    session = await repository.create_session(
        db, account_id=user.id, user_agent=user_agent or "Email verification"
    )
    await db.commit()
    await notify_welcome(user.id)

    logger.info(f"Account {user.id} verified email")
    return VerifyEmailResult(
        user=user,
        tokens=issue_tokens(user.id, user.role, session),
        email_changed=False,
    )


async def resend_verification_email(db: AsyncSession, email: str) -> None:
    """
    Replace outstanding verification codes and email a new one.

    Raises:
        AppError 404: Unknown email
        AppError 409: Already verified
    """
    user = await UserRepository.get_by_email(db, email)
    app_assert(user, status.HTTP_404_NOT_FOUND, "User not found", "USER_NOT_FOUND")
    app_assert(
        not user.is_verified,
        status.HTTP_409_CONFLICT,
        "Email is already verified",
        "ALREADY_VERIFIED",
    )

    await repository.delete_codes_for_account(db, user.id, VerificationCodeType.EMAIL_VERIFICATION)
    code, _ = await _issue_code(db, user.id, VerificationCodeType.EMAIL_VERIFICATION)
    await db.commit()

    await send_verification_email(user.email, user.first_name, code)
    logger.info(f"Re-sent verification email for account {user.id}")


# ============================================
# Passwords
# ============================================


async def _issue_password_reset(db: AsyncSession, email: str) -> None:
    user = await UserRepository.get_by_email(db, email)
    app_assert(user, status.HTTP_404_NOT_FOUND, "User not found", "USER_NOT_FOUND")

    recent = await repository.count_codes_since(
        db,
        user.id,
        VerificationCodeType.PASSWORD_RESET,
        since=datetime.now(UTC) - CODE_THROTTLE_WINDOW,
    )
    app_assert(
        recent < MAX_RESET_CODES_PER_WINDOW,
        status.HTTP_429_TOO_MANY_REQUESTS,
        "Too many requests, please try again later",
    )

    code, expires_at = await _issue_code(db, user.id, VerificationCodeType.PASSWORD_RESET)
    await db.commit()

    sent = await send_password_reset_email(
        user.email, user.first_name, code, int(expires_at.timestamp() * 1000)
    )
    app_assert(sent, status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to send reset email")
    logger.info(f"Password reset issued for account {user.id}")


async def request_password_reset(db: AsyncSession, email: str) -> None:
    """
    Email a password reset link.

    Never reveals whether the address exists: every failure (unknown email,
    throttling, mail delivery) is logged and swallowed.
    """
    try:
        await _issue_password_reset(db, email)
    except AppError as e:
        await db.rollback()
        logger.info(f"Password reset not issued: {e.error_code}")
    except Exception as e:
        await db.rollback()
        logger.error(f"Password reset failed: {e}", exc_info=True)


async def reset_password(db: AsyncSession, verification_code: str, password: str) -> None:
    """
    Set a new password from a reset code and sign out every device.

    Raises:
        InvalidVerificationCodeError: Unknown or expired code
        AppError 409: New password equals the old one
    """
    record = await repository.get_valid_code(
        db, hash_verification_code(verification_code), VerificationCodeType.PASSWORD_RESET
    )
    if not record:
        raise InvalidVerificationCodeError()

    user = await _get_account(db, record.account_id)
    app_assert(
        not verify_password(password, user.password_hash),
        status.HTTP_409_CONFLICT,
        "New password must be different from the old password",
        "PASSWORD_UNCHANGED",
    )

    user.password_hash = hash_password(password)
    await repository.delete_code(db, record.id)
    revoked = await repository.delete_sessions_for_account(db, user.id)
    await db.commit()

    logger.info(f"Password reset for account {user.id}; {revoked} session(s) revoked")


async def change_password(
    db: AsyncSession,
    current_user: CurrentUser,
    current_password: str,
    new_password: str,
) -> None:
    """
    Change the password of a signed-in account.

    Other devices are signed out; the current session stays valid.

    Raises:
        AppError 401: Current password is wrong
        AppError 409: New password equals the current one
    """
    user = await _get_account(db, current_user.id)

    app_assert(
        verify_password(current_password, user.password_hash),
        status.HTTP_401_UNAUTHORIZED,
        "Current password is incorrect",
        "INVALID_CREDENTIALS",
    )
    app_assert(
        current_password != new_password,
        status.HTTP_409_CONFLICT,
        "New password must be different from current password",
        "PASSWORD_UNCHANGED",
    )

    user.password_hash = hash_password(new_password)
    revoked = await repository.delete_sessions_for_account(
        db, user.id, except_session_id=current_user.session_id
    )
    await db.commit()

    logger.info(f"Password changed for account {user.id}; {revoked} other session(s) revoked")


# ============================================
# Email change
# ============================================


async def change_email(db: AsyncSession, current_user: CurrentUser, new_email: str) -> None:
    """
    Start an email change: store the pending address and mail it a link.

    Raises:
        AppError 429: A verification email went out less than 5 minutes ago
        AppError 409: Address used by another account, or unchanged
    """
    user = await _get_account(db, current_user.id)
    new_email = new_email.lower()

    recent = await repository.count_codes_since(
        db,
        user.id,
        VerificationCodeType.EMAIL_VERIFICATION,
        since=datetime.now(UTC) - CODE_THROTTLE_WINDOW,
    )
    app_assert(
        recent == 0,
        status.HTTP_429_TOO_MANY_REQUESTS,
        "Please wait 5 minutes before requesting another email change",
    )

    existing = await UserRepository.get_by_email(db, new_email)
    app_assert(
        existing is None or existing.id == user.id,
        status.HTTP_409_CONFLICT,
        "Email is already in use by another account",
        "EMAIL_IN_USE",
    )
    app_assert(
        user.email.lower() != new_email,
        status.HTTP_409_CONFLICT,
        "New email must be different from current email",
        "EMAIL_UNCHANGED",
    )

    await repository.delete_codes_for_account(db, user.id, VerificationCodeType.EMAIL_VERIFICATION)
    code, _ = await _issue_code(db, user.id, VerificationCodeType.EMAIL_VERIFICATION)
    user.pending_email = new_email
    await db.commit()

    sent = await send_email_change_verification(new_email, user.first_name, code)
    app_assert(sent, status.HTTP_500_INTERNAL_SERVER_ERROR, "Failed to send verification email")
    logger.info(f"Email change requested for account {user.id}")


async def cancel_email_change(db: AsyncSession, current_user: CurrentUser) -> None:
    """
    Drop a pending email change.

    Raises:
        AppError 400: Nothing pending
    """
    user = await _get_account(db, current_user.id)
    app_assert(
        user.pending_email,
        status.HTTP_400_BAD_REQUEST,
        "No pending email change found",
        "NO_PENDING_EMAIL",
    )

    user.pending_email = None
    await repository.delete_codes_for_account(db, user.id, VerificationCodeType.EMAIL_VERIFICATION)
    await db.commit()
    logger.info(f"Email change cancelled for account {user.id}")


# ============================================
# Sessions
# ============================================


async def list_sessions(db: AsyncSession, current_user: CurrentUser) -> list[dict]:
    """Active sessions of the caller, newest first, with the current one flagged."""
    sessions = await repository.get_active_sessions(db, current_user.id)
    return [
        {
            "id": s.id,
            "user_agent": s.user_agent,
            "created_at": s.created_at,
            "is_current": s.id == current_user.session_id,
        }
        for s in sessions
    ]


async def delete_session(db: AsyncSession, current_user: CurrentUser, session_id: UUID) -> None:
    """
    Revoke one of the caller's sessions.

    Raises:
        AppError 404: Session unknown or owned by another account
    """
    deleted = await repository.delete_session(db, session_id, account_id=current_user.id)
    if not deleted:
        raise AppError(
            "Session not found",
            error_code="SESSION_NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
        )
    await db.commit()
    logger.info(f"Account {current_user.id} revoked session {session_id}")

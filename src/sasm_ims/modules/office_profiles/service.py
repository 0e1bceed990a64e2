"""
Office Profile Service

Business logic for the profiles of a shared office account:

- Up to MAX_PROFILES profiles per account, each with a unique name
- 4-digit PINs stored as bcrypt hashes
- Selecting a profile swaps the device's session for one scoped to the
  profile, so every later token names the acting profile
- Every change is written to the audit log
"""

import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime
from uuid import UUID

from fastapi import status
from sqlalchemy.ext.asyncio import AsyncSession

from sasm_ims.core.auth import CurrentUser
from sasm_ims.core.errors import AppError, app_assert
from sasm_ims.core.security import hash_password, verify_password
from sasm_ims.modules.audit_logs.service import (
    AuditAction,
    AuditModule,
    RequestContext,
    create_audit_log,
)
from sasm_ims.modules.auth import repository as auth_repository
from sasm_ims.modules.auth.service import AuthTokens, issue_tokens
from sasm_ims.modules.office_profiles import repository
from sasm_ims.modules.office_profiles.models import (
    OfficeProfile,
    Permission,
    default_permissions,
)
from sasm_ims.modules.office_profiles.schemas import CreateProfileRequest, UpdateProfileRequest
from sasm_ims.modules.users.models import User, UserRole
from sasm_ims.modules.users.repository import UserRepository

logger = logging.getLogger(__name__)

# Constants
MAX_PROFILES = 5
PIN_PATTERN = re.compile(r"^\d{4}$")
OFFICE_DASHBOARD = "/office-dashboard"


class ProfileLimitReachedError(AppError):
    def __init__(self):
        super().__init__(
            f"Maximum of {MAX_PROFILES} profiles allowed",
            error_code="PROFILE_LIMIT_REACHED",
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class InvalidPinError(AppError):
    def __init__(self):
        super().__init__(
            "PIN must be exactly 4 digits",
            error_code="INVALID_PIN_FORMAT",
            status_code=status.HTTP_400_BAD_REQUEST,
        )


class DuplicateProfileNameError(AppError):
    def __init__(self):
        super().__init__(
            "A profile with this name already exists",
            error_code="DUPLICATE_PROFILE_NAME",
            status_code=status.HTTP_409_CONFLICT,
        )


class ProfileNotFoundError(AppError):
    def __init__(self, profile_id: UUID | None = None):
        super().__init__(
            "Profile not found",
            error_code="PROFILE_NOT_FOUND",
            status_code=status.HTTP_404_NOT_FOUND,
        )
        self.profile_id = profile_id


@dataclass
class SelectProfileResult:
    profile: OfficeProfile
    tokens: AuthTokens
    account_email: str
    redirect_url: str = OFFICE_DASHBOARD


def _validate_pin(pin: str) -> None:
    if not PIN_PATTERN.match(pin):
        raise InvalidPinError()


async def _get_office_account(db: AsyncSession, current_user: CurrentUser) -> User:
    """
    Load the caller's account and require the office role.

    Raises:
        AppError 403: Not an office account
    """
    user = await UserRepository.get_by_id(db, current_user.id)
    app_assert(
        user and user.role == UserRole.OFFICE,
        status.HTTP_403_FORBIDDEN,
        "Only office accounts can manage profiles",
        "OFFICE_ACCOUNT_REQUIRED",
    )
    return user


async def _get_profile(db: AsyncSession, profile_id: UUID, account_id: UUID) -> OfficeProfile:
    profile = await repository.get_by_id(db, profile_id, account_id)
    if not profile:
        raise ProfileNotFoundError(profile_id)
    return profile


async def _actor(
    db: AsyncSession, account: User, current_user: CurrentUser
) -> tuple[str, UUID | None]:
    """Name and profile ID of whoever is acting through the account."""
    if current_user.profile_id:
        acting = await repository.get_by_id(db, current_user.profile_id, account.id)
        if acting:
            return acting.profile_name, acting.id
    return account.office_name or account.full_name, None


async def describe_actor(
    db: AsyncSession, current_user: CurrentUser
) -> tuple[User, str, UUID | None]:
    """
    Account, display name and acting profile of an HR or office caller.

    Used by other modules when recording who made a decision.

    Raises:
        AppError 401: Account no longer exists
    """
    account = await UserRepository.get_by_id(db, current_user.id)
    app_assert(account, status.HTTP_401_UNAUTHORIZED, "Account not found", "ACCOUNT_NOT_FOUND")
    actor_name, profile_id = await _actor(db, account, current_user)
    return account, actor_name, profile_id


def profile_summary(profile: OfficeProfile) -> dict:
    return {
        "id": profile.id,
        "profile_name": profile.profile_name,
        "avatar": profile.display_avatar,
        "permissions": profile.permissions,
        "is_active": profile.is_active,
        "last_accessed_at": profile.last_accessed_at,
        "created_at": profile.created_at,
    }


async def get_profiles(db: AsyncSession, current_user: CurrentUser) -> list[OfficeProfile]:
    """Active profiles of the caller's office account, most recently used first."""
    account = await _get_office_account(db, current_user)
    return await repository.get_active_profiles(db, account.id)


async def create_profile(
    db: AsyncSession,
    current_user: CurrentUser,
    data: CreateProfileRequest,
    context: RequestContext | None = None,
) -> OfficeProfile:
    """
    Create an office profile.

    Raises:
        AppError 403: Not an office account
        ProfileLimitReachedError: Account already has MAX_PROFILES profiles
        InvalidPinError: PIN is not 4 digits
        DuplicateProfileNameError: Name already used in this account
    """
    account = await _get_office_account(db, current_user)

    if await repository.count_profiles(db, account.id) >= MAX_PROFILES:
        raise ProfileLimitReachedError()

    _validate_pin(data.pin)

    if await repository.name_taken(db, account.id, data.profile_name):
        raise DuplicateProfileNameError()

    permissions = (
        data.permissions.model_dump() if data.permissions is not None else default_permissions()
    )
    profile = await repository.create(
        db,
        OfficeProfile(
            account_id=account.id,
            profile_name=data.profile_name,
            pin_hash=hash_password(data.pin),
            permissions=permissions,
            avatar=data.avatar,
            is_active=True,
        ),
    )
    logger.info(f"Account {account.id} created profile {profile.id}")

    actor_name, actor_profile_id = await _actor(db, account, current_user)
    await create_audit_log(
        account_id=account.id,
        profile_id=actor_profile_id,
        actor_name=actor_name,
        actor_email=account.email,
        action=AuditAction.CREATE_PROFILE,
        module=AuditModule.PROFILES,
        target_type="Profile",
        target_id=profile.id,
        target_name=profile.profile_name,
        details={"permissions": permissions},
        context=context,
    )
    return profile


async def select_profile(
    db: AsyncSession,
    current_user: CurrentUser,
    profile_id: UUID,
    pin: str,
    user_agent: str | None = None,
    context: RequestContext | None = None,
) -> SelectProfileResult:
    """
    Unlock a profile with its PIN and scope the device's session to it.

    Raises:
        ProfileNotFoundError: No such profile in this account
        AppError 401: Profile disabled, or wrong PIN
    """
    account = await _get_office_account(db, current_user)
    profile = await _get_profile(db, profile_id, account.id)

    app_assert(
        profile.is_active,
        status.HTTP_401_UNAUTHORIZED,
        "This profile has been disabled",
        "PROFILE_DISABLED",
    )
    if not verify_password(pin, profile.pin_hash):
        logger.warning(f"Incorrect PIN for profile {profile.id}")
        raise AppError(
            "Incorrect PIN",
            error_code="INCORRECT_PIN",
            status_code=status.HTTP_401_UNAUTHORIZED,
        )

    profile.last_accessed_at = datetime.now(UTC)
    await auth_repository.delete_session(db, current_user.session_id, account_id=account.id)
    session = await auth_repository.create_session(
        db,
        account_id=account.id,
        user_agent=user_agent,
        profile_id=profile.id,
    )
    await db.commit()

    tokens = issue_tokens(account.id, account.role, session)
    logger.info(f"Account {account.id} selected profile {profile.id} (session {session.id})")

    await create_audit_log(
        account_id=account.id,
        profile_id=profile.id,
        actor_name=profile.profile_name,
        actor_email=account.email,
        action=AuditAction.SELECT_PROFILE,
        module=AuditModule.PROFILES,
        target_type="Profile",
        target_id=profile.id,
        target_name=profile.profile_name,
        context=context,
    )
    return SelectProfileResult(profile=profile, tokens=tokens, account_email=account.email)


async def update_profile(
    db: AsyncSession,
    current_user: CurrentUser,
    profile_id: UUID,
    data: UpdateProfileRequest,
    context: RequestContext | None = None,
) -> OfficeProfile:
    """
    Update a profile's name, PIN, permissions, active flag or avatar.

    Raises:
        ProfileNotFoundError: No such profile in this account
        DuplicateProfileNameError: New name already used
        InvalidPinError: New PIN is not 4 digits
    """
    account = await _get_office_account(db, current_user)
    profile = await _get_profile(db, profile_id, account.id)

    old_value: dict = {}
    new_value: dict = {}

    if data.profile_name is not None and data.profile_name != profile.profile_name:
        if await repository.name_taken(db, account.id, data.profile_name, exclude_id=profile.id):
            raise DuplicateProfileNameError()
        old_value["profile_name"] = profile.profile_name
        new_value["profile_name"] = data.profile_name
        profile.profile_name = data.profile_name

    if data.pin is not None:
        _validate_pin(data.pin)
        profile.pin_hash = hash_password(data.pin)
        old_value["pin"] = "****"
        new_value["pin"] = "****"

    if data.permissions is not None:
        valid_keys = {p.value for p in Permission}
        unknown = set(data.permissions) - valid_keys
        app_assert(
            not unknown,
            status.HTTP_400_BAD_REQUEST,
            f"Unknown permissions: {', '.join(sorted(unknown))}",
            "UNKNOWN_PERMISSION",
        )
        merged = {**default_permissions(), **(profile.permissions or {}), **data.permissions}
        old_value["permissions"] = profile.permissions
        new_value["permissions"] = merged
        profile.permissions = merged

    if data.is_active is not None and data.is_active != profile.is_active:
        old_value["is_active"] = profile.is_active
        new_value["is_active"] = data.is_active
        profile.is_active = data.is_active

    if data.avatar is not None and data.avatar != profile.avatar:
        old_value["avatar"] = profile.avatar
        new_value["avatar"] = data.avatar
        profile.avatar = data.avatar

    await db.commit()
    await db.refresh(profile)
    logger.info(f"Account {account.id} updated profile {profile.id}: {sorted(new_value)}")

    actor_name, actor_profile_id = await _actor(db, account, current_user)
    await create_audit_log(
        account_id=account.id,
        profile_id=actor_profile_id,
        actor_name=actor_name,
        actor_email=account.email,
        action=AuditAction.UPDATE_PROFILE,
        module=AuditModule.PROFILES,
        target_type="Profile",
        target_id=profile.id,
        target_name=profile.profile_name,
        old_value=old_value,
        new_value=new_value,
        context=context,
    )
    return profile


async def delete_profile(
    db: AsyncSession,
    current_user: CurrentUser,
    profile_id: UUID,
    context: RequestContext | None = None,
) -> None:
    """
    Delete a profile.

    Raises:
        ProfileNotFoundError: No such profile in this account
        AppError 400: It is the last active profile
    """
    account = await _get_office_account(db, current_user)
    profile = await _get_profile(db, profile_id, account.id)

    active_count = await repository.count_profiles(db, account.id, active_only=True)
    app_assert(
        active_count > 1,
        status.HTTP_400_BAD_REQUEST,
        "Cannot delete the last profile. At least one profile must remain.",
        "LAST_PROFILE",
    )

    actor_name, actor_profile_id = await _actor(db, account, current_user)
    deleted_name = profile.profile_name
    await repository.delete(db, profile)
    logger.info(f"Account {account.id} deleted profile {profile_id}")

    await create_audit_log(
        account_id=account.id,
        profile_id=actor_profile_id,
        actor_name=actor_name,
        actor_email=account.email,
        action=AuditAction.DELETE_PROFILE,
        module=AuditModule.PROFILES,
        target_type="Profile",
        target_id=profile_id,
        target_name=deleted_name,
        context=context,
    )


async def reset_profile_pin(
    db: AsyncSession,
    current_user: CurrentUser,
    profile_id: UUID,
    account_password: str,
    new_pin: str,
    context: RequestContext | None = None,
) -> None:
    """
    Reset a forgotten profile PIN by re-entering the account password.

    Raises:
        AppError 401: Account password is wrong
        ProfileNotFoundError: No such profile in this account
        InvalidPinError: New PIN is not 4 digits
    """
    account = await _get_office_account(db, current_user)

    app_assert(
        verify_password(account_password, account.password_hash),
        status.HTTP_401_UNAUTHORIZED,
        "Incorrect account password",
        "INVALID_CREDENTIALS",
    )

    profile = await _get_profile(db, profile_id, account.id)
    _validate_pin(new_pin)

    profile.pin_hash = hash_password(new_pin)
    await db.commit()
    logger.info(f"Account {account.id} reset PIN of profile {profile.id}")

    await create_audit_log(
        account_id=account.id,
        profile_id=profile.id,
        actor_name=account.office_name or account.full_name,
        actor_email=account.email,
        action=AuditAction.RESET_PROFILE_PIN,
        module=AuditModule.PROFILES,
        target_type="Profile",
        target_id=profile.id,
        target_name=profile.profile_name,
        details={"method": "password_verification"},
        context=context,
    )

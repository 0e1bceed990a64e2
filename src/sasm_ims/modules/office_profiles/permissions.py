"""
Office Profile Permission Guard

HR accounts pass every check. Office accounts must have selected a profile
(its ID travels in the access token) that is still active and holds the
requested permission.
"""

import logging
from collections.abc import Callable, Coroutine
from typing import Any

from fastapi import Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from sasm_ims.core.auth import CurrentUser, get_current_user
from sasm_ims.core.database import get_db
from sasm_ims.core.errors import AppError
from sasm_ims.modules.office_profiles import repository
from sasm_ims.modules.office_profiles.models import Permission
from sasm_ims.modules.users.models import UserRole

logger = logging.getLogger(__name__)


async def check_permission(
    db: AsyncSession,
    current_user: CurrentUser,
    permission: Permission,
) -> None:
    """
    Raise unless the caller may exercise ``permission``.

    Raises:
        AppError 403: FORBIDDEN, PROFILE_REQUIRED or PERMISSION_DENIED
    """
    if current_user.role == UserRole.HR.value:
        return

    if current_user.role != UserRole.OFFICE.value:
        raise AppError(
            "You do not have access to this resource.",
            error_code="FORBIDDEN",
            status_code=status.HTTP_403_FORBIDDEN,
        )

    if current_user.profile_id is None:
        raise AppError(
            "Select an office profile first.",
            error_code="PROFILE_REQUIRED",
            status_code=status.HTTP_403_FORBIDDEN,
        )

    profile = await repository.get_by_id(db, current_user.profile_id, current_user.id)
    if not profile or not profile.is_active or not profile.has_permission(permission):
        logger.warning(f"Profile {current_user.profile_id} lacks permission {permission.value}")
        raise AppError(
            "Your profile does not have permission to perform this action.",
            error_code="PERMISSION_DENIED",
            status_code=status.HTTP_403_FORBIDDEN,
        )


def require_permission(
    permission: Permission,
) -> Callable[..., Coroutine[Any, Any, CurrentUser]]:
    """
    Build a dependency admitting HR and office profiles holding ``permission``.

    Usage:
        current_user: CurrentUser = Depends(require_permission(Permission.VIEW_APPLICATIONS))
    """

    async def dependency(
        current_user: CurrentUser = Depends(get_current_user),
        db: AsyncSession = Depends(get_db),
    ) -> CurrentUser:
        await check_permission(db, current_user, permission)
        return current_user

    return dependency

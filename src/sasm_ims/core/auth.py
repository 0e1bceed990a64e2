"""
Authentication and Authorization Dependencies

Resolves the caller from the access token (``accessToken`` cookie, with an
``Authorization: Bearer`` header accepted for API clients) and provides
role guards for routers.

The token carries everything the guards need (account id, session id, role
and, for office accounts, the selected profile id), so no database lookup
happens here.
"""

import logging
from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from typing import Any
from uuid import UUID

from fastapi import Depends, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from sasm_ims.core.cookies import ACCESS_COOKIE
from sasm_ims.core.errors import AppError, ErrorCode
from sasm_ims.core.security import decode_token

logger = logging.getLogger(__name__)

# Security scheme for OpenAPI documentation; cookies remain the primary carrier
bearer_scheme = HTTPBearer(
    auto_error=False,
    description="JWT access token (also accepted from the accessToken cookie)",
)


@dataclass
class CurrentUser:
    """
    The authenticated caller, populated from access-token claims.

    Attributes:
        id: Account ID
        session_id: Session the token was issued for
        role: Account role (student, hr, office)
        profile_id: Selected office profile, if any
    """

    id: UUID
    session_id: UUID
    role: str
    profile_id: UUID | None = None

    def __str__(self) -> str:
        return f"CurrentUser(id={self.id}, role={self.role}, profile={self.profile_id})"


def _unauthorized(message: str) -> AppError:
    return AppError(
        message,
        error_code=ErrorCode.INVALID_ACCESS_TOKEN,
        status_code=status.HTTP_401_UNAUTHORIZED,
    )


def user_from_claims(payload: dict[str, Any]) -> CurrentUser:
    """
    Build a CurrentUser from a decoded access-token payload.

    Raises:
        AppError 401: If required claims are missing or malformed
    """
    try:
        profile_id = payload.get("profile_id")
        return CurrentUser(
            id=UUID(payload["sub"]),
            session_id=UUID(payload["session_id"]),
            role=payload["role"],
            profile_id=UUID(profile_id) if profile_id else None,
        )
    except (KeyError, TypeError, ValueError) as e:
        logger.warning(f"Invalid token claims: {e}")
        raise _unauthorized("Invalid token") from e


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> CurrentUser:
    """
    FastAPI dependency returning the authenticated caller.

    Raises:
        AppError 401 (INVALID_ACCESS_TOKEN): missing, invalid or expired token
    """
    token = request.cookies.get(ACCESS_COOKIE)
    if not token and credentials:
        token = credentials.credentials

    if not token:
        raise _unauthorized("Not authorized")

    payload = decode_token(token)
    if payload is None:
        raise _unauthorized("Invalid or expired token")

    user = user_from_claims(payload)
    request.state.user_id = user.id
    logger.debug(f"Authenticated {user}")
    return user


def require_roles(
    *roles: str,
) -> Callable[..., Coroutine[Any, Any, CurrentUser]]:
    """
    Build a dependency that only admits the given roles.

    Usage:
        @router.get("/", dependencies=[Depends(require_roles("hr"))])
    """

    async def dependency(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if user.role not in roles:
            logger.warning(f"Access denied: {user} is not one of {roles}")
            raise AppError(
                "You do not have access to this resource.",
                error_code=ErrorCode.FORBIDDEN,
                status_code=status.HTTP_403_FORBIDDEN,
            )
        return user

    return dependency


__all__ = [
    "CurrentUser",
    "get_current_user",
    "require_roles",
    "user_from_claims",
]

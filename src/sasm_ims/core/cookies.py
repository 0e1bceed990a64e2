"""
Auth Cookies

Access and refresh tokens travel as httpOnly cookies. The refresh cookie is
scoped to the refresh endpoint so it is not sent with every request.
"""

from datetime import UTC, datetime, timedelta

from fastapi import Response

from sasm_ims.core.config import settings

ACCESS_COOKIE = "accessToken"
REFRESH_COOKIE = "refreshToken"
REFRESH_PATH = f"{settings.api_prefix}/auth/refresh"


def _base_options() -> dict:
    return {
        "httponly": True,
        "secure": not settings.is_development,
        "samesite": "none" if settings.is_production else "lax",
        "domain": settings.cookie_domain,
    }


def access_cookie_expiry() -> datetime:
    return datetime.now(UTC) + timedelta(minutes=settings.access_token_expire_minutes)


def refresh_cookie_expiry() -> datetime:
    return datetime.now(UTC) + timedelta(days=settings.session_expire_days)


def set_access_cookie(response: Response, access_token: str) -> None:
    response.set_cookie(
        ACCESS_COOKIE,
        access_token,
        expires=access_cookie_expiry(),
        path="/",
        **_base_options(),
    )


def set_refresh_cookie(response: Response, refresh_token: str) -> None:
    response.set_cookie(
        REFRESH_COOKIE,
        refresh_token,
        expires=refresh_cookie_expiry(),
        path=REFRESH_PATH,
        **_base_options(),
    )


def set_auth_cookies(response: Response, access_token: str, refresh_token: str) -> None:
    """Attach both tokens to the response."""
    set_access_cookie(response, access_token)
    set_refresh_cookie(response, refresh_token)


def clear_auth_cookies(response: Response) -> None:
    """Expire both auth cookies (the refresh cookie on its own path)."""
    options = _base_options()
    response.delete_cookie(ACCESS_COOKIE, path="/", **options)
    response.delete_cookie(REFRESH_COOKIE, path=REFRESH_PATH, **options)

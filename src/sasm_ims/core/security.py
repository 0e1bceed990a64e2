"""
Security Utilities

Password and PIN hashing (bcrypt), JWT access/refresh tokens (python-jose)
and one-time code generation.
"""

import hashlib
import logging
import secrets
from datetime import UTC, datetime, timedelta
from typing import Any

import bcrypt
from jose import JWTError, jwt

from sasm_ims.core.config import settings

logger = logging.getLogger(__name__)

TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"


def hash_password(password: str) -> str:
    """Hash a password (or PIN) with bcrypt."""
    # bcrypt only looks at the first 72 bytes
    password_bytes = password.encode("utf-8")[:72]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=settings.bcrypt_rounds))
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Check a plain password (or PIN) against a bcrypt hash."""
    password_bytes = plain_password.encode("utf-8")[:72]
    try:
        return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


def create_access_token(
    subject: str,
    additional_claims: dict[str, Any] | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """
    Create a short-lived access token.

    Args:
        subject: Account ID placed in the ``sub`` claim
        additional_claims: Extra claims (session_id, role, profile_id)
        expires_delta: Override for the default lifetime

    Returns:
        Encoded JWT signed with the access secret
    """
    expire = datetime.now(UTC) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    to_encode: dict[str, Any] = {**(additional_claims or {})}
    to_encode.update({"sub": subject, "exp": expire, "type": TOKEN_TYPE_ACCESS})
    return jwt.encode(to_encode, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_refresh_token(
    subject: str,
    additional_claims: dict[str, Any] | None = None,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a refresh token signed with the separate refresh secret."""
    expire = datetime.now(UTC) + (expires_delta or timedelta(days=settings.session_expire_days))
    to_encode: dict[str, Any] = {**(additional_claims or {})}
    to_encode.update({"sub": subject, "exp": expire, "type": TOKEN_TYPE_REFRESH})
    return jwt.encode(
        to_encode, settings.jwt_refresh_secret_key, algorithm=settings.jwt_algorithm
    )


def decode_token(token: str, token_type: str = TOKEN_TYPE_ACCESS) -> dict[str, Any] | None:
    """
    Decode and validate a token.

    Args:
        token: Encoded JWT
        token_type: Expected ``type`` claim; also selects the signing secret

    Returns:
        The payload, or None when the signature, expiry or type is invalid
    """
    secret = (
        settings.jwt_refresh_secret_key
        if token_type == TOKEN_TYPE_REFRESH
        else settings.jwt_secret_key
    )
    try:
        payload = jwt.decode(token, secret, algorithms=[settings.jwt_algorithm])
    except JWTError as e:
        logger.debug(f"Token rejected: {e}")
        return None

    if payload.get("type") != token_type:
        logger.debug(f"Token type mismatch: expected {token_type}, got {payload.get('type')}")
        return None

    return payload


def generate_verification_code() -> str:
    """Generate a URL-safe one-time code (256 bits of entropy)."""
    return secrets.token_urlsafe(32)


def hash_verification_code(code: str) -> str:
    """
    Hash a one-time code for storage using SHA-256.

    Only the hash is persisted so a leaked table cannot be replayed.
    """
    return hashlib.sha256(code.encode()).hexdigest()

"""
Unit tests for the auth service layer.

These tests cover:
- Sign-up conflicts and verification email dispatch
- Sign-in credential checks and token issuance
- Refresh with sliding session extension
- Sign-out tolerance of storage failures
"""

from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from sasm_ims.core.errors import AppError
from sasm_ims.core.security import (
    TOKEN_TYPE_REFRESH,
    create_access_token,
    create_refresh_token,
    decode_token,
)
from sasm_ims.modules.auth.schemas import SignupRequest
from sasm_ims.modules.auth.service import (
    ROLE_REDIRECTS,
    InvalidCredentialsError,
    SessionExpiredError,
    issue_tokens,
    refresh_user_access_token,
    session_id_from_tokens,
    signin,
    signout,
    signup,
)
from sasm_ims.modules.users.models import UserRole

SERVICE = "sasm_ims.modules.auth.service"


def make_user(role=UserRole.STUDENT):
    return SimpleNamespace(
        id=uuid4(),
        email="juan@school.edu",
        first_name="Juan",
        last_name="Cruz",
        role=role,
        password_hash="hashed",
    )


def make_session(account_id, expires_in: timedelta, profile_id=None):
    return SimpleNamespace(
        id=uuid4(),
        account_id=account_id,
        profile_id=profile_id,
        expires_at=datetime.now(UTC) + expires_in,
    )


@pytest.fixture
def signup_request():
    return SignupRequest(
        first_name="Juan",
        last_name="Cruz",
        email="Juan@School.edu",
        password="password123",
        confirm_password="password123",
    )


class TestIssueTokens:
    """Tests for token issuance."""

    def test_access_token_carries_profile_scope(self):
        account_id = uuid4()
        session = make_session(account_id, timedelta(days=7), profile_id=uuid4())

        tokens = issue_tokens(account_id, UserRole.OFFICE, session)

        payload = decode_token(tokens.access_token)
        assert payload["sub"] == str(account_id)
        assert payload["session_id"] == str(session.id)
        assert payload["role"] == "office"
        assert payload["profile_id"] == str(session.profile_id)
        assert tokens.refresh_token is not None

    def test_refresh_token_only_names_session(self):
        account_id = uuid4()
        session = make_session(account_id, timedelta(days=7))

        tokens = issue_tokens(account_id, UserRole.STUDENT, session)

        payload = decode_token(tokens.refresh_token, token_type=TOKEN_TYPE_REFRESH)
        assert payload["session_id"] == str(session.id)
        assert "role" not in payload

    def test_without_refresh(self):
        session = make_session(uuid4(), timedelta(days=7))
        tokens = issue_tokens(uuid4(), UserRole.HR, session, include_refresh=False)
        assert tokens.refresh_token is None


class TestSignup:
    """Tests for signup function."""

    @pytest.mark.asyncio
    async def test_signup_rejects_registered_email(self, mock_db, signup_request):
        with patch(f"{SERVICE}.UserRepository") as mock_users:
            mock_users.email_exists = AsyncMock(return_value=True)

            with pytest.raises(AppError) as exc_info:
                await signup(mock_db, signup_request)

            assert exc_info.value.status_code == 409
            assert exc_info.value.message == "User already in use."
            mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_signup_creates_student_and_sends_code(self, mock_db, signup_request):
        user = make_user()
        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.send_verification_email", new_callable=AsyncMock) as mock_email,
        ):
            mock_users.email_exists = AsyncMock(return_value=False)
            mock_users.create = AsyncMock(return_value=user)
            mock_repo.create_verification_code = AsyncMock()
            mock_email.return_value = True

            result = await signup(mock_db, signup_request)

            assert result is user
            create_kwargs = mock_users.create.call_args.kwargs
            assert create_kwargs["email"] == "juan@school.edu"
            assert create_kwargs["role"] == UserRole.STUDENT
            assert create_kwargs["password_hash"] != "password123"

            code_kwargs = mock_repo.create_verification_code.call_args.kwargs
            sent_code = mock_email.call_args.args[2]
            # Only the hash is stored
            assert code_kwargs["code_hash"] != sent_code
            mock_db.commit.assert_called_once()


class TestSignin:
    """Tests for signin function."""

    @pytest.mark.asyncio
    async def test_signin_unknown_email(self, mock_db):
        with patch(f"{SERVICE}.UserRepository") as mock_users:
            mock_users.get_by_email = AsyncMock(return_value=None)

            with pytest.raises(InvalidCredentialsError):
                await signin(mock_db, "nobody@school.edu", "password123")

    @pytest.mark.asyncio
    async def test_signin_wrong_password(self, mock_db):
        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.verify_password", return_value=False),
        ):
            mock_users.get_by_email = AsyncMock(return_value=make_user())

            with pytest.raises(InvalidCredentialsError) as exc_info:
                await signin(mock_db, "juan@school.edu", "wrong-password")

            assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_signin_success_redirects_by_role(self, mock_db):
        user = make_user(UserRole.OFFICE)
        session = make_session(user.id, timedelta(days=7))
        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.verify_password", return_value=True),
        ):
            mock_users.get_by_email = AsyncMock(return_value=user)
            mock_repo.create_session = AsyncMock(return_value=session)

            result = await signin(mock_db, user.email, "password123", user_agent="pytest")

            assert result.user is user
            assert result.redirect_url == ROLE_REDIRECTS[UserRole.OFFICE]
            assert result.tokens.refresh_token is not None
            mock_repo.create_session.assert_called_once_with(
                mock_db, account_id=user.id, user_agent="pytest"
            )
            mock_db.commit.assert_called_once()


class TestRefreshUserAccessToken:
    """Tests for the sliding refresh window."""

    @pytest.mark.asyncio
    async def test_missing_refresh_token(self, mock_db):
        with pytest.raises(AppError) as exc_info:
            await refresh_user_access_token(mock_db, None)
        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_access_token_is_not_a_refresh_token(self, mock_db):
        token = create_access_token(str(uuid4()), {"session_id": str(uuid4()), "role": "hr"})
        with pytest.raises(AppError) as exc_info:
            await refresh_user_access_token(mock_db, token)
        assert exc_info.value.error_code == "INVALID_REFRESH_TOKEN"

    @pytest.mark.asyncio
    async def test_expired_session(self, mock_db):
        user = make_user()
        session = make_session(user.id, timedelta(minutes=-1))
        token = create_refresh_token(str(user.id), {"session_id": str(session.id)})
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_session = AsyncMock(return_value=session)

            with pytest.raises(SessionExpiredError):
                await refresh_user_access_token(mock_db, token)

    @pytest.mark.asyncio
    async def test_session_outside_threshold_is_not_extended(self, mock_db):
        user = make_user()
        session = make_session(user.id, timedelta(days=5))
        original_expiry = session.expires_at
        token = create_refresh_token(str(user.id), {"session_id": str(session.id)})
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.UserRepository") as mock_users,
        ):
            mock_repo.get_session = AsyncMock(return_value=session)
            mock_users.get_by_id = AsyncMock(return_value=user)

            tokens = await refresh_user_access_token(mock_db, token)

            assert tokens.refresh_token is None
            assert session.expires_at == original_expiry
            mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_session_within_threshold_is_extended(self, mock_db):
        user = make_user()
        session = make_session(user.id, timedelta(hours=3), profile_id=uuid4())
        new_expiry = datetime.now(UTC) + timedelta(days=7)
        token = create_refresh_token(str(user.id), {"session_id": str(session.id)})
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.UserRepository") as mock_users,
        ):
            mock_repo.get_session = AsyncMock(return_value=session)
            mock_repo.session_expiry = MagicMock(return_value=new_expiry)
            mock_users.get_by_id = AsyncMock(return_value=user)

            tokens = await refresh_user_access_token(mock_db, token)

            assert tokens.refresh_token is not None
            assert session.expires_at == new_expiry
            mock_db.commit.assert_called_once()
            payload = decode_token(tokens.access_token)
            assert payload["profile_id"] == str(session.profile_id)


class TestSignout:
    """Tests for signout function."""

    def test_session_id_falls_back_to_refresh_token(self):
        session_id = uuid4()
        refresh = create_refresh_token(str(uuid4()), {"session_id": str(session_id)})
        assert session_id_from_tokens("garbage", refresh) == session_id

    def test_no_tokens(self):
        assert session_id_from_tokens(None, None) is None

    @pytest.mark.asyncio
    async def test_signout_without_tokens_is_noop(self, mock_db):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.delete_session = AsyncMock()
            await signout(mock_db, None, None)
            mock_repo.delete_session.assert_not_called()

    @pytest.mark.asyncio
    async def test_signout_swallows_storage_errors(self, mock_db):
        session_id = uuid4()
        access = create_access_token(
            str(uuid4()), {"session_id": str(session_id), "role": "student"}
        )
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.delete_session = AsyncMock(side_effect=RuntimeError("db down"))

            await signout(mock_db, access, None)

            mock_repo.delete_session.assert_called_once_with(mock_db, session_id)
            mock_db.rollback.assert_called_once()

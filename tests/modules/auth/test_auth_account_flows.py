"""
Unit tests for account maintenance flows of the auth service.

These tests cover:
- Email verification for new accounts and pending email changes
- Verification resends and password reset requests
- Password reset / change and their session revocation
- Email change requests and cancellation
- Session listing and revocation
"""

from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from sasm_ims.core.errors import AppError
from sasm_ims.modules.auth.models import VerificationCodeType
from sasm_ims.modules.auth.service import (
    MAX_RESET_CODES_PER_WINDOW,
    InvalidVerificationCodeError,
    cancel_email_change,
    change_email,
    change_password,
    delete_session,
    list_sessions,
    request_password_reset,
    reset_password,
    resend_verification_email,
    verify_email,
)
from sasm_ims.modules.users.models import UserRole

SERVICE = "sasm_ims.modules.auth.service"


def make_user(**kwargs):
    fields = {
        "id": uuid4(),
        "email": "juan@school.edu",
        "pending_email": None,
        "first_name": "Juan",
        "role": UserRole.STUDENT,
        "password_hash": "hashed",
        "is_verified": False,
    }
    fields.update(kwargs)
    return SimpleNamespace(**fields)


def make_code(account_id):
    return SimpleNamespace(id=uuid4(), account_id=account_id)


class TestVerifyEmail:
    """Tests for verify_email function."""

    @pytest.mark.asyncio
    async def test_unknown_code(self, mock_db):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_valid_code = AsyncMock(return_value=None)

            with pytest.raises(InvalidVerificationCodeError):
                await verify_email(mock_db, "123456")

        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_new_account_is_verified_and_signed_in(self, mock_db):
        user = make_user()
        code = make_code(user.id)
        session = SimpleNamespace(id=uuid4(), profile_id=None)
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.notify_welcome", new=AsyncMock()) as mock_welcome,
        ):
            mock_repo.get_valid_code = AsyncMock(return_value=code)
            mock_repo.delete_code = AsyncMock()
            mock_repo.create_session = AsyncMock(return_value=session)
            mock_users.get_by_id = AsyncMock(return_value=user)

            result = await verify_email(mock_db, "123456")

            assert user.is_verified is True
            assert result.email_changed is False
            assert result.tokens.refresh_token is not None
            mock_repo.delete_code.assert_called_once_with(mock_db, code.id)
            mock_repo.create_session.assert_called_once_with(
                mock_db, account_id=user.id, user_agent="Email verification"
            )
            mock_db.commit.assert_called_once()
            mock_welcome.assert_called_once_with(user.id)

    @pytest.mark.asyncio
    async def test_pending_email_replaces_address_without_session(self, mock_db):
        user = make_user(is_verified=True, pending_email="new@school.edu")
        code = make_code(user.id)
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.notify_welcome", new=AsyncMock()) as mock_welcome,
        ):
            mock_repo.get_valid_code = AsyncMock(return_value=code)
            mock_repo.delete_code = AsyncMock()
            mock_repo.create_session = AsyncMock()
            mock_users.get_by_id = AsyncMock(return_value=user)
            mock_users.get_by_email = AsyncMock(return_value=None)

            result = await verify_email(mock_db, "123456")

            assert result.email_changed is True
            assert result.tokens is None
            assert user.email == "new@school.edu"
            assert user.pending_email is None
            mock_repo.create_session.assert_not_called()
            mock_welcome.assert_not_called()

    @pytest.mark.asyncio
    async def test_pending_email_taken_meanwhile(self, mock_db):
        user = make_user(pending_email="new@school.edu")
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.UserRepository") as mock_users,
        ):
            mock_repo.get_valid_code = AsyncMock(return_value=make_code(user.id))
            mock_repo.delete_code = AsyncMock()
            mock_users.get_by_id = AsyncMock(return_value=user)
            mock_users.get_by_email = AsyncMock(return_value=make_user(email="new@school.edu"))

            with pytest.raises(AppError) as exc_info:
                await verify_email(mock_db, "123456")

            assert exc_info.value.status_code == 409
            assert user.email == "juan@school.edu"
            mock_repo.delete_code.assert_not_called()


class TestResendVerificationEmail:
    """Tests for resend_verification_email function."""

    @pytest.mark.asyncio
    async def test_unknown_email(self, mock_db):
        with patch(f"{SERVICE}.UserRepository") as mock_users:
            mock_users.get_by_email = AsyncMock(return_value=None)

            with pytest.raises(AppError) as exc_info:
                await resend_verification_email(mock_db, "nobody@school.edu")

            assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_already_verified(self, mock_db):
        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.send_verification_email", new=AsyncMock()) as mock_email,
        ):
            mock_users.get_by_email = AsyncMock(return_value=make_user(is_verified=True))

            with pytest.raises(AppError) as exc_info:
                await resend_verification_email(mock_db, "juan@school.edu")

            assert exc_info.value.status_code == 409
            assert exc_info.value.error_code == "ALREADY_VERIFIED"
            mock_email.assert_not_called()

    @pytest.mark.asyncio
    async def test_replaces_outstanding_codes(self, mock_db):
        user = make_user()
        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.send_verification_email", new=AsyncMock()) as mock_email,
        ):
            mock_users.get_by_email = AsyncMock(return_value=user)
            mock_repo.delete_codes_for_account = AsyncMock()
            mock_repo.create_verification_code = AsyncMock()

            await resend_verification_email(mock_db, user.email)

            mock_repo.delete_codes_for_account.assert_called_once_with(
                mock_db, user.id, VerificationCodeType.EMAIL_VERIFICATION
            )
            mock_repo.create_verification_code.assert_called_once()
            mock_email.assert_called_once()


class TestRequestPasswordReset:
    """Tests for request_password_reset function."""

    @pytest.mark.asyncio
    async def test_unknown_email_is_not_revealed(self, mock_db):
        with patch(f"{SERVICE}.UserRepository") as mock_users:
            mock_users.get_by_email = AsyncMock(return_value=None)

            await request_password_reset(mock_db, "nobody@school.edu")

        mock_db.rollback.assert_called_once()

    @pytest.mark.asyncio
    async def test_throttled_after_two_codes(self, mock_db):
        user = make_user(is_verified=True)
        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.send_password_reset_email", new=AsyncMock()) as mock_email,
        ):
            mock_users.get_by_email = AsyncMock(return_value=user)
            mock_repo.count_codes_since = AsyncMock(return_value=MAX_RESET_CODES_PER_WINDOW)
            mock_repo.create_verification_code = AsyncMock()

            await request_password_reset(mock_db, user.email)

            since = mock_repo.count_codes_since.call_args.kwargs["since"]
            assert datetime.now(UTC) - since >= timedelta(minutes=5)
            mock_repo.create_verification_code.assert_not_called()
            mock_email.assert_not_called()
            mock_db.rollback.assert_called_once()

    @pytest.mark.asyncio
    async def test_second_code_in_window_is_allowed(self, mock_db):
        user = make_user(is_verified=True)
        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(
                f"{SERVICE}.send_password_reset_email", new=AsyncMock(return_value=True)
            ) as mock_email,
        ):
            mock_users.get_by_email = AsyncMock(return_value=user)
            mock_repo.count_codes_since = AsyncMock(return_value=MAX_RESET_CODES_PER_WINDOW - 1)
            mock_repo.create_verification_code = AsyncMock()

            await request_password_reset(mock_db, user.email)

            mock_email.assert_called_once()
            mock_db.commit.assert_called_once()
            mock_db.rollback.assert_not_called()

    @pytest.mark.asyncio
    async def test_unexpected_error_is_swallowed(self, mock_db):
        with patch(f"{SERVICE}.UserRepository") as mock_users:
            mock_users.get_by_email = AsyncMock(side_effect=RuntimeError("connection lost"))

            await request_password_reset(mock_db, "juan@school.edu")

        mock_db.rollback.assert_called_once()


class TestResetPassword:
    """Tests for reset_password function."""

    @pytest.mark.asyncio
    async def test_invalid_code(self, mock_db):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_valid_code = AsyncMock(return_value=None)

            with pytest.raises(InvalidVerificationCodeError) as exc_info:
                await reset_password(mock_db, "123456", "newpassword1")

            assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    async def test_same_password_conflict(self, mock_db):
        user = make_user()
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.verify_password", return_value=True),
        ):
            mock_repo.get_valid_code = AsyncMock(return_value=make_code(user.id))
            mock_repo.delete_sessions_for_account = AsyncMock()
            mock_users.get_by_id = AsyncMock(return_value=user)

            with pytest.raises(AppError) as exc_info:
                await reset_password(mock_db, "123456", "password123")

            assert exc_info.value.status_code == 409
            assert exc_info.value.error_code == "PASSWORD_UNCHANGED"
            mock_repo.delete_sessions_for_account.assert_not_called()

    @pytest.mark.asyncio
    async def test_revokes_every_session(self, mock_db):
        user = make_user()
        code = make_code(user.id)
        with (
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.verify_password", return_value=False),
            patch(f"{SERVICE}.hash_password", return_value="new-hash"),
        ):
            mock_repo.get_valid_code = AsyncMock(return_value=code)
            mock_repo.delete_code = AsyncMock()
            mock_repo.delete_sessions_for_account = AsyncMock(return_value=3)
            mock_users.get_by_id = AsyncMock(return_value=user)

            await reset_password(mock_db, "123456", "newpassword1")

            assert user.password_hash == "new-hash"
            mock_repo.delete_code.assert_called_once_with(mock_db, code.id)
            mock_repo.delete_sessions_for_account.assert_called_once_with(mock_db, user.id)
            mock_db.commit.assert_called_once()


class TestChangePassword:
    """Tests for change_password function."""

    @pytest.mark.asyncio
    async def test_wrong_current_password(self, mock_db, student_user):
        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.verify_password", return_value=False),
        ):
            mock_users.get_by_id = AsyncMock(return_value=make_user(id=student_user.id))

            with pytest.raises(AppError) as exc_info:
                await change_password(mock_db, student_user, "wrong", "newpassword1")

            assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_unchanged_password(self, mock_db, student_user):
        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.verify_password", return_value=True),
        ):
            mock_users.get_by_id = AsyncMock(return_value=make_user(id=student_user.id))

            with pytest.raises(AppError) as exc_info:
                await change_password(mock_db, student_user, "password123", "password123")

            assert exc_info.value.status_code == 409

    @pytest.mark.asyncio
    async def test_keeps_current_session(self, mock_db, student_user):
        user = make_user(id=student_user.id)
        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(f"{SERVICE}.verify_password", return_value=True),
            patch(f"{SERVICE}.hash_password", return_value="new-hash"),
        ):
            mock_users.get_by_id = AsyncMock(return_value=user)
            mock_repo.delete_sessions_for_account = AsyncMock(return_value=2)

            await change_password(mock_db, student_user, "password123", "newpassword1")

            assert user.password_hash == "new-hash"
            mock_repo.delete_sessions_for_account.assert_called_once_with(
                mock_db, user.id, except_session_id=student_user.session_id
            )
            mock_db.commit.assert_called_once()


class TestChangeEmail:
    """Tests for change_email function."""

    @pytest.mark.asyncio
    async def test_recent_request_is_throttled(self, mock_db, student_user):
        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_users.get_by_id = AsyncMock(return_value=make_user(id=student_user.id))
            mock_repo.count_codes_since = AsyncMock(return_value=1)

            with pytest.raises(AppError) as exc_info:
                await change_email(mock_db, student_user, "new@school.edu")

            assert exc_info.value.status_code == 429

    @pytest.mark.asyncio
    async def test_email_used_by_another_account(self, mock_db, student_user):
        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_users.get_by_id = AsyncMock(return_value=make_user(id=student_user.id))
            mock_users.get_by_email = AsyncMock(return_value=make_user(email="new@school.edu"))
            mock_repo.count_codes_since = AsyncMock(return_value=0)

            with pytest.raises(AppError) as exc_info:
                await change_email(mock_db, student_user, "New@School.edu")

            assert exc_info.value.status_code == 409
            assert exc_info.value.error_code == "EMAIL_IN_USE"

    @pytest.mark.asyncio
    async def test_same_email(self, mock_db, student_user):
        user = make_user(id=student_user.id)
        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_users.get_by_id = AsyncMock(return_value=user)
            mock_users.get_by_email = AsyncMock(return_value=user)
            mock_repo.count_codes_since = AsyncMock(return_value=0)

            with pytest.raises(AppError) as exc_info:
                await change_email(mock_db, student_user, "JUAN@school.edu")

            assert exc_info.value.error_code == "EMAIL_UNCHANGED"

    @pytest.mark.asyncio
    async def test_stores_pending_email_and_mails_new_address(self, mock_db, student_user):
        user = make_user(id=student_user.id, is_verified=True)
        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.repository") as mock_repo,
            patch(
                f"{SERVICE}.send_email_change_verification", new=AsyncMock(return_value=True)
            ) as mock_email,
        ):
            mock_users.get_by_id = AsyncMock(return_value=user)
            mock_users.get_by_email = AsyncMock(return_value=None)
            mock_repo.count_codes_since = AsyncMock(return_value=0)
            mock_repo.delete_codes_for_account = AsyncMock()
            mock_repo.create_verification_code = AsyncMock()

            await change_email(mock_db, student_user, "New@School.edu")

            assert user.pending_email == "new@school.edu"
            assert user.email == "juan@school.edu"
            assert mock_email.call_args.args[0] == "new@school.edu"
            mock_db.commit.assert_called_once()


class TestCancelEmailChange:
    @pytest.mark.asyncio
    async def test_nothing_pending(self, mock_db, student_user):
        with patch(f"{SERVICE}.UserRepository") as mock_users:
            mock_users.get_by_id = AsyncMock(return_value=make_user(id=student_user.id))

            with pytest.raises(AppError) as exc_info:
                await cancel_email_change(mock_db, student_user)

            assert exc_info.value.status_code == 400
            assert exc_info.value.error_code == "NO_PENDING_EMAIL"

    @pytest.mark.asyncio
    async def test_clears_pending_email(self, mock_db, student_user):
        user = make_user(id=student_user.id, pending_email="new@school.edu")
        with (
            patch(f"{SERVICE}.UserRepository") as mock_users,
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_users.get_by_id = AsyncMock(return_value=user)
            mock_repo.delete_codes_for_account = AsyncMock()

            await cancel_email_change(mock_db, student_user)

            assert user.pending_email is None
            mock_db.commit.assert_called_once()


class TestSessions:
    """Tests for session listing and revocation."""

    @pytest.mark.asyncio
    async def test_list_flags_current_session(self, mock_db, student_user):
        now = datetime.now(UTC)
        current = SimpleNamespace(
            id=student_user.session_id, user_agent="Firefox", created_at=now
        )
        other = SimpleNamespace(id=uuid4(), user_agent="Chrome", created_at=now)
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_active_sessions = AsyncMock(return_value=[current, other])

            sessions = await list_sessions(mock_db, student_user)

        assert [s["is_current"] for s in sessions] == [True, False]
        assert sessions[1]["user_agent"] == "Chrome"

    @pytest.mark.asyncio
    async def test_delete_unknown_session(self, mock_db, student_user):
        session_id = uuid4()
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.delete_session = AsyncMock(return_value=False)

            with pytest.raises(AppError) as exc_info:
                await delete_session(mock_db, student_user, session_id)

            assert exc_info.value.status_code == 404
            assert exc_info.value.error_code == "SESSION_NOT_FOUND"
            mock_repo.delete_session.assert_called_once_with(
                mock_db, session_id, account_id=student_user.id
            )
        mock_db.commit.assert_not_called()

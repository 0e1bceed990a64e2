"""
Unit tests for the notification service and applicant status messages.
"""

from datetime import date
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from sasm_ims.modules.applications.messages import build_status_message
from sasm_ims.modules.applications.models import ApplicationStatus, Position
from sasm_ims.modules.notifications.models import Notification, NotificationType
from sasm_ims.modules.notifications.service import (
    MAX_PAGE_SIZE,
    WELCOME_TITLE,
    NotificationNotFoundError,
    create_notification,
    delete_notification,
    delete_notifications,
    list_notifications,
    mark_all_as_read,
    mark_as_read,
    notify_welcome,
)

SERVICE = "sasm_ims.modules.notifications.service"


def session_factory(session):
    """Mimic ``async_session_maker()`` used as an async context manager."""
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=session)
    context.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=context)


class TestCreateNotification:
    @pytest.mark.asyncio
    async def test_writes_in_own_session(self, mock_db):
        account_id = uuid4()
        application_id = uuid4()
        with (
            patch(f"{SERVICE}.async_session_maker", session_factory(mock_db)),
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_repo.create = AsyncMock(side_effect=lambda db, notification: notification)

            notification = await create_notification(
                account_id=account_id,
                title="Application Accepted!",
                message="Congratulations!",
                type=NotificationType.SUCCESS,
                related_application_id=application_id,
            )

        assert notification.account_id == account_id
        assert notification.type == NotificationType.SUCCESS
        assert notification.is_read is False
        assert notification.related_application_id == application_id
        mock_repo.create.assert_called_once_with(mock_db, notification)

    @pytest.mark.asyncio
    async def test_failure_returns_none(self, mock_db):
        with (
            patch(f"{SERVICE}.async_session_maker", session_factory(mock_db)),
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_repo.create = AsyncMock(side_effect=RuntimeError("database unavailable"))

            result = await create_notification(
                account_id=uuid4(), title="Hello", message="World"
            )

        assert result is None

    @pytest.mark.asyncio
    async def test_welcome_notification(self):
        account_id = uuid4()
        with patch(f"{SERVICE}.create_notification", new=AsyncMock()) as mock_create:
            await notify_welcome(account_id)

        kwargs = mock_create.call_args.kwargs
        assert kwargs["account_id"] == account_id
        assert kwargs["title"] == WELCOME_TITLE
        assert kwargs["type"] == NotificationType.INFO


class TestListNotifications:
    @pytest.mark.asyncio
    async def test_page_size_is_clamped(self, mock_db, student_user):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_for_account = AsyncMock(return_value=[])

            result = await list_notifications(
                mock_db, student_user, is_read=False, skip=-5, limit=1000
            )

        assert result == {"notifications": [], "count": 0}
        mock_repo.get_for_account.assert_called_once_with(
            mock_db, student_user.id, is_read=False, skip=0, limit=MAX_PAGE_SIZE
        )


class TestMarkAsRead:
    @pytest.mark.asyncio
    async def test_not_found(self, mock_db, student_user):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=None)

            with pytest.raises(NotificationNotFoundError) as exc_info:
                await mark_as_read(mock_db, student_user, uuid4())

        assert exc_info.value.status_code == 404
        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_marks_unread_notification(self, mock_db, student_user):
        notification = Notification(
            account_id=student_user.id, title="t", message="m", is_read=False
        )
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=notification)

            result = await mark_as_read(mock_db, student_user, uuid4())

        assert result.is_read is True
        mock_db.commit.assert_called_once()
        mock_db.refresh.assert_called_once_with(notification)

    @pytest.mark.asyncio
    async def test_already_read_is_not_rewritten(self, mock_db, student_user):
        notification = Notification(
            account_id=student_user.id, title="t", message="m", is_read=True
        )
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.get_by_id = AsyncMock(return_value=notification)

            await mark_as_read(mock_db, student_user, uuid4())

        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_mark_all_returns_count(self, mock_db, student_user):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.mark_read = AsyncMock(return_value=3)

            modified = await mark_all_as_read(mock_db, student_user)

        assert modified == 3
        mock_repo.mark_read.assert_called_once_with(mock_db, student_user.id)
        mock_db.commit.assert_called_once()


class TestDeleteNotification:
    @pytest.mark.asyncio
    async def test_not_found(self, mock_db, student_user):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.delete_many = AsyncMock(return_value=0)

            with pytest.raises(NotificationNotFoundError):
                await delete_notification(mock_db, student_user, uuid4())

        mock_db.commit.assert_not_called()

    @pytest.mark.asyncio
    async def test_bulk_delete_is_scoped_to_caller(self, mock_db, student_user):
        ids = [uuid4(), uuid4()]
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.delete_many = AsyncMock(return_value=1)

            deleted = await delete_notifications(mock_db, student_user, ids)

        assert deleted == 1
        mock_repo.delete_many.assert_called_once_with(mock_db, student_user.id, ids)
        mock_db.commit.assert_called_once()


class TestBuildStatusMessage:
    def _application(self, status, **kwargs):
        fields = {
            "status": status,
            "position": Position.STUDENT_MARSHAL,
            "interview_date": None,
            "interview_time": None,
            "interview_location": None,
        }
        fields.update(kwargs)
        return SimpleNamespace(**fields)

    def test_rejected_is_an_error(self):
        title, message, notification_type = build_status_message(
            self._application(ApplicationStatus.REJECTED)
        )
        assert title == "Application Status Update"
        assert "Student Marshal" in message
        assert notification_type == NotificationType.ERROR

    def test_interview_details_and_comments(self):
        application = self._application(
            ApplicationStatus.INTERVIEW_SCHEDULED,
            interview_date=date(2026, 11, 3),
            interview_time="10:00 AM",
        )
        _, message, _ = build_status_message(application, "  Bring your ID.  ")

        assert "Date: Tuesday, November 03, 2026" in message
        assert "Time: 10:00 AM" in message
        assert "Location" not in message
        assert message.endswith("Additional notes: Bring your ID.")

    def test_blank_comments_are_omitted(self):
        _, message, _ = build_status_message(
            self._application(ApplicationStatus.ACCEPTED), "   "
        )
        assert "Additional notes" not in message

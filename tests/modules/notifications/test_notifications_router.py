"""
HTTP tests for the notifications routes.
"""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from sasm_ims.core.auth import get_current_user
from sasm_ims.core.database import get_db
from sasm_ims.main import app
from sasm_ims.modules.notifications.models import Notification, NotificationType
from sasm_ims.modules.notifications.service import NotificationNotFoundError

SERVICE = "sasm_ims.modules.notifications.service"


@pytest.fixture
def client(student_user):
    async def override_get_db():
        yield MagicMock()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = lambda: student_user
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestNotificationRoutes:
    def test_requires_authentication(self):
        response = TestClient(app).get("/api/v1/notifications")
        assert response.status_code == 401

    def test_unread_count(self, client):
        with patch(f"{SERVICE}.get_unread_count", new=AsyncMock(return_value=4)):
            response = client.get("/api/v1/notifications/unread-count")

        assert response.status_code == 200
        assert response.json() == {"unread_count": 4}

    def test_mark_read_returns_notification(self, client, student_user):
        notification = Notification(
            id=uuid4(),
            account_id=student_user.id,
            title="Welcome",
            message="Hello",
            type=NotificationType.INFO,
            is_read=True,
            created_at=datetime(2026, 10, 19, tzinfo=timezone.utc),
        )
        with patch(f"{SERVICE}.mark_as_read", new=AsyncMock(return_value=notification)):
            response = client.put(f"/api/v1/notifications/{notification.id}/read")

        assert response.status_code == 200
        body = response.json()
        assert body["notification"]["id"] == str(notification.id)
        assert body["notification"]["type"] == "info"
        assert body["notification"]["is_read"] is True

    def test_delete_unknown_notification(self, client):
        with patch(
            f"{SERVICE}.delete_notification",
            new=AsyncMock(side_effect=NotificationNotFoundError()),
        ):
            response = client.delete(f"/api/v1/notifications/{uuid4()}")

        assert response.status_code == 404
        assert response.json()["error"] == "NOTIFICATION_NOT_FOUND"

    def test_bulk_delete_requires_ids(self, client):
        with patch(f"{SERVICE}.delete_notifications", new=AsyncMock()) as mock_delete:
            response = client.request(
                "DELETE", "/api/v1/notifications/bulk", json={"notification_ids": []}
            )

        assert response.status_code == 400
        mock_delete.assert_not_called()

    def test_bulk_read(self, client, student_user):
        ids = [str(uuid4()), str(uuid4())]
        with patch(
            f"{SERVICE}.mark_many_as_read", new=AsyncMock(return_value=2)
        ) as mock_mark:
            response = client.put("/api/v1/notifications/bulk-read", json={"notification_ids": ids})

        assert response.status_code == 200
        assert response.json()["modified_count"] == 2
        assert mock_mark.call_args.args[1] is student_user

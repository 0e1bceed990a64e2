"""
HTTP tests for role and permission guards on the applications routes.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from sasm_ims.core.auth import get_current_user
from sasm_ims.core.database import get_db
from sasm_ims.main import app

SERVICE = "sasm_ims.modules.applications.service"


@pytest.fixture
def client_as():
    """Build a client authenticated as the given CurrentUser."""

    async def override_get_db():
        yield MagicMock()

    def build(user):
        app.dependency_overrides[get_db] = override_get_db
        app.dependency_overrides[get_current_user] = lambda: user
        return TestClient(app)

    yield build
    app.dependency_overrides.clear()


class TestGuards:
    def test_unauthenticated_request(self):
        response = TestClient(app).get("/api/v1/applications/mine")
        assert response.status_code == 401
        assert response.json()["error"] == "INVALID_ACCESS_TOKEN"

    def test_student_cannot_list_applications(self, client_as, student_user):
        response = client_as(student_user).get("/api/v1/applications")
        assert response.status_code == 403
        assert response.json()["error"] == "FORBIDDEN"

    def test_office_without_profile_cannot_list(self, client_as, office_user):
        office_user.profile_id = None
        response = client_as(office_user).get("/api/v1/applications/stats")
        assert response.status_code == 403
        assert response.json()["error"] == "PROFILE_REQUIRED"

    def test_hr_cannot_submit(self, client_as, hr_user):
        response = client_as(hr_user).post("/api/v1/applications", json={})
        assert response.status_code == 403

    def test_hr_lists_applications(self, client_as, hr_user):
        result = {"applications": [], "total": 0, "page": 1, "limit": 20, "total_pages": 0}
        with patch(f"{SERVICE}.list_applications", new=AsyncMock(return_value=result)) as mock:
            response = client_as(hr_user).get(
                "/api/v1/applications", params={"status": "rejected", "limit": 20}
            )

        assert response.status_code == 200
        assert response.json()["total"] == 0
        assert mock.call_args.kwargs["status_filter"].value == "rejected"

    def test_hr_stats(self, client_as, hr_user):
        stats = {"total": 2, "by_status": {"pending": 2}}
        with patch(f"{SERVICE}.get_application_stats", new=AsyncMock(return_value=stats)):
            response = client_as(hr_user).get("/api/v1/applications/stats")

        assert response.status_code == 200
        assert response.json() == stats

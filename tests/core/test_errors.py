"""
Tests for application errors and the JSON error handlers.
"""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel

from sasm_ims.core.errors import AppError, ErrorCode, app_assert, register_exception_handlers


class Payload(BaseModel):
    name: str
    count: int


@pytest.fixture
def client():
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/conflict")
    async def conflict():
        raise AppError("Email already in use", status_code=409)

    @app.get("/custom")
    async def custom():
        app_assert(False, 404, "Profile not found", "PROFILE_NOT_FOUND")

    @app.post("/payload")
    async def payload(data: Payload):
        return data

    @app.get("/boom")
    async def boom():
        raise RuntimeError("unexpected")

    return TestClient(app, raise_server_exceptions=False)


class TestAppError:
    def test_default_error_code_from_status(self):
        assert AppError("x", status_code=404).error_code == ErrorCode.NOT_FOUND
        assert AppError("x", status_code=429).error_code == ErrorCode.TOO_MANY_REQUESTS
        assert AppError("x").status_code == 400

    def test_explicit_error_code(self):
        error = AppError("x", error_code="LAST_PROFILE", status_code=400)
        assert error.to_dict() == {"error": "LAST_PROFILE", "message": "x"}

    def test_app_assert_passes(self):
        app_assert(True, 400, "never raised")

    def test_app_assert_raises(self):
        with pytest.raises(AppError) as exc_info:
            app_assert(None, 403, "Forbidden")
        assert exc_info.value.status_code == 403
        assert exc_info.value.error_code == ErrorCode.FORBIDDEN


class TestHandlers:
    def test_app_error_body(self, client):
        response = client.get("/conflict")
        assert response.status_code == 409
        assert response.json() == {"error": "CONFLICT", "message": "Email already in use"}

    def test_app_assert_body(self, client):
        response = client.get("/custom")
        assert response.status_code == 404
        assert response.json()["error"] == "PROFILE_NOT_FOUND"

    def test_validation_errors_by_field(self, client):
        response = client.post("/payload", json={"count": "many"})
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "VALIDATION_ERROR"
        assert set(body["errors"]) == {"name", "count"}

    def test_unhandled_error(self, client):
        response = client.get("/boom")
        assert response.status_code == 500
        assert response.json() == {
            "error": "INTERNAL_ERROR",
            "message": "Internal server error.",
        }

"""
Shared test fixtures.

Environment overrides are applied before any application module reads
settings.
"""

import os

os.environ.setdefault("PYTHON_ENV", "test")
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("ARCHIVAL_ENABLED", "false")

from unittest.mock import AsyncMock, MagicMock  # noqa: E402
from uuid import uuid4  # noqa: E402

import pytest  # noqa: E402

from sasm_ims.core.auth import CurrentUser  # noqa: E402


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.refresh = AsyncMock()
    db.rollback = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.delete = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def student_user():
    return CurrentUser(id=uuid4(), session_id=uuid4(), role="student")


@pytest.fixture
def hr_user():
    return CurrentUser(id=uuid4(), session_id=uuid4(), role="hr")


@pytest.fixture
def office_user():
    """Office account acting through a selected profile."""
    return CurrentUser(id=uuid4(), session_id=uuid4(), role="office", profile_id=uuid4())

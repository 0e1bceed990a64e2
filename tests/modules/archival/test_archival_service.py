"""
Unit tests for the archival service and job.

These tests cover:
- Semester labels
- Archive row construction
- Archive passes: writes, duplicate skips and per-record errors
- Expired archive deletion and the aggregated run summary
"""

from datetime import UTC, date, datetime, timedelta
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest

from sasm_ims.core.scheduler import _job_registry
from sasm_ims.modules.applications.models import Application, ApplicationStatus, Position
from sasm_ims.modules.archival import jobs
from sasm_ims.modules.archival.models import ArchivedApplication, ArchivedLeave
from sasm_ims.modules.archival.service import (
    REJECTED_REASON,
    TWO_YEARS,
    archive_old_disapproved_leaves,
    archive_old_rejected_applications,
    build_archived_application,
    delete_expired_archived_records,
    get_archival_status,
    get_semester_year,
    run_archival_tasks,
)
from sasm_ims.modules.leaves.models import LeaveStatus

SERVICE = "sasm_ims.modules.archival.service"


def session_factory(session):
    """Mimic ``async_session_maker()`` used as an async context manager."""
    context = MagicMock()
    context.__aenter__ = AsyncMock(return_value=session)
    context.__aexit__ = AsyncMock(return_value=False)
    return MagicMock(return_value=context)


def rejected_application(months_old: int = 13) -> Application:
    application = Application(
        account_id=uuid4(),
        position=Position.STUDENT_MARSHAL,
        first_name="Ana",
        last_name="Reyes",
        email="ana@school.edu",
        status=ApplicationStatus.REJECTED,
    )
    application.id = uuid4()
    application.updated_at = datetime.now(UTC) - timedelta(days=30 * months_old)
    return application


class TestGetSemesterYear:
    """Tests for get_semester_year function."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (date(2024, 3, 1), "2023-2024 Second Semester"),
            (date(2024, 5, 31), "2023-2024 Second Semester"),
            (date(2024, 6, 15), "2023-2024 First Semester"),
            (date(2024, 8, 1), "2024-2025 First Semester"),
            (date(2024, 12, 31), "2024-2025 First Semester"),
            (date(2025, 1, 1), "2024-2025 Second Semester"),
        ],
    )
    def test_labels(self, value, expected):
        assert get_semester_year(value) == expected

    def test_accepts_datetime(self):
        assert get_semester_year(datetime(2026, 10, 19, tzinfo=UTC)) == (
            "2026-2027 First Semester"
        )


class TestBuildArchivedApplication:
    def test_snapshot_and_schedule(self):
        application = rejected_application()
        now = datetime(2026, 10, 19, 2, 0, tzinfo=UTC)

        archived = build_archived_application(application, REJECTED_REASON, now)

        assert isinstance(archived, ArchivedApplication)
        assert archived.original_id == application.id
        assert archived.account_id == application.account_id
        assert archived.original_status == "rejected"
        assert archived.position == "student_marshal"
        assert archived.semester_year == "2026-2027 First Semester"
        assert archived.scheduled_deletion_date == now + TWO_YEARS
        assert archived.archived_by is None
        assert archived.original_record["id"] == str(application.id)
        assert archived.original_record["first_name"] == "Ana"
        assert archived.original_record["status"] == "rejected"


class TestArchivePasses:
    """Tests for the per-kind archive passes."""

    @pytest.mark.asyncio
    async def test_archives_and_deletes_original(self, mock_db):
        application = rejected_application()
        with (
            patch(f"{SERVICE}.async_session_maker", session_factory(mock_db)),
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_repo.get_records_due = AsyncMock(return_value=[application])
            mock_repo.archive_exists = AsyncMock(return_value=False)
            mock_repo.delete_original = AsyncMock()

            result = await archive_old_rejected_applications()

        assert result == {"archived": 1, "errors": 0}

        model, status, cutoff = mock_repo.get_records_due.call_args.args[1:]
        assert model is Application
        assert status == ApplicationStatus.REJECTED
        assert datetime.now(UTC) - cutoff >= timedelta(days=365)

        archived = mock_db.add.call_args.args[0]
        assert isinstance(archived, ArchivedApplication)
        assert archived.archived_reason == REJECTED_REASON
        mock_repo.delete_original.assert_called_once_with(mock_db, Application, application.id)
        mock_db.commit.assert_called_once()

    @pytest.mark.asyncio
    async def test_already_archived_is_removed_but_not_counted(self, mock_db):
        application = rejected_application()
        with (
            patch(f"{SERVICE}.async_session_maker", session_factory(mock_db)),
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_repo.get_records_due = AsyncMock(return_value=[application])
            mock_repo.archive_exists = AsyncMock(return_value=True)
            mock_repo.delete_original = AsyncMock()

            result = await archive_old_rejected_applications()

        assert result == {"archived": 0, "errors": 0}
        mock_db.add.assert_not_called()
        mock_repo.delete_original.assert_called_once_with(mock_db, Application, application.id)

    @pytest.mark.asyncio
    async def test_error_on_one_record_does_not_stop_the_pass(self, mock_db):
        records = [rejected_application() for _ in range(3)]
        with (
            patch(f"{SERVICE}.async_session_maker", session_factory(mock_db)),
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_repo.get_records_due = AsyncMock(return_value=records)
            mock_repo.archive_exists = AsyncMock(
                side_effect=[False, RuntimeError("connection reset"), False]
            )
            mock_repo.delete_original = AsyncMock()

            result = await archive_old_rejected_applications()

        assert result == {"archived": 2, "errors": 1}
        assert mock_repo.delete_original.call_count == 2

    @pytest.mark.asyncio
    async def test_leaves_use_disapproved_status(self, mock_db):
        with (
            patch(f"{SERVICE}.async_session_maker", session_factory(mock_db)),
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_repo.get_records_due = AsyncMock(return_value=[])

            result = await archive_old_disapproved_leaves()

        assert result == {"archived": 0, "errors": 0}
        assert mock_repo.get_records_due.call_args.args[2] == LeaveStatus.DISAPPROVED


class TestDeleteExpired:
    @pytest.mark.asyncio
    async def test_counts_per_kind_and_errors(self, mock_db):
        with (
            patch(f"{SERVICE}.async_session_maker", session_factory(mock_db)),
            patch(f"{SERVICE}.repository") as mock_repo,
        ):
            mock_repo.delete_expired = AsyncMock(side_effect=[4, RuntimeError("boom"), 1])

            result = await delete_expired_archived_records()

        assert result == {
            "deleted": {"applications": 4, "reapplications": 0, "leaves": 1},
            "errors": 1,
        }
        assert mock_repo.delete_expired.call_args.args[1] is ArchivedLeave


class TestRunArchivalTasks:
    @pytest.mark.asyncio
    async def test_aggregates_results(self):
        with (
            patch(
                f"{SERVICE}.archive_old_rejected_applications",
                new_callable=AsyncMock,
                return_value={"archived": 3, "errors": 1},
            ),
            patch(
                f"{SERVICE}.archive_old_rejected_reapplications",
                new_callable=AsyncMock,
                return_value={"archived": 0, "errors": 0},
            ),
            patch(
                f"{SERVICE}.archive_old_disapproved_leaves",
                new_callable=AsyncMock,
                return_value={"archived": 2, "errors": 0},
            ),
            patch(
                f"{SERVICE}.delete_expired_archived_records",
                new_callable=AsyncMock,
                return_value={
                    "deleted": {"applications": 1, "reapplications": 0, "leaves": 0},
                    "errors": 1,
                },
            ),
        ):
            result = await run_archival_tasks()

        assert result["archived"] == {"applications": 3, "reapplications": 0, "leaves": 2}
        assert result["deleted"] == {"applications": 1, "reapplications": 0, "leaves": 0}
        assert result["errors"] == 2
        assert "executed_at" in result


class TestArchivalStatus:
    @pytest.mark.asyncio
    async def test_status_counts(self, mock_db):
        with patch(f"{SERVICE}.repository") as mock_repo:
            mock_repo.count_archived = AsyncMock(return_value=5)
            mock_repo.count_due_for_deletion = AsyncMock(return_value=1)

            result = await get_archival_status(mock_db)

        assert result["archived"] == {"applications": 5, "reapplications": 5, "leaves": 5}
        assert result["due_for_deletion"]["leaves"] == 1
        assert result["retention"] == {"archive_after_days": 365, "delete_after_days": 730}


class TestArchivalJob:
    def test_not_registered_when_disabled(self):
        _job_registry.pop(jobs.JOB_ID_RUN_ARCHIVAL, None)
        with patch.object(jobs.settings, "archival_enabled", False):
            jobs.register_archival_jobs()
        assert jobs.JOB_ID_RUN_ARCHIVAL not in _job_registry

    def test_registered_when_enabled(self):
        try:
            with patch.object(jobs.settings, "archival_enabled", True):
                jobs.register_archival_jobs()
            assert _job_registry[jobs.JOB_ID_RUN_ARCHIVAL].func is jobs.run_archival_job
        finally:
            _job_registry.pop(jobs.JOB_ID_RUN_ARCHIVAL, None)

    @pytest.mark.asyncio
    async def test_job_runs_tasks(self):
        summary = {
            "archived": {"applications": 0, "reapplications": 0, "leaves": 0},
            "deleted": {"applications": 0, "reapplications": 0, "leaves": 0},
            "errors": 0,
            "executed_at": datetime.now(UTC).isoformat(),
        }
        with patch.object(jobs, "run_archival_tasks", new=AsyncMock(return_value=summary)):
            result = await jobs.run_archival_job()
        assert result is summary

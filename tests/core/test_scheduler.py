"""
Tests for the job registry and manual triggering.
"""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from apscheduler.triggers.interval import IntervalTrigger

from sasm_ims.core import scheduler
from sasm_ims.core.scheduler import (
    list_registered_jobs,
    pause_job,
    register_job,
    trigger_job_manually,
    unregister_job,
)


@pytest.fixture
def registered_job():
    func = AsyncMock(return_value={"archived": 2})
    register_job("test_job", func, IntervalTrigger(hours=1))
    yield func
    unregister_job("test_job")


class TestRegistry:
    def test_registered_job_is_listed(self, registered_job):
        jobs = list_registered_jobs()
        assert {"job_id": "test_job", "registered": True} in jobs

    def test_unregister(self, registered_job):
        unregister_job("test_job")
        assert all(job["job_id"] != "test_job" for job in list_registered_jobs())

    def test_pause_without_scheduler(self, registered_job):
        assert pause_job("test_job") is False

    def test_register_while_running_schedules_immediately(self):
        running = MagicMock()
        func = AsyncMock()
        trigger = IntervalTrigger(hours=1)
        with patch.object(scheduler, "_scheduler", running):
            register_job("live_job", func, trigger)
            unregister_job("live_job")

        running.add_job.assert_called_once_with(
            func, trigger=trigger, id="live_job", replace_existing=True
        )


class TestTriggerJobManually:
    @pytest.mark.asyncio
    async def test_success(self, registered_job):
        result = await trigger_job_manually("test_job")
        assert result["status"] == "success"
        assert result["result"] == {"archived": 2}
        registered_job.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_job_error_is_reported(self, registered_job):
        registered_job.side_effect = RuntimeError("database unavailable")
        result = await trigger_job_manually("test_job")
        assert result["status"] == "error"
        assert result["error"] == "database unavailable"

    @pytest.mark.asyncio
    async def test_unknown_job(self):
        with pytest.raises(ValueError):
            await trigger_job_manually("missing_job")

"""
Archival Background Jobs

Runs the retention pipeline once a day. The job can also be triggered
manually through the debug job endpoints or POST /archival/run.
"""

import logging
from typing import Any

from apscheduler.triggers.cron import CronTrigger

from sasm_ims.core.config import settings
from sasm_ims.core.scheduler import register_job
from sasm_ims.modules.archival.service import run_archival_tasks

logger = logging.getLogger(__name__)

JOB_ID_RUN_ARCHIVAL = "archival_run_tasks"


async def run_archival_job() -> dict[str, Any]:
    """
    Scheduled entry point for the archival tasks.

    Returns:
        Dict with job execution summary
    """
    logger.info("Starting job: archival_run_tasks")
    result = await run_archival_tasks()
    logger.info(
        f"Job archival_run_tasks completed: archived={result['archived']}, "
        f"deleted={result['deleted']}, errors={result['errors']}"
    )
    return result


def register_archival_jobs() -> None:
    """
    Register the daily archival job with the scheduler.

    Call during application startup, before the scheduler starts.
    """
    if not settings.archival_enabled:
        logger.info("Archival job disabled (ARCHIVAL_ENABLED=false)")
        return

    register_job(
        job_id=JOB_ID_RUN_ARCHIVAL,
        func=run_archival_job,
        trigger=CronTrigger(hour=settings.archival_hour_utc, minute=0, timezone="UTC"),
    )
    logger.info(
        f"Registered archival job: {JOB_ID_RUN_ARCHIVAL} "
        f"(daily at {settings.archival_hour_utc:02d}:00 UTC)"
    )

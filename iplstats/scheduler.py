"""
Background jobs.

Only one job exists: the keep-alive ping that stops hosted databases from
suspending an idle instance.
"""

import logging
import os

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.interval import IntervalTrigger

from iplstats.config import get_settings
from iplstats.database import ping_db

logger = logging.getLogger(__name__)

scheduler = AsyncIOScheduler()

# Module-level flag to prevent duplicate scheduler instances
_scheduler_started = False


async def keep_alive() -> None:
    await ping_db()


def start_scheduler() -> bool:
    """
    Start the keep-alive job if KEEP_ALIVE_ENABLED.

    Returns True when the scheduler is running after the call.
    """
    global _scheduler_started

    settings = get_settings()
    if not settings.KEEP_ALIVE_ENABLED:
        logger.info("Keep-alive disabled (KEEP_ALIVE_ENABLED=false)")
        return False

    if _scheduler_started:
        logger.warning("Scheduler already started, skipping duplicate initialization")
        return True

    # Uvicorn sets this env var in the reloader subprocess
    if os.environ.get("UVICORN_RELOADED"):
        logger.info("Skipping scheduler in reload subprocess")
        return False

    scheduler.add_job(
        keep_alive,
        trigger=IntervalTrigger(minutes=settings.KEEP_ALIVE_INTERVAL_MINUTES),
        id="db_keep_alive",
        name="Database keep-alive",
        replace_existing=True,
    )
    scheduler.start()
    _scheduler_started = True
    logger.info(f"Scheduler started: keep-alive every {settings.KEEP_ALIVE_INTERVAL_MINUTES} min")
    return True


def stop_scheduler() -> None:
    """Stop the background scheduler."""
    global _scheduler_started
    if scheduler.running:
        scheduler.shutdown()
        _scheduler_started = False
        logger.info("Scheduler stopped")

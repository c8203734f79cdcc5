"""APScheduler integration for the recurring daily digest.

Start and stop functions are designed to be called from the FastAPI lifespan.
"""

from __future__ import annotations

import logging
from zoneinfo import ZoneInfo

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from codebrief.config import get_settings
from codebrief.services.pipeline import run_daily_digest

logger = logging.getLogger(__name__)

_scheduler: AsyncIOScheduler | None = None


def start_scheduler() -> AsyncIOScheduler:
    """Start the APScheduler with the daily digest job.

    Returns:
        The running scheduler instance.
    """
    global _scheduler  # noqa: PLW0603

    settings = get_settings()
    tz = ZoneInfo(settings.schedule.timezone)
    _scheduler = AsyncIOScheduler(timezone=tz)

    _scheduler.add_job(
        _run_daily_digest_job,
        trigger="cron",
        hour=settings.schedule.daily_digest_hour,
        minute=settings.schedule.daily_digest_minute,
        timezone=tz,
        id="daily_digest",
        name="Daily Code Brief digest",
        replace_existing=True,
    )
    logger.info(
        "Scheduled daily digest at %02d:%02d (%s)",
        settings.schedule.daily_digest_hour,
        settings.schedule.daily_digest_minute,
        settings.schedule.timezone,
    )

    _scheduler.start()
    logger.info("Scheduler started")
    return _scheduler


def stop_scheduler() -> None:
    """Stop the running scheduler gracefully."""
    global _scheduler  # noqa: PLW0603

    if _scheduler is not None:
        _scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
        _scheduler = None


async def _run_daily_digest_job() -> None:
    """Execute the daily digest as a scheduled job."""
    logger.info("Scheduled daily digest triggered")
    try:
        result = await run_daily_digest()
        logger.info("Scheduled digest complete: %s", result)
    except Exception:
        logger.exception("Scheduled daily digest failed")

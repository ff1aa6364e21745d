"""Periodic trigger for the draft generation job."""

import logging
from typing import Optional

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

logger = logging.getLogger(__name__)

JOB_ID = "draft_generation"


class GenerationScheduler:
    """Runs GenerationJob.run on a crontab schedule."""

    def __init__(self, job, schedule: str):
        """
        Args:
            job: GenerationJob shared with the manual trigger endpoint
            schedule: crontab expression, e.g. "0 2 * * *"
        """
        self.job = job
        self.schedule = schedule
        # Validate the expression before anything starts
        self.trigger = CronTrigger.from_crontab(schedule)
        self._scheduler: Optional[AsyncIOScheduler] = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    async def scheduled_run(self) -> None:
        """Scheduled job wrapper."""
        logger.info("Running scheduled generation job...")
        result = await self.job.run()
        logger.info(
            f"Scheduled generation complete: {result.drafts_created} drafts, "
            f"{len(result.errors)} errors"
        )
        if result.errors:
            logger.warning(f"Generation errors: {result.errors}")

    def start(self) -> None:
        """Start the scheduler (needs a running event loop)."""
        if self.running:
            return

        self._scheduler = AsyncIOScheduler()
        self._scheduler.add_job(
            self.scheduled_run,
            self.trigger,
            id=JOB_ID,
            replace_existing=True,
            max_instances=1,
            coalesce=True,
        )
        self._scheduler.start()
        logger.info(f"Generation scheduler started (schedule: {self.schedule})")

    def stop(self) -> None:
        """Stop the scheduler."""
        if self._scheduler and self._scheduler.running:
            self._scheduler.shutdown(wait=False)
            logger.info("Generation scheduler stopped")
        self._scheduler = None

"""Background job scheduling."""

from __future__ import annotations

import asyncio
import logging
import time
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)


class Job(ABC):
    """A unit of background maintenance work."""

    name: str = "job"

    @abstractmethod
    async def execute(self) -> bool:
        """
        Run the job once.

        Returns:
            True if the job did any work
        """


class Schedule:
    """Base class for schedule policies."""

    job: Job

    def should_run(self) -> bool:
        """Check if the schedule condition is met."""
        return False

    def mark_complete(self) -> None:
        """Called after the job ran, whether or not it succeeded."""
        pass


class BackgroundScheduler:
    """Ticks a set of schedules and runs every job that is due."""

    def __init__(self, schedules: list[Schedule], tick_interval: float = 30.0):
        """
        Initialize the scheduler.

        Args:
            schedules: Schedules checked in order on every tick
            tick_interval: How often to check schedules in seconds
        """
        self._schedules = schedules
        self._tick_interval = tick_interval
        self._running = True
        self._last_run_times: dict[str, float] = {}

    def stop(self) -> None:
        """Signal the scheduler to stop."""
        self._running = False

    def get_job_status(self) -> dict[str, float | None]:
        """
        Get the time elapsed since each job last ran.

        Returns:
            Dictionary mapping job names to seconds since last run (None if never run)
        """
        now = time.monotonic()
        return {
            schedule.job.name: (
                now - self._last_run_times[schedule.job.name]
                if schedule.job.name in self._last_run_times
                else None
            )
            for schedule in self._schedules
        }

    async def tick(self) -> list[str]:
        """Run every due job once. A failing job is logged and the rest still run.

        Returns:
            Names of the jobs that completed without raising
        """
        completed = []
        for schedule in self._schedules:
            if not schedule.should_run():
                continue

            job = schedule.job
            logger.debug("Running background job: %s", job.name)
            try:
                did_work = await job.execute()
                completed.append(job.name)
                if did_work:
                    logger.info("Background job completed: %s", job.name)
            except Exception as e:
                logger.exception("Background job failed: %s - %s", job.name, e)
            finally:
                schedule.mark_complete()
                self._last_run_times[job.name] = time.monotonic()
        return completed

    async def run(self) -> None:
        """Main scheduler loop."""
        logger.info(
            "Background scheduler started with jobs: %s",
            [schedule.job.name for schedule in self._schedules],
        )
        while self._running:
            await self.tick()
            await asyncio.sleep(self._tick_interval)
        logger.info("Background scheduler stopped")

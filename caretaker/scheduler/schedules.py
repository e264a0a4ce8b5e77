"""Concrete schedule implementations."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable

from caretaker.scheduler.base import Job, Schedule

logger = logging.getLogger(__name__)


class PeriodicSchedule(Schedule):
    """Runs a job every ``interval`` seconds, starting on the first tick."""

    def __init__(
        self,
        job: Job,
        interval: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize periodic schedule.

        Args:
            job: The job to execute on each interval
            interval: Time in seconds between executions
            clock: Monotonic time source
        """
        self.job = job
        self._interval = interval
        self._clock = clock
        self._last_run: float | None = None
        logger.info("PeriodicSchedule created for %s with interval=%.0fs", job.name, interval)

    def should_run(self) -> bool:
        """Check if the interval has elapsed since the last run."""
        if self._last_run is None:
            return True
        return self._clock() - self._last_run >= self._interval

    def mark_complete(self) -> None:
        """Record completion time for next interval calculation."""
        self._last_run = self._clock()

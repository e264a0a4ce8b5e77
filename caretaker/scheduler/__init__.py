"""Background job scheduling components."""

from caretaker.scheduler.base import BackgroundScheduler, Job, Schedule
from caretaker.scheduler.jobs import DeferredDeliveryJob, SessionSweepJob, WindowPruneJob
from caretaker.scheduler.schedules import PeriodicSchedule

__all__ = [
    "BackgroundScheduler",
    "DeferredDeliveryJob",
    "Job",
    "PeriodicSchedule",
    "Schedule",
    "SessionSweepJob",
    "WindowPruneJob",
]

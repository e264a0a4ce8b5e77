"""Maintenance jobs: session sweeping, deferred delivery and window pruning."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from caretaker.messaging import Messenger, WindowStore
from caretaker.scheduler.base import Job
from caretaker.sessions import SessionManager

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SessionSweepJob(Job):
    """Evicts sessions that have passed their TTL."""

    name = "session_sweep"

    def __init__(self, sessions: SessionManager):
        self._sessions = sessions

    async def execute(self) -> bool:
        return self._sessions.sweep() > 0


class DeferredDeliveryJob(Job):
    """Sends deferred proactive messages once their slot arrives."""

    name = "deferred_delivery"

    def __init__(self, messenger: Messenger, clock: Callable[[], datetime] = _utcnow):
        self._messenger = messenger
        self._clock = clock

    async def execute(self) -> bool:
        return await self._messenger.deliver_due(self._clock()) > 0


class WindowPruneJob(Job):
    """Drops window trackers for senders idle longer than the retention period."""

    name = "window_prune"

    def __init__(
        self,
        windows: WindowStore,
        retention_days: int,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._windows = windows
        self._retention = timedelta(days=retention_days)
        self._clock = clock

    async def execute(self) -> bool:
        cutoff = self._clock() - self._retention
        return self._windows.prune(cutoff) > 0

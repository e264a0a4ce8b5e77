"""Storage for per-sender window trackers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from caretaker.messaging.window import WindowTracker, ensure_utc


class WindowStore(ABC):
    """Where window trackers live between messages."""

    @abstractmethod
    def get(self, phone_number: str) -> WindowTracker | None:
        """Return the tracker for a sender, or None if we have never seen them."""

    @abstractmethod
    def save(self, tracker: WindowTracker) -> None:
        """Create or replace a sender's tracker."""

    @abstractmethod
    def all(self) -> dict[str, WindowTracker]:
        """Every tracker keyed by phone number."""

    @abstractmethod
    def prune(self, idle_before: datetime) -> int:
        """Drop trackers with no message since ``idle_before``. Returns the count removed."""


class MemoryWindowStore(WindowStore):
    """In-process window store."""

    def __init__(self) -> None:
        self._trackers: dict[str, WindowTracker] = {}

    def get(self, phone_number: str) -> WindowTracker | None:
        return self._trackers.get(phone_number)

    def save(self, tracker: WindowTracker) -> None:
        self._trackers[tracker.phone_number] = tracker

    def all(self) -> dict[str, WindowTracker]:
        return dict(self._trackers)

    def prune(self, idle_before: datetime) -> int:
        cutoff = ensure_utc(idle_before)
        stale = [
            phone
            for phone, tracker in self._trackers.items()
            if tracker.last_message is None or ensure_utc(tracker.last_message) < cutoff
        ]
        for phone in stale:
            del self._trackers[phone]
        return len(stale)

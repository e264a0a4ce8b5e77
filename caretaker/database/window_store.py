"""Window state store: SQL-backed window trackers."""

import logging
from datetime import datetime

from sqlmodel import Session, col, select

from caretaker.database.models import WindowState
from caretaker.messaging.window import WindowTracker, ensure_utc
from caretaker.messaging.window_store import WindowStore

logger = logging.getLogger(__name__)


class WindowStateStore(WindowStore):
    """Persists WindowTracker values in the window_states table."""

    def __init__(self, engine):
        self.engine = engine

    def _session(self) -> Session:
        return Session(self.engine)

    @staticmethod
    def _to_tracker(row: WindowState) -> WindowTracker:
        return WindowTracker(
            phone_number=row.phone_number,
            window_start=row.window_start,
            message_count=row.message_count,
            last_message=row.last_message,
            is_window_active=row.is_window_active,
        )

    def get(self, phone_number: str) -> WindowTracker | None:
        with self._session() as session:
            row = session.get(WindowState, phone_number)
            return self._to_tracker(row) if row else None

    def save(self, tracker: WindowTracker) -> None:
        with self._session() as session:
            row = session.get(WindowState, tracker.phone_number)
            if row is None:
                row = WindowState(phone_number=tracker.phone_number)
            row.window_start = tracker.window_start
            row.message_count = tracker.message_count
            row.last_message = tracker.last_message
            row.is_window_active = tracker.is_window_active
            session.add(row)
            session.commit()

    def all(self) -> dict[str, WindowTracker]:
        with self._session() as session:
            return {
                row.phone_number: self._to_tracker(row)
                for row in session.exec(select(WindowState))
            }

    def prune(self, idle_before: datetime) -> int:
        cutoff = ensure_utc(idle_before)
        with self._session() as session:
            stale = list(
                session.exec(
                    select(WindowState).where(
                        (col(WindowState.last_message) < cutoff)
                        | col(WindowState.last_message).is_(None)
                    )
                )
            )
            for row in stale:
                session.delete(row)
            session.commit()
        if stale:
            logger.info("Pruned %d idle window tracker(s)", len(stale))
        return len(stale)

"""Session manager: TTL-bounded conversational state, one session per sender."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

from caretaker.config import mask_phone
from caretaker.constants import CaretakerConstants
from caretaker.sessions.models import ConversationSession, SessionPayload
from caretaker.sessions.store import SessionStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(UTC)


class SessionManager:
    """Creates, reads, patches and expires sessions.

    A session with no activity for ``ttl_seconds`` is treated as absent even
    before the sweep job removes it: ``get`` evicts it on the spot.
    """

    def __init__(
        self,
        store: SessionStore,
        ttl_seconds: float = 300.0,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self._store = store
        self.ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock

    def create(
        self,
        sender: str,
        step: CaretakerConstants.SessionStep,
        purpose: CaretakerConstants.SessionPurpose = CaretakerConstants.SessionPurpose.UPDATE,
        payload: SessionPayload | None = None,
    ) -> ConversationSession:
        """Start a session, replacing any the sender already had."""
        now = self._clock()
        session = ConversationSession(
            sender=sender,
            step=step,
            purpose=purpose,
            payload=payload or SessionPayload(),
            created_at=now,
            last_activity_at=now,
        )
        self._store.put(session)
        logger.debug("Session created for %s at %s", mask_phone(sender), step)
        return session

    def get(self, sender: str) -> ConversationSession | None:
        """The sender's live session, or None if there is none or it expired."""
        session = self._store.get(sender)
        if session is None:
            return None
        if self.is_expired(session):
            self._store.delete(sender)
            logger.debug("Session for %s expired", mask_phone(sender))
            return None
        return session

    def update(self, sender: str, patch: dict[str, Any]) -> ConversationSession | None:
        """Apply field changes to a live session and refresh its activity time.

        Returns None, changing nothing, if the sender has no live session.
        """
        session = self.get(sender)
        if session is None:
            return None
        updated = session.model_copy(update={**patch, "last_activity_at": self._clock()})
        self._store.put(updated)
        return updated

    def clear(self, sender: str) -> bool:
        """End the sender's session. Returns True if there was one."""
        return self._store.delete(sender)

    def has_active(self, sender: str) -> bool:
        return self.get(sender) is not None

    def is_expired(self, session: ConversationSession) -> bool:
        return self._clock() - session.last_activity_at >= self.ttl

    def sweep(self) -> int:
        """Remove every expired session. Returns how many were removed."""
        expired = [session.sender for session in self._store.all() if self.is_expired(session)]
        for sender in expired:
            self._store.delete(sender)
        if expired:
            logger.info("Swept %d expired session(s)", len(expired))
        return len(expired)

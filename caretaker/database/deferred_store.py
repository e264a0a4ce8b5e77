"""Deferred message store: proactive sends waiting for a cheaper slot."""

import logging
from datetime import UTC, datetime

from sqlmodel import Session, col, select

from caretaker.database.models import DeferredMessage

logger = logging.getLogger(__name__)


class DeferredMessageStore:
    """Manages DeferredMessage records."""

    def __init__(self, engine):
        self.engine = engine

    def _session(self) -> Session:
        return Session(self.engine)

    def add(
        self,
        phone_number: str,
        content: str,
        kind: str,
        scheduled_for: datetime,
        estimated_cost: float,
    ) -> DeferredMessage:
        """Queue a message for later delivery."""
        with self._session() as session:
            message = DeferredMessage(
                phone_number=phone_number,
                content=content,
                kind=kind,
                scheduled_for=scheduled_for,
                estimated_cost=estimated_cost,
            )
            session.add(message)
            session.commit()
            session.refresh(message)
            return message

    def list_pending(self) -> list[DeferredMessage]:
        """All unsent messages, earliest slot first."""
        with self._session() as session:
            return list(
                session.exec(
                    select(DeferredMessage)
                    .where(col(DeferredMessage.sent_at).is_(None))
                    .order_by(col(DeferredMessage.scheduled_for), col(DeferredMessage.id))
                )
            )

    def mark_sent(self, message_id: int) -> None:
        """Record that a deferred message went out."""
        with self._session() as session:
            message = session.get(DeferredMessage, message_id)
            if message is None:
                return
            message.sent_at = datetime.now(UTC)
            session.add(message)
            session.commit()

"""Message store: inbound/outbound message logging and command logging."""

import logging

from sqlmodel import Session, col, select

from caretaker.constants import CaretakerConstants
from caretaker.database.models import CommandLog, MessageLog

logger = logging.getLogger(__name__)


class MessageStore:
    """Manages MessageLog and CommandLog records."""

    def __init__(self, engine):
        self.engine = engine

    def _session(self) -> Session:
        return Session(self.engine)

    def log_message(
        self,
        direction: str,
        phone_number: str,
        content: str,
        kind: str = CaretakerConstants.MessageKind.TEXT,
        external_id: str | None = None,
        is_free_message: bool = True,
        related_incident_id: str | None = None,
    ) -> int | None:
        """Log a message. Returns the row ID, or None if logging failed."""
        try:
            with self._session() as session:
                log = MessageLog(
                    direction=direction,
                    phone_number=phone_number,
                    kind=kind,
                    content=content,
                    external_id=external_id,
                    is_free_message=is_free_message,
                    related_incident_id=related_incident_id,
                )
                session.add(log)
                session.commit()
                session.refresh(log)
                return log.id
        except Exception as e:
            logger.error("Failed to log message: %s", e)
            return None

    def get_history(self, phone_number: str, limit: int = 20) -> list[MessageLog]:
        """Most recent messages exchanged with a phone number, oldest first."""
        with self._session() as session:
            rows = list(
                session.exec(
                    select(MessageLog)
                    .where(MessageLog.phone_number == phone_number)
                    .order_by(col(MessageLog.timestamp).desc(), col(MessageLog.id).desc())
                    .limit(limit)
                )
            )
            return list(reversed(rows))

    def log_command(
        self,
        phone_number: str,
        command_name: str,
        command_args: str,
        response: str,
        success: bool = True,
    ) -> None:
        """Log a command execution."""
        try:
            with self._session() as session:
                session.add(
                    CommandLog(
                        phone_number=phone_number,
                        command_name=command_name,
                        command_args=command_args,
                        response=response,
                        success=success,
                    )
                )
                session.commit()
        except Exception as e:
            logger.error("Failed to log command: %s", e)

    def get_commands(self, phone_number: str) -> list[CommandLog]:
        """All command logs for a phone number, oldest first."""
        with self._session() as session:
            return list(
                session.exec(
                    select(CommandLog)
                    .where(CommandLog.phone_number == phone_number)
                    .order_by(col(CommandLog.id))
                )
            )

    def find_by_external_id(self, external_id: str) -> MessageLog | None:
        """Find an incoming message by its channel message ID."""
        with self._session() as session:
            return session.exec(
                select(MessageLog).where(
                    MessageLog.external_id == external_id,
                    MessageLog.direction == CaretakerConstants.MessageDirection.INCOMING,
                )
            ).first()

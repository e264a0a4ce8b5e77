"""Base abstractions for messaging channels."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

from caretaker.channels.models import IncomingMessage, LocationMessage, message_text
from caretaker.config import mask_phone
from caretaker.constants import CaretakerConstants
from caretaker.messaging import SendResult

if TYPE_CHECKING:
    from caretaker.database import Database
    from caretaker.dispatcher import CommandDispatcher
    from caretaker.messaging import Messenger

logger = logging.getLogger(__name__)


class MessageChannel(ABC):
    """Abstract base class for messaging channels.

    A channel is both the inbound adapter (webhook payload to
    ``IncomingMessage``) and the outbound transport the messenger sends with.
    """

    def __init__(self, dispatcher: CommandDispatcher, db: Database):
        """
        Initialize channel with dependencies.

        Args:
            dispatcher: Routes each inbound message to a reply
            db: Database for logging messages
        """
        self._dispatcher = dispatcher
        self._db = db
        self._messenger: Messenger | None = None

    def set_messenger(self, messenger: Messenger) -> None:
        """Set the window-aware messenger used for replies."""
        self._messenger = messenger

    @abstractmethod
    async def send(self, phone_number: str, text: str) -> SendResult:
        """
        Send a plain text message.

        Args:
            phone_number: Recipient in international format
            text: Message body

        Returns:
            SendResult; failures are reported, never raised
        """

    @abstractmethod
    def extract_messages(self, payload: dict[str, Any]) -> list[IncomingMessage]:
        """
        Extract inbound messages from a raw webhook payload.

        Returns:
            Zero or more messages; status callbacks and malformed data yield none
        """

    @abstractmethod
    async def close(self) -> None:
        """Close the channel and cleanup resources."""

    async def handle_webhook(self, payload: dict[str, Any]) -> int:
        """Process every message in a webhook delivery. Returns how many were handled."""
        handled = 0
        for message in self.extract_messages(payload):
            if await self.handle_message(message):
                handled += 1
        return handled

    async def handle_message(self, message: IncomingMessage) -> bool:
        """
        Log, dispatch and answer one inbound message.

        Returns False for redeliveries and failures. Never raises.
        """
        try:
            if message.message_id and self._db.messages.find_by_external_id(message.message_id):
                logger.info("Ignoring redelivered message %s", message.message_id)
                return False

            if self._messenger is not None:
                self._messenger.record_inbound(message.sender)

            self._db.messages.log_message(
                CaretakerConstants.MessageDirection.INCOMING,
                message.sender,
                _log_content(message),
                kind=message.kind,
                external_id=message.message_id,
            )
            logger.info("Received %s message from %s", message.kind, mask_phone(message.sender))

            result = await self._dispatcher.handle(message)
            await self._send_reply(message.sender, result.message)
            return True

        except Exception as e:
            logger.exception("Error handling message: %s", e)
            return False

    async def _send_reply(self, phone_number: str, text: str) -> SendResult:
        if self._messenger is None:
            logger.warning("No messenger configured, sending reply directly")
            return await self.send(phone_number, text)
        return await self._messenger.send_reply(phone_number, text)


def _log_content(message: IncomingMessage) -> str:
    """Text stored in the message log for an inbound message."""
    text = message_text(message)
    if text:
        return text
    if isinstance(message, LocationMessage):
        return f"[location] {message.latitude},{message.longitude}"
    return f"[{message.kind}]"

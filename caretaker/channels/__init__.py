"""Channel abstraction for messaging platforms."""

from __future__ import annotations

from typing import TYPE_CHECKING

from caretaker.channels.base import MessageChannel
from caretaker.channels.models import (
    AudioMessage,
    DocumentMessage,
    ImageMessage,
    IncomingMessage,
    LocationMessage,
    TextMessage,
    UnsupportedMessage,
    VideoMessage,
    incoming_message_adapter,
    message_text,
)
from caretaker.channels.whatsapp import WhatsAppChannel
from caretaker.config import Config

if TYPE_CHECKING:
    from caretaker.database import Database
    from caretaker.dispatcher import CommandDispatcher


def create_channel(config: Config, dispatcher: CommandDispatcher, db: Database) -> MessageChannel:
    """
    Create the WhatsApp channel from configuration.

    Raises:
        ValueError: If required config is missing
    """
    if not config.whatsapp_phone_number_id or not config.whatsapp_access_token:
        raise ValueError("WhatsApp requires WHATSAPP_PHONE_NUMBER_ID and WHATSAPP_ACCESS_TOKEN")
    return WhatsAppChannel(
        api_url=config.whatsapp_api_url,
        phone_number_id=config.whatsapp_phone_number_id,
        access_token=config.whatsapp_access_token,
        dispatcher=dispatcher,
        db=db,
        max_retries=config.send_max_retries,
        retry_delay=config.send_retry_delay,
    )


__all__ = [
    "AudioMessage",
    "DocumentMessage",
    "ImageMessage",
    "IncomingMessage",
    "LocationMessage",
    "MessageChannel",
    "TextMessage",
    "UnsupportedMessage",
    "VideoMessage",
    "WhatsAppChannel",
    "create_channel",
    "incoming_message_adapter",
    "message_text",
]

"""WhatsApp Cloud API channel implementation."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

import httpx
from pydantic import ValidationError

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
)
from caretaker.channels.whatsapp.models import (
    SendMessageResponse,
    SendTextRequest,
    WebhookMessage,
    WebhookPayload,
)
from caretaker.config import mask_phone
from caretaker.messaging import SendResult

if TYPE_CHECKING:
    from caretaker.database import Database
    from caretaker.dispatcher import CommandDispatcher

logger = logging.getLogger(__name__)

_TRANSIENT_STATUS_CODES = (429, 500, 502, 503, 504)


class WhatsAppChannel(MessageChannel):
    """WhatsApp Business Cloud API channel."""

    def __init__(
        self,
        api_url: str,
        phone_number_id: str,
        access_token: str,
        dispatcher: CommandDispatcher,
        db: Database,
        max_retries: int = 3,
        retry_delay: float = 0.5,
        http_client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize WhatsApp channel.

        Args:
            api_url: Graph API base URL (e.g., https://graph.facebook.com/v21.0)
            phone_number_id: ID of the business phone number messages are sent from
            access_token: System user access token
            dispatcher: Routes each inbound message to a reply
            db: Database for logging messages
            max_retries: Number of retry attempts for transient send failures (default: 3)
            retry_delay: Base delay in seconds between retries, doubled each attempt (default: 0.5)
            http_client: Optional preconfigured client
        """
        super().__init__(dispatcher=dispatcher, db=db)
        self.api_url = api_url.rstrip("/")
        self.phone_number_id = phone_number_id
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.http_client = http_client or httpx.AsyncClient(
            timeout=30.0, headers={"Authorization": f"Bearer {access_token}"}
        )
        logger.info("Initialized WhatsApp channel: url=%s, number_id=%s", api_url, phone_number_id)

    @property
    def messages_url(self) -> str:
        return f"{self.api_url}/{self.phone_number_id}/messages"

    async def send(self, phone_number: str, text: str) -> SendResult:
        """Post a text message, retrying transient failures with a doubling delay."""
        request = SendTextRequest.for_text(phone_number, text)

        delay = self.retry_delay
        error = "not sent"
        for attempt in range(self.max_retries + 1):
            try:
                response = await self.http_client.post(
                    self.messages_url, json=request.model_dump()
                )
                response.raise_for_status()
                return self._handle_send_response(response, phone_number, text)

            except httpx.HTTPStatusError as e:
                self._log_send_error(e)
                error = f"HTTP {e.response.status_code}"
                if not self._is_transient_error(e):
                    return SendResult(success=False, error=error)

            except httpx.TransportError as e:
                logger.info("Network error sending WhatsApp message: %s", e)
                error = f"network error: {e}"

            except (httpx.HTTPError, ValueError) as e:
                logger.error("Failed to send WhatsApp message: %s", e)
                return SendResult(success=False, error=str(e))

            if attempt < self.max_retries:
                logger.info(
                    "Transient WhatsApp error, retrying in %.2fs (attempt %d/%d)",
                    delay,
                    attempt + 1,
                    self.max_retries,
                )
                await asyncio.sleep(delay)
                delay *= 2

        return SendResult(success=False, error=error)

    def _handle_send_response(
        self, response: httpx.Response, phone_number: str, text: str
    ) -> SendResult:
        """Parse a successful send response and return the WhatsApp message ID."""
        send_response = SendMessageResponse.model_validate(response.json())
        message_id = send_response.messages[0].id if send_response.messages else None
        logger.info(
            "Sent message to %s (length: %d, id: %s), status: %d",
            mask_phone(phone_number),
            len(text),
            message_id,
            response.status_code,
        )
        return SendResult(success=True, message_id=message_id)

    @staticmethod
    def _log_send_error(error: httpx.HTTPStatusError) -> None:
        logger.error(
            "Failed to send WhatsApp message: %s, status: %d, body: %s",
            error,
            error.response.status_code,
            error.response.text,
        )

    @staticmethod
    def _is_transient_error(error: httpx.HTTPStatusError) -> bool:
        return error.response.status_code in _TRANSIENT_STATUS_CODES

    def extract_messages(self, payload: dict[str, Any]) -> list[IncomingMessage]:
        """Extract inbound messages from a Cloud API webhook body."""
        webhook = self._parse_payload(payload)
        if webhook is None:
            return []

        messages: list[IncomingMessage] = []
        for entry in webhook.entry:
            for change in entry.changes:
                value = change.value
                if value.statuses and not value.messages:
                    logger.debug("Ignoring %d status callback(s)", len(value.statuses))
                names = {
                    contact.wa_id: contact.profile.name
                    for contact in value.contacts
                    if contact.profile and contact.profile.name
                }
                for raw in value.messages:
                    messages.append(self._extract_message(raw, names.get(raw.from_, "")))
        return messages

    def _extract_message(self, raw: WebhookMessage, display_name: str) -> IncomingMessage:
        """Map one webhook message onto its variant."""
        common: dict[str, Any] = {
            "sender": raw.from_,
            "display_name": display_name,
            "message_id": raw.id,
            "timestamp": _parse_timestamp(raw.timestamp),
        }

        match raw.type:
            case "text" if raw.text:
                return TextMessage(text=raw.text.body, **common)
            case "image" if raw.image:
                return ImageMessage(
                    media_id=raw.image.id,
                    mime_type=raw.image.mime_type,
                    caption=raw.image.caption,
                    **common,
                )
            case "location" if raw.location:
                return LocationMessage(
                    latitude=raw.location.latitude,
                    longitude=raw.location.longitude,
                    name=raw.location.name,
                    address=raw.location.address,
                    **common,
                )
            case "audio" if raw.audio:
                return AudioMessage(
                    media_id=raw.audio.id, mime_type=raw.audio.mime_type, **common
                )
            case "document" if raw.document:
                return DocumentMessage(
                    media_id=raw.document.id,
                    mime_type=raw.document.mime_type,
                    filename=raw.document.filename,
                    caption=raw.document.caption,
                    **common,
                )
            case "video" if raw.video:
                return VideoMessage(
                    media_id=raw.video.id,
                    mime_type=raw.video.mime_type,
                    caption=raw.video.caption,
                    **common,
                )

        logger.debug("Unsupported message type %s from %s", raw.type, mask_phone(raw.from_))
        return UnsupportedMessage(original_type=raw.type, **common)

    def _parse_payload(self, payload: dict[str, Any]) -> WebhookPayload | None:
        try:
            return WebhookPayload.model_validate(payload)
        except ValidationError as e:
            logger.error("Failed to parse webhook payload: %s", e)
            logger.debug("Payload: %s", payload)
            return None

    async def close(self) -> None:
        """Close the HTTP client."""
        await self.http_client.aclose()
        logger.info("WhatsApp channel closed")


def _parse_timestamp(value: str | None) -> datetime | None:
    if not value or not value.isdecimal():
        return None
    return datetime.fromtimestamp(int(value), tz=UTC)

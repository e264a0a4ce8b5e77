"""Inbound message variants shared by every channel."""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Literal

from pydantic import BaseModel, Field, TypeAdapter


class InboundBase(BaseModel):
    """Fields every inbound message carries."""

    sender: str  # Phone number in international format without "+"
    display_name: str = ""
    message_id: str | None = None  # Channel's own ID, used to drop redeliveries
    timestamp: datetime | None = None


class TextMessage(InboundBase):
    kind: Literal["text"] = "text"
    text: str


class ImageMessage(InboundBase):
    kind: Literal["image"] = "image"
    media_id: str
    mime_type: str | None = None
    caption: str | None = None


class LocationMessage(InboundBase):
    kind: Literal["location"] = "location"
    latitude: float
    longitude: float
    name: str | None = None
    address: str | None = None


class AudioMessage(InboundBase):
    kind: Literal["audio"] = "audio"
    media_id: str
    mime_type: str | None = None


class DocumentMessage(InboundBase):
    kind: Literal["document"] = "document"
    media_id: str
    mime_type: str | None = None
    filename: str | None = None
    caption: str | None = None


class VideoMessage(InboundBase):
    kind: Literal["video"] = "video"
    media_id: str
    mime_type: str | None = None
    caption: str | None = None


class UnsupportedMessage(InboundBase):
    """Stickers, reactions, contacts and anything newer than this code."""

    kind: Literal["unsupported"] = "unsupported"
    original_type: str


IncomingMessage = Annotated[
    TextMessage
    | ImageMessage
    | LocationMessage
    | AudioMessage
    | DocumentMessage
    | VideoMessage
    | UnsupportedMessage,
    Field(discriminator="kind"),
]

incoming_message_adapter: TypeAdapter[IncomingMessage] = TypeAdapter(IncomingMessage)


def message_text(message: IncomingMessage) -> str | None:
    """Text the dispatcher can classify: the body, or a media caption."""
    match message:
        case TextMessage(text=text):
            return text
        case ImageMessage(caption=caption) | DocumentMessage(caption=caption) | VideoMessage(
            caption=caption
        ):
            return caption
        case _:
            return None

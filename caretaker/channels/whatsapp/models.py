"""Pydantic models for WhatsApp Cloud API webhook and send structures."""

from pydantic import BaseModel, Field


class Profile(BaseModel):
    """Public profile of a WhatsApp contact."""

    name: str | None = None


class Contact(BaseModel):
    """Contact entry that accompanies inbound messages."""

    wa_id: str
    profile: Profile | None = None


class TextBody(BaseModel):
    body: str


class Media(BaseModel):
    """Media reference shared by image, audio, video and document messages."""

    id: str
    mime_type: str | None = None
    caption: str | None = None
    filename: str | None = None  # Documents only


class Location(BaseModel):
    latitude: float
    longitude: float
    name: str | None = None
    address: str | None = None


class WebhookMessage(BaseModel):
    """One inbound message from value.messages[]."""

    from_: str = Field(alias="from")
    id: str
    timestamp: str | None = None  # Seconds since epoch, as a string
    type: str
    text: TextBody | None = None
    image: Media | None = None
    audio: Media | None = None
    video: Media | None = None
    document: Media | None = None
    location: Location | None = None

    class Config:
        populate_by_name = True


class Status(BaseModel):
    """Delivery status callback for a message we sent."""

    id: str
    status: str
    recipient_id: str | None = None


class Metadata(BaseModel):
    display_phone_number: str | None = None
    phone_number_id: str | None = None


class ChangeValue(BaseModel):
    """Payload of one webhook change."""

    messaging_product: str | None = None
    metadata: Metadata | None = None
    contacts: list[Contact] = Field(default_factory=list)
    messages: list[WebhookMessage] = Field(default_factory=list)
    statuses: list[Status] = Field(default_factory=list)


class Change(BaseModel):
    field: str | None = None
    value: ChangeValue


class Entry(BaseModel):
    id: str | None = None
    changes: list[Change] = Field(default_factory=list)


class WebhookPayload(BaseModel):
    """Top-level WhatsApp Business Account webhook body."""

    object: str | None = None
    entry: list[Entry] = Field(default_factory=list)


class SendTextRequest(BaseModel):
    """Request body for sending a plain text message."""

    messaging_product: str = "whatsapp"
    recipient_type: str = "individual"
    to: str
    type: str = "text"
    text: dict

    @classmethod
    def for_text(cls, to: str, body: str) -> "SendTextRequest":
        return cls(to=to, text={"preview_url": False, "body": body})


class SentMessageId(BaseModel):
    id: str


class SendMessageResponse(BaseModel):
    """Response from the messages endpoint."""

    messaging_product: str | None = None
    messages: list[SentMessageId] = Field(default_factory=list)

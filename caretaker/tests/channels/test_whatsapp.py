"""Tests for the WhatsApp Cloud API channel."""

import json
from datetime import UTC, datetime

import httpx
import pytest

from caretaker.channels import (
    ImageMessage,
    LocationMessage,
    TextMessage,
    UnsupportedMessage,
    WhatsAppChannel,
    incoming_message_adapter,
)
from caretaker.constants import CaretakerConstants
from caretaker.messaging import Messenger, WindowEconomics
from caretaker.responses import CaretakerResponse
from caretaker.tests.conftest import REPORTER_SENDER, STRANGER_SENDER

API_URL = "https://graph.example.com/v21.0"


def webhook(*messages: dict, contacts: list[dict] | None = None, statuses=None) -> dict:
    """Cloud API webhook body wrapping the given raw messages."""
    value: dict = {"messaging_product": "whatsapp", "metadata": {"phone_number_id": "123"}}
    if contacts is not None:
        value["contacts"] = contacts
    if messages:
        value["messages"] = list(messages)
    if statuses:
        value["statuses"] = statuses
    return {
        "object": "whatsapp_business_account",
        "entry": [{"id": "waba", "changes": [{"field": "messages", "value": value}]}],
    }


def raw_text(sender: str, body: str, message_id: str = "wamid.in1") -> dict:
    return {
        "from": sender,
        "id": message_id,
        "timestamp": "1741003200",
        "type": "text",
        "text": {"body": body},
    }


class FakeGraphApi:
    """Answers the messages endpoint with a scripted list of status codes."""

    def __init__(self, statuses: list[int] | None = None):
        self.statuses = list(statuses or [200])
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status = self.statuses.pop(0) if len(self.statuses) > 1 else self.statuses[0]
        if status != 200:
            return httpx.Response(status, json={"error": {"message": "nope"}})
        return httpx.Response(
            200,
            json={
                "messaging_product": "whatsapp",
                "messages": [{"id": f"wamid.out{len(self.requests)}"}],
            },
        )

    def bodies(self) -> list[dict]:
        return [json.loads(request.content) for request in self.requests]


@pytest.fixture
def graph() -> FakeGraphApi:
    return FakeGraphApi()


@pytest.fixture
def channel(db, dispatcher, graph) -> WhatsAppChannel:
    channel = WhatsAppChannel(
        api_url=API_URL + "/",
        phone_number_id="123",
        access_token="token",
        dispatcher=dispatcher,
        db=db,
        max_retries=2,
        retry_delay=0,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(graph)),
    )
    channel.set_messenger(Messenger(channel, db.windows, WindowEconomics(), db))
    return channel


def test_extract_text_with_contact_name(channel):
    payload = webhook(
        raw_text(REPORTER_SENDER, "hello"),
        contacts=[{"wa_id": REPORTER_SENDER, "profile": {"name": "Rita"}}],
    )

    [message] = channel.extract_messages(payload)

    assert message == TextMessage(
        sender=REPORTER_SENDER,
        display_name="Rita",
        message_id="wamid.in1",
        timestamp=datetime(2025, 3, 3, 12, 0, tzinfo=UTC),
        text="hello",
    )


def test_extract_media_location_and_unknown_types(channel):
    payload = webhook(
        {
            "from": REPORTER_SENDER,
            "id": "wamid.img",
            "type": "image",
            "image": {"id": "media-1", "mime_type": "image/jpeg", "caption": "leak"},
        },
        {
            "from": REPORTER_SENDER,
            "id": "wamid.loc",
            "type": "location",
            "location": {"latitude": 6.45, "longitude": 3.39, "name": "Main Gate"},
        },
        {"from": REPORTER_SENDER, "id": "wamid.stk", "type": "sticker"},
        {"from": REPORTER_SENDER, "id": "wamid.bad", "type": "text"},
    )

    image, location, sticker, empty_text = channel.extract_messages(payload)

    assert isinstance(image, ImageMessage)
    assert (image.media_id, image.caption) == ("media-1", "leak")
    assert isinstance(location, LocationMessage)
    assert location.name == "Main Gate"
    assert isinstance(sticker, UnsupportedMessage)
    assert sticker.original_type == "sticker"
    assert isinstance(empty_text, UnsupportedMessage)
    assert sticker.display_name == ""
    assert sticker.timestamp is None


def test_status_callbacks_and_bad_payloads_yield_nothing(channel):
    statuses = [{"id": "wamid.out1", "status": "delivered", "recipient_id": REPORTER_SENDER}]

    assert channel.extract_messages(webhook(statuses=statuses)) == []
    assert channel.extract_messages({"entry": "not a list"}) == []


@pytest.mark.asyncio
async def test_send_posts_text_message(channel, graph):
    result = await channel.send(REPORTER_SENDER, "hello")

    assert result.success
    assert result.message_id == "wamid.out1"
    assert str(graph.requests[0].url) == f"{API_URL}/123/messages"
    assert graph.bodies() == [
        {
            "messaging_product": "whatsapp",
            "recipient_type": "individual",
            "to": REPORTER_SENDER,
            "type": "text",
            "text": {"preview_url": False, "body": "hello"},
        }
    ]


@pytest.mark.asyncio
async def test_send_retries_transient_errors(channel, graph):
    graph.statuses = [503, 429, 200]

    result = await channel.send(REPORTER_SENDER, "hello")

    assert result.success
    assert len(graph.requests) == 3


@pytest.mark.asyncio
async def test_send_gives_up_after_retries(channel, graph):
    graph.statuses = [500]

    result = await channel.send(REPORTER_SENDER, "hello")

    assert not result.success
    assert result.error == "HTTP 500"
    assert len(graph.requests) == 3


@pytest.mark.asyncio
async def test_send_does_not_retry_client_errors(channel, graph):
    graph.statuses = [400]

    result = await channel.send(REPORTER_SENDER, "hello")

    assert result.error == "HTTP 400"
    assert len(graph.requests) == 1


@pytest.mark.asyncio
async def test_send_retries_network_errors(db, dispatcher):
    attempts = []

    def handler(request: httpx.Request) -> httpx.Response:
        attempts.append(request)
        raise httpx.ConnectError("refused", request=request)

    channel = WhatsAppChannel(
        API_URL,
        "123",
        "token",
        dispatcher,
        db,
        max_retries=1,
        retry_delay=0,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )

    result = await channel.send(REPORTER_SENDER, "hello")

    assert not result.success
    assert result.error.startswith("network error")
    assert len(attempts) == 2


@pytest.mark.asyncio
async def test_webhook_round_trip_logs_both_directions(db, channel, graph):
    handled = await channel.handle_webhook(webhook(raw_text(STRANGER_SENDER, "/help")))

    assert handled == 1
    assert graph.bodies()[0]["text"]["body"] == CaretakerResponse.HELP
    incoming, outgoing = db.messages.get_history(STRANGER_SENDER)
    assert incoming.direction == CaretakerConstants.MessageDirection.INCOMING
    assert (incoming.content, incoming.external_id) == ("/help", "wamid.in1")
    assert outgoing.direction == CaretakerConstants.MessageDirection.OUTGOING
    assert outgoing.external_id == "wamid.out1"
    assert outgoing.is_free_message
    tracker = db.windows.get(STRANGER_SENDER)
    assert tracker is not None
    assert tracker.message_count == 1


@pytest.mark.asyncio
async def test_redelivered_message_is_ignored(db, channel, graph):
    payload = webhook(raw_text(STRANGER_SENDER, "/help"))

    assert await channel.handle_webhook(payload) == 1
    assert await channel.handle_webhook(payload) == 0

    assert len(graph.requests) == 1
    assert len(db.messages.get_history(STRANGER_SENDER)) == 2


@pytest.mark.asyncio
async def test_media_without_caption_is_logged_by_kind(db, channel, graph):
    payload = webhook(
        {"from": STRANGER_SENDER, "id": "wamid.aud", "type": "audio", "audio": {"id": "m-2"}}
    )

    assert await channel.handle_webhook(payload) == 1

    incoming = db.messages.get_history(STRANGER_SENDER)[0]
    assert incoming.content == "[audio]"
    assert incoming.kind == "audio"


@pytest.mark.asyncio
async def test_dispatch_failure_is_contained(channel, graph, monkeypatch):
    async def explode(message):
        raise RuntimeError("boom")

    monkeypatch.setattr(channel._dispatcher, "handle", explode)

    assert await channel.handle_webhook(webhook(raw_text(STRANGER_SENDER, "hi"))) == 0
    assert graph.requests == []


def test_incoming_message_union_dispatches_on_kind():
    message = incoming_message_adapter.validate_python(
        {"kind": "video", "sender": REPORTER_SENDER, "media_id": "m-9", "caption": "flooding"}
    )

    assert message.kind == "video"
    assert message.caption == "flooding"
    with pytest.raises(ValueError):
        incoming_message_adapter.validate_python({"kind": "sticker", "sender": REPORTER_SENDER})

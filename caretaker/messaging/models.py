"""Outbound send contract shared by the messenger and transports."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol

from pydantic import BaseModel


class SendResult(BaseModel):
    """Outcome of handing one message to the transport."""

    success: bool
    message_id: str | None = None
    error: str | None = None


class Transport(Protocol):
    """Anything that can deliver a text message to a phone number."""

    async def send(self, phone_number: str, text: str) -> SendResult: ...


class MessengerResult(BaseModel):
    """Outcome of a window-gated send: sent now, or deferred to a later slot."""

    sent: bool
    deferred: bool = False
    is_free: bool = True
    send_result: SendResult | None = None
    scheduled_for: datetime | None = None
    estimated_cost: float | None = None

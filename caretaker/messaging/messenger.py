"""Window-gated outbound messaging."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from caretaker.config import mask_phone
from caretaker.constants import CaretakerConstants
from caretaker.messaging.models import MessengerResult, SendResult, Transport
from caretaker.messaging.window import (
    BulkPlan,
    MessageCostKind,
    ScheduledMessage,
    WindowEconomics,
    WindowTracker,
    ensure_utc,
)
from caretaker.messaging.window_store import WindowStore

if TYPE_CHECKING:
    from caretaker.database import Database

logger = logging.getLogger(__name__)


class Messenger:
    """Sends replies and proactive messages, keeping window trackers current.

    Replies go out immediately since the sender has just opened a window.
    Proactive messages go out only while sending is free, otherwise they are
    parked as DeferredMessage rows for the next business-hours slot.
    """

    def __init__(
        self,
        transport: Transport,
        windows: WindowStore,
        economics: WindowEconomics,
        db: Database,
    ):
        self._transport = transport
        self._windows = windows
        self._economics = economics
        self._db = db

    def tracker_for(self, phone_number: str) -> WindowTracker:
        """Current tracker for a sender, or a fresh one if we have never seen them."""
        return self._windows.get(phone_number) or self._economics.new_tracker(phone_number)

    def record_inbound(self, phone_number: str, now: datetime | None = None) -> WindowTracker:
        """Open a fresh free window for a sender who just messaged us."""
        tracker = self._economics.update(
            self.tracker_for(phone_number),
            is_sender_initiated=True,
            direction="inbound",
            now=now,
        )
        self._windows.save(tracker)
        return tracker

    async def send_reply(
        self,
        phone_number: str,
        text: str,
        related_incident_id: str | None = None,
        now: datetime | None = None,
    ) -> SendResult:
        """Reply to a sender. Always sent; billed only if their window has lapsed."""
        now = now or datetime.now(UTC)
        is_free = self._economics.is_within_window(self.tracker_for(phone_number), now)
        return await self._deliver(phone_number, text, is_free, now, related_incident_id)

    async def send_proactive(
        self,
        phone_number: str,
        text: str,
        kind: MessageCostKind = "text",
        now: datetime | None = None,
    ) -> MessengerResult:
        """Send now if it is free, otherwise defer to the next business slot."""
        now = now or datetime.now(UTC)
        analysis = self._economics.analyze(
            phone_number, self.tracker_for(phone_number), kind=kind, now=now
        )

        if analysis.send_now:
            result = await self._deliver(phone_number, text, True, now)
            return MessengerResult(sent=result.success, send_result=result)

        slot = self._economics.next_business_slot(now)
        self._db.deferred.add(
            phone_number=phone_number,
            content=text,
            kind=kind,
            scheduled_for=slot,
            estimated_cost=analysis.estimated_cost or 0.0,
        )
        logger.info(
            "Deferred proactive message to %s until %s (est. cost %.2f)",
            mask_phone(phone_number),
            slot.isoformat(),
            analysis.estimated_cost or 0.0,
        )
        return MessengerResult(
            sent=False,
            deferred=True,
            is_free=False,
            scheduled_for=slot,
            estimated_cost=analysis.estimated_cost,
        )

    async def deliver_due(self, now: datetime | None = None) -> int:
        """Send deferred messages whose slot has come or whose window reopened.

        Returns the number of messages delivered.
        """
        now = now or datetime.now(UTC)
        delivered = 0
        for message in self._db.deferred.list_pending():
            tracker = self.tracker_for(message.phone_number)
            window_open = self._economics.analyze(message.phone_number, tracker, now=now).send_now
            if ensure_utc(message.scheduled_for) > now and not window_open:
                continue

            result = await self._deliver(message.phone_number, message.content, window_open, now)
            if result.success:
                assert message.id is not None
                self._db.deferred.mark_sent(message.id)
                delivered += 1

        if delivered:
            logger.info("Delivered %d deferred message(s)", delivered)
        return delivered

    def optimize_bulk(self, recipients: list[str], now: datetime | None = None) -> BulkPlan:
        """Partition recipients by whether messaging them now is free."""
        return self._economics.optimize_bulk(recipients, self._windows.all(), now)

    def schedule_optimal_sending(
        self, messages: list[tuple[str, str]], now: datetime | None = None
    ) -> list[ScheduledMessage]:
        """Attach a send slot to each (phone_number, content) pair."""
        return self._economics.schedule_optimal_sending(messages, self._windows.all(), now)

    def get_cost_estimate(self, message_count: int, kind: MessageCostKind = "text") -> float:
        return self._economics.get_cost_estimate(message_count, kind)

    async def _deliver(
        self,
        phone_number: str,
        text: str,
        is_free: bool,
        now: datetime,
        related_incident_id: str | None = None,
    ) -> SendResult:
        """Hand a message to the transport, then log it and count it against the window."""
        result = await self._transport.send(phone_number, text)
        if not result.success:
            logger.warning("Send to %s failed: %s", mask_phone(phone_number), result.error)
            return result

        tracker = self._economics.update(
            self.tracker_for(phone_number),
            is_sender_initiated=False,
            direction="outbound",
            now=now,
        )
        self._windows.save(tracker)
        self._db.messages.log_message(
            CaretakerConstants.MessageDirection.OUTGOING,
            phone_number,
            text,
            external_id=result.message_id,
            is_free_message=is_free,
            related_incident_id=related_incident_id,
        )
        return result

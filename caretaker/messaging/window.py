"""Free-messaging window economics.

WhatsApp Business replies are free inside the 24-hour window that opens when
the user messages us. Outside it (or past the per-window cap) every message is
billed. ``WindowEconomics`` decides whether a send is free right now and keeps
each sender's ``WindowTracker`` current as messages flow in and out.
"""

from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from typing import Literal
from zoneinfo import ZoneInfo

from pydantic import BaseModel

from caretaker.config import mask_phone
from caretaker.constants import CaretakerConstants

logger = logging.getLogger(__name__)

Direction = Literal["inbound", "outbound"]
MessageCostKind = Literal["text", "media"]


def ensure_utc(dt: datetime) -> datetime:
    """Ensure a datetime has UTC timezone info (SQLite hands back naive values)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt


class WindowTracker(BaseModel):
    """Rolling free-window state for one sender."""

    phone_number: str
    window_start: datetime | None = None
    message_count: int = 0
    last_message: datetime | None = None
    is_window_active: bool = False


class WindowAnalysis(BaseModel):
    """Whether a message can go out for free right now."""

    send_now: bool
    reason: CaretakerConstants.WindowReason
    window_minutes_remaining: int | None = None
    estimated_cost: float | None = None


class BulkPlan(BaseModel):
    """Recipients partitioned by how cheaply they can be messaged."""

    send_now: list[str]
    send_later: list[str]
    wait_for_user_initiation: list[str]
    estimated_cost: float


class ScheduledMessage(BaseModel):
    """A message with the slot it should be sent in."""

    phone_number: str
    content: str
    scheduled_time: datetime
    is_free: bool


class WindowEconomics:
    """Classifies sends against the free window and updates trackers."""

    def __init__(
        self,
        free_window_hours: float = 24.0,
        max_free_messages: int = 1000,
        text_message_cost: float = 0.05,
        media_message_cost: float = 0.10,
        business_hour: int = 9,
        timezone: str = "UTC",
    ):
        self.free_window = timedelta(hours=free_window_hours)
        self.max_free_messages = max_free_messages
        self.text_message_cost = text_message_cost
        self.media_message_cost = media_message_cost
        self.business_hour = business_hour
        self.timezone = ZoneInfo(timezone)

    @staticmethod
    def new_tracker(phone_number: str) -> WindowTracker:
        """Tracker for a sender we have never heard from."""
        return WindowTracker(phone_number=phone_number)

    def is_within_window(self, tracker: WindowTracker, now: datetime | None = None) -> bool:
        """True while the tracker's window is open."""
        if not tracker.is_window_active or tracker.window_start is None:
            return False
        now = now or datetime.now(UTC)
        return now - ensure_utc(tracker.window_start) < self.free_window

    def minutes_remaining(self, tracker: WindowTracker, now: datetime | None = None) -> int:
        """Whole minutes left in the tracker's window (0 when closed)."""
        if tracker.window_start is None:
            return 0
        now = now or datetime.now(UTC)
        window_end = ensure_utc(tracker.window_start) + self.free_window
        remaining = max(timedelta(0), window_end - now)
        return int(remaining.total_seconds() // 60)

    def message_cost(self, kind: MessageCostKind = "text") -> float:
        """Flat per-message rate for a paid send."""
        return self.text_message_cost if kind == "text" else self.media_message_cost

    def get_cost_estimate(self, message_count: int, kind: MessageCostKind = "text") -> float:
        """Estimated charge for sending ``message_count`` paid messages."""
        return message_count * self.message_cost(kind)

    def analyze(
        self,
        phone_number: str,
        tracker: WindowTracker,
        is_sender_initiated: bool = False,
        kind: MessageCostKind = "text",
        now: datetime | None = None,
    ) -> WindowAnalysis:
        """Decide whether a message to ``phone_number`` goes out free now."""
        now = now or datetime.now(UTC)

        if is_sender_initiated:
            return WindowAnalysis(
                send_now=True,
                reason=CaretakerConstants.WindowReason.NEW_WINDOW,
                window_minutes_remaining=int(self.free_window.total_seconds() // 60),
            )

        if self.is_within_window(tracker, now):
            remaining = self.minutes_remaining(tracker, now)
            if tracker.message_count < self.max_free_messages:
                return WindowAnalysis(
                    send_now=True,
                    reason=CaretakerConstants.WindowReason.FREE_WINDOW,
                    window_minutes_remaining=remaining,
                )

            logger.warning(
                "Free message limit reached within window for %s", mask_phone(phone_number)
            )
            return WindowAnalysis(
                send_now=False,
                reason=CaretakerConstants.WindowReason.PAID_REQUIRED,
                window_minutes_remaining=remaining,
                estimated_cost=self.message_cost(kind),
            )

        return WindowAnalysis(
            send_now=False,
            reason=CaretakerConstants.WindowReason.PAID_REQUIRED,
            estimated_cost=self.message_cost(kind),
        )

    def update(
        self,
        tracker: WindowTracker,
        is_sender_initiated: bool,
        direction: Direction,
        now: datetime | None = None,
    ) -> WindowTracker:
        """Return the tracker as it stands after one more message."""
        now = now or datetime.now(UTC)

        # An inbound message from the sender opens a fresh window, whatever came before
        if direction == "inbound" and (
            is_sender_initiated or not self.is_within_window(tracker, now)
        ):
            return tracker.model_copy(
                update={
                    "window_start": now,
                    "message_count": 0,
                    "last_message": now,
                    "is_window_active": True,
                }
            )

        if self.is_within_window(tracker, now):
            increment = 1 if direction == "outbound" else 0
            return tracker.model_copy(
                update={"message_count": tracker.message_count + increment, "last_message": now}
            )

        # Outbound outside the window: billed, and the stale flag is cleared
        return tracker.model_copy(update={"last_message": now, "is_window_active": False})

    def optimize_bulk(
        self,
        recipients: list[str],
        trackers: dict[str, WindowTracker],
        now: datetime | None = None,
    ) -> BulkPlan:
        """Partition recipients by whether messaging them now is free."""
        now = now or datetime.now(UTC)
        send_now: list[str] = []
        send_later: list[str] = []
        wait_for_user: list[str] = []
        estimated_cost = 0.0

        for phone_number in recipients:
            tracker = trackers.get(phone_number) or self.new_tracker(phone_number)
            analysis = self.analyze(phone_number, tracker, now=now)

            if analysis.send_now:
                send_now.append(phone_number)
                continue

            estimated_cost += analysis.estimated_cost or 0.0
            if (analysis.window_minutes_remaining or 0) > 60:
                send_later.append(phone_number)
            else:
                wait_for_user.append(phone_number)

        logger.info(
            "Bulk optimization: %d recipients, %d now, %d later, %d waiting, est. cost %.2f",
            len(recipients),
            len(send_now),
            len(send_later),
            len(wait_for_user),
            estimated_cost,
        )
        return BulkPlan(
            send_now=send_now,
            send_later=send_later,
            wait_for_user_initiation=wait_for_user,
            estimated_cost=round(estimated_cost, 4),
        )

    def schedule_optimal_sending(
        self,
        messages: list[tuple[str, str]],
        trackers: dict[str, WindowTracker],
        now: datetime | None = None,
    ) -> list[ScheduledMessage]:
        """Attach a send slot to each (phone_number, content) pair."""
        now = now or datetime.now(UTC)
        scheduled = []
        for phone_number, content in messages:
            tracker = trackers.get(phone_number) or self.new_tracker(phone_number)
            analysis = self.analyze(phone_number, tracker, now=now)
            is_free = analysis.reason != CaretakerConstants.WindowReason.PAID_REQUIRED
            scheduled.append(
                ScheduledMessage(
                    phone_number=phone_number,
                    content=content,
                    scheduled_time=now if is_free else self.next_business_slot(now),
                    is_free=is_free,
                )
            )
        return scheduled

    def next_business_slot(self, now: datetime | None = None) -> datetime:
        """Tomorrow at the business hour, in the school's timezone, as UTC.

        A nudge towards a time staff are likely to message us first; not a
        guarantee that the window will be open.
        """
        now = now or datetime.now(UTC)
        local_now = ensure_utc(now).astimezone(self.timezone)
        next_day = (local_now + timedelta(days=1)).date()
        slot = datetime(
            next_day.year,
            next_day.month,
            next_day.day,
            self.business_hour,
            tzinfo=self.timezone,
        )
        return slot.astimezone(UTC)

"""Outbound messaging and free-window economics."""

from caretaker.messaging.messenger import Messenger
from caretaker.messaging.models import MessengerResult, SendResult, Transport
from caretaker.messaging.window import (
    BulkPlan,
    ScheduledMessage,
    WindowAnalysis,
    WindowEconomics,
    WindowTracker,
)
from caretaker.messaging.window_store import MemoryWindowStore, WindowStore

__all__ = [
    "BulkPlan",
    "MemoryWindowStore",
    "Messenger",
    "MessengerResult",
    "ScheduledMessage",
    "SendResult",
    "Transport",
    "WindowAnalysis",
    "WindowEconomics",
    "WindowStore",
    "WindowTracker",
]

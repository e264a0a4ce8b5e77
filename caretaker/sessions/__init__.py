"""Short-lived per-sender conversation state."""

from caretaker.sessions.locks import SenderLocks
from caretaker.sessions.manager import SessionManager
from caretaker.sessions.models import ConversationSession, SessionPayload, TaskSummary
from caretaker.sessions.store import MemorySessionStore, SessionStore

__all__ = [
    "ConversationSession",
    "MemorySessionStore",
    "SenderLocks",
    "SessionManager",
    "SessionPayload",
    "SessionStore",
    "TaskSummary",
]

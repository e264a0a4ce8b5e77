"""Storage for conversational sessions."""

from __future__ import annotations

from abc import ABC, abstractmethod

from caretaker.sessions.models import ConversationSession


class SessionStore(ABC):
    """Holds at most one session per sender. Expiry is the manager's job."""

    @abstractmethod
    def get(self, sender: str) -> ConversationSession | None:
        """Raw session for a sender, expired or not."""

    @abstractmethod
    def put(self, session: ConversationSession) -> None:
        """Create or replace the sender's session."""

    @abstractmethod
    def delete(self, sender: str) -> bool:
        """Remove the sender's session. Returns True if one existed."""

    @abstractmethod
    def all(self) -> list[ConversationSession]:
        """Every stored session."""


class MemorySessionStore(SessionStore):
    """In-process session store keyed by sender."""

    def __init__(self) -> None:
        self._sessions: dict[str, ConversationSession] = {}

    def get(self, sender: str) -> ConversationSession | None:
        return self._sessions.get(sender)

    def put(self, session: ConversationSession) -> None:
        self._sessions[session.sender] = session

    def delete(self, sender: str) -> bool:
        return self._sessions.pop(sender, None) is not None

    def all(self) -> list[ConversationSession]:
        return list(self._sessions.values())

    def __len__(self) -> int:
        return len(self._sessions)

"""Models for command system."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from pydantic import BaseModel

from caretaker.database import Database
from caretaker.database.models import User

if TYPE_CHECKING:
    from caretaker.commands.tasks import TaskService
    from caretaker.sessions import SessionManager


@dataclass
class CommandContext:
    """Runtime context passed to command handlers."""

    db: Database
    sessions: SessionManager
    tasks: TaskService
    sender: str  # WhatsApp phone number
    display_name: str  # Profile name from the webhook, may be empty
    user: User | None = None  # None when the phone number has no account


class CommandResult(BaseModel):
    """Result from executing a command."""

    text: str  # Response text to send to user
    success: bool = True
    requires_followup: bool = False  # True while a session is waiting on the sender

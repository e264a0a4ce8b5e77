"""Persistence for Caretaker - users, incidents, messages and provider configs."""

from caretaker.database.database import Database
from caretaker.database.models import (
    Category,
    CommandLog,
    DeferredMessage,
    Incident,
    IncidentUpdate,
    MessageLog,
    ProviderConfig,
    User,
    WindowState,
)

__all__ = [
    "Category",
    "CommandLog",
    "Database",
    "DeferredMessage",
    "Incident",
    "IncidentUpdate",
    "MessageLog",
    "ProviderConfig",
    "User",
    "WindowState",
]

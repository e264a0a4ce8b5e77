"""Models for conversational sessions."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from caretaker.constants import CaretakerConstants


class TaskSummary(BaseModel):
    """The bits of an incident a session needs to remember between messages."""

    id: str
    reference: str
    subcategory: str
    location: str
    status: str


class SessionPayload(BaseModel):
    """Step-scoped data carried by a session."""

    tasks: list[TaskSummary] = Field(default_factory=list)  # Candidates shown at select_task
    selected: TaskSummary | None = None  # Chosen task from provide_update onwards


class ConversationSession(BaseModel):
    """A multi-step task conversation with one sender."""

    sender: str
    step: CaretakerConstants.SessionStep
    purpose: CaretakerConstants.SessionPurpose = CaretakerConstants.SessionPurpose.UPDATE
    payload: SessionPayload = Field(default_factory=SessionPayload)
    created_at: datetime
    last_activity_at: datetime

"""SQLModel models for Caretaker's records."""

import uuid
from datetime import UTC, datetime

from sqlmodel import Field, Relationship, SQLModel

from caretaker.constants import CaretakerConstants


def new_record_id() -> str:
    """Generate a 25-char lowercase cuid-style record identifier."""
    return "c" + uuid.uuid4().hex[:24]


class User(SQLModel, table=True):
    """A staff member or reporter known by phone number."""

    id: str = Field(default_factory=new_record_id, primary_key=True)
    name: str
    phone_number: str | None = Field(default=None, unique=True, index=True)
    role: str = Field(default="staff")  # "staff", "supervisor", "admin"
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class Category(SQLModel, table=True):
    """Incident category (Maintenance, Discipline, Sports, ...)."""

    id: str = Field(default_factory=new_record_id, primary_key=True)
    name: str = Field(unique=True)
    description: str | None = None


class Incident(SQLModel, table=True):
    """A reported incident or task, the record behind a reference code."""

    id: str = Field(default_factory=new_record_id, primary_key=True)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC), index=True)
    category_id: str = Field(foreign_key="category.id", index=True)
    subcategory: str
    location: str
    notes: str | None = None
    status: str = Field(default=CaretakerConstants.IncidentStatus.OPEN, index=True)
    reporter_id: str = Field(foreign_key="user.id", index=True)
    assigned_to_id: str | None = Field(default=None, foreign_key="user.id", index=True)
    resolution_notes: str | None = None
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    category: Category | None = Relationship(sa_relationship_kwargs={"lazy": "joined"})
    reporter: User | None = Relationship(
        sa_relationship_kwargs={"lazy": "joined", "foreign_keys": "[Incident.reporter_id]"}
    )
    assignee: User | None = Relationship(
        sa_relationship_kwargs={"lazy": "joined", "foreign_keys": "[Incident.assigned_to_id]"}
    )


class IncidentUpdate(SQLModel, table=True):
    """A progress or completion note appended to an incident."""

    __tablename__ = "incident_updates"

    id: int | None = Field(default=None, primary_key=True)
    incident_id: str = Field(foreign_key="incident.id", index=True)
    author_id: str = Field(foreign_key="user.id")
    notes: str
    update_type: str = Field(default=CaretakerConstants.UpdateType.PROGRESS)
    status_context: str | None = None  # Status the incident moved to, if any
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class ProviderConfig(SQLModel, table=True):
    """A configured generative backend with its encrypted API key."""

    __tablename__ = "provider_configs"

    id: int | None = Field(default=None, primary_key=True)
    provider: str = Field(index=True)  # ProviderType enum value
    model: str | None = None
    base_url: str | None = None
    encrypted_api_key: str | None = None  # SecretStore token; None for keyless backends
    is_default: bool = Field(default=False)
    is_active: bool = Field(default=True, index=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class MessageLog(SQLModel, table=True):
    """Log of every inbound and outbound WhatsApp message."""

    id: int | None = Field(default=None, primary_key=True)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC), index=True)
    direction: str = Field(index=True)  # "incoming" or "outgoing"
    phone_number: str = Field(index=True)
    kind: str = Field(default=CaretakerConstants.MessageKind.TEXT)
    content: str
    external_id: str | None = Field(default=None, index=True)  # WhatsApp message ID
    is_free_message: bool = Field(default=True)
    related_incident_id: str | None = Field(default=None, index=True)


class CommandLog(SQLModel, table=True):
    """Log of every command invocation and its response."""

    __tablename__ = "command_logs"

    id: int | None = Field(default=None, primary_key=True)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC), index=True)
    phone_number: str = Field(index=True)
    command_name: str = Field(index=True)  # e.g., "update", "session", "reference"
    command_args: str
    response: str
    success: bool = Field(default=True)


class WindowState(SQLModel, table=True):
    """Persisted free-messaging window tracker for one phone number."""

    __tablename__ = "window_states"

    phone_number: str = Field(primary_key=True)
    window_start: datetime | None = None
    message_count: int = Field(default=0)
    last_message: datetime | None = None
    is_window_active: bool = Field(default=False)


class DeferredMessage(SQLModel, table=True):
    """A proactive message held back until a cheaper send slot."""

    __tablename__ = "deferred_messages"

    id: int | None = Field(default=None, primary_key=True)
    phone_number: str = Field(index=True)
    content: str
    kind: str = Field(default="text")  # Cost class: "text" or "media"
    scheduled_for: datetime = Field(index=True)
    estimated_cost: float = Field(default=0.0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    sent_at: datetime | None = Field(default=None, index=True)

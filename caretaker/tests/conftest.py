"""Pytest fixtures for Caretaker tests."""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from caretaker.commands import SessionFlow, TaskService, create_command_registry
from caretaker.constants import CaretakerConstants
from caretaker.database import Database
from caretaker.database.models import Category, Incident, User
from caretaker.dispatcher import CommandDispatcher
from caretaker.messaging import SendResult
from caretaker.providers import GenerationResult, GenerativeBackend, ProviderSelector
from caretaker.reports import IncidentReporter
from caretaker.sessions import MemorySessionStore, SessionManager

# Standard test phone numbers
TEST_SENDER = "15559876543"
REPORTER_SENDER = "15551112222"
STRANGER_SENDER = "15550000000"

START_TIME = datetime(2025, 3, 3, 12, 0, tzinfo=UTC)


class Clock:
    """Controllable UTC clock."""

    def __init__(self, now: datetime = START_TIME):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


class FakeTransport:
    """Records every send instead of talking to WhatsApp."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, str]] = []
        self.fail_with: str | None = None

    async def send(self, phone_number: str, text: str) -> SendResult:
        if self.fail_with:
            return SendResult(success=False, error=self.fail_with)
        self.sent.append((phone_number, text))
        return SendResult(success=True, message_id=f"wamid.{len(self.sent)}")


class ScriptedBackend(GenerativeBackend):
    """Backend that replays a script of texts or exceptions, one per call."""

    def __init__(self, provider: str, script: list[str | BaseException] | None = None):
        self.provider = CaretakerConstants.ProviderType(provider)
        self.script = list(script or ["ok"])
        self.prompts: list[str] = []
        self.closed = False

    async def generate_content(
        self,
        prompt: str,
        *,
        max_tokens: int | None = None,
        temperature: float | None = None,
        system_instruction: str | None = None,
    ) -> GenerationResult:
        self.prompts.append(prompt)
        step = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if isinstance(step, BaseException):
            raise step
        return GenerationResult(text=step)

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def clock() -> Clock:
    return Clock()


@pytest.fixture
def db(tmp_path):
    """Fresh SQLite database with all tables."""
    database = Database(str(tmp_path / "test.db"))
    database.create_tables()
    yield database
    database.close()


@pytest.fixture
def staff(db) -> User:
    """Caretaker staff member who is assigned tasks."""
    return db.users.add("Sam Staff", TEST_SENDER)


@pytest.fixture
def reporter_user(db) -> User:
    """School staff member who reports problems."""
    return db.users.add("Rita Reporter", REPORTER_SENDER)


@pytest.fixture
def categories(db) -> dict[str, Category]:
    return {
        name: db.incidents.add_category(name)
        for name in ("Maintenance", "Discipline", "Sports")
    }


@pytest.fixture
def make_incident(db, categories, reporter_user) -> Callable[..., Incident]:
    """
    Factory fixture inserting an incident with a chosen id, age and status.

    Usage:
        incident = make_incident(assigned_to=staff, minutes_ago=5)
    """
    created = [0]

    def _make(
        id: str | None = None,
        assigned_to: User | None = None,
        reporter: User | None = None,
        status: str = CaretakerConstants.IncidentStatus.OPEN,
        subcategory: str = "Fix Door",
        location: str = "Room 12",
        minutes_ago: float | None = None,
    ) -> Incident:
        created[0] += 1
        if minutes_ago is None:
            minutes_ago = 1000 - created[0]
        fields: dict[str, Any] = {
            "category_id": categories["Maintenance"].id,
            "subcategory": subcategory,
            "location": location,
            "notes": "seeded",
            "status": status,
            "reporter_id": (reporter or reporter_user).id,
            "assigned_to_id": assigned_to.id if assigned_to else None,
            "timestamp": START_TIME - timedelta(minutes=minutes_ago),
        }
        if id is not None:
            fields["id"] = id
        incident = Incident(**fields)
        with db.get_session() as session:
            session.add(incident)
            session.commit()
            incident_id = incident.id
        result = db.incidents.get(incident_id)
        assert result is not None
        return result

    return _make


@pytest.fixture
def sessions(clock) -> SessionManager:
    return SessionManager(MemorySessionStore(), ttl_seconds=300, clock=clock)


@pytest.fixture
def tasks(db) -> TaskService:
    return TaskService(db)


@pytest.fixture
def flow(sessions, tasks) -> SessionFlow:
    return SessionFlow(sessions, tasks)


@pytest.fixture
def selector(db) -> ProviderSelector:
    """Selector with no configured providers, so it always lands on the offline backend."""
    return ProviderSelector(db.providers, secrets=None)


@pytest.fixture
def dispatcher(db, sessions, flow, tasks, selector) -> CommandDispatcher:
    return CommandDispatcher(
        db=db,
        sessions=sessions,
        flow=flow,
        tasks=tasks,
        registry=create_command_registry(flow),
        reporter=IncidentReporter(db, selector),
    )


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()

"""Task lookups and writes shared by the task commands and the session flow."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime
from zoneinfo import ZoneInfo

from sqlalchemy.exc import SQLAlchemyError

from caretaker.commands.models import CommandResult
from caretaker.constants import CaretakerConstants
from caretaker.database import Database
from caretaker.database.models import Incident, User
from caretaker.messaging.window import ensure_utc
from caretaker.references import encode_reference, looks_like_reference, resolve_reference
from caretaker.responses import CaretakerResponse
from caretaker.sessions.models import TaskSummary

logger = logging.getLogger(__name__)

_TASK_NUMBER = re.compile(r"\d+", re.ASCII)


def parse_task_number(token: str) -> int | None:
    """Read a list position typed by a user; only plain ASCII digits count."""
    if _TASK_NUMBER.fullmatch(token) is None:
        return None
    return int(token)


@dataclass
class TaskLookup:
    """Outcome of resolving a task number or reference typed by a user."""

    incident: Incident | None = None
    error: str | None = None  # Guidance reply when nothing usable was found


class TaskService:
    """Finds the sender's tasks and applies progress or completion to them."""

    def __init__(self, db: Database, timezone: str = "UTC"):
        self._db = db
        self._timezone = ZoneInfo(timezone)

    # ── Formatting ──────────────────────────────────────────────────────────

    @staticmethod
    def status_icon(status: str) -> str:
        return CaretakerConstants.STATUS_ICONS.get(status, CaretakerConstants.UNKNOWN_STATUS_ICON)

    def format_date(self, dt: datetime) -> str:
        return ensure_utc(dt).astimezone(self._timezone).strftime(CaretakerConstants.DATE_FORMAT)

    def format_time(self, dt: datetime) -> str:
        return ensure_utc(dt).astimezone(self._timezone).strftime(CaretakerConstants.TIME_FORMAT)

    @staticmethod
    def summarize(incident: Incident) -> TaskSummary:
        return TaskSummary(
            id=incident.id,
            reference=encode_reference(incident.id),
            subcategory=incident.subcategory,
            location=incident.location,
            status=incident.status,
        )

    def describe(self, incident: Incident) -> str:
        """Detail view shown when a user sends a bare reference code."""
        reference = encode_reference(incident.id)
        return CaretakerResponse.REFERENCE_DETAILS.format(
            reference=reference,
            icon=self.status_icon(incident.status),
            status=incident.status,
            subcategory=incident.subcategory,
            location=incident.location,
            reporter=incident.reporter.name if incident.reporter else "Unknown",
            date=self.format_date(incident.timestamp),
        )

    # ── Lookups ─────────────────────────────────────────────────────────────

    def open_tasks(self, user: User) -> list[Incident]:
        """Open and in-progress tasks assigned to the user, newest first."""
        return self._db.incidents.list_open_assigned(user.id, CaretakerConstants.TASK_LIST_LIMIT)

    @staticmethod
    def is_authorized(incident: Incident, user: User) -> bool:
        """Only the assignee and the reporter may see or change a task."""
        return user.id in (incident.assigned_to_id, incident.reporter_id)

    def find_by_reference(self, user: User, code: str) -> Incident | None:
        """Resolve a reference code, hiding records the user has no claim on."""
        incident = resolve_reference(code, self._db.incidents)
        if incident is None or not self.is_authorized(incident, user):
            return None
        return incident

    def resolve_identifier(self, user: User, identifier: str) -> TaskLookup:
        """Turn a task number from the user's open list, or a reference code, into a task.

        Numbers index a freshly fetched list so they always match what
        /assigned would show right now.
        """
        token = identifier.strip().rstrip(".")

        number = parse_task_number(token)
        if number is not None:
            tasks = self.open_tasks(user)
            if not tasks:
                return TaskLookup(error=CaretakerResponse.NO_ASSIGNED_TASKS)
            if not 1 <= number <= len(tasks):
                return TaskLookup(
                    error=CaretakerResponse.INVALID_TASK_NUMBER.format(
                        number=token, count=len(tasks)
                    )
                )
            return TaskLookup(incident=tasks[number - 1])

        if looks_like_reference(token):
            incident = self.find_by_reference(user, token)
            if incident is None:
                return TaskLookup(
                    error=CaretakerResponse.TASK_NOT_FOUND.format(reference=token.upper())
                )
            return TaskLookup(incident=incident)

        return TaskLookup(error=CaretakerResponse.INVALID_REFERENCE.format(identifier=token))

    # ── Writes ──────────────────────────────────────────────────────────────

    def apply_progress(self, incident_id: str, user: User, notes: str) -> CommandResult:
        """Record a progress note, advancing Open to In Progress."""
        try:
            incident = self._db.incidents.record_progress(incident_id, user.id, notes)
        except (LookupError, SQLAlchemyError):
            logger.exception("Failed to record progress on incident %s", incident_id)
            return CommandResult(text=CaretakerResponse.SAVE_FAILED, success=False)

        logger.info("Progress logged on %s by %s", encode_reference(incident.id), user.name)
        return CommandResult(
            text=CaretakerResponse.UPDATE_LOGGED.format(
                reference=encode_reference(incident.id),
                notes=notes,
                status=incident.status,
                time=self.format_time(datetime.now(UTC)),
            )
        )

    def apply_completion(self, incident_id: str, user: User, notes: str | None) -> CommandResult:
        """Resolve a task with the given notes, or the default note."""
        notes = notes or CaretakerConstants.DEFAULT_COMPLETION_NOTES
        reference = encode_reference(incident_id)
        try:
            current = self._db.incidents.get(incident_id)
            if current is None:
                raise LookupError(f"Incident {incident_id} not found")
            if current.status == CaretakerConstants.IncidentStatus.RESOLVED:
                return CommandResult(
                    text=CaretakerResponse.ALREADY_COMPLETED.format(reference=reference),
                    success=False,
                )
            self._db.incidents.record_completion(incident_id, user.id, notes)
        except (LookupError, SQLAlchemyError):
            logger.exception("Failed to complete incident %s", incident_id)
            return CommandResult(text=CaretakerResponse.SAVE_FAILED, success=False)

        logger.info("Task %s completed by %s", reference, user.name)
        return CommandResult(
            text=CaretakerResponse.TASK_COMPLETED.format(
                reference=reference,
                time=self.format_time(datetime.now(UTC)),
                notes=notes,
            )
        )

"""Step handlers for the multi-message /update and /complete conversations.

select_task -> provide_update -> confirm_completion -> cleared. Any step
accepts ``cancel``. Terminal steps clear the session before writing, so a
duplicate delivery of the same reply finds no session and changes nothing.
"""

from __future__ import annotations

import logging
import re

from caretaker.commands.models import CommandResult
from caretaker.commands.tasks import TaskService, parse_task_number
from caretaker.constants import CaretakerConstants
from caretaker.database.models import User
from caretaker.responses import CaretakerResponse
from caretaker.sessions import ConversationSession, SessionManager, SessionPayload, TaskSummary

logger = logging.getLogger(__name__)

Step = CaretakerConstants.SessionStep

# Leading yes/no word, then optional punctuation before any notes
_CONFIRM_REPLY = re.compile(r"(?P<answer>\w+)\b[\s.,!?;:-]*(?P<notes>.*)", re.DOTALL)


def select_prompt(tasks: list[TaskSummary], purpose: CaretakerConstants.SessionPurpose) -> str:
    """Numbered task list shown when a session opens."""
    header = (
        CaretakerResponse.SELECT_HEADER_COMPLETE
        if purpose == CaretakerConstants.SessionPurpose.COMPLETE
        else CaretakerResponse.SELECT_HEADER_UPDATE
    )
    lines = [header]
    for index, task in enumerate(tasks, start=1):
        lines.append(
            CaretakerResponse.SELECT_ITEM.format(
                index=index,
                icon=TaskService.status_icon(task.status),
                reference=task.reference,
                subcategory=task.subcategory,
                location=task.location,
            )
        )
    lines.append(CaretakerResponse.SELECT_FOOTER.format(count=len(tasks)))
    return "\n".join(lines)


def _provide_update_prompt(task: TaskSummary) -> str:
    return CaretakerResponse.PROVIDE_UPDATE_PROMPT.format(
        reference=task.reference,
        subcategory=task.subcategory,
        location=task.location,
        status=task.status,
    )


def _confirm_prompt(task: TaskSummary) -> str:
    return CaretakerResponse.CONFIRM_COMPLETION_PROMPT.format(
        reference=task.reference, subcategory=task.subcategory, location=task.location
    )


class SessionFlow:
    """Advances a sender's session by one reply."""

    def __init__(self, sessions: SessionManager, tasks: TaskService):
        self._sessions = sessions
        self._tasks = tasks

    def open(
        self,
        sender: str,
        user: User,
        purpose: CaretakerConstants.SessionPurpose,
    ) -> CommandResult:
        """List the user's open tasks and wait for them to pick one."""
        tasks = [self._tasks.summarize(incident) for incident in self._tasks.open_tasks(user)]
        if not tasks:
            return CommandResult(text=CaretakerResponse.NO_ASSIGNED_TASKS)

        self._sessions.create(
            sender, Step.SELECT_TASK, purpose=purpose, payload=SessionPayload(tasks=tasks)
        )
        return CommandResult(text=select_prompt(tasks, purpose), requires_followup=True)

    def handle(self, sender: str, user: User | None, text: str) -> CommandResult:
        """Apply one reply to the sender's session."""
        session = self._sessions.get(sender)
        if session is None or user is None:
            self._sessions.clear(sender)
            return CommandResult(text=CaretakerResponse.SESSION_EXPIRED, success=False)

        reply = text.strip()
        if reply.lower() == CaretakerConstants.CANCEL_WORD:
            self._sessions.clear(sender)
            logger.info("Session cancelled by sender")
            return CommandResult(text=CaretakerResponse.SESSION_CANCELLED)

        match session.step:
            case Step.SELECT_TASK:
                return self._select_task(session, reply)
            case Step.PROVIDE_UPDATE:
                return self._provide_update(session, user, reply)
            case Step.CONFIRM_COMPLETION:
                return self._confirm_completion(session, user, reply)

    def _select_task(self, session: ConversationSession, reply: str) -> CommandResult:
        tasks = session.payload.tasks
        number = parse_task_number(reply.rstrip("."))
        if number is None or not 1 <= number <= len(tasks):
            self._sessions.update(session.sender, {})
            return CommandResult(
                text=CaretakerResponse.SELECT_INVALID.format(count=len(tasks)),
                success=False,
                requires_followup=True,
            )

        selected = tasks[number - 1]
        payload = session.payload.model_copy(update={"selected": selected})
        if session.purpose == CaretakerConstants.SessionPurpose.COMPLETE:
            self._sessions.update(
                session.sender, {"step": Step.CONFIRM_COMPLETION, "payload": payload}
            )
            return CommandResult(text=_confirm_prompt(selected), requires_followup=True)

        self._sessions.update(session.sender, {"step": Step.PROVIDE_UPDATE, "payload": payload})
        return CommandResult(text=_provide_update_prompt(selected), requires_followup=True)

    def _provide_update(
        self, session: ConversationSession, user: User, reply: str
    ) -> CommandResult:
        selected = session.payload.selected
        assert selected is not None

        if reply.lower() == CaretakerConstants.COMPLETE_WORD:
            self._sessions.update(session.sender, {"step": Step.CONFIRM_COMPLETION})
            return CommandResult(text=_confirm_prompt(selected), requires_followup=True)

        if not self._sessions.clear(session.sender):
            return CommandResult(text=CaretakerResponse.SESSION_EXPIRED, success=False)
        return self._tasks.apply_progress(selected.id, user, reply)

    def _confirm_completion(
        self, session: ConversationSession, user: User, reply: str
    ) -> CommandResult:
        selected = session.payload.selected
        assert selected is not None

        parsed = _CONFIRM_REPLY.match(reply)
        answer = parsed.group("answer").lower() if parsed else ""
        notes = parsed.group("notes").strip() if parsed else ""

        if answer == CaretakerConstants.CONFIRM_YES:
            if not self._sessions.clear(session.sender):
                return CommandResult(text=CaretakerResponse.SESSION_EXPIRED, success=False)
            return self._tasks.apply_completion(selected.id, user, notes or None)

        if answer == CaretakerConstants.CONFIRM_NO and not notes:
            self._sessions.update(session.sender, {"step": Step.PROVIDE_UPDATE})
            return CommandResult(
                text=CaretakerResponse.CONTINUE_UPDATE.format(reference=selected.reference),
                requires_followup=True,
            )

        self._sessions.update(session.sender, {})
        return CommandResult(
            text=CaretakerResponse.CONFIRM_INVALID, success=False, requires_followup=True
        )

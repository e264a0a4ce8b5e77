"""Routes inbound messages to sessions, commands, reference lookups or reports."""

from __future__ import annotations

import logging
from typing import assert_never

from pydantic import BaseModel

from caretaker.channels.models import (
    AudioMessage,
    DocumentMessage,
    ImageMessage,
    IncomingMessage,
    LocationMessage,
    TextMessage,
    UnsupportedMessage,
    VideoMessage,
)
from caretaker.commands import (
    CommandContext,
    CommandRegistry,
    CommandResult,
    SessionFlow,
    TaskService,
)
from caretaker.config import mask_phone
from caretaker.database import Database
from caretaker.database.models import User
from caretaker.references import looks_like_reference
from caretaker.reports import IncidentReporter
from caretaker.responses import CaretakerResponse
from caretaker.sessions import SenderLocks, SessionManager

logger = logging.getLogger(__name__)

# Names recorded in CommandLog for non-slash interactions
SESSION_LOG_NAME = "session"
REFERENCE_LOG_NAME = "reference"
REPORT_LOG_NAME = "report"


class DispatchResult(BaseModel):
    """Reply to one inbound message."""

    success: bool
    message: str
    requires_followup: bool = False


class CommandDispatcher:
    """Classifies each message and produces the reply.

    First match wins: an active session takes the message, then slash
    commands, then a bare reference code, and anything else is a report.
    Messages from one sender are handled one at a time.
    """

    def __init__(
        self,
        db: Database,
        sessions: SessionManager,
        flow: SessionFlow,
        tasks: TaskService,
        registry: CommandRegistry,
        reporter: IncidentReporter,
        locks: SenderLocks | None = None,
    ):
        self._db = db
        self._sessions = sessions
        self._flow = flow
        self._tasks = tasks
        self._registry = registry
        self._reporter = reporter
        self._locks = locks or SenderLocks()

    async def handle(self, message: IncomingMessage) -> DispatchResult:
        """Reply to any kind of inbound message."""
        match message:
            case TextMessage(text=text):
                return await self.dispatch(message.sender, message.display_name, text)
            case (
                ImageMessage(caption=str() as caption)
                | DocumentMessage(caption=str() as caption)
                | VideoMessage(caption=str() as caption)
            ) if caption.strip():
                return await self.dispatch(message.sender, message.display_name, caption)
            case ImageMessage() | DocumentMessage() | VideoMessage() | AudioMessage():
                return DispatchResult(
                    success=False,
                    message=CaretakerResponse.MEDIA_WITHOUT_TEXT.format(kind=message.kind),
                )
            case LocationMessage():
                return DispatchResult(success=True, message=CaretakerResponse.LOCATION_RECEIVED)
            case UnsupportedMessage():
                logger.info("Unsupported %s message", message.original_type)
                return DispatchResult(
                    success=False, message=CaretakerResponse.UNSUPPORTED_MESSAGE
                )
            case _:
                assert_never(message)

    async def dispatch(self, sender: str, display_name: str, text: str) -> DispatchResult:
        """Classify and answer one text message. Never raises."""
        async with self._locks.hold(sender):
            try:
                return await self._dispatch(sender, display_name, text.strip())
            except Exception as e:
                logger.exception("Error dispatching message from %s: %s", mask_phone(sender), e)
                return DispatchResult(success=False, message=CaretakerResponse.GENERIC_ERROR)

    async def _dispatch(self, sender: str, display_name: str, text: str) -> DispatchResult:
        if not text:
            return DispatchResult(success=False, message=CaretakerResponse.EMPTY_MESSAGE)

        user = self._db.users.get_by_phone(sender)

        if self._sessions.has_active(sender):
            result = self._flow.handle(sender, user, text)
            return self._finish(sender, SESSION_LOG_NAME, text, result)

        if text.startswith("/"):
            command_name, command_args = _parse_command(text)
            result = await self._run_command(
                sender, display_name, user, command_name, command_args
            )
            return self._finish(sender, command_name, command_args, result)

        if looks_like_reference(text):
            result = self._lookup_reference(user, text)
            return self._finish(sender, REFERENCE_LOG_NAME, text, result)

        success, reply = await self._reporter.report(sender, display_name, text)
        result = CommandResult(text=reply, success=success)
        return self._finish(sender, REPORT_LOG_NAME, text, result)

    async def _run_command(
        self,
        sender: str,
        display_name: str,
        user: User | None,
        command_name: str,
        command_args: str,
    ) -> CommandResult:
        command = self._registry.get(command_name)
        if command is None:
            logger.info("Unknown command /%s from %s", command_name, mask_phone(sender))
            return CommandResult(
                text=CaretakerResponse.UNKNOWN_COMMAND.format(command=f"/{command_name}"),
                success=False,
            )

        context = CommandContext(
            db=self._db,
            sessions=self._sessions,
            tasks=self._tasks,
            sender=sender,
            display_name=display_name,
            user=user,
        )
        logger.info("Executing /%s for %s", command_name, mask_phone(sender))
        return await command.run(command_args, context)

    def _lookup_reference(self, user: User | None, code: str) -> CommandResult:
        if user is None:
            return CommandResult(text=CaretakerResponse.NO_ACCOUNT, success=False)
        incident = self._tasks.find_by_reference(user, code)
        if incident is None:
            return CommandResult(
                text=CaretakerResponse.REFERENCE_NOT_FOUND.format(reference=code.upper()),
                success=False,
            )
        return CommandResult(text=self._tasks.describe(incident))

    def _finish(
        self, sender: str, command_name: str, command_args: str, result: CommandResult
    ) -> DispatchResult:
        """Record the interaction in the command log and shape the reply."""
        self._db.messages.log_command(
            phone_number=sender,
            command_name=command_name,
            command_args=command_args,
            response=result.text,
            success=result.success,
        )
        return DispatchResult(
            success=result.success,
            message=result.text,
            requires_followup=result.requires_followup,
        )


def _parse_command(text: str) -> tuple[str, str]:
    """Parse command name and arguments from a slash command string."""
    parts = text[1:].split(maxsplit=1)  # Skip leading /
    command_name = parts[0].lower() if parts else ""
    command_args = parts[1] if len(parts) > 1 else ""
    return command_name, command_args

"""The /update command: log progress on a task."""

from __future__ import annotations

from caretaker.commands.base import Command
from caretaker.commands.models import CommandContext, CommandResult
from caretaker.commands.session_flow import SessionFlow
from caretaker.constants import CaretakerConstants
from caretaker.responses import CaretakerResponse


class UpdateCommand(Command):
    """Log progress, either in one message or through a guided session."""

    name = "update"
    description = "Update task progress"

    def __init__(self, flow: SessionFlow):
        self._flow = flow

    async def execute(self, args: str, context: CommandContext) -> CommandResult:
        """Execute update command.

        ``/update`` alone opens a session; ``/update <number|#REF> <notes>``
        applies the note straight away without one.
        """
        assert context.user is not None
        parts = args.split(maxsplit=1)
        if not parts:
            return self._flow.open(
                context.sender, context.user, CaretakerConstants.SessionPurpose.UPDATE
            )
        if len(parts) < 2:
            return CommandResult(text=CaretakerResponse.UPDATE_FORMAT_ERROR, success=False)

        identifier, notes = parts
        lookup = context.tasks.resolve_identifier(context.user, identifier)
        if lookup.incident is None:
            assert lookup.error is not None
            return CommandResult(text=lookup.error, success=False)
        return context.tasks.apply_progress(lookup.incident.id, context.user, notes.strip())

"""The /complete command: mark a task as resolved."""

from __future__ import annotations

from caretaker.commands.base import Command
from caretaker.commands.models import CommandContext, CommandResult
from caretaker.commands.session_flow import SessionFlow
from caretaker.constants import CaretakerConstants


class CompleteCommand(Command):
    """Resolve a task, either in one message or through a guided session."""

    name = "complete"
    description = "Mark tasks complete"

    def __init__(self, flow: SessionFlow):
        self._flow = flow

    async def execute(self, args: str, context: CommandContext) -> CommandResult:
        """Execute complete command.

        ``/complete`` alone opens a session that goes straight to confirmation
        once a task is picked; ``/complete <number|#REF> [notes]`` resolves
        directly, with a default note when none is given.
        """
        assert context.user is not None
        parts = args.split(maxsplit=1)
        if not parts:
            return self._flow.open(
                context.sender, context.user, CaretakerConstants.SessionPurpose.COMPLETE
            )

        identifier = parts[0]
        notes = parts[1].strip() if len(parts) > 1 else None
        lookup = context.tasks.resolve_identifier(context.user, identifier)
        if lookup.incident is None:
            assert lookup.error is not None
            return CommandResult(text=lookup.error, success=False)
        return context.tasks.apply_completion(lookup.incident.id, context.user, notes)

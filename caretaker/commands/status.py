"""The /status command: the sender's most recent reports."""

from __future__ import annotations

from caretaker.commands.base import Command
from caretaker.commands.models import CommandContext, CommandResult
from caretaker.constants import CaretakerConstants
from caretaker.references import encode_reference
from caretaker.responses import CaretakerResponse


class StatusCommand(Command):
    """Show the status of incidents the sender reported."""

    name = "status"
    description = "Check your reports"

    async def execute(self, args: str, context: CommandContext) -> CommandResult:
        """Execute status command."""
        assert context.user is not None
        reports = context.db.incidents.list_reported(
            context.user.id, CaretakerConstants.STATUS_LIST_LIMIT
        )
        if not reports:
            return CommandResult(text=CaretakerResponse.NO_REPORTS)

        lines = [CaretakerResponse.STATUS_HEADER]
        for incident in reports:
            lines.append(
                CaretakerResponse.STATUS_ITEM.format(
                    icon=context.tasks.status_icon(incident.status),
                    reference=encode_reference(incident.id),
                    subcategory=incident.subcategory,
                    location=incident.location,
                    status=incident.status,
                )
            )
        return CommandResult(text="\n".join(lines))

"""The /assigned command: numbered list of the sender's open tasks."""

from __future__ import annotations

from caretaker.commands.base import Command
from caretaker.commands.models import CommandContext, CommandResult
from caretaker.references import encode_reference
from caretaker.responses import CaretakerResponse


class AssignedCommand(Command):
    """List open and in-progress tasks assigned to the sender."""

    name = "assigned"
    description = "View your assigned tasks"

    async def execute(self, args: str, context: CommandContext) -> CommandResult:
        """Execute assigned command."""
        assert context.user is not None
        tasks = context.tasks.open_tasks(context.user)
        if not tasks:
            return CommandResult(text=CaretakerResponse.NO_ASSIGNED_TASKS)

        lines = [CaretakerResponse.ASSIGNED_HEADER.format(name=context.user.name)]
        for index, incident in enumerate(tasks, start=1):
            lines.append(
                CaretakerResponse.ASSIGNED_ITEM.format(
                    index=index,
                    icon=context.tasks.status_icon(incident.status),
                    reference=encode_reference(incident.id),
                    subcategory=incident.subcategory,
                    location=incident.location,
                    reporter=incident.reporter.name if incident.reporter else "Unknown",
                    date=context.tasks.format_date(incident.timestamp),
                )
            )
        lines.append(CaretakerResponse.ASSIGNED_FOOTER)
        return CommandResult(text="\n".join(lines))

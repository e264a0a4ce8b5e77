"""The /help command: list commands and quick-update examples."""

from __future__ import annotations

from caretaker.commands.base import Command
from caretaker.commands.models import CommandContext, CommandResult
from caretaker.responses import CaretakerResponse


class HelpCommand(Command):
    """Show available commands."""

    name = "help"
    description = "Show available commands"
    requires_account = False

    async def execute(self, args: str, context: CommandContext) -> CommandResult:
        """Execute help command."""
        return CommandResult(text=CaretakerResponse.HELP)

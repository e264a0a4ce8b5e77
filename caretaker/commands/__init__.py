"""Command system for Caretaker."""

from caretaker.commands.assigned import AssignedCommand
from caretaker.commands.base import Command, CommandRegistry
from caretaker.commands.complete import CompleteCommand
from caretaker.commands.help import HelpCommand
from caretaker.commands.models import CommandContext, CommandResult
from caretaker.commands.session_flow import SessionFlow
from caretaker.commands.status import StatusCommand
from caretaker.commands.tasks import TaskLookup, TaskService
from caretaker.commands.update import UpdateCommand

__all__ = [
    "Command",
    "CommandContext",
    "CommandRegistry",
    "CommandResult",
    "SessionFlow",
    "TaskLookup",
    "TaskService",
    "create_command_registry",
]


def create_command_registry(flow: SessionFlow) -> CommandRegistry:
    """
    Factory to create registry with builtin commands.

    Args:
        flow: Session flow used by the bare /update and /complete forms

    Returns:
        CommandRegistry with all builtin commands registered
    """
    registry = CommandRegistry()
    registry.register(HelpCommand())
    registry.register(AssignedCommand())
    registry.register(UpdateCommand(flow))
    registry.register(CompleteCommand(flow))
    registry.register(StatusCommand())
    return registry

"""Base command abstraction and registry."""

from abc import ABC, abstractmethod

from caretaker.commands.models import CommandContext, CommandResult
from caretaker.responses import CaretakerResponse


class Command(ABC):
    """Abstract base class for commands."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Command name (without / prefix)."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """One-sentence description for the /help list."""
        pass

    # Commands that only make sense for a known staff member
    requires_account: bool = True

    @abstractmethod
    async def execute(self, args: str, context: CommandContext) -> CommandResult:
        """
        Execute command with arguments.

        Args:
            args: Command arguments (everything after the command name)
            context: Runtime context (db, sessions, sender, user)

        Returns:
            CommandResult with response text
        """
        pass

    async def run(self, args: str, context: CommandContext) -> CommandResult:
        """Execute, answering unknown phone numbers before the command sees them."""
        if self.requires_account and context.user is None:
            return CommandResult(text=CaretakerResponse.NO_ACCOUNT, success=False)
        return await self.execute(args, context)


class CommandRegistry:
    """Registry for all available commands."""

    def __init__(self):
        """Initialize empty registry."""
        self._commands: dict[str, Command] = {}

    def register(self, command: Command) -> None:
        """
        Register a command.

        Args:
            command: Command instance to register

        Raises:
            AssertionError: If command name is already registered
        """
        name = command.name.lower()
        assert name not in self._commands, f"Command '{name}' already registered"
        self._commands[name] = command

    def get(self, name: str) -> Command | None:
        """Get command by name (case-insensitive)."""
        return self._commands.get(name.lower())

    def list_all(self) -> list[Command]:
        """Get all registered commands."""
        return list(self._commands.values())

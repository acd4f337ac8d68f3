"""
Name-keyed catalogue of the text commands the dispatcher can run.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Awaitable, Callable, Dict, Iterable, List, Optional

from guildkeeper.util.logger import get_logger

if TYPE_CHECKING:
    from guildkeeper.commands.context import CommandContext

logger = get_logger("command_registry")

CommandHandler = Callable[["CommandContext", List[str]], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class CommandDefinition:
    """
    One text command.

    Attributes:
        name: Lower-case name typed after the prefix.
        category: Grouping used by ``help`` and the usage statistics.
        description: One-line summary shown by ``help``.
        execute: Coroutine function ``(ctx, args) -> None``.
        usage: Argument synopsis, e.g. ``"<user> [reason]"``.
    """

    name: str
    category: str
    description: str
    execute: CommandHandler
    usage: str = ""


class CommandRegistry:
    """
    Commands keyed by lower-cased name.

    Registering a name twice silently replaces the earlier definition. The
    replacement keeps the position of the original in :meth:`all`.
    """

    def __init__(self, commands: Iterable[CommandDefinition] = ()) -> None:
        self._commands: Dict[str, CommandDefinition] = {}
        self.register(commands)

    def register(self, commands: Iterable[CommandDefinition]) -> None:
        for command in commands:
            key = command.name.lower()
            if key in self._commands:
                logger.debug("[REGISTRY] Overwriting command '%s'", key)
            self._commands[key] = command

    def lookup(self, name: str) -> Optional[CommandDefinition]:
        return self._commands.get(name.lower())

    def all(self) -> List[CommandDefinition]:
        return list(self._commands.values())

    def by_category(self) -> Dict[str, List[CommandDefinition]]:
        """Group commands by category, both in first-seen order."""
        grouped: Dict[str, List[CommandDefinition]] = {}
        for command in self._commands.values():
            grouped.setdefault(command.category, []).append(command)
        return grouped

    def __len__(self) -> int:
        return len(self._commands)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._commands

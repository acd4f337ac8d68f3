"""
Text commands invoked with the guild prefix.

- **registry.py**: ``CommandDefinition`` and the name-keyed ``CommandRegistry``
- **context.py**: ``CommandContext`` handed to every handler
- **cooldown.py**: per-member cooldown tracking (used by ``ban``)
- **moderation.py**, **gambling.py**, **utility.py**: the handlers
"""

from guildkeeper.commands import gambling, moderation, utility
from guildkeeper.commands.registry import CommandDefinition, CommandRegistry


def build_registry() -> CommandRegistry:
    """Return a registry holding every built-in command, grouped by category."""
    return CommandRegistry([*moderation.COMMANDS, *gambling.COMMANDS, *utility.COMMANDS])


__all__ = ["CommandDefinition", "CommandRegistry", "build_registry"]

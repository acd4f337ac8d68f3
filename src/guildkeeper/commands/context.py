"""
Invocation context handed to every text command handler.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional

import discord

from guildkeeper.commands.cooldown import CooldownTracker
from guildkeeper.datatypes.discord_datatypes import GuildID, UserID

if TYPE_CHECKING:
    from guildkeeper.commands.registry import CommandDefinition, CommandRegistry
    from guildkeeper.configuration.app_configuration import AppConfig
    from guildkeeper.database.database import Database


@dataclass
class CommandContext:
    """
    Everything a handler needs besides its arguments.

    Attributes:
        message: The guild message that invoked the command.
        db: Database coordinator with all stores.
        registry: Registry the command was looked up in (``help`` lists it).
        config: Application configuration.
        cooldowns: Shared per-member cooldown tracker.
        bot: Client that received the message, for latency and user lookups.
        command: Definition being executed, set by the dispatcher.
        prefix: Prefix the message was invoked with.
    """

    message: discord.Message
    db: "Database"
    registry: "CommandRegistry"
    config: "AppConfig"
    cooldowns: CooldownTracker = field(default_factory=CooldownTracker)
    bot: Optional[discord.Bot] = None
    command: Optional["CommandDefinition"] = None
    prefix: str = "!"

    @property
    def author(self) -> discord.Member:
        return self.message.author  # type: ignore[return-value]

    @property
    def guild(self) -> discord.Guild:
        return self.message.guild  # type: ignore[return-value]

    @property
    def channel(self):
        return self.message.channel

    @property
    def guild_id(self) -> GuildID:
        return GuildID(self.guild.id)

    @property
    def author_id(self) -> UserID:
        return UserID(self.author.id)

    @property
    def me(self) -> Optional[discord.Member]:
        """The bot's own member object in this guild."""
        return self.guild.me

    async def reply(
        self,
        embed: Optional[discord.Embed] = None,
        content: Optional[str] = None,
    ) -> discord.Message:
        return await self.message.reply(content=content, embed=embed)

    async def send(
        self,
        embed: Optional[discord.Embed] = None,
        content: Optional[str] = None,
    ) -> discord.Message:
        """Post to the invoking channel without quoting the message."""
        return await self.channel.send(content=content, embed=embed)

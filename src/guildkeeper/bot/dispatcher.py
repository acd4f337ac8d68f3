"""
Routes prefixed guild messages to command handlers.

``CommandDispatcher.handle_message`` short-circuits in this order:

1. messages from bots are ignored,
2. messages outside a guild are ignored,
3. the guild prefix is looked up (``!`` when the guild is unknown),
4. content that does not start with the prefix is ignored,
5. the remainder is split on whitespace; an empty command name is ignored,
6. names the registry does not know are ignored without a reply,
7. the handler runs, then the usage counter for the command is bumped.

A handler that raises is logged and answered with a generic error; its
invocation is not counted.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Dict, List, Optional, Tuple

import discord

from guildkeeper.commands.context import CommandContext
from guildkeeper.commands.cooldown import CooldownTracker
from guildkeeper.commands.registry import CommandRegistry
from guildkeeper.database.errors import StoreError
from guildkeeper.datatypes.discord_datatypes import GuildID
from guildkeeper.util.embeds import error_embed
from guildkeeper.util.logger import get_logger

if TYPE_CHECKING:
    from guildkeeper.configuration.app_configuration import AppConfig
    from guildkeeper.database.database import Database
    from guildkeeper.database.stores import GuildStore

logger = get_logger("dispatcher")

GENERIC_FAILURE = "Something went wrong while running that command."


class DispatchOutcome(Enum):
    IGNORED = "ignored"
    DISPATCHED = "dispatched"
    FAILED = "failed"


class PrefixCache:
    """
    Read-through cache of guild prefixes.

    Guilds without a stored configuration get the default prefix, which is
    not cached so a guild registered later picks up its own. Entries are
    dropped whenever the guild store reports a change.
    """

    def __init__(self, guilds: "GuildStore", default_prefix: str = "!") -> None:
        self._guilds = guilds
        self.default_prefix = default_prefix
        self._prefixes: Dict[GuildID, str] = {}
        guilds.add_change_listener(self.invalidate)

    async def get(self, guild_id: GuildID | int | str) -> str:
        guild_id = GuildID(guild_id)
        cached = self._prefixes.get(guild_id)
        if cached is not None:
            return cached

        config = await self._guilds.get(guild_id)
        if config is None or not config.prefix:
            return self.default_prefix

        self._prefixes[guild_id] = config.prefix
        return config.prefix

    def invalidate(self, guild_id: Optional[GuildID | int | str] = None) -> None:
        """Forget one guild's prefix, or every prefix when no id is given."""
        if guild_id is None:
            self._prefixes.clear()
        else:
            self._prefixes.pop(GuildID(guild_id), None)


def tokenize(content: str, prefix: str) -> Optional[Tuple[str, List[str]]]:
    """
    Split a message into ``(command_name, args)``.

    Returns ``None`` when ``content`` does not carry ``prefix`` or nothing
    but whitespace follows it.
    """
    if not content.startswith(prefix):
        return None
    tokens = content[len(prefix):].strip().split()
    if not tokens:
        return None
    return tokens[0].lower(), tokens[1:]


class CommandDispatcher:
    """Turns incoming messages into handler invocations."""

    def __init__(
        self,
        db: "Database",
        registry: CommandRegistry,
        config: "AppConfig",
        *,
        bot: Optional[discord.Bot] = None,
        cooldowns: Optional[CooldownTracker] = None,
        prefix_cache: Optional[PrefixCache] = None,
    ) -> None:
        self.db = db
        self.registry = registry
        self.config = config
        self.bot = bot
        self.cooldowns = cooldowns or CooldownTracker()
        self.prefixes = prefix_cache or PrefixCache(db.guilds, config.default_prefix)

    async def _resolve_prefix(self, guild_id: GuildID) -> str:
        try:
            return await self.prefixes.get(guild_id)
        except StoreError as exc:
            logger.warning("[DISPATCHER] Prefix lookup failed for guild %s, using default: %s", guild_id, exc)
            return self.prefixes.default_prefix

    async def handle_message(self, message: discord.Message) -> DispatchOutcome:
        if message.author.bot:
            return DispatchOutcome.IGNORED
        if message.guild is None:
            return DispatchOutcome.IGNORED

        guild_id = GuildID(message.guild.id)
        prefix = await self._resolve_prefix(guild_id)

        parsed = tokenize(message.content or "", prefix)
        if parsed is None:
            return DispatchOutcome.IGNORED
        name, args = parsed

        command = self.registry.lookup(name)
        if command is None:
            return DispatchOutcome.IGNORED

        ctx = CommandContext(
            message=message,
            db=self.db,
            registry=self.registry,
            config=self.config,
            cooldowns=self.cooldowns,
            bot=self.bot,
            command=command,
            prefix=prefix,
        )

        logger.debug("[DISPATCHER] %s ran '%s' in guild %s with %d arg(s)", message.author, name, guild_id, len(args))
        try:
            await command.execute(ctx, args)
        except Exception:
            logger.exception("[DISPATCHER] Command '%s' failed in guild %s", name, guild_id)
            try:
                await message.reply(embed=error_embed(GENERIC_FAILURE))
            except Exception as exc:
                logger.debug("[DISPATCHER] Could not send failure notice: %s", exc)
            return DispatchOutcome.FAILED

        try:
            await self.db.usage.increment(guild_id, name, command.category)
        except StoreError:
            logger.exception("[DISPATCHER] Could not record usage of '%s' in guild %s", name, guild_id)

        return DispatchOutcome.DISPATCHED

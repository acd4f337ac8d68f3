"""Event listener Cog for Guildkeeper.

This cog keeps the stored guild records in step with the guilds the bot is a
member of and tracks whether the gateway connection is up. Message events
are handled by the MessageListenerCog.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import discord
from discord.ext import commands

from guildkeeper.bot.bot_state import BotState, bot_state
from guildkeeper.database.errors import SettingsAlreadyExistError, StoreError
from guildkeeper.datatypes.discord_datatypes import GuildID
from guildkeeper.datatypes.guild_datatypes import GuildConfig
from guildkeeper.util.logger import get_logger

if TYPE_CHECKING:
    from guildkeeper.configuration.app_configuration import AppConfig
    from guildkeeper.database.database import Database

logger = get_logger("events_listener_cog")


def guild_to_config(guild: discord.Guild, prefix: str) -> GuildConfig:
    """Snapshot the fields of a Discord guild that the guild store keeps."""
    return GuildConfig(
        id=GuildID.from_guild(guild),
        name=guild.name,
        icon_url=guild.icon.url if guild.icon else None,
        member_count=guild.member_count or 0,
        prefix=prefix,
    )


class EventsListenerCog(commands.Cog):
    """Cog containing bot lifecycle and guild membership handlers."""

    def __init__(self, discord_bot_instance, db: "Database", config: "AppConfig", state: BotState = bot_state):
        """Initialize the events listener cog.

        Parameters
        ----------
        discord_bot_instance:
            The Discord bot instance to attach this cog to.
        db:
            Database coordinator whose guild records are kept in sync.
        config:
            Application configuration supplying the defaults for new guilds.
        state:
            Connection state shared with the dashboard API.
        """
        self.bot = discord_bot_instance
        self.db = db
        self.config = config
        self.state = state
        logger.info("Events listener cog loaded")

    async def sync_guild(self, guild: discord.Guild) -> None:
        """Create the guild with default settings, or refresh its stored details."""
        snapshot = guild_to_config(guild, self.config.default_prefix)
        existing = await self.db.guilds.get(snapshot.id)
        if existing is None:
            await self.db.register_guild(snapshot, self.config.default_guild_settings)
            return

        await self.db.guilds.update(snapshot.id, {
            "name": snapshot.name,
            "icon_url": snapshot.icon_url,
            "member_count": snapshot.member_count,
        })
        if await self.db.settings.read(snapshot.id) is None:
            try:
                await self.db.settings.create(snapshot.id, self.config.default_guild_settings)
            except SettingsAlreadyExistError:
                pass

    @commands.Cog.listener(name='on_ready')
    async def on_ready(self):
        """Mark the bot online, set its presence and sync every joined guild."""
        self.state.mark_connected()
        if self.bot.user:
            logger.info(f"Bot connected as {self.bot.user} (ID: {self.bot.user.id})")
            await self.bot.change_presence(
                status=discord.Status.online,
                activity=discord.Activity(
                    type=discord.ActivityType.watching,
                    name=f"for {self.config.default_prefix}help",
                ),
            )
        else:
            logger.warning("Bot partially connected, but user information not yet available.")

        for guild in self.bot.guilds:
            try:
                await self.sync_guild(guild)
            except StoreError:
                logger.exception("[EVENTS] Could not sync guild %s (%s)", guild.id, guild.name)

        logger.info("[EVENTS] Synced %d guild(s)", len(self.bot.guilds))
        logger.info("--==--==--==--==--==--==--==--==--==--==--==--==--==--==--==--==--")

    @commands.Cog.listener(name='on_resumed')
    async def on_resumed(self):
        self.state.mark_connected()

    @commands.Cog.listener(name='on_disconnect')
    async def on_disconnect(self):
        self.state.mark_disconnected()

    @commands.Cog.listener(name='on_guild_join')
    async def on_guild_join(self, guild: discord.Guild):
        logger.info("[EVENTS] Joined guild %s (%s)", guild.id, guild.name)
        try:
            await self.sync_guild(guild)
        except StoreError:
            logger.exception("[EVENTS] Could not register guild %s", guild.id)

    @commands.Cog.listener(name='on_guild_remove')
    async def on_guild_remove(self, guild: discord.Guild):
        """Drop the guild record; its settings go with it."""
        logger.info("[EVENTS] Removed from guild %s (%s)", guild.id, guild.name)
        try:
            await self.db.guilds.delete(guild.id)
        except StoreError:
            logger.exception("[EVENTS] Could not delete guild %s", guild.id)

    @commands.Cog.listener(name='on_guild_update')
    async def on_guild_update(self, before: discord.Guild, after: discord.Guild):
        try:
            await self.db.guilds.update(after.id, {
                "name": after.name,
                "icon_url": after.icon.url if after.icon else None,
                "member_count": after.member_count or 0,
            })
        except StoreError:
            logger.exception("[EVENTS] Could not update guild %s", after.id)


def setup(discord_bot_instance, db: "Database", config: "AppConfig", state: BotState = bot_state):
    """Register the EventsListenerCog with the bot.

    Parameters
    ----------
    discord_bot_instance:
        The Discord bot instance to add this cog to.
    """
    discord_bot_instance.add_cog(EventsListenerCog(discord_bot_instance, db, config, state))

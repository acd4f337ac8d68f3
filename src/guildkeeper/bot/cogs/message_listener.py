"""Message listener Cog for Guildkeeper.

This cog forwards every created message to the command dispatcher.
"""

import discord
from discord.ext import commands

from guildkeeper.bot.dispatcher import CommandDispatcher
from guildkeeper.util.logger import get_logger

logger = get_logger("message_listener_cog")


class MessageListenerCog(commands.Cog):
    """Cog responsible for turning messages into text command invocations."""

    def __init__(self, discord_bot_instance, dispatcher: CommandDispatcher):
        """
        Initialize the message listener cog.

        Parameters
        ----------
        discord_bot_instance:
            The Discord bot instance to attach this cog to.
        dispatcher:
            Dispatcher that parses and runs prefixed commands.
        """
        self.bot = discord_bot_instance
        self.dispatcher = dispatcher
        logger.info("Message listener cog loaded")

    @commands.Cog.listener(name='on_message')
    async def on_message(self, message: discord.Message):
        """
        Hand the message to the dispatcher.

        A failing handler has already been logged and answered by the time
        this returns.
        """
        outcome = await self.dispatcher.handle_message(message)
        logger.debug(f"Message {message.id} from {message.author}: {outcome.value}")


def setup(discord_bot_instance, dispatcher: CommandDispatcher):
    """
    Register the MessageListenerCog with the bot.

    Parameters
    ----------
    discord_bot_instance:
        The Discord bot instance to add this cog to.
    dispatcher:
        Dispatcher shared with the rest of the runtime.
    """
    discord_bot_instance.add_cog(MessageListenerCog(discord_bot_instance, dispatcher))

"""
Guildkeeper
===========

A Discord bot for prefix-based moderation, virtual-currency games and
utility commands, with a JSON API for the web dashboard. The bot and the API
run on one asyncio event loop and share one SQLite database.
"""

import os
import sys
from pathlib import Path


def resolve_base_dir() -> Path:
    """Determine the base directory of the project.
    Resolution order:
    1. GUILDKEEPER_HOME environment variable, if set.
    2. If running in a frozen/compiled context (e.g., PyInstaller, Nuitka), use the executable's directory.
    3. Otherwise, assume running from source and use the grandparent of this file's directory.
    """
    if env_home := os.getenv("GUILDKEEPER_HOME"):
        return Path(env_home).resolve()

    if getattr(sys, "frozen", False) or getattr(sys, "compiled", False):
        return Path(sys.argv[0]).resolve().parent

    return Path(__file__).resolve().parents[2]

BASE_DIR = resolve_base_dir()
os.chdir(BASE_DIR)

import asyncio
from datetime import timedelta
from typing import Optional

import discord
from dotenv import load_dotenv

from guildkeeper.api.app import create_app
from guildkeeper.api.server import ApiServer
from guildkeeper.bot.bot_state import BotState, bot_state
from guildkeeper.bot.dispatcher import CommandDispatcher
from guildkeeper.commands import build_registry
from guildkeeper.commands.registry import CommandRegistry
from guildkeeper.configuration.app_configuration import AppConfig, app_config
from guildkeeper.database.database import Database
from guildkeeper.util.logger import get_logger, handle_exception


logger = get_logger("main")


def load_environment() -> str:
    """Load environment variables and return the Discord bot token.

    Returns
    -------
    str
        Discord bot token extracted from the loaded environment.

    Raises
    ------
    SystemExit
        If the required ``DISCORD_BOT_TOKEN`` variable is missing.
    """
    load_dotenv(dotenv_path=BASE_DIR / ".env")
    token = os.getenv("DISCORD_BOT_TOKEN")
    if not token:
        logger.critical("'DISCORD_BOT_TOKEN' environment variable not set. Bot cannot start.")
        sys.exit(1)
    return token


def build_intents() -> discord.Intents:
    """Construct the Discord intents the command runtime needs.

    Returns
    -------
    discord.Intents
        Intents enabling guild, member and message content events.
    """
    intents = discord.Intents.default()
    intents.message_content = True
    intents.guilds = True
    intents.messages = True
    intents.members = True
    return intents


def create_database(config: AppConfig) -> Database:
    """Build the database coordinator from the economy and storage settings."""
    return Database(
        config.database_path,
        starting_balance=config.starting_balance,
        daily_cooldown=timedelta(hours=config.daily_cooldown_hours),
    )


def load_cogs(
    discord_bot_instance: discord.Bot,
    db: Database,
    config: AppConfig,
    dispatcher: CommandDispatcher,
    state: BotState,
) -> None:
    """Register all operational cogs with the provided Discord bot instance."""
    from guildkeeper.bot.cogs import events_listener, message_listener

    events_listener.setup(discord_bot_instance, db, config, state)
    message_listener.setup(discord_bot_instance, dispatcher)

    logger.info("All cogs loaded successfully.")


def create_bot(
    db: Database,
    registry: CommandRegistry,
    config: AppConfig,
    state: BotState = bot_state,
) -> discord.Bot:
    """Instantiate the Discord bot, its dispatcher and cogs."""
    bot = discord.Bot(intents=build_intents())
    dispatcher = CommandDispatcher(db, registry, config, bot=bot)
    load_cogs(bot, db, config, dispatcher, state)
    return bot


async def start_bot(bot: discord.Bot, token: str) -> None:
    """Start the Discord bot and handle lifecycle logging around the connection.

    Parameters
    ----------
    bot:
        Discord client to start.
    token:
        Authentication token used to connect to Discord.
    """
    logger.info("Attempting to connect to Discord…")
    try:
        await bot.start(token)
    except asyncio.CancelledError:
        logger.info("Discord bot start cancelled; shutting down")
    finally:
        logger.info("Discord bot start routine finished.")


async def shutdown_runtime(
    bot: Optional[discord.Bot],
    api_server: Optional[ApiServer],
    db: Database,
    state: BotState = bot_state,
) -> None:
    """Gracefully stop the Discord bot, the dashboard API and the database."""
    state.mark_disconnected()

    if bot is not None and not bot.is_closed():
        try:
            await bot.close()
        except Exception as exc:
            logger.exception("Error while closing the Discord client: %s", exc)

    if api_server is not None:
        await api_server.stop()

    try:
        await db.shutdown()
    except Exception as exc:
        logger.exception("Error during database shutdown: %s", exc)

    logger.info("Shutdown complete.")


async def async_main(config: AppConfig = app_config) -> int:
    """Bootstrap the database, dashboard API and bot, returning an exit code.

    Returns
    -------
    int
        Process exit code reflecting success or failure of initialization.
    """
    token = load_environment()

    db = create_database(config)
    logger.info("Initializing database...")
    if not await db.initialize():
        logger.critical("Failed to initialize database at %s", config.database_path)
        return 1

    registry = build_registry()
    logger.info("Registered %d commands", len(registry))

    try:
        bot = create_bot(db, registry, config)
    except Exception as exc:
        logger.critical("Failed to initialize Discord bot: %s", exc)
        await db.shutdown()
        return 1

    api_server: Optional[ApiServer] = None
    if config.api_enabled:
        api_server = ApiServer(create_app(db, registry, bot_state, config), config.api_host, config.api_port)
        api_server.start()

    exit_code = 0
    try:
        await start_bot(bot, token)
    except discord.LoginFailure as exc:
        logger.critical("Discord rejected the bot token: %s", exc)
        exit_code = 1
    except Exception as exc:
        logger.critical("Discord bot runtime error: %s", exc)
        exit_code = 1
    finally:
        await shutdown_runtime(bot, api_server, db)

    return exit_code


def main() -> int:
    """Entrypoint that orchestrates the async runtime and returns the process code.

    Returns
    -------
    int
        Exit code propagated to the operating system.
    """
    sys.excepthook = handle_exception
    logger.info("Starting Guildkeeper…")
    try:
        return asyncio.run(async_main())
    except KeyboardInterrupt:
        logger.info("Shutdown requested by user.")
        return 0
    except SystemExit as exit_exc:
        code = exit_exc.code
        if isinstance(code, int):
            return code
        return 1
    except Exception as exc:
        logger.critical("An unexpected error occurred while running the bot: %s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())

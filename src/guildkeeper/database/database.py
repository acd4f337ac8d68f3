"""
Database initialization and store coordination for SQLite.

The Database class owns the single aiosqlite connection and exposes one
facade per store:

- ``guilds``: guild configuration (prefix, name, member count)
- ``settings``: per-guild settings and feature toggles
- ``audit_log``: append-only moderation/command trail
- ``usage``: per-command usage counters
- ``ledger``: virtual currency balances

Lifecycle:
    1. Call initialize() at program startup
    2. Use the stores
    3. Call shutdown() at program end
"""

from __future__ import annotations

from datetime import timedelta
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

from guildkeeper.database.db_connection import ConnectionManager
from guildkeeper.database.db_schema import SchemaManager
from guildkeeper.database.stores import AuditLogStore, GuildStore, SettingsStore, UsageStore
from guildkeeper.datatypes.guild_datatypes import GuildConfig, GuildSettings
from guildkeeper.repositories.guild_repo import GuildRepo
from guildkeeper.repositories.settings_repo import GuildSettingsRepo
from guildkeeper.services.balance_ledger import BalanceLedger
from guildkeeper.util.logger import get_logger

logger = get_logger("database")

# Database file path
DB_PATH = Path("./data/guildkeeper.db").resolve()


class Database:
    """
    Central coordinator for all persistent state.

    Args:
        db_path: Path to the SQLite database file.
        starting_balance: Balance a member starts with on first gambling use.
        daily_cooldown: Minimum time between two ``daily`` claims.
    """

    def __init__(
        self,
        db_path: Path = DB_PATH,
        *,
        starting_balance: int = 1000,
        daily_cooldown: timedelta = timedelta(hours=24),
    ):
        self.db_path = db_path
        self._initialized = False

        self.connections = ConnectionManager()
        self.guilds = GuildStore(self.connections)
        self.settings = SettingsStore(self.connections)
        self.audit_log = AuditLogStore(self.connections)
        self.usage = UsageStore(self.connections)
        self.ledger = BalanceLedger(
            self.connections,
            starting_balance=starting_balance,
            daily_cooldown=daily_cooldown,
        )

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> bool:
        """
        Open the connection and create the schema.

        Returns:
            True if initialization succeeded, False otherwise
        """
        if self._initialized:
            logger.debug("[DATABASE] Already initialized, skipping")
            return True

        try:
            await self.connections.open(self.db_path)
            await SchemaManager.initialize_schema(self.connections.connection)
        except Exception as e:
            logger.error("[DATABASE] Database initialization failed: %s", e)
            await self.connections.close()
            return False

        self._initialized = True
        logger.info("[DATABASE] Database initialized at %s", self.db_path)
        return True

    async def shutdown(self) -> None:
        """Close the connection. Safe to call when never initialized."""
        if not self._initialized:
            return

        await self.connections.close()
        self._initialized = False
        logger.info("[DATABASE] Database shutdown complete")

    async def register_guild(
        self,
        config: GuildConfig,
        settings_defaults: Optional[Mapping[str, Any]] = None,
    ) -> Tuple[GuildConfig, GuildSettings]:
        """
        Create a guild and its default settings in one transaction.

        Raises:
            StoreError: The guild already exists or the database failed.
        """
        async with self.connections.transaction() as conn:
            created = await GuildRepo.insert(conn, config)
            settings = await GuildSettingsRepo.insert(conn, created.id, settings_defaults)
        self.guilds.notify_changed(created.id)
        logger.info("[DATABASE] Registered guild %s (%s)", created.id, created.name)
        return created, settings

"""
Store facades over the repositories.

Each store owns the transaction boundaries for its operations and delegates
the SQL to the matching ``guildkeeper.repositories`` class. Callers (command
handlers, cogs, the dashboard API) only ever talk to these stores through the
:class:`~guildkeeper.database.database.Database` coordinator.
"""

from __future__ import annotations

from typing import Any, Callable, List, Mapping, Optional

from guildkeeper.database.db_connection import ConnectionManager
from guildkeeper.database.errors import SettingsNotFoundError
from guildkeeper.datatypes.action_datatypes import AuditEntry, NewAuditEntry
from guildkeeper.datatypes.discord_datatypes import GuildID
from guildkeeper.datatypes.guild_datatypes import CommandUsage, GuildConfig, GuildSettings
from guildkeeper.repositories.audit_log_repo import DEFAULT_QUERY_LIMIT, AuditLogRepo
from guildkeeper.repositories.guild_repo import GuildRepo
from guildkeeper.repositories.settings_repo import GuildSettingsRepo
from guildkeeper.repositories.usage_repo import CommandUsageRepo
from guildkeeper.util.logger import get_logger

logger = get_logger("stores")

GuildChangeListener = Callable[[GuildID], None]


class GuildStore:
    """Create, read, update and delete guild configuration records.

    Every write notifies the registered change listeners with the guild id,
    which is how cached prefixes get invalidated.
    """

    def __init__(self, connections: ConnectionManager) -> None:
        self._connections = connections
        self._listeners: List[GuildChangeListener] = []

    def add_change_listener(self, listener: GuildChangeListener) -> None:
        self._listeners.append(listener)

    def notify_changed(self, guild_id: GuildID) -> None:
        for listener in self._listeners:
            try:
                listener(guild_id)
            except Exception:
                logger.exception("[GUILD STORE] Change listener failed for guild %s", guild_id)

    async def create(self, config: GuildConfig) -> GuildConfig:
        async with self._connections.transaction() as conn:
            created = await GuildRepo.insert(conn, config)
        self.notify_changed(created.id)
        logger.debug("[GUILD STORE] Created guild %s (%s)", created.id, created.name)
        return created

    async def get(self, guild_id: GuildID | int | str) -> Optional[GuildConfig]:
        async with self._connections.read() as conn:
            return await GuildRepo.get(conn, GuildID(guild_id))

    async def list(self) -> List[GuildConfig]:
        async with self._connections.read() as conn:
            return await GuildRepo.list_all(conn)

    async def update(self, guild_id: GuildID | int | str, changes: Mapping[str, Any]) -> Optional[GuildConfig]:
        """Merge ``changes`` into the record; ``None`` if the guild is unknown."""
        guild_id = GuildID(guild_id)
        async with self._connections.transaction() as conn:
            if await GuildRepo.get(conn, guild_id) is None:
                return None
            await GuildRepo.update(conn, guild_id, changes)
            updated = await GuildRepo.get(conn, guild_id)
        self.notify_changed(guild_id)
        return updated

    async def delete(self, guild_id: GuildID | int | str) -> bool:
        guild_id = GuildID(guild_id)
        async with self._connections.transaction() as conn:
            removed = await GuildRepo.delete(conn, guild_id)
        self.notify_changed(guild_id)
        if removed:
            logger.debug("[GUILD STORE] Deleted guild %s", guild_id)
        return removed


class SettingsStore:
    """At most one :class:`GuildSettings` record per guild."""

    def __init__(self, connections: ConnectionManager) -> None:
        self._connections = connections

    async def create(
        self,
        guild_id: GuildID | int | str,
        defaults: Optional[Mapping[str, Any]] = None,
    ) -> GuildSettings:
        """
        Raises:
            SettingsAlreadyExistError: The guild already has settings.
            StoreError: The guild is unknown or the database failed.
        """
        async with self._connections.transaction() as conn:
            return await GuildSettingsRepo.insert(conn, GuildID(guild_id), defaults)

    async def read(self, guild_id: GuildID | int | str) -> Optional[GuildSettings]:
        async with self._connections.read() as conn:
            return await GuildSettingsRepo.get(conn, GuildID(guild_id))

    async def update(self, guild_id: GuildID | int | str, changes: Mapping[str, Any]) -> GuildSettings:
        """
        Merge the known fields of ``changes`` over the stored record.

        Raises:
            SettingsNotFoundError: The guild has no settings yet.
        """
        guild_id = GuildID(guild_id)
        async with self._connections.transaction() as conn:
            if not await GuildSettingsRepo.update(conn, guild_id, changes):
                raise SettingsNotFoundError(guild_id)
            updated = await GuildSettingsRepo.get(conn, guild_id)
        if updated is None:
            raise SettingsNotFoundError(guild_id)
        return updated


class AuditLogStore:
    """Append-only audit trail of moderation and command actions."""

    def __init__(self, connections: ConnectionManager) -> None:
        self._connections = connections

    async def append(self, entry: NewAuditEntry) -> AuditEntry:
        async with self._connections.transaction() as conn:
            stored = await AuditLogRepo.append(conn, entry)
        logger.info(
            "[AUDIT LOG] #%s %s in guild %s by %s on %s",
            stored.id, stored.type, stored.guild_id, stored.moderator_name, stored.target_name,
        )
        return stored

    async def query(self, guild_id: GuildID | int | str, limit: int = DEFAULT_QUERY_LIMIT) -> List[AuditEntry]:
        async with self._connections.read() as conn:
            return await AuditLogRepo.query(conn, GuildID(guild_id), limit)


class UsageStore:
    """Per (guild, command) invocation counters."""

    def __init__(self, connections: ConnectionManager) -> None:
        self._connections = connections

    async def increment(self, guild_id: GuildID | int | str, command: str, category: str) -> CommandUsage:
        async with self._connections.transaction() as conn:
            return await CommandUsageRepo.increment(conn, GuildID(guild_id), command, category)

    async def query(self, guild_id: GuildID | int | str) -> List[CommandUsage]:
        async with self._connections.read() as conn:
            return await CommandUsageRepo.query(conn, GuildID(guild_id))

"""
Persistent storage for guild configuration (name, icon, member count, prefix).
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional

import aiosqlite

from guildkeeper.datatypes.discord_datatypes import GuildID
from guildkeeper.datatypes.guild_datatypes import GUILD_CONFIG_MUTABLE_FIELDS, GuildConfig
from guildkeeper.util.logger import get_logger
from guildkeeper.util.time_utils import from_micros, to_micros, utcnow

logger = get_logger("guild_repo")

_COLUMNS = "guild_id, name, icon_url, member_count, prefix, added_at"


def _row_to_config(row: aiosqlite.Row) -> GuildConfig:
    return GuildConfig(
        id=GuildID(row["guild_id"]),
        name=row["name"],
        icon_url=row["icon_url"],
        member_count=row["member_count"],
        prefix=row["prefix"],
        added_at=from_micros(row["added_at"]),
    )


class GuildRepo:
    """Low-level CRUD for the ``guilds`` table."""

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    @staticmethod
    async def insert(conn: aiosqlite.Connection, config: GuildConfig) -> GuildConfig:
        """Insert a guild row; the server assigns ``added_at``."""
        added_at = utcnow()
        await conn.execute(
            f"INSERT INTO guilds ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?)",
            (
                GuildID(config.id).to_int(),
                config.name,
                config.icon_url,
                int(config.member_count or 0),
                config.prefix,
                to_micros(added_at),
            ),
        )
        return GuildConfig(
            id=GuildID(config.id),
            name=config.name,
            icon_url=config.icon_url,
            member_count=int(config.member_count or 0),
            prefix=config.prefix,
            added_at=from_micros(to_micros(added_at)),
        )

    @staticmethod
    async def update(
        conn: aiosqlite.Connection,
        guild_id: GuildID,
        changes: Mapping[str, Any],
    ) -> None:
        """Apply the known fields in ``changes``; unknown keys are ignored."""
        assignments = {k: v for k, v in changes.items() if k in GUILD_CONFIG_MUTABLE_FIELDS}
        if not assignments:
            return
        columns = ", ".join(f"{name} = ?" for name in assignments)
        await conn.execute(
            f"UPDATE guilds SET {columns} WHERE guild_id = ?",
            (*assignments.values(), guild_id.to_int()),
        )

    @staticmethod
    async def delete(conn: aiosqlite.Connection, guild_id: GuildID) -> bool:
        """Remove the guild row; settings follow through ``ON DELETE CASCADE``."""
        cursor = await conn.execute("DELETE FROM guilds WHERE guild_id = ?", (guild_id.to_int(),))
        return cursor.rowcount > 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    @staticmethod
    async def get(conn: aiosqlite.Connection, guild_id: GuildID) -> Optional[GuildConfig]:
        cursor = await conn.execute(
            f"SELECT {_COLUMNS} FROM guilds WHERE guild_id = ?",
            (guild_id.to_int(),),
        )
        row = await cursor.fetchone()
        return _row_to_config(row) if row else None

    @staticmethod
    async def list_all(conn: aiosqlite.Connection) -> List[GuildConfig]:
        cursor = await conn.execute(f"SELECT {_COLUMNS} FROM guilds ORDER BY added_at, guild_id")
        rows = await cursor.fetchall()
        return [_row_to_config(row) for row in rows]

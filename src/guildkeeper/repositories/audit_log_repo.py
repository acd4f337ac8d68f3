"""
Append-only storage for the moderation and command audit log.
"""

from __future__ import annotations

from typing import List

import aiosqlite

from guildkeeper.datatypes.action_datatypes import ActionType, AuditEntry, NewAuditEntry
from guildkeeper.datatypes.discord_datatypes import GuildID
from guildkeeper.util.logger import get_logger
from guildkeeper.util.time_utils import from_micros, to_micros, utcnow

logger = get_logger("audit_log_repo")

DEFAULT_QUERY_LIMIT = 50
MAX_QUERY_LIMIT = 1000

_COLUMNS = "id, guild_id, type, moderator_id, moderator_name, target_id, target_name, reason, timestamp"


def _row_to_entry(row: aiosqlite.Row) -> AuditEntry:
    return AuditEntry(
        id=row["id"],
        guild_id=GuildID(row["guild_id"]),
        type=ActionType(row["type"]),
        moderator_id=row["moderator_id"],
        moderator_name=row["moderator_name"],
        target_id=row["target_id"],
        target_name=row["target_name"],
        reason=row["reason"],
        timestamp=from_micros(row["timestamp"]),
    )


class AuditLogRepo:
    """Writes and reads rows of the ``audit_log`` table. Rows are never updated."""

    @staticmethod
    async def append(conn: aiosqlite.Connection, entry: NewAuditEntry) -> AuditEntry:
        """Insert ``entry`` with a server-side timestamp and return the stored row."""
        timestamp = to_micros(utcnow())
        guild_id = GuildID(entry.guild_id)
        cursor = await conn.execute(
            """
            INSERT INTO audit_log (guild_id, type, moderator_id, moderator_name,
                                   target_id, target_name, reason, timestamp)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                guild_id.to_int(),
                ActionType(entry.type).value,
                str(entry.moderator_id),
                entry.moderator_name,
                str(entry.target_id),
                entry.target_name,
                entry.reason,
                timestamp,
            ),
        )
        return AuditEntry(
            id=cursor.lastrowid,
            guild_id=guild_id,
            type=ActionType(entry.type),
            moderator_id=str(entry.moderator_id),
            moderator_name=entry.moderator_name,
            target_id=str(entry.target_id),
            target_name=entry.target_name,
            reason=entry.reason,
            timestamp=from_micros(timestamp),
        )

    @staticmethod
    async def query(
        conn: aiosqlite.Connection,
        guild_id: GuildID,
        limit: int = DEFAULT_QUERY_LIMIT,
    ) -> List[AuditEntry]:
        """Return the guild's entries newest first, at most ``limit`` of them (capped at MAX_QUERY_LIMIT)."""
        if limit <= 0:
            return []
        limit = min(limit, MAX_QUERY_LIMIT)
        cursor = await conn.execute(
            f"SELECT {_COLUMNS} FROM audit_log WHERE guild_id = ? "
            "ORDER BY timestamp DESC, id DESC LIMIT ?",
            (guild_id.to_int(), limit),
        )
        rows = await cursor.fetchall()
        return [_row_to_entry(row) for row in rows]

"""
Per-guild, per-command invocation counters.
"""

from __future__ import annotations

from typing import List

import aiosqlite

from guildkeeper.datatypes.discord_datatypes import GuildID
from guildkeeper.datatypes.guild_datatypes import CommandUsage
from guildkeeper.util.logger import get_logger
from guildkeeper.util.time_utils import from_micros, to_micros, utcnow

logger = get_logger("usage_repo")

_COLUMNS = "id, guild_id, command, category, usage_count, last_used"


def _row_to_usage(row: aiosqlite.Row) -> CommandUsage:
    return CommandUsage(
        id=row["id"],
        guild_id=GuildID(row["guild_id"]),
        command=row["command"],
        category=row["category"],
        usage_count=row["usage_count"],
        last_used=from_micros(row["last_used"]),
    )


class CommandUsageRepo:
    """Upserts and reads rows of the ``command_usage`` table."""

    @staticmethod
    async def increment(
        conn: aiosqlite.Connection,
        guild_id: GuildID,
        command: str,
        category: str,
    ) -> CommandUsage:
        """
        Create the counter at 1 or bump it by one.

        ``last_used`` always moves strictly forward for a given row, even when
        the clock has not ticked since the previous call. Must run inside a
        write transaction so the read and the upsert are not interleaved.
        """
        cursor = await conn.execute(
            "SELECT last_used FROM command_usage WHERE guild_id = ? AND command = ?",
            (guild_id.to_int(), command),
        )
        previous = await cursor.fetchone()
        now = to_micros(utcnow())
        if previous is not None and now <= previous["last_used"]:
            now = previous["last_used"] + 1

        await conn.execute(
            """
            INSERT INTO command_usage (guild_id, command, category, usage_count, last_used)
            VALUES (?, ?, ?, 1, ?)
            ON CONFLICT(guild_id, command) DO UPDATE SET
                usage_count = usage_count + 1,
                last_used   = excluded.last_used
            """,
            (guild_id.to_int(), command, category, now),
        )
        cursor = await conn.execute(
            f"SELECT {_COLUMNS} FROM command_usage WHERE guild_id = ? AND command = ?",
            (guild_id.to_int(), command),
        )
        return _row_to_usage(await cursor.fetchone())

    @staticmethod
    async def query(conn: aiosqlite.Connection, guild_id: GuildID) -> List[CommandUsage]:
        cursor = await conn.execute(
            f"SELECT {_COLUMNS} FROM command_usage WHERE guild_id = ?",
            (guild_id.to_int(),),
        )
        rows = await cursor.fetchall()
        return [_row_to_usage(row) for row in rows]

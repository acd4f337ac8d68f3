"""
Persistent storage for virtual currency balances, keyed by (guild, user).
"""

from __future__ import annotations

from typing import Optional

import aiosqlite

from guildkeeper.database.errors import StoreError
from guildkeeper.datatypes.discord_datatypes import GuildID, UserID
from guildkeeper.datatypes.guild_datatypes import BalanceRecord
from guildkeeper.util.time_utils import from_micros


class BalanceRepo:
    """Low-level reads and writes for the ``balances`` table."""

    @staticmethod
    async def ensure(
        conn: aiosqlite.Connection,
        guild_id: GuildID,
        user_id: UserID,
        starting_balance: int,
    ) -> BalanceRecord:
        """Return the row, inserting it at ``starting_balance`` first if missing."""
        await conn.execute(
            "INSERT OR IGNORE INTO balances (guild_id, user_id, balance) VALUES (?, ?, ?)",
            (guild_id.to_int(), user_id.to_int(), starting_balance),
        )
        record = await BalanceRepo.get(conn, guild_id, user_id)
        if record is None:
            raise StoreError(f"Balance row for {user_id} in guild {guild_id} vanished after insert")
        return record

    @staticmethod
    async def get(
        conn: aiosqlite.Connection,
        guild_id: GuildID,
        user_id: UserID,
    ) -> Optional[BalanceRecord]:
        cursor = await conn.execute(
            "SELECT balance, last_daily_at FROM balances WHERE guild_id = ? AND user_id = ?",
            (guild_id.to_int(), user_id.to_int()),
        )
        row = await cursor.fetchone()
        if row is None:
            return None
        return BalanceRecord(
            guild_id=guild_id,
            user_id=user_id,
            balance=row["balance"],
            last_daily_at=from_micros(row["last_daily_at"]),
        )

    @staticmethod
    async def set_balance(
        conn: aiosqlite.Connection,
        guild_id: GuildID,
        user_id: UserID,
        balance: int,
        last_daily_at: Optional[int] = None,
    ) -> None:
        """Overwrite the balance; ``last_daily_at`` is only written when given."""
        if last_daily_at is None:
            await conn.execute(
                "UPDATE balances SET balance = ? WHERE guild_id = ? AND user_id = ?",
                (balance, guild_id.to_int(), user_id.to_int()),
            )
        else:
            await conn.execute(
                "UPDATE balances SET balance = ?, last_daily_at = ? WHERE guild_id = ? AND user_id = ?",
                (balance, last_daily_at, guild_id.to_int(), user_id.to_int()),
            )

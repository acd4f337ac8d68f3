"""
Virtual currency ledger.

Every read-modify-write of a balance runs under an ``asyncio.Lock`` keyed by
(guild, user), so two bets placed back to back by the same member are applied
one after the other instead of both settling against the same stale balance.
The lock only guards coroutines of this process; the SQLite write itself is
additionally serialised by the connection manager.
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from datetime import datetime, timedelta
from typing import DefaultDict, Optional, Tuple

from guildkeeper.database.db_connection import ConnectionManager
from guildkeeper.database.errors import InsufficientFundsError
from guildkeeper.datatypes.discord_datatypes import GuildID, UserID
from guildkeeper.repositories.balance_repo import BalanceRepo
from guildkeeper.util.logger import get_logger
from guildkeeper.util.time_utils import to_micros, utcnow

logger = get_logger("balance_ledger")

LedgerKey = Tuple[GuildID, UserID]


class BalanceLedger:
    """Per-(guild, user) balances with serialised updates."""

    def __init__(
        self,
        connections: ConnectionManager,
        starting_balance: int = 1000,
        daily_cooldown: timedelta = timedelta(hours=24),
    ) -> None:
        self._connections = connections
        self.starting_balance = starting_balance
        self.daily_cooldown = daily_cooldown
        self._locks: DefaultDict[LedgerKey, asyncio.Lock] = defaultdict(asyncio.Lock)

    def _lock_for(self, guild_id: GuildID, user_id: UserID) -> asyncio.Lock:
        return self._locks[(guild_id, user_id)]

    async def get(self, guild_id: GuildID | int | str, user_id: UserID | int | str) -> int:
        """Return the balance, creating it at the starting balance on first read."""
        guild_id, user_id = GuildID(guild_id), UserID(user_id)
        async with self._lock_for(guild_id, user_id):
            async with self._connections.transaction() as conn:
                record = await BalanceRepo.ensure(conn, guild_id, user_id, self.starting_balance)
        return record.balance

    async def credit(self, guild_id: GuildID | int | str, user_id: UserID | int | str, amount: int) -> int:
        """Add ``amount`` (may be negative) and return the new balance."""
        guild_id, user_id = GuildID(guild_id), UserID(user_id)
        async with self._lock_for(guild_id, user_id):
            async with self._connections.transaction() as conn:
                record = await BalanceRepo.ensure(conn, guild_id, user_id, self.starting_balance)
                new_balance = record.balance + amount
                await BalanceRepo.set_balance(conn, guild_id, user_id, new_balance)
        return new_balance

    async def settle(
        self,
        guild_id: GuildID | int | str,
        user_id: UserID | int | str,
        stake: int,
        payout: int,
    ) -> Tuple[int, int]:
        """
        Take ``stake`` and pay out ``payout`` as one atomic step.

        Returns:
            ``(old_balance, new_balance)``

        Raises:
            InsufficientFundsError: ``stake`` is larger than the current balance.
        """
        guild_id, user_id = GuildID(guild_id), UserID(user_id)
        async with self._lock_for(guild_id, user_id):
            async with self._connections.transaction() as conn:
                record = await BalanceRepo.ensure(conn, guild_id, user_id, self.starting_balance)
                if stake > record.balance:
                    raise InsufficientFundsError(record.balance, stake)
                new_balance = record.balance - stake + payout
                await BalanceRepo.set_balance(conn, guild_id, user_id, new_balance)
        logger.debug(
            "[LEDGER] Settled stake=%s payout=%s for %s in guild %s: %s -> %s",
            stake, payout, user_id, guild_id, record.balance, new_balance,
        )
        return record.balance, new_balance

    async def claim_daily(
        self,
        guild_id: GuildID | int | str,
        user_id: UserID | int | str,
        amount: int,
        now: Optional[datetime] = None,
    ) -> Tuple[int, Optional[datetime]]:
        """
        Credit the daily reward if the cooldown has passed.

        Returns:
            ``(balance, None)`` when the reward was paid, or
            ``(balance, next_claim_at)`` when it is too early.
        """
        guild_id, user_id = GuildID(guild_id), UserID(user_id)
        now = now or utcnow()
        async with self._lock_for(guild_id, user_id):
            async with self._connections.transaction() as conn:
                record = await BalanceRepo.ensure(conn, guild_id, user_id, self.starting_balance)
                if record.last_daily_at is not None:
                    next_claim_at = record.last_daily_at + self.daily_cooldown
                    if now < next_claim_at:
                        return record.balance, next_claim_at
                new_balance = record.balance + amount
                await BalanceRepo.set_balance(conn, guild_id, user_id, new_balance, last_daily_at=to_micros(now))
        return new_balance, None

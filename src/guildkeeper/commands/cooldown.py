"""
Per-member command cooldowns.

Windows are not fixed per command: the ban cooldown is a guild setting that
can change between two invocations, so the tracker only remembers when a
member last used a command and the caller supplies the window on each check.
"""

from __future__ import annotations

import time
from typing import Callable, Dict, Tuple

from guildkeeper.datatypes.discord_datatypes import GuildID, UserID

CooldownKey = Tuple[str, GuildID, UserID]


class CooldownTracker:
    """Remembers the last successful use of a command per (guild, member)."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._last_used: Dict[CooldownKey, float] = {}

    @staticmethod
    def _key(command: str, guild_id, user_id) -> CooldownKey:
        return command.lower(), GuildID(guild_id), UserID(user_id)

    def remaining(self, command: str, guild_id, user_id, window_seconds: float) -> float:
        """Seconds left before ``command`` may be used again; 0.0 when ready."""
        if window_seconds <= 0:
            return 0.0
        last = self._last_used.get(self._key(command, guild_id, user_id))
        if last is None:
            return 0.0
        return max(0.0, last + window_seconds - self._clock())

    def start(self, command: str, guild_id, user_id) -> None:
        self._last_used[self._key(command, guild_id, user_id)] = self._clock()

    def reset(self, command: str, guild_id, user_id) -> None:
        self._last_used.pop(self._key(command, guild_id, user_id), None)

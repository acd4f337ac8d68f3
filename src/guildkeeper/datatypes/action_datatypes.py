"""
Action types and the audit record written for every moderation or command action.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from guildkeeper.datatypes.discord_datatypes import GuildID

DEFAULT_REASON = "No reason provided"


class ActionType(Enum):
    """Enumeration of actions recorded in the audit log."""

    BAN = "ban"
    KICK = "kick"
    WARN = "warn"
    MUTE = "mute"
    CLEAR = "clear"
    COMMAND = "command"

    def __str__(self) -> str:
        return self.value


@dataclass(slots=True, frozen=True)
class AuditEntry:
    """One immutable row of the audit log.

    Attributes:
        id: Auto-incrementing id, strictly increasing across all guilds.
        guild_id: Guild the action happened in.
        type: What kind of action was taken.
        moderator_id: Snowflake (or dashboard principal) that acted.
        moderator_name: Display name of the actor at the time of the action.
        target_id: Snowflake of the user or channel acted upon.
        target_name: Display name of the target at the time of the action.
        reason: Free text, may be ``None``.
        timestamp: Server-assigned UTC time of the append.
    """

    id: int
    guild_id: GuildID
    type: ActionType
    moderator_id: str
    moderator_name: str
    target_id: str
    target_name: str
    reason: Optional[str]
    timestamp: datetime


@dataclass(slots=True)
class NewAuditEntry:
    """Fields a caller supplies when appending to the audit log."""

    guild_id: GuildID
    type: ActionType
    moderator_id: str
    moderator_name: str
    target_id: str
    target_name: str
    reason: Optional[str] = None

"""
Per-guild records: configuration, settings, command usage and currency balances.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime
from typing import Optional

from guildkeeper.datatypes.discord_datatypes import GuildID, UserID

DEFAULT_BAN_COOLDOWN_SECONDS = 10
MAX_BAN_COOLDOWN_SECONDS = 7 * 24 * 60 * 60
MAX_MEMBER_COUNT = 2 ** 31 - 1


@dataclass(slots=True)
class GuildConfig:
    """Identity and prefix of one guild the bot is a member of."""

    id: GuildID
    name: str
    icon_url: Optional[str] = None
    member_count: int = 0
    prefix: str = "!"
    added_at: Optional[datetime] = None


# Fields of GuildConfig a partial update may touch; id and added_at are immutable.
GUILD_CONFIG_MUTABLE_FIELDS = ("name", "icon_url", "member_count", "prefix")


@dataclass(slots=True)
class GuildSettings:
    """Persistent per-guild configuration values."""

    guild_id: GuildID
    id: int = 0
    mod_role_id: Optional[str] = None
    admin_role_id: Optional[str] = None
    auto_mod_enabled: bool = False
    anti_spam: bool = False
    link_filter: bool = False
    profanity_filter: bool = False
    auto_warn: bool = False
    ban_command_cooldown: int = DEFAULT_BAN_COOLDOWN_SECONDS
    ban_message_template: Optional[str] = None
    welcome_message: Optional[str] = None
    gambling_enabled: bool = True


BOOLEAN_SETTING_FIELDS = (
    "auto_mod_enabled",
    "anti_spam",
    "link_filter",
    "profanity_filter",
    "auto_warn",
    "gambling_enabled",
)

# Everything except the keys; these are the columns a partial update may merge.
SETTINGS_MUTABLE_FIELDS = tuple(
    f.name for f in fields(GuildSettings) if f.name not in ("guild_id", "id")
)


@dataclass(slots=True, frozen=True)
class CommandUsage:
    """Invocation tally of one command in one guild."""

    id: int
    guild_id: GuildID
    command: str
    category: str
    usage_count: int
    last_used: datetime


@dataclass(slots=True, frozen=True)
class BalanceRecord:
    """Virtual currency balance of one member in one guild."""

    guild_id: GuildID
    user_id: UserID
    balance: int
    last_daily_at: Optional[datetime] = None

"""
Persistent storage for per-guild settings.

One row per guild, enforced by a UNIQUE constraint on ``guild_id``. Boolean
toggles are stored as 0/1 integers.
"""

from __future__ import annotations

import sqlite3
from typing import Any, Dict, Mapping, Optional

import aiosqlite

from guildkeeper.database.errors import SettingsAlreadyExistError
from guildkeeper.datatypes.discord_datatypes import GuildID
from guildkeeper.datatypes.guild_datatypes import (
    BOOLEAN_SETTING_FIELDS,
    SETTINGS_MUTABLE_FIELDS,
    GuildSettings,
)
from guildkeeper.util.logger import get_logger

logger = get_logger("settings_repo")

_COLUMNS = ", ".join(("id", "guild_id", *SETTINGS_MUTABLE_FIELDS))


def _to_column(name: str, value: Any) -> Any:
    if name in BOOLEAN_SETTING_FIELDS:
        return 1 if value else 0
    if name == "ban_command_cooldown":
        return int(value)
    return value


def _row_to_settings(row: aiosqlite.Row) -> GuildSettings:
    values: Dict[str, Any] = {name: row[name] for name in SETTINGS_MUTABLE_FIELDS}
    for name in BOOLEAN_SETTING_FIELDS:
        values[name] = bool(values[name])
    return GuildSettings(guild_id=GuildID(row["guild_id"]), id=row["id"], **values)


def filter_setting_fields(changes: Mapping[str, Any]) -> Dict[str, Any]:
    """Keep only keys that name a mutable settings field."""
    return {k: v for k, v in changes.items() if k in SETTINGS_MUTABLE_FIELDS}


class GuildSettingsRepo:
    """Low-level CRUD for the ``guild_settings`` table."""

    @staticmethod
    async def insert(
        conn: aiosqlite.Connection,
        guild_id: GuildID,
        defaults: Optional[Mapping[str, Any]] = None,
    ) -> GuildSettings:
        """
        Insert the settings row for ``guild_id``.

        Raises:
            SettingsAlreadyExistError: A row for the guild is already present.
        """
        settings = GuildSettings(guild_id=guild_id, **filter_setting_fields(defaults or {}))
        values = {name: getattr(settings, name) for name in SETTINGS_MUTABLE_FIELDS}
        try:
            cursor = await conn.execute(
                f"INSERT INTO guild_settings (guild_id, {', '.join(SETTINGS_MUTABLE_FIELDS)}) "
                f"VALUES (?, {', '.join('?' for _ in SETTINGS_MUTABLE_FIELDS)})",
                (guild_id.to_int(), *(_to_column(name, values[name]) for name in SETTINGS_MUTABLE_FIELDS)),
            )
        except sqlite3.IntegrityError as exc:
            if "UNIQUE" in str(exc).upper():
                raise SettingsAlreadyExistError(guild_id) from exc
            raise
        settings.id = cursor.lastrowid or 0
        return settings

    @staticmethod
    async def update(
        conn: aiosqlite.Connection,
        guild_id: GuildID,
        changes: Mapping[str, Any],
    ) -> bool:
        """Merge ``changes`` into the row; returns False if there is no row."""
        assignments = filter_setting_fields(changes)
        if not assignments:
            cursor = await conn.execute("SELECT 1 FROM guild_settings WHERE guild_id = ?", (guild_id.to_int(),))
            return await cursor.fetchone() is not None
        columns = ", ".join(f"{name} = ?" for name in assignments)
        cursor = await conn.execute(
            f"UPDATE guild_settings SET {columns} WHERE guild_id = ?",
            (*(_to_column(k, v) for k, v in assignments.items()), guild_id.to_int()),
        )
        return cursor.rowcount > 0

    @staticmethod
    async def get(conn: aiosqlite.Connection, guild_id: GuildID) -> Optional[GuildSettings]:
        cursor = await conn.execute(
            f"SELECT {_COLUMNS} FROM guild_settings WHERE guild_id = ?",
            (guild_id.to_int(),),
        )
        row = await cursor.fetchone()
        return _row_to_settings(row) if row else None

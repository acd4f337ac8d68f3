"""Tests for the per-guild settings store."""

import pytest

from guildkeeper.database.errors import SettingsAlreadyExistError, SettingsNotFoundError, StoreError
from guildkeeper.datatypes.discord_datatypes import GuildID
from guildkeeper.datatypes.guild_datatypes import DEFAULT_BAN_COOLDOWN_SECONDS, GuildConfig

from conftest import GUILD_ID


class TestCreate:
    async def test_defaults(self, db):
        await db.guilds.create(GuildConfig(id=GuildID(GUILD_ID), name="Fresh"))

        settings = await db.settings.create(GUILD_ID)
        assert settings.id > 0
        assert settings.ban_command_cooldown == DEFAULT_BAN_COOLDOWN_SECONDS
        assert settings.gambling_enabled is True
        assert settings.auto_mod_enabled is False
        assert settings.mod_role_id is None

    async def test_second_create_raises(self, db, registered_guild):
        with pytest.raises(SettingsAlreadyExistError):
            await db.settings.create(GUILD_ID)

    def test_already_exists_is_a_store_error(self):
        assert issubclass(SettingsAlreadyExistError, StoreError)

    async def test_unknown_guild_is_rejected(self, db):
        with pytest.raises(StoreError):
            await db.settings.create(31337)

    async def test_defaults_override(self, db):
        await db.guilds.create(GuildConfig(id=GuildID(GUILD_ID), name="Fresh"))
        settings = await db.settings.create(GUILD_ID, {"ban_command_cooldown": 30, "not_a_field": 1})
        assert settings.ban_command_cooldown == 30


class TestUpdate:
    async def test_merges_only_given_fields(self, db, registered_guild):
        updated = await db.settings.update(GUILD_ID, {"anti_spam": True, "welcome_message": "hi"})
        assert updated.anti_spam is True
        assert updated.welcome_message == "hi"
        assert updated.gambling_enabled is True
        assert updated.ban_command_cooldown == 10

    async def test_clears_nullable_field(self, db, registered_guild):
        await db.settings.update(GUILD_ID, {"mod_role_id": "42"})
        updated = await db.settings.update(GUILD_ID, {"mod_role_id": None})
        assert updated.mod_role_id is None

    async def test_unknown_keys_are_ignored(self, db, registered_guild):
        before = await db.settings.read(GUILD_ID)
        after = await db.settings.update(GUILD_ID, {"guild_id": 5, "id": 99, "bogus": True})
        assert after == before

    async def test_repeated_update_is_idempotent(self, db, registered_guild):
        changes = {"anti_spam": True, "ban_command_cooldown": 45, "mod_role_id": "42"}
        once = await db.settings.update(GUILD_ID, changes)
        twice = await db.settings.update(GUILD_ID, changes)
        assert twice == once
        assert await db.settings.read(GUILD_ID) == once

    async def test_missing_settings_raise(self, db):
        with pytest.raises(SettingsNotFoundError):
            await db.settings.update(GUILD_ID, {"anti_spam": True})

    async def test_empty_update_on_missing_settings_raises(self, db):
        with pytest.raises(SettingsNotFoundError):
            await db.settings.update(GUILD_ID, {})

    async def test_booleans_round_trip(self, db, registered_guild):
        updated = await db.settings.update(GUILD_ID, {"gambling_enabled": False, "link_filter": True})
        reread = await db.settings.read(GUILD_ID)
        assert reread.gambling_enabled is False
        assert reread.link_filter is True
        assert reread == updated


async def test_read_unknown_guild(db):
    assert await db.settings.read(1) is None

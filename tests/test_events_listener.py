from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest

from guildkeeper.bot.bot_state import BotState
from guildkeeper.bot.cogs import events_listener, message_listener
from guildkeeper.bot.dispatcher import DispatchOutcome
from guildkeeper.datatypes.discord_datatypes import GuildID
from guildkeeper.datatypes.guild_datatypes import GuildConfig


class FakeStatus:
    online = "online"
    idle = "idle"


class FakeActivityType:
    watching = "watching"


class FakeActivity:
    def __init__(self, *, type, name):
        self.type = type
        self.name = name


@pytest.fixture(autouse=True)
def patch_discord(monkeypatch):
    monkeypatch.setattr(events_listener.discord, "Status", FakeStatus, raising=False)
    monkeypatch.setattr(events_listener.discord, "ActivityType", FakeActivityType, raising=False)
    monkeypatch.setattr(events_listener.discord, "Activity", FakeActivity, raising=False)
    yield


def discord_guild(guild_id=10, name="Guild", member_count=3, icon_url=None):
    return SimpleNamespace(
        id=guild_id,
        name=name,
        member_count=member_count,
        icon=SimpleNamespace(url=icon_url) if icon_url else None,
    )


@pytest.fixture
def fake_bot():
    return SimpleNamespace(
        user=SimpleNamespace(id=999, display_name="Guildkeeper"),
        change_presence=AsyncMock(),
        guilds=[discord_guild(10, "Alpha"), discord_guild(20, "Beta")],
    )


@pytest.fixture
def state():
    return BotState()


@pytest.fixture
def cog(fake_bot, db, app_settings, state):
    app_settings.default_guild_settings = {"ban_command_cooldown": 15, "gambling_enabled": False}
    return events_listener.EventsListenerCog(fake_bot, db, app_settings, state)


def test_guild_to_config():
    config = events_listener.guild_to_config(discord_guild(5, "G", 7, "https://cdn/icon.png"), "?")
    assert config.id == GuildID(5)
    assert (config.name, config.member_count, config.icon_url, config.prefix) == ("G", 7, "https://cdn/icon.png", "?")


class TestSyncGuild:
    async def test_registers_new_guild_with_defaults(self, cog, db):
        await cog.sync_guild(discord_guild(10, "Alpha"))

        stored = await db.guilds.get(10)
        assert stored.prefix == "!"
        settings = await db.settings.read(10)
        assert settings.ban_command_cooldown == 15
        assert settings.gambling_enabled is False

    async def test_refreshes_existing_guild_but_keeps_prefix(self, cog, db):
        await db.register_guild(GuildConfig(id=GuildID(10), name="Old", prefix="?"))
        await cog.sync_guild(discord_guild(10, "New", member_count=99, icon_url="https://cdn/a.png"))

        stored = await db.guilds.get(10)
        assert (stored.name, stored.member_count, stored.icon_url, stored.prefix) == (
            "New", 99, "https://cdn/a.png", "?",
        )

    async def test_creates_missing_settings(self, cog, db):
        await db.guilds.create(GuildConfig(id=GuildID(10), name="Alpha"))
        await cog.sync_guild(discord_guild(10, "Alpha"))
        assert await db.settings.read(10) is not None


class TestLifecycleEvents:
    async def test_on_ready(self, cog, fake_bot, db, state):
        await cog.on_ready()

        assert state.connected and state.status == "online"
        activity = fake_bot.change_presence.call_args.kwargs["activity"]
        assert activity.type == "watching"
        assert activity.name == "for !help"
        assert [str(g.id) for g in await db.guilds.list()] == ["10", "20"]

    async def test_on_ready_without_user(self, cog, fake_bot, state):
        fake_bot.user = None
        await cog.on_ready()
        fake_bot.change_presence.assert_not_called()
        assert state.connected

    async def test_disconnect_and_resume(self, cog, state):
        await cog.on_ready()
        await cog.on_disconnect()
        assert state.status == "offline"
        assert state.connected_since is None
        await cog.on_resumed()
        assert state.status == "online"

    async def test_guild_join_and_remove(self, cog, db):
        guild = discord_guild(30, "Gamma")
        await cog.on_guild_join(guild)
        assert await db.guilds.get(30) is not None

        await cog.on_guild_remove(guild)
        assert await db.guilds.get(30) is None
        assert await db.settings.read(30) is None

    async def test_guild_update(self, cog, db):
        await cog.on_guild_join(discord_guild(30, "Gamma"))
        await cog.on_guild_update(discord_guild(30, "Gamma"), discord_guild(30, "Delta", member_count=8))
        stored = await db.guilds.get(30)
        assert (stored.name, stored.member_count) == ("Delta", 8)


class TestMessageListener:
    async def test_forwards_to_dispatcher(self):
        dispatcher = SimpleNamespace(handle_message=AsyncMock(return_value=DispatchOutcome.DISPATCHED))
        cog = message_listener.MessageListenerCog(SimpleNamespace(), dispatcher)
        message = SimpleNamespace(id=1, author="someone")

        await cog.on_message(message)

        dispatcher.handle_message.assert_awaited_once_with(message)

    def test_setup_adds_cog(self):
        bot = SimpleNamespace(add_cog=lambda cog: added.append(cog))
        added = []
        message_listener.setup(bot, SimpleNamespace())
        assert isinstance(added[0], message_listener.MessageListenerCog)

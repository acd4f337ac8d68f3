"""
Pytest configuration and fixtures for Guildkeeper tests.
"""

import datetime
import sys
from pathlib import Path
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

# Add src directory to path so imports work
src_path = Path(__file__).parent.parent / "src"
sys.path.insert(0, str(src_path))

import discord  # noqa: E402

from guildkeeper.commands import build_registry  # noqa: E402
from guildkeeper.commands.context import CommandContext  # noqa: E402
from guildkeeper.commands.cooldown import CooldownTracker  # noqa: E402
from guildkeeper.database.database import Database  # noqa: E402
from guildkeeper.datatypes.discord_datatypes import GuildID  # noqa: E402
from guildkeeper.datatypes.guild_datatypes import GuildConfig  # noqa: E402

GUILD_ID = 111111111111111111
OWNER_ID = 1
BOT_ID = 999


# ---------------------------------------------------------------------------
# Discord fakes
# ---------------------------------------------------------------------------

class FakeRole:
    def __init__(self, position: int, name: str = ""):
        self.position = position
        self.name = name or f"role-{position}"

    def __gt__(self, other):
        return self.position > other.position

    def __lt__(self, other):
        return self.position < other.position


def permissions(**granted):
    names = ("ban_members", "kick_members", "moderate_members", "manage_messages")
    return SimpleNamespace(**{name: granted.get(name, False) for name in names})


class FakeMember:
    def __init__(self, member_id, name, *, role=1, perms=None, bot=False, nick=None):
        self.id = member_id
        self.name = name
        self.nick = nick
        self.bot = bot
        self.top_role = FakeRole(role)
        self.guild_permissions = perms or permissions()
        self.created_at = datetime.datetime(2020, 1, 1, tzinfo=datetime.timezone.utc)
        self.joined_at = datetime.datetime(2021, 1, 1, tzinfo=datetime.timezone.utc)
        self.display_avatar = SimpleNamespace(url=f"https://cdn.example/{member_id}.png")
        self.send = AsyncMock()
        self.timeout_for = AsyncMock()

    def __str__(self):
        return self.name


class FakeSentMessage:
    def __init__(self, created_at=None):
        self.created_at = created_at or datetime.datetime.now(datetime.timezone.utc)
        self.edit = AsyncMock()
        self.delete = AsyncMock()
        self.add_reaction = AsyncMock()


class FakeChannel:
    def __init__(self, channel_id=222, name="general"):
        self.id = channel_id
        self.name = name
        self.sent = FakeSentMessage()
        self.send = AsyncMock(return_value=self.sent)
        self.purge = AsyncMock(return_value=[])


class FakeGuild:
    def __init__(self, guild_id=GUILD_ID, name="Test Guild", *, members=(), bot_role=10):
        self.id = guild_id
        self.name = name
        self.owner_id = OWNER_ID
        self.member_count = 42
        self.icon = None
        self.premium_tier = 1
        self.premium_subscription_count = 3
        self.created_at = datetime.datetime(2019, 5, 1, tzinfo=datetime.timezone.utc)
        self.me = FakeMember(BOT_ID, "Guildkeeper", role=bot_role, bot=True)
        self._members = {member.id: member for member in members}
        self.ban = AsyncMock()
        self.kick = AsyncMock()
        self.fetch_member = AsyncMock(side_effect=not_found())

    @property
    def owner(self):
        return self._members.get(self.owner_id)

    def add_member(self, member):
        self._members[member.id] = member

    def get_member(self, member_id):
        return self._members.get(member_id)


class FakeMessage:
    def __init__(self, *, author, guild, content="", channel=None, mentions=()):
        self.id = 12345
        self.author = author
        self.guild = guild
        self.content = content
        self.channel = channel or FakeChannel()
        self.mentions = list(mentions)
        self.created_at = datetime.datetime.now(datetime.timezone.utc)
        self.reply_message = FakeSentMessage(self.created_at + datetime.timedelta(milliseconds=25))
        self.reply = AsyncMock(return_value=self.reply_message)
        self.delete = AsyncMock()


def not_found(message="Unknown Member"):
    return discord.NotFound(SimpleNamespace(status=404, reason="Not Found"), message)


def forbidden(message="Missing Permissions"):
    return discord.Forbidden(SimpleNamespace(status=403, reason="Forbidden"), message)


def replied_embed(message, call_index=-1):
    """Embed passed to the ``call_index``-th ``message.reply`` call."""
    return message.reply.call_args_list[call_index].kwargs["embed"]


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
async def db(tmp_path):
    database = Database(tmp_path / "guildkeeper-test.db")
    assert await database.initialize()
    yield database
    await database.shutdown()


@pytest.fixture
async def registered_guild(db):
    config, _ = await db.register_guild(GuildConfig(id=GuildID(GUILD_ID), name="Test Guild", member_count=42))
    return config


@pytest.fixture
def app_settings():
    """Stand-in for AppConfig exposing just the values the runtime reads."""
    return SimpleNamespace(
        default_prefix="!",
        daily_reward=200,
        default_guild_settings={"ban_command_cooldown": 10, "gambling_enabled": True},
        dashboard_username="admin",
        dashboard_password="hunter2",
        session_secret="test-secret",
    )


@pytest.fixture
def registry():
    return build_registry()


@pytest.fixture
def moderator():
    return FakeMember(
        500,
        "Moderator",
        role=5,
        perms=permissions(ban_members=True, kick_members=True, moderate_members=True, manage_messages=True),
    )


@pytest.fixture
def target_member():
    return FakeMember(600, "Troublemaker", role=2)


@pytest.fixture
def guild(moderator, target_member):
    return FakeGuild(members=[moderator, target_member])


@pytest.fixture
def make_ctx(db, registry, app_settings, guild, moderator):
    """Build a CommandContext around a fake message; the cooldown tracker is shared per test."""
    cooldowns = CooldownTracker()

    def factory(content="", *, author=None, mentions=(), bot=None, channel=None):
        message = FakeMessage(author=author or moderator, guild=guild, content=content,
                              channel=channel, mentions=mentions)
        return CommandContext(
            message=message,
            db=db,
            registry=registry,
            config=app_settings,
            cooldowns=cooldowns,
            bot=bot or MagicMock(latency=0.05),
            prefix="!",
        )

    return factory

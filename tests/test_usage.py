"""Tests for the command usage counters."""

from guildkeeper.datatypes.discord_datatypes import GuildID


class TestIncrement:
    async def test_first_use_creates_counter(self, db):
        usage = await db.usage.increment(GuildID(1), "ping", "utility")
        assert usage.usage_count == 1
        assert usage.category == "utility"
        assert usage.command == "ping"

    async def test_repeated_use_counts_up(self, db):
        for _ in range(3):
            usage = await db.usage.increment(1, "ping", "utility")
        assert usage.usage_count == 3
        assert len(await db.usage.query(1)) == 1

    async def test_last_used_strictly_increases(self, db):
        stamps = [(await db.usage.increment(1, "ping", "utility")).last_used for _ in range(5)]
        assert all(earlier < later for earlier, later in zip(stamps, stamps[1:]))

    async def test_counters_are_per_guild_and_command(self, db):
        await db.usage.increment(1, "ping", "utility")
        await db.usage.increment(1, "ban", "moderation")
        await db.usage.increment(2, "ping", "utility")

        counts = {u.command: u.usage_count for u in await db.usage.query(1)}
        assert counts == {"ping": 1, "ban": 1}
        assert [u.command for u in await db.usage.query(2)] == ["ping"]


async def test_query_unknown_guild(db):
    assert await db.usage.query(42) == []

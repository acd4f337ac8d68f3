"""Tests for the command registry and the built-in command catalogue."""

from guildkeeper.commands import build_registry
from guildkeeper.commands.registry import CommandDefinition, CommandRegistry


async def noop(ctx, args):
    return None


def command(name, category="utility", description=""):
    return CommandDefinition(name, category, description, noop)


class TestCommandRegistry:
    def test_lookup_is_case_insensitive(self):
        registry = CommandRegistry([command("Ping")])
        assert registry.lookup("ping").name == "Ping"
        assert registry.lookup("PING") is registry.lookup("ping")
        assert "pInG" in registry

    def test_unknown_lookup(self):
        assert CommandRegistry().lookup("nope") is None
        assert "nope" not in CommandRegistry()

    def test_reregistration_replaces_in_place(self):
        registry = CommandRegistry([command("a"), command("b"), command("a", description="new")])
        assert [c.name for c in registry.all()] == ["a", "b"]
        assert registry.lookup("a").description == "new"
        assert len(registry) == 2

    def test_by_category_keeps_first_seen_order(self):
        registry = CommandRegistry([
            command("x", "utility"),
            command("y", "moderation"),
            command("z", "utility"),
        ])
        grouped = registry.by_category()
        assert list(grouped) == ["utility", "moderation"]
        assert [c.name for c in grouped["utility"]] == ["x", "z"]


class TestBuiltinCommands:
    def test_all_commands_present(self):
        registry = build_registry()
        expected = {
            "ban", "kick", "warn", "mute", "clear",
            "balance", "daily", "slots", "roulette", "coinflip",
            "ping", "help", "poll", "serverinfo", "userinfo",
        }
        assert {c.name for c in registry.all()} == expected

    def test_categories(self):
        grouped = build_registry().by_category()
        assert list(grouped) == ["moderation", "gambling", "utility"]
        assert len(grouped["moderation"]) == 5
        assert len(grouped["gambling"]) == 5
        assert len(grouped["utility"]) == 5

    def test_every_command_has_description(self):
        assert all(c.description for c in build_registry().all())

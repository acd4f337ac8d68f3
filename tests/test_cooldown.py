"""Tests for the per-member cooldown tracker."""

from guildkeeper.commands.cooldown import CooldownTracker


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now

    def __call__(self):
        return self.now


class TestCooldownTracker:
    def test_unused_command_is_ready(self):
        assert CooldownTracker().remaining("ban", 1, 2, 10) == 0.0

    def test_remaining_counts_down(self):
        clock = FakeClock()
        tracker = CooldownTracker(clock)
        tracker.start("ban", 1, 2)

        clock.now += 4
        assert tracker.remaining("ban", 1, 2, 10) == 6.0

        clock.now += 6
        assert tracker.remaining("ban", 1, 2, 10) == 0.0

    def test_window_is_read_on_each_check(self):
        clock = FakeClock()
        tracker = CooldownTracker(clock)
        tracker.start("ban", 1, 2)
        clock.now += 5
        assert tracker.remaining("ban", 1, 2, 3) == 0.0
        assert tracker.remaining("ban", 1, 2, 30) == 25.0

    def test_zero_window_disables_cooldown(self):
        tracker = CooldownTracker(FakeClock())
        tracker.start("ban", 1, 2)
        assert tracker.remaining("ban", 1, 2, 0) == 0.0

    def test_scoped_per_member_guild_and_command(self):
        tracker = CooldownTracker(FakeClock())
        tracker.start("ban", 1, 2)
        assert tracker.remaining("ban", 1, 3, 10) == 0.0
        assert tracker.remaining("ban", 9, 2, 10) == 0.0
        assert tracker.remaining("kick", 1, 2, 10) == 0.0
        assert tracker.remaining("BAN", "1", "2", 10) == 10.0

    def test_reset(self):
        tracker = CooldownTracker(FakeClock())
        tracker.start("ban", 1, 2)
        tracker.reset("ban", 1, 2)
        assert tracker.remaining("ban", 1, 2, 10) == 0.0

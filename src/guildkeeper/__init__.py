"""Guildkeeper: Discord moderation, gambling and utility bot with a dashboard API."""

__version__ = "0.1.0"

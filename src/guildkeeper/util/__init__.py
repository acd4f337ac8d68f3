"""
Utility functions and helpers for Guildkeeper.

- **logger.py**: colored console output through prompt_toolkit, rotating
  per-session log files and an excepthook for uncaught errors
- **embeds.py**: Discord embed builders in the bot's colour scheme
- **time_utils.py**: UTC helpers and the microsecond encoding used in SQLite
"""

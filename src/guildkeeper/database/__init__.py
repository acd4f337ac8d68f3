"""
Database package for Guildkeeper.

Provides the aiosqlite connection manager, schema creation and the store
facades the bot and the dashboard API share.

Public API:
    - Database: Coordinator owning the connection and every store
    - StoreError: Base class of the store exceptions
"""

from guildkeeper.database.database import Database
from guildkeeper.database.errors import (
    InsufficientFundsError,
    SettingsAlreadyExistError,
    SettingsNotFoundError,
    StoreError,
)

__all__ = [
    "Database",
    "InsufficientFundsError",
    "SettingsAlreadyExistError",
    "SettingsNotFoundError",
    "StoreError",
]

"""Exceptions raised by the stores."""

from __future__ import annotations


class StoreError(Exception):
    """The backing database failed or is unavailable."""


class SettingsAlreadyExistError(StoreError):
    """A settings record already exists for the guild."""

    def __init__(self, guild_id) -> None:
        super().__init__(f"Settings already exist for guild {guild_id}")
        self.guild_id = guild_id


class SettingsNotFoundError(StoreError):
    """No settings record exists for the guild."""

    def __init__(self, guild_id) -> None:
        super().__init__(f"No settings found for guild {guild_id}")
        self.guild_id = guild_id


class InsufficientFundsError(Exception):
    """A stake exceeds the caller's current balance."""

    def __init__(self, balance: int, stake: int) -> None:
        super().__init__(f"Stake {stake} exceeds balance {balance}")
        self.balance = balance
        self.stake = stake

"""
Shared runtime state of the Discord connection, read by the dashboard API.
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from guildkeeper.util.logger import get_logger
from guildkeeper.util.time_utils import utcnow

logger = get_logger("bot_state")


class BotState:
    """
    Centralized connection state for the bot.
    """

    def __init__(self) -> None:
        self.connected = False
        self.connected_since: Optional[datetime] = None

    def mark_connected(self) -> None:
        if not self.connected:
            self.connected_since = utcnow()
        self.connected = True
        logger.debug("[BOT STATE] Marked connected")

    def mark_disconnected(self) -> None:
        self.connected = False
        self.connected_since = None
        logger.debug("[BOT STATE] Marked disconnected")

    @property
    def status(self) -> str:
        return "online" if self.connected else "offline"


bot_state = BotState()

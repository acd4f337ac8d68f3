from __future__ import annotations
from pathlib import Path
import fcntl
import os
from typing import Any, Dict
import yaml

from guildkeeper.util.logger import get_logger

logger = get_logger("app_configuration")


CONFIG_PATH = Path("./config/app_config.yml").resolve()

DEFAULT_PREFIX = "!"
DEFAULT_STARTING_BALANCE = 1000
DEFAULT_DAILY_REWARD = 200
DEFAULT_DAILY_COOLDOWN_HOURS = 24.0
DEFAULT_BAN_MESSAGE_TEMPLATE = (
    "You have been banned from {server} for {reason}. "
    "If you believe this is a mistake, please contact the server administrators."
)


class AppConfig:
    """File-lock based accessor around the YAML-based application configuration.

    The class caches contents of ``./config/app_config.yml`` and exposes
    typed shortcuts for the values the bot and the dashboard API read.
    Secrets (bot token, dashboard password, session secret) never live in the
    YAML file; they are read from the environment.
    """

    def __init__(self, config_path: Path) -> None:
        self.config_path = config_path
        self._data: Dict[str, Any] = {}
        self.reload()

    # --------------------------
    # Private helpers
    # --------------------------
    def load_from_disk(self) -> Dict[str, Any]:
        try:
            with self.config_path.open("r", encoding="utf-8") as f:
                # Shared lock so a concurrent editor cannot hand us half a file
                fcntl.flock(f.fileno(), fcntl.LOCK_SH)
                data = yaml.safe_load(f)
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)
                return data if isinstance(data, dict) else {}
        except FileNotFoundError:
            logger.error("[APP CONFIGURATION] Config file %s not found.", self.config_path)
        except Exception as exc:
            logger.error("[APP CONFIGURATION] Failed to load config %s: %s", self.config_path, exc)
        return {}

    def _section(self, key: str) -> Dict[str, Any]:
        value = self._data.get(key, {})
        return value if isinstance(value, dict) else {}

    # --------------------------
    # Public API
    # --------------------------
    def reload(self) -> Dict[str, Any]:
        """Reload configuration from disk and return the loaded mapping.

        Returns the raw mapping that was loaded (an empty dict on error).
        """
        self._data = self.load_from_disk()
        return self._data

    @property
    def data(self) -> Dict[str, Any]:
        """Return the current cached configuration mapping (do not mutate)."""
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        """Safe lookup for top-level configuration keys."""
        return self._data.get(key, default)

    # --------------------------
    # Bot shortcuts
    # --------------------------
    @property
    def default_prefix(self) -> str:
        """Prefix used for guilds that have no stored configuration yet."""
        value = self._data.get("default_prefix") or DEFAULT_PREFIX
        return str(value)

    @property
    def database_path(self) -> Path:
        value = self._data.get("database_path") or "./data/guildkeeper.db"
        return Path(str(value)).resolve()

    @property
    def starting_balance(self) -> int:
        economy = self._section("economy")
        return int(economy.get("starting_balance", DEFAULT_STARTING_BALANCE))

    @property
    def daily_reward(self) -> int:
        economy = self._section("economy")
        return int(economy.get("daily_reward", DEFAULT_DAILY_REWARD))

    @property
    def daily_cooldown_hours(self) -> float:
        economy = self._section("economy")
        return float(economy.get("daily_cooldown_hours", DEFAULT_DAILY_COOLDOWN_HOURS))

    @property
    def default_guild_settings(self) -> Dict[str, Any]:
        """Field overrides applied when settings are created for a new guild.

        The ban message template always has a value so the ban command can
        render a DM even when the YAML file omits it.
        """
        defaults = dict(self._section("default_guild_settings"))
        defaults.setdefault("ban_message_template", DEFAULT_BAN_MESSAGE_TEMPLATE)
        return defaults

    # --------------------------
    # Dashboard API shortcuts
    # --------------------------
    @property
    def api_host(self) -> str:
        return str(self._section("api").get("host", "127.0.0.1"))

    @property
    def api_port(self) -> int:
        return int(self._section("api").get("port", 5000))

    @property
    def api_enabled(self) -> bool:
        return bool(self._section("api").get("enabled", True))

    @property
    def dashboard_username(self) -> str:
        return str(os.getenv("DASHBOARD_USERNAME") or self._section("dashboard").get("username", "admin"))

    @property
    def dashboard_password(self) -> str | None:
        """Dashboard password from the environment; ``None`` disables login."""
        return os.getenv("DASHBOARD_PASSWORD") or None

    @property
    def session_secret(self) -> str:
        secret = os.getenv("SESSION_SECRET")
        if not secret:
            logger.warning("[APP CONFIGURATION] SESSION_SECRET not set; dashboard sessions will not survive a restart.")
            secret = os.urandom(32).hex()
            os.environ["SESSION_SECRET"] = secret
        return secret


# Shared application-wide configuration instance
app_config = AppConfig(CONFIG_PATH)

"""
Database schema initialization and version tracking.

Handles creation of tables, indexes and the schema version row.
Timestamps are INTEGER unix microseconds (see ``guildkeeper.util.time_utils``).
"""

import aiosqlite
from guildkeeper.util.logger import get_logger

logger = get_logger("database_schema")

SCHEMA_VERSION = 1


class SchemaManager:
    """Creates the tables and indexes every store relies on."""

    @staticmethod
    async def initialize_schema(db: aiosqlite.Connection) -> None:
        """
        Create all database tables and indexes if they are missing.

        Args:
            db: Open database connection
        """
        await SchemaManager._create_tables(db)
        await SchemaManager._create_indexes(db)
        await SchemaManager._update_schema_version(db)
        await db.commit()
        logger.info("[SCHEMA] Database schema initialized")

    @staticmethod
    async def _create_tables(db: aiosqlite.Connection) -> None:
        """Create all required database tables."""
        await db.execute("""
            CREATE TABLE IF NOT EXISTS guilds (
                guild_id INTEGER PRIMARY KEY,
                name TEXT NOT NULL,
                icon_url TEXT,
                member_count INTEGER NOT NULL DEFAULT 0,
                prefix TEXT NOT NULL DEFAULT '!',
                added_at INTEGER NOT NULL
            )
        """)

        # At most one settings row per guild; removed together with the guild
        await db.execute("""
            CREATE TABLE IF NOT EXISTS guild_settings (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                guild_id INTEGER NOT NULL UNIQUE,
                mod_role_id TEXT,
                admin_role_id TEXT,
                auto_mod_enabled INTEGER NOT NULL DEFAULT 0,
                anti_spam INTEGER NOT NULL DEFAULT 0,
                link_filter INTEGER NOT NULL DEFAULT 0,
                profanity_filter INTEGER NOT NULL DEFAULT 0,
                auto_warn INTEGER NOT NULL DEFAULT 0,
                ban_command_cooldown INTEGER NOT NULL DEFAULT 10,
                ban_message_template TEXT,
                welcome_message TEXT,
                gambling_enabled INTEGER NOT NULL DEFAULT 1,
                FOREIGN KEY (guild_id) REFERENCES guilds(guild_id) ON DELETE CASCADE
            )
        """)

        # Append-only; no foreign key so history outlives the guild
        await db.execute("""
            CREATE TABLE IF NOT EXISTS audit_log (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                guild_id INTEGER NOT NULL,
                type TEXT NOT NULL,
                moderator_id TEXT NOT NULL,
                moderator_name TEXT NOT NULL,
                target_id TEXT NOT NULL,
                target_name TEXT NOT NULL,
                reason TEXT,
                timestamp INTEGER NOT NULL
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS command_usage (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                guild_id INTEGER NOT NULL,
                command TEXT NOT NULL,
                category TEXT NOT NULL,
                usage_count INTEGER NOT NULL DEFAULT 1,
                last_used INTEGER NOT NULL,
                UNIQUE (guild_id, command)
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS balances (
                guild_id INTEGER NOT NULL,
                user_id INTEGER NOT NULL,
                balance INTEGER NOT NULL,
                last_daily_at INTEGER,
                PRIMARY KEY (guild_id, user_id)
            )
        """)

        await db.execute("""
            CREATE TABLE IF NOT EXISTS schema_version (
                version INTEGER PRIMARY KEY,
                applied_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)

    @staticmethod
    async def _create_indexes(db: aiosqlite.Connection) -> None:
        """Create indexes backing the dashboard queries."""
        await db.execute("CREATE INDEX IF NOT EXISTS idx_audit_log_guild_time ON audit_log(guild_id, timestamp DESC, id DESC)")
        await db.execute("CREATE INDEX IF NOT EXISTS idx_command_usage_guild ON command_usage(guild_id)")

    @staticmethod
    async def _update_schema_version(db: aiosqlite.Connection) -> None:
        await db.execute("INSERT OR IGNORE INTO schema_version (version) VALUES (?)", (SCHEMA_VERSION,))

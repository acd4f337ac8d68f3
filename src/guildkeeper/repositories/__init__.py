"""
Low-level SQL for each table. Every method takes an open aiosqlite
connection; transactions are owned by the stores in ``guildkeeper.database``.
"""

"""Plain data records shared by the stores, the bot and the API."""

"""
Discord-facing runtime for Guildkeeper.

- **dispatcher.py**: prefix resolution, tokenizing and handler invocation for
  text commands, plus the read-through prefix cache
- **bot_state.py**: gateway connection state shared with the dashboard API
- **cogs/**: py-cord cogs wiring Discord events to the dispatcher and stores
"""

"""
Configuration package for Guildkeeper.

- **app_configuration.py**: YAML-backed ``AppConfig`` (prefix, economy,
  default guild settings, API and dashboard options) and environment secrets
"""

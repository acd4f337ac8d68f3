"""
Embed generation helpers shared by every command handler.
"""

from __future__ import annotations

import datetime
from typing import Iterable, Optional, Tuple

import discord

DEFAULT_COLOR = discord.Color(0x5865F2)
ERROR_COLOR = discord.Color(0xF04747)
SUCCESS_COLOR = discord.Color(0x43B581)
WARN_COLOR = discord.Color(0xFAA61A)

EmbedField = Tuple[str, str, bool]


def format_embed(
    title: Optional[str] = None,
    description: Optional[str] = None,
    *,
    color: discord.Color = DEFAULT_COLOR,
    fields: Iterable[EmbedField] = (),
    footer: Optional[str] = None,
    thumbnail_url: Optional[str] = None,
) -> discord.Embed:
    """
    Build an embed with the bot's common layout.

    Args:
        title: Embed title.
        description: Body text.
        color: Side bar colour, the brand colour by default.
        fields: ``(name, value, inline)`` triples added in order.
        footer: Optional footer text.
        thumbnail_url: Optional thumbnail, typically a guild icon or avatar.

    Returns:
        discord.Embed: The timestamped embed.
    """
    embed = discord.Embed(
        title=title,
        description=description,
        color=color,
        timestamp=datetime.datetime.now(datetime.timezone.utc),
    )
    for name, value, inline in fields:
        embed.add_field(name=name, value=value, inline=inline)
    if footer:
        embed.set_footer(text=footer)
    if thumbnail_url:
        embed.set_thumbnail(url=thumbnail_url)
    return embed


def error_embed(description: str, title: str = "Error") -> discord.Embed:
    return format_embed(title=title, description=description, color=ERROR_COLOR)


def success_embed(description: str, title: str = "Success") -> discord.Embed:
    return format_embed(title=title, description=description, color=SUCCESS_COLOR)


def warn_embed(description: str, title: str = "Warning") -> discord.Embed:
    return format_embed(title=title, description=description, color=WARN_COLOR)


def info_embed(
    title: str,
    description: Optional[str] = None,
    fields: Iterable[EmbedField] = (),
    footer: Optional[str] = None,
    thumbnail_url: Optional[str] = None,
) -> discord.Embed:
    return format_embed(
        title=title,
        description=description,
        fields=fields,
        footer=footer,
        thumbnail_url=thumbnail_url,
    )

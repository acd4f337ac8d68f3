"""
General purpose commands: ping, help, poll, serverinfo and userinfo.
"""

from __future__ import annotations

import math
from typing import List, Optional

import discord

from guildkeeper.commands.context import CommandContext
from guildkeeper.commands.moderation import parse_user_token
from guildkeeper.commands.registry import CommandDefinition
from guildkeeper.util.embeds import error_embed, format_embed, info_embed
from guildkeeper.util.logger import get_logger

logger = get_logger("utility_cmds")

CATEGORY = "utility"

HELP_NAMES_PER_CATEGORY = 10
POLL_REACTIONS = ("👍", "👎", "🤷")


def gateway_latency_ms(bot: Optional[discord.Bot]) -> Optional[int]:
    """Heartbeat latency in ms, or ``None`` before the first heartbeat."""
    if bot is None:
        return None
    latency = bot.latency
    if latency is None or not math.isfinite(latency):
        return None
    return round(latency * 1000)


def format_help_overview(registry, prefix: str) -> discord.Embed:
    fields = []
    for category, commands in registry.by_category().items():
        names = ", ".join(f"`{command.name}`" for command in commands[:HELP_NAMES_PER_CATEGORY])
        if len(commands) > HELP_NAMES_PER_CATEGORY:
            names += f"\n...and {len(commands) - HELP_NAMES_PER_CATEGORY} more"
        fields.append((f"{category.capitalize()} Commands ({len(commands)})", names, False))
    return info_embed(
        "🤖 Bot Command List",
        fields=fields,
        footer=f"Use {prefix}help <command> for details on a specific command",
    )


async def ping(ctx: CommandContext, args: List[str]) -> None:
    sent = await ctx.reply(content="Pinging...")
    round_trip = round((sent.created_at - ctx.message.created_at).total_seconds() * 1000)
    api = gateway_latency_ms(ctx.bot)
    await sent.edit(
        content=None,
        embed=info_embed(
            "🏓 Pong!",
            f"**Bot Latency**: {round_trip}ms\n**API Latency**: {api if api is not None else 'n/a'}ms",
        ),
    )


async def help_command(ctx: CommandContext, args: List[str]) -> None:
    if not args:
        await ctx.reply(format_help_overview(ctx.registry, ctx.prefix))
        return

    name = args[0].lower()
    command = ctx.registry.lookup(name)
    if command is None:
        await ctx.reply(error_embed(f'No command called "{name}" exists.'))
        return

    synopsis = f"{ctx.prefix}{command.name} {command.usage}".rstrip()
    fields = [("Category", command.category, True), ("Usage", f"`{synopsis}`", True)]
    await ctx.reply(info_embed(
        f"Command: {command.name}",
        command.description or "No description provided",
        fields=fields,
    ))


async def poll(ctx: CommandContext, args: List[str]) -> None:
    if not args:
        await ctx.reply(error_embed("Please provide a question for the poll."))
        return

    embed = format_embed(title="📊 Poll", description=" ".join(args), footer=f"Poll started by {ctx.author}")
    sent = await ctx.send(embed)
    for emoji in POLL_REACTIONS:
        await sent.add_reaction(emoji)

    try:
        await ctx.message.delete()
    except discord.HTTPException as exc:
        logger.debug("[UTILITY] Could not delete poll command message: %s", exc)


async def serverinfo(ctx: CommandContext, args: List[str]) -> None:
    guild = ctx.guild
    owner = guild.owner
    if owner is None and guild.owner_id:
        try:
            owner = await guild.fetch_member(guild.owner_id)
        except discord.HTTPException as exc:
            logger.debug("[UTILITY] Could not fetch owner of guild %s: %s", guild.id, exc)

    await ctx.reply(info_embed(
        f"{guild.name} Server Information",
        fields=[
            ("Owner", str(owner) if owner else "Unknown", True),
            ("Members", str(guild.member_count or 0), True),
            ("Boost Tier", f"Tier {guild.premium_tier}", True),
            ("Boosts", str(guild.premium_subscription_count or 0), True),
            ("Created On", discord.utils.format_dt(guild.created_at, "F"), True),
        ],
        thumbnail_url=guild.icon.url if guild.icon else None,
    ))


async def _resolve_user(ctx: CommandContext, args: List[str]):
    mentions = getattr(ctx.message, "mentions", None) or []
    if mentions:
        return mentions[0]
    if args and ctx.bot is not None:
        user_id = parse_user_token(args[0])
        if user_id is not None:
            try:
                return await ctx.bot.fetch_user(user_id.to_int())
            except discord.HTTPException as exc:
                logger.debug("[UTILITY] Could not fetch user %s: %s", user_id, exc)
    return ctx.author


async def userinfo(ctx: CommandContext, args: List[str]) -> None:
    target = await _resolve_user(ctx, args)

    member = ctx.guild.get_member(target.id)
    if member is None:
        try:
            member = await ctx.guild.fetch_member(target.id)
        except discord.HTTPException:
            member = None

    fields = [
        ("Username", target.name, True),
        ("User ID", str(target.id), True),
        ("Account Created", discord.utils.format_dt(target.created_at, "F"), False),
    ]
    if member is not None:
        joined = discord.utils.format_dt(member.joined_at, "F") if member.joined_at else "Unknown"
        fields += [
            ("Joined Server", joined, False),
            ("Nickname", member.nick or "None", True),
            ("Top Role", member.top_role.name, True),
        ]

    await ctx.reply(info_embed(
        f"User Information - {target}",
        fields=fields,
        thumbnail_url=target.display_avatar.url,
    ))


COMMANDS = [
    CommandDefinition("ping", CATEGORY, "Check the bot's latency", ping),
    CommandDefinition("help", CATEGORY, "Show available commands or info about a specific command", help_command, "[command]"),
    CommandDefinition("poll", CATEGORY, "Create a poll with reactions", poll, "<question>"),
    CommandDefinition("serverinfo", CATEGORY, "Display information about the current server", serverinfo),
    CommandDefinition("userinfo", CATEGORY, "Display information about a user", userinfo, "[user]"),
]

"""
Moderation commands: ban, kick, warn, mute and clear.

Every command runs the same pre-checks in the same order and stops at the
first one that fails, replying with an error embed:

1. the invoking member holds the required guild permission,
2. enough arguments were given and they parse,
3. the target resolves (mention, cached member by id, then a remote fetch),
4. the target is not the invoker,
5. the bot outranks the target.

A command that passes performs the Discord action, appends exactly one
audit entry and replies with a success embed. Nothing is audited when a
check fails or the Discord call raises.
"""

from __future__ import annotations

import datetime
import re
from typing import List, Optional

import discord

from guildkeeper.commands.context import CommandContext
from guildkeeper.commands.registry import CommandDefinition
from guildkeeper.configuration.app_configuration import DEFAULT_BAN_MESSAGE_TEMPLATE
from guildkeeper.database.errors import StoreError
from guildkeeper.datatypes.action_datatypes import DEFAULT_REASON, ActionType, NewAuditEntry
from guildkeeper.datatypes.discord_datatypes import UserID
from guildkeeper.datatypes.guild_datatypes import DEFAULT_BAN_COOLDOWN_SECONDS
from guildkeeper.util.embeds import error_embed, format_embed, success_embed, WARN_COLOR
from guildkeeper.util.logger import get_logger

logger = get_logger("moderation_cmds")

CATEGORY = "moderation"

NO_PERMISSION = "You do not have permission to use this command."
USER_NOT_FOUND = "Could not find that user."

MAX_MUTE_MINUTES = 10080
MAX_CLEAR_AMOUNT = 100
CLEAR_CONFIRMATION_SECONDS = 5

_MENTION_PATTERN = re.compile(r"^<@!?(\d+)>$")


def has_permission(member, permission_name: str) -> bool:
    """Return True if ``member`` holds ``permission_name`` in the guild."""
    permissions = getattr(member, "guild_permissions", None)
    if permissions is None:
        return False
    return bool(getattr(permissions, permission_name, False))


def bot_outranks(guild: discord.Guild, target: discord.Member) -> bool:
    """
    Whether the bot may act on ``target``.

    The guild owner can never be moderated, and otherwise the bot's highest
    role has to sit above the target's.
    """
    me = guild.me
    if me is None or target.id == guild.owner_id:
        return False
    return me.top_role > target.top_role


def parse_user_token(token: str) -> Optional[UserID]:
    """Accept a raw snowflake or a ``<@id>`` / ``<@!id>`` mention."""
    match = _MENTION_PATTERN.match(token)
    return UserID.parse(match.group(1) if match else token)


async def resolve_member(ctx: CommandContext, token: str) -> Optional[discord.Member]:
    """Resolve a target from the first mention, the member cache, then the API."""
    mentions = getattr(ctx.message, "mentions", None) or []
    if mentions:
        return mentions[0]

    user_id = parse_user_token(token)
    if user_id is None:
        return None

    member = ctx.guild.get_member(user_id.to_int())
    if member is not None:
        return member

    try:
        return await ctx.guild.fetch_member(user_id.to_int())
    except discord.HTTPException as exc:
        logger.debug("[MODERATION] Could not fetch member %s: %s", user_id, exc)
        return None


def render_ban_message(template: Optional[str], server: str, reason: str) -> str:
    """Substitute ``{server}`` and ``{reason}``; other braces are left alone."""
    text = template or DEFAULT_BAN_MESSAGE_TEMPLATE
    return text.replace("{server}", server).replace("{reason}", reason)


def _join_reason(args: List[str]) -> str:
    return " ".join(args) or DEFAULT_REASON


async def _send_notice(target: discord.Member, embed: discord.Embed) -> bool:
    """DM ``target``; returns False when their DMs are closed or Discord refuses."""
    try:
        await target.send(embed=embed)
    except discord.HTTPException as exc:
        logger.debug("[MODERATION] Could not DM %s: %s", target, exc)
        return False
    return True


async def _audit(
    ctx: CommandContext,
    action: ActionType,
    target_id,
    target_name: str,
    reason: Optional[str],
) -> None:
    await ctx.db.audit_log.append(
        NewAuditEntry(
            guild_id=ctx.guild_id,
            type=action,
            moderator_id=str(ctx.author.id),
            moderator_name=str(ctx.author),
            target_id=str(target_id),
            target_name=target_name,
            reason=reason,
        )
    )


async def _resolve_target(ctx: CommandContext, token: str, verb: str, check_rank: bool = True) -> Optional[discord.Member]:
    """Run checks 3 to 5; reply and return None when one fails."""
    target = await resolve_member(ctx, token)
    if target is None:
        await ctx.reply(error_embed(USER_NOT_FOUND))
        return None

    if target.id == ctx.author.id:
        await ctx.reply(error_embed(f"You cannot {verb} yourself."))
        return None

    if check_rank and not bot_outranks(ctx.guild, target):
        await ctx.reply(error_embed(f"I cannot {verb} that user. They may have higher permissions than me."))
        return None

    return target


async def ban(ctx: CommandContext, args: List[str]) -> None:
    if not has_permission(ctx.author, "ban_members"):
        await ctx.reply(error_embed(NO_PERMISSION))
        return

    settings = await ctx.db.settings.read(ctx.guild_id)
    cooldown = settings.ban_command_cooldown if settings else DEFAULT_BAN_COOLDOWN_SECONDS
    remaining = ctx.cooldowns.remaining("ban", ctx.guild_id, ctx.author_id, cooldown)
    if remaining > 0:
        await ctx.reply(error_embed(
            f"You are using this command too quickly. Try again in {remaining:.0f} second(s)."
        ))
        return

    if len(args) < 1:
        await ctx.reply(error_embed("Please specify a user to ban."))
        return

    target = await _resolve_target(ctx, args[0], "ban")
    if target is None:
        return

    reason = _join_reason(args[1:])
    dm_text = render_ban_message(
        settings.ban_message_template if settings else ctx.config.default_guild_settings.get("ban_message_template"),
        ctx.guild.name,
        reason,
    )

    # Has to go out before the ban; afterwards the bot shares no guild with the user.
    notified = await _send_notice(target, format_embed(title="Banned", description=dm_text, color=WARN_COLOR))

    try:
        await ctx.guild.ban(target, reason=reason)
    except discord.HTTPException:
        logger.exception("[MODERATION] Error banning %s in guild %s", target, ctx.guild_id)
        if notified:
            await _send_notice(target, format_embed(
                title="Ban not applied",
                description=f"The ban from {ctx.guild.name} could not be applied. You are still a member.",
            ))
        await ctx.reply(error_embed("An error occurred while trying to ban that user."))
        return

    try:
        await _audit(ctx, ActionType.BAN, target.id, str(target), reason)
    except StoreError:
        logger.exception("[MODERATION] Banned %s in guild %s but could not record it", target, ctx.guild_id)
        await ctx.reply(error_embed("An error occurred while trying to ban that user."))
        return

    ctx.cooldowns.start("ban", ctx.guild_id, ctx.author_id)
    await ctx.reply(success_embed(f"Successfully banned {target} for reason: {reason}"))


async def kick(ctx: CommandContext, args: List[str]) -> None:
    if not has_permission(ctx.author, "kick_members"):
        await ctx.reply(error_embed(NO_PERMISSION))
        return

    if len(args) < 1:
        await ctx.reply(error_embed("Please specify a user to kick."))
        return

    target = await _resolve_target(ctx, args[0], "kick")
    if target is None:
        return

    reason = _join_reason(args[1:])
    try:
        await ctx.guild.kick(target, reason=reason)
        await _audit(ctx, ActionType.KICK, target.id, str(target), reason)
    except (discord.HTTPException, StoreError):
        logger.exception("[MODERATION] Error kicking %s in guild %s", target, ctx.guild_id)
        await ctx.reply(error_embed("An error occurred while trying to kick that user."))
        return

    await ctx.reply(success_embed(f"Successfully kicked {target} for reason: {reason}"))


async def warn(ctx: CommandContext, args: List[str]) -> None:
    if not has_permission(ctx.author, "moderate_members"):
        await ctx.reply(error_embed(NO_PERMISSION))
        return

    if len(args) < 1:
        await ctx.reply(error_embed("Please specify a user to warn."))
        return

    # A warning touches nothing on Discord's side, so role hierarchy does not matter.
    target = await _resolve_target(ctx, args[0], "warn", check_rank=False)
    if target is None:
        return

    reason = _join_reason(args[1:])
    try:
        await _audit(ctx, ActionType.WARN, target.id, str(target), reason)
    except StoreError:
        logger.exception("[MODERATION] Error warning %s in guild %s", target, ctx.guild_id)
        await ctx.reply(error_embed("An error occurred while trying to warn that user."))
        return

    await _send_notice(target, format_embed(
        title="Warning",
        description=f"You have been warned in {ctx.guild.name} for: {reason}",
        color=WARN_COLOR,
    ))

    await ctx.reply(success_embed(f"Successfully warned {target} for reason: {reason}"))


async def mute(ctx: CommandContext, args: List[str]) -> None:
    if not has_permission(ctx.author, "moderate_members"):
        await ctx.reply(error_embed(NO_PERMISSION))
        return

    if len(args) < 2:
        await ctx.reply(error_embed("Please specify a user and duration to mute (in minutes)."))
        return

    try:
        minutes = int(args[1])
    except ValueError:
        minutes = 0
    if not 1 <= minutes <= MAX_MUTE_MINUTES:
        await ctx.reply(error_embed("Please provide a valid duration between 1 minute and 1 week."))
        return

    target = await _resolve_target(ctx, args[0], "mute")
    if target is None:
        return

    reason = _join_reason(args[2:])
    try:
        await target.timeout_for(datetime.timedelta(minutes=minutes), reason=reason)
        await _audit(ctx, ActionType.MUTE, target.id, str(target), reason)
    except (discord.HTTPException, StoreError):
        logger.exception("[MODERATION] Error muting %s in guild %s", target, ctx.guild_id)
        await ctx.reply(error_embed("An error occurred while trying to mute that user."))
        return

    await ctx.reply(success_embed(f"Successfully muted {target} for {minutes} minute(s). Reason: {reason}"))


async def clear(ctx: CommandContext, args: List[str]) -> None:
    if not has_permission(ctx.author, "manage_messages"):
        await ctx.reply(error_embed(NO_PERMISSION))
        return

    try:
        amount = int(args[0]) if args else 0
    except ValueError:
        amount = 0
    if not 1 <= amount <= MAX_CLEAR_AMOUNT:
        await ctx.reply(error_embed(f"Please provide a valid number between 1 and {MAX_CLEAR_AMOUNT}."))
        return

    channel_name = f"#{getattr(ctx.channel, 'name', None) or 'unknown-channel'}"
    try:
        await ctx.channel.purge(limit=amount)
        await _audit(ctx, ActionType.CLEAR, ctx.channel.id, channel_name, f"Cleared {amount} messages")
    except (discord.HTTPException, StoreError):
        logger.exception("[MODERATION] Error clearing messages in %s", channel_name)
        # The invoking message may already be gone, so do not quote it.
        await ctx.send(error_embed(
            "An error occurred while trying to clear messages. "
            "Messages older than 14 days cannot be bulk deleted."
        ))
        return

    confirmation = await ctx.send(success_embed(f"Successfully cleared {amount} messages."))
    await confirmation.delete(delay=CLEAR_CONFIRMATION_SECONDS)


COMMANDS = [
    CommandDefinition("ban", CATEGORY, "Ban a user from the server", ban, "<user> [reason]"),
    CommandDefinition("kick", CATEGORY, "Kick a user from the server", kick, "<user> [reason]"),
    CommandDefinition("warn", CATEGORY, "Warn a user", warn, "<user> [reason]"),
    CommandDefinition("mute", CATEGORY, "Timeout/mute a user for a specified time", mute, "<user> <minutes> [reason]"),
    CommandDefinition("clear", CATEGORY, "Clear a number of messages from a channel", clear, "<amount>"),
]

"""
Virtual currency games: balance, daily, slots, roulette and coinflip.

Game outcomes come from small pure functions that take a ``random.Random``
so tests can pin them. All balance changes go through the ledger, which
applies stake and payout as one locked step per member.
"""

from __future__ import annotations

import random
from datetime import timedelta
from typing import List, Optional, Tuple

from guildkeeper.commands.context import CommandContext
from guildkeeper.commands.registry import CommandDefinition
from guildkeeper.database.errors import InsufficientFundsError
from guildkeeper.util.embeds import ERROR_COLOR, SUCCESS_COLOR, error_embed, format_embed, info_embed, success_embed
from guildkeeper.util.logger import get_logger
from guildkeeper.util.time_utils import utcnow

logger = get_logger("gambling_cmds")

CATEGORY = "gambling"

# Shared source of randomness; tests swap it for a seeded or scripted instance.
RNG = random.Random()

SLOT_SYMBOLS = ("🍎", "🍊", "🍋", "🍇", "🍒", "💰", "7️⃣")
JACKPOT_SYMBOL = "7️⃣"
BIG_WIN_SYMBOL = "💰"

ROULETTE_COLORS = ("red", "black", "green")
ROULETTE_EMOJIS = {"red": "🔴", "black": "⚫", "green": "🟢"}
GREEN_THRESHOLD = 2.7
RED_THRESHOLD = 51.35

COIN_SIDES = ("heads", "tails")
COIN_EMOJIS = {"heads": "🪙", "tails": "💫"}

GAMBLING_DISABLED = "Gambling commands are disabled in this server."
INVALID_BET = "Please provide a valid bet amount."


# --- Pure game logic ---

def spin_slots(rng: Optional[random.Random] = None) -> List[str]:
    rng = rng or RNG
    return [rng.choice(SLOT_SYMBOLS) for _ in range(3)]


def slots_payout(reels: List[str], bet: int) -> Tuple[int, str]:
    """Return ``(winnings, verdict)`` for three reels."""
    first, second, third = reels
    if first == second == third:
        if first == JACKPOT_SYMBOL:
            return bet * 10, "JACKPOT! You won big!"
        if first == BIG_WIN_SYMBOL:
            return bet * 5, "BIG WIN! All symbols match!"
        return bet * 3, "WIN! All symbols match!"
    if first == second or second == third or first == third:
        return (bet * 3) // 2, "Small win! Two symbols match!"
    return 0, "You lost!"


def spin_roulette(rng: Optional[random.Random] = None) -> str:
    """Green 2.7%, red 48.65%, black 48.65%."""
    roll = (rng or RNG).random() * 100
    if roll < GREEN_THRESHOLD:
        return "green"
    if roll < RED_THRESHOLD:
        return "red"
    return "black"


def roulette_payout(choice: str, result: str, bet: int) -> int:
    if choice != result:
        return 0
    return bet * 14 if result == "green" else bet * 2


def flip_coin(rng: Optional[random.Random] = None) -> str:
    return "heads" if (rng or RNG).random() < 0.5 else "tails"


def parse_bet(token: str) -> Optional[int]:
    """A bet is a strictly positive integer; anything else is ``None``."""
    try:
        bet = int(token)
    except ValueError:
        return None
    return bet if bet > 0 else None


def format_signed(amount: int) -> str:
    return f"+{amount}" if amount > 0 else str(amount)


def format_wait(delta: timedelta) -> str:
    total_minutes = max(1, int(delta.total_seconds() + 59) // 60)
    hours, minutes = divmod(total_minutes, 60)
    if hours:
        return f"{hours}h {minutes}m"
    return f"{minutes}m"


# --- Shared handler steps ---

async def gambling_enabled(ctx: CommandContext) -> bool:
    """A guild without a settings record counts as enabled."""
    settings = await ctx.db.settings.read(ctx.guild_id)
    return settings is None or settings.gambling_enabled


async def _check_enabled(ctx: CommandContext) -> bool:
    if await gambling_enabled(ctx):
        return True
    await ctx.reply(error_embed(GAMBLING_DISABLED))
    return False


async def _settle(ctx: CommandContext, bet: int, winnings: int) -> Optional[int]:
    """Apply the bet; reply and return None when the member cannot cover it."""
    try:
        _, new_balance = await ctx.db.ledger.settle(ctx.guild_id, ctx.author_id, bet, winnings)
    except InsufficientFundsError as exc:
        logger.debug("[GAMBLING] %s cannot cover a bet of %s (balance %s)", ctx.author, bet, exc.balance)
        await ctx.reply(error_embed(
            f"You don't have enough coins. Your current balance is {exc.balance} coins."
        ))
        return None
    return new_balance


def _result_embed(title: str, description: str, fields, winnings: int, net: int, new_balance: int):
    return format_embed(
        title=title,
        description=description,
        color=SUCCESS_COLOR if winnings > 0 else ERROR_COLOR,
        fields=[
            *fields,
            ("Winnings", f"{winnings} coins", True),
            ("Net Gain/Loss", f"{format_signed(net)} coins", True),
            ("New Balance", f"{new_balance} coins", False),
        ],
    )


# --- Commands ---

async def balance(ctx: CommandContext, args: List[str]) -> None:
    if not await _check_enabled(ctx):
        return
    amount = await ctx.db.ledger.get(ctx.guild_id, ctx.author_id)
    await ctx.reply(info_embed("Balance", f"Your current balance is **{amount}** coins."))


async def daily(ctx: CommandContext, args: List[str]) -> None:
    if not await _check_enabled(ctx):
        return

    reward = ctx.config.daily_reward
    now = utcnow()
    new_balance, next_claim_at = await ctx.db.ledger.claim_daily(ctx.guild_id, ctx.author_id, reward, now=now)
    if next_claim_at is not None:
        await ctx.reply(error_embed(
            f"You have already claimed your daily reward. Try again in {format_wait(next_claim_at - now)}."
        ))
        return

    await ctx.reply(success_embed(
        f"You've claimed your daily reward of **{reward}** coins! Your new balance is **{new_balance}** coins."
    ))


async def slots(ctx: CommandContext, args: List[str]) -> None:
    if not await _check_enabled(ctx):
        return
    if len(args) < 1:
        await ctx.reply(error_embed("Please specify a bet amount."))
        return
    bet = parse_bet(args[0])
    if bet is None:
        await ctx.reply(error_embed(INVALID_BET))
        return

    reels = spin_slots()
    winnings, verdict = slots_payout(reels, bet)
    new_balance = await _settle(ctx, bet, winnings)
    if new_balance is None:
        return

    await ctx.reply(_result_embed(
        "🎰 Slot Machine",
        f"[ {' | '.join(reels)} ]\n\n{verdict}",
        [("Bet", f"{bet} coins", True)],
        winnings, winnings - bet, new_balance,
    ))


async def roulette(ctx: CommandContext, args: List[str]) -> None:
    if not await _check_enabled(ctx):
        return
    if len(args) < 2:
        await ctx.reply(error_embed("Please specify a bet amount and color (red/black/green)."))
        return
    bet = parse_bet(args[0])
    if bet is None:
        await ctx.reply(error_embed(INVALID_BET))
        return
    choice = args[1].lower()
    if choice not in ROULETTE_COLORS:
        await ctx.reply(error_embed("Please specify a valid color: red, black, or green."))
        return

    result = spin_roulette()
    winnings = roulette_payout(choice, result, bet)
    new_balance = await _settle(ctx, bet, winnings)
    if new_balance is None:
        return

    await ctx.reply(_result_embed(
        "🎲 Roulette",
        f"The ball landed on {ROULETTE_EMOJIS[result]} **{result.upper()}**!",
        [("Your Bet", f"{bet} coins on {choice}", True)],
        winnings, winnings - bet, new_balance,
    ))


async def coinflip(ctx: CommandContext, args: List[str]) -> None:
    if not await _check_enabled(ctx):
        return
    if len(args) < 2:
        await ctx.reply(error_embed("Please specify a bet amount and choice (heads/tails)."))
        return
    bet = parse_bet(args[0])
    if bet is None:
        await ctx.reply(error_embed(INVALID_BET))
        return
    choice = args[1].lower()
    if choice not in COIN_SIDES:
        await ctx.reply(error_embed("Please specify a valid choice: heads or tails."))
        return

    result = flip_coin()
    winnings = bet * 2 if choice == result else 0
    new_balance = await _settle(ctx, bet, winnings)
    if new_balance is None:
        return

    await ctx.reply(_result_embed(
        "💰 Coin Flip",
        f"The coin landed on {COIN_EMOJIS[result]} **{result.upper()}**!",
        [("Your Choice", choice, True), ("Bet", f"{bet} coins", True)],
        winnings, winnings - bet, new_balance,
    ))


COMMANDS = [
    CommandDefinition("balance", CATEGORY, "Check your current balance", balance),
    CommandDefinition("daily", CATEGORY, "Claim your daily bonus coins", daily),
    CommandDefinition("slots", CATEGORY, "Play the slot machine with a specified bet", slots, "<bet>"),
    CommandDefinition(
        "roulette", CATEGORY,
        "Play roulette with a specified bet and color (red/black/green)",
        roulette, "<bet> <red|black|green>",
    ),
    CommandDefinition(
        "coinflip", CATEGORY,
        "Flip a coin with a specified bet and choice (heads/tails)",
        coinflip, "<bet> <heads|tails>",
    ),
]

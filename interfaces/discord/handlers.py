from __future__ import annotations

import asyncio
import logging
from typing import Optional

import discord
from discord.ext import commands

from application.results import PlayResult
from application.services import CasinoService, TransactionFilter
from domain.games import SLOT_MACHINE_GAME_ID, get_game
from interfaces.formatting import (
    format_account,
    format_btc,
    format_games,
    format_history,
    format_play_result,
    format_transactions,
)
from interfaces.sessions import ChatSessions


logger = logging.getLogger(__name__)


async def _play(ctx: commands.Context, service: CasinoService, game_id: int, amount: Optional[str]):
    """Place a wager, wait out the spin without blocking the event loop, then resolve."""

    game = get_game(game_id)
    if game is None:
        await ctx.send(f"Unknown game: {game_id}. Use !games to list games.")
        return

    placed = service.place_wager(game_id, game.min_bet if amount is None else amount)
    if not placed.success:
        await ctx.send(placed.error_message or "Bet failed.")
        return

    # A placed wager must always resolve.
    try:
        await ctx.send(f"{game.icon} Playing {game.name}...")
        await asyncio.sleep(service.settings.resolve_delay_seconds)
    finally:
        outcome = service.resolve_wager(placed.wager)

    account = service.current_account()
    result = PlayResult(
        success=True,
        outcome=outcome,
        bet_amount=placed.wager.amount,
        new_balance=account.balance if account is not None else None,
    )
    await ctx.send(format_play_result(game, result))


def create_discord_bot(casino: CasinoService) -> commands.Bot:
    """
    Configure and return a Discord bot with behaviour analogous to
    the Telegram interface: signup/login, wallet, games and history.
    """

    intents = discord.Intents.default()
    intents.message_content = True

    # Disable the default help command so we can provide our own `!help`.
    bot = commands.Bot(command_prefix="!", intents=intents, help_command=None)
    sessions = ChatSessions(casino, "discord")

    def _service_for(ctx: commands.Context) -> CasinoService:
        return sessions.get(str(ctx.author.id))

    async def _forget_credentials(ctx: commands.Context) -> None:
        try:
            await ctx.message.delete()
        except discord.HTTPException:
            logger.debug("Could not delete credentials message from %s", ctx.author.id)

    @bot.event
    async def on_ready():
        logger.info("Discord bot logged in as %s (id=%s)", bot.user, bot.user.id)

    @bot.event
    async def on_command_error(ctx: commands.Context, error: commands.CommandError):
        if isinstance(error, (commands.MissingRequiredArgument, commands.BadArgument)):
            await ctx.send(f"{error}\nType !help to see available commands.")
            return
        logger.error("Command %s failed", ctx.command, exc_info=error)
        await ctx.send("Something went wrong. Please try again.")

    @bot.command(name="start")
    async def start_cmd(ctx: commands.Context):
        await ctx.send(
            "🎰 Welcome to Bitcoin Casino!\n"
            "New players get a ₿0.002222 welcome bonus on !signup.\n"
            "Type !help to see available commands."
        )

    @bot.command(name="help")
    async def help_cmd(ctx: commands.Context):
        await ctx.send(
            "!signup <email> <password> <name>  - create an account\n"
            "!login <email> <password>          - log in\n"
            "!logout                            - log out\n"
            "!balance                           - show your balance\n"
            "!deposit <amount>                  - deposit BTC\n"
            "!withdraw <amount> <address>       - withdraw BTC (network fee applies)\n"
            "!games                             - list games\n"
            "!play <game id> [amount]           - play a game\n"
            "!slots [amount]                    - spin the reels\n"
            "!transactions [filter]             - all, deposits, withdrawals or games\n"
            "!history                           - game history and stats\n"
        )

    @bot.command(name="signup")
    async def signup_cmd(ctx: commands.Context, email: str, password: str, *, name: str):
        await _forget_credentials(ctx)
        result = _service_for(ctx).register(email, password, name)
        if not result.success:
            await ctx.send(result.error_message)
            return
        await ctx.send(
            f"🎉 Account created! You received {format_btc(result.new_balance)} as a welcome bonus."
        )

    @bot.command(name="login")
    async def login_cmd(ctx: commands.Context, email: str, password: str):
        await _forget_credentials(ctx)
        result = _service_for(ctx).login(email, password)
        if not result.success:
            await ctx.send(result.error_message)
            return
        account = result.account
        await ctx.send(f"Welcome back! Logged in as {account.display_name or account.email}")

    @bot.command(name="logout")
    async def logout_cmd(ctx: commands.Context):
        _service_for(ctx).logout()
        await ctx.send("You have been logged out.")

    @bot.command(name="balance")
    async def balance_cmd(ctx: commands.Context):
        account = _service_for(ctx).current_account()
        if account is None:
            await ctx.send("Please !login first.")
            return
        await ctx.send(format_account(account))

    @bot.command(name="deposit")
    async def deposit_cmd(ctx: commands.Context, amount: str):
        result = _service_for(ctx).deposit(amount)
        if not result.success:
            await ctx.send(result.error_message)
            return
        await ctx.send(f"✅ Deposit successful\nYour new balance: {format_btc(result.new_balance)}")

    @bot.command(name="withdraw")
    async def withdraw_cmd(ctx: commands.Context, amount: str, address: str):
        result = _service_for(ctx).withdraw(amount, address)
        if not result.success:
            await ctx.send(result.error_message)
            return
        await ctx.send(
            "✅ Withdrawal initiated (processing time: 1-2 hours)\n"
            f"Your new balance: {format_btc(result.new_balance)}"
        )

    @bot.command(name="games")
    async def games_cmd(ctx: commands.Context):
        await ctx.send(format_games(_service_for(ctx).list_games()))

    @bot.command(name="play")
    async def play_cmd(ctx: commands.Context, game_id: int, amount: Optional[str] = None):
        await _play(ctx, _service_for(ctx), game_id, amount)

    @bot.command(name="slots")
    async def slots_cmd(ctx: commands.Context, amount: Optional[str] = None):
        await _play(ctx, _service_for(ctx), SLOT_MACHINE_GAME_ID, amount)

    @bot.command(name="transactions")
    async def transactions_cmd(ctx: commands.Context, transaction_filter: str = "all"):
        service = _service_for(ctx)
        if service.current_account() is None:
            await ctx.send("Please !login first.")
            return
        try:
            selected = TransactionFilter(transaction_filter.lower())
        except ValueError:
            await ctx.send("Filter must be one of: all, deposits, withdrawals, games")
            return
        await ctx.send(format_transactions(service.list_transactions(selected)))

    @bot.command(name="history")
    async def history_cmd(ctx: commands.Context):
        service = _service_for(ctx)
        if service.current_account() is None:
            await ctx.send("Please !login first.")
            return
        await ctx.send(format_history(service.list_game_history(), service.game_stats()))

    return bot

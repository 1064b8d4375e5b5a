from __future__ import annotations

import logging

import telebot
from telebot.apihelper import ApiTelegramException
from telebot.types import InlineKeyboardButton, InlineKeyboardMarkup

from application.services import CasinoService, TransactionFilter
from domain.games import GAMES, SLOT_MACHINE_GAME_ID, get_game
from interfaces.formatting import (
    format_account,
    format_btc,
    format_games,
    format_history,
    format_play_result,
    format_transactions,
)
from interfaces.sessions import ChatSessions
from interfaces.telegram.callback_data import (
    encode_play_choice,
    encode_transaction_filter,
    parse_play_choice,
    parse_transaction_filter,
)


logger = logging.getLogger(__name__)


HELP_TEXT = (
    "/signup <email> <password> <name>  - create an account (welcome bonus included)\n"
    "/login <email> <password>          - log in\n"
    "/logout                            - log out\n"
    "/balance                           - show your balance\n"
    "/deposit <amount>                  - deposit BTC\n"
    "/withdraw <amount> <address>       - withdraw BTC (network fee applies)\n"
    "/games                             - list games\n"
    "/play <game id> [amount]           - play a game\n"
    "/slots [amount]                    - spin the reels\n"
    "/transactions [all|deposits|withdrawals|games]\n"
    "/history                           - game history and stats\n"
)


def _games_markup() -> InlineKeyboardMarkup:
    markup = InlineKeyboardMarkup(row_width=2)
    for game in GAMES:
        markup.add(
            InlineKeyboardButton(
                f"{game.icon} {game.name}",
                callback_data=encode_play_choice(game.id, game.min_bet),
            )
        )
    return markup


def _filters_markup() -> InlineKeyboardMarkup:
    markup = InlineKeyboardMarkup(row_width=4)
    markup.row(
        *[
            InlineKeyboardButton(f.value.title(), callback_data=encode_transaction_filter(f.value))
            for f in TransactionFilter
        ]
    )
    return markup


def create_telegram_bot(bot_token: str, casino: CasinoService) -> telebot.TeleBot:
    """
    Configure and return a TeleBot instance wired to the application layer.

    This module contains only Telegram-specific concerns: parsing Telegram
    messages/callbacks and mapping them to/from `CasinoService` calls. Each
    Telegram user gets an independent session.
    """

    bot = telebot.TeleBot(bot_token)
    sessions = ChatSessions(casino, "telegram")

    def _service_for(message) -> CasinoService:
        return sessions.get(str(message.from_user.id))

    def _forget_credentials(message) -> None:
        # Messages carrying a password should not stay in the chat.
        try:
            bot.delete_message(message.chat.id, message.message_id)
        except ApiTelegramException:
            logger.debug("Could not delete credentials message in chat %s", message.chat.id)

    def _play(chat_id: int, service: CasinoService, game_id: int, amount=None) -> None:
        game = get_game(game_id)
        if game is None:
            bot.send_message(chat_id, f"Unknown game: {game_id}. Use /games to list games.")
            return

        bot.send_message(chat_id, f"{game.icon} Playing {game.name}...")
        result = service.play(game_id, amount)
        if not result.success:
            bot.send_message(chat_id, result.error_message)
            return
        bot.send_message(chat_id, format_play_result(game, result))

    @bot.message_handler(commands=["start", "hello"])
    def handle_start(message):
        bot.send_message(
            message.chat.id,
            "🎰 Welcome to Bitcoin Casino!\n"
            "New players get a ₿0.002222 welcome bonus on /signup.\n"
            "Type /help to see available commands.",
        )

    @bot.message_handler(commands=["help"])
    def handle_help(message):
        bot.send_message(message.chat.id, HELP_TEXT)

    @bot.message_handler(commands=["signup"])
    def handle_signup(message):
        parts = message.text.split(" ")
        _forget_credentials(message)
        if len(parts) < 4:
            bot.send_message(message.chat.id, "Usage: /signup <email> <password> <name>")
            return

        result = _service_for(message).register(parts[1], parts[2], " ".join(parts[3:]))
        if not result.success:
            bot.send_message(message.chat.id, result.error_message)
            return

        bot.send_message(
            message.chat.id,
            "🎉 Account created successfully!\n"
            f"You received {format_btc(result.new_balance)} as a welcome bonus. Start playing with /games",
        )

    @bot.message_handler(commands=["login"])
    def handle_login(message):
        parts = message.text.split(" ")
        _forget_credentials(message)
        if len(parts) != 3:
            bot.send_message(message.chat.id, "Usage: /login <email> <password>")
            return

        result = _service_for(message).login(parts[1], parts[2])
        if not result.success:
            bot.send_message(message.chat.id, result.error_message)
            return

        account = result.account
        bot.send_message(
            message.chat.id,
            f"Welcome back! Logged in as {account.display_name or account.email}",
        )

    @bot.message_handler(commands=["logout"])
    def handle_logout(message):
        _service_for(message).logout()
        bot.send_message(message.chat.id, "You have been logged out.")

    @bot.message_handler(commands=["balance"])
    def handle_balance(message):
        account = _service_for(message).current_account()
        if account is None:
            bot.send_message(message.chat.id, "Please /login first.")
            return
        bot.send_message(message.chat.id, format_account(account))

    @bot.message_handler(commands=["deposit", "withdraw"])
    def handle_wallet(message):
        parts = message.text.split(" ")
        op = parts[0][1:].split("@")[0]  # strip leading '/' and bot mention
        service = _service_for(message)

        if len(parts) < 2:
            bot.send_message(message.chat.id, "Please enter an amount.")
            return

        if op == "deposit":
            result = service.deposit(parts[1])
            verb = "Deposit successful"
        else:
            if len(parts) < 3:
                bot.send_message(message.chat.id, "Usage: /withdraw <amount> <address>")
                return
            result = service.withdraw(parts[1], parts[2])
            verb = "Withdrawal initiated (processing time: 1-2 hours)"

        if not result.success:
            bot.send_message(message.chat.id, result.error_message)
            return
        bot.send_message(
            message.chat.id,
            f"✅ {verb}\nYour new balance: {format_btc(result.new_balance)}",
        )

    @bot.message_handler(commands=["games"])
    def handle_games(message):
        bot.send_message(
            message.chat.id,
            format_games(_service_for(message).list_games()),
            reply_markup=_games_markup(),
        )

    @bot.message_handler(commands=["play", "slots"])
    def handle_play(message):
        parts = message.text.split(" ")
        op = parts[0][1:].split("@")[0]
        service = _service_for(message)

        if op == "slots":
            amount = parts[1] if len(parts) > 1 else None
            _play(message.chat.id, service, SLOT_MACHINE_GAME_ID, amount)
            return

        if len(parts) < 2:
            bot.send_message(message.chat.id, "Usage: /play <game id> [amount]")
            return
        try:
            game_id = int(parts[1])
        except ValueError:
            bot.send_message(message.chat.id, "Game id must be a number.")
            return
        amount = parts[2] if len(parts) > 2 else None
        _play(message.chat.id, service, game_id, amount)

    @bot.message_handler(commands=["transactions"])
    def handle_transactions(message):
        parts = message.text.split(" ")
        service = _service_for(message)
        if service.current_account() is None:
            bot.send_message(message.chat.id, "Please /login first.")
            return

        try:
            transaction_filter = TransactionFilter(parts[1] if len(parts) > 1 else "all")
        except ValueError:
            bot.send_message(message.chat.id, "Filter must be one of: all, deposits, withdrawals, games")
            return

        bot.send_message(
            message.chat.id,
            format_transactions(service.list_transactions(transaction_filter)),
            reply_markup=_filters_markup(),
        )

    @bot.message_handler(commands=["history"])
    def handle_history(message):
        service = _service_for(message)
        if service.current_account() is None:
            bot.send_message(message.chat.id, "Please /login first.")
            return
        bot.send_message(
            message.chat.id,
            format_history(service.list_game_history(), service.game_stats()),
        )

    @bot.callback_query_handler(func=lambda call: call.data.startswith("play:"))
    def handle_play_choice(call):
        try:
            game_id, amount = parse_play_choice(call.data)
        except ValueError:
            bot.answer_callback_query(call.id, "Invalid selection.")
            return

        bot.answer_callback_query(call.id)
        service = sessions.get(str(call.from_user.id))
        try:
            _play(call.message.chat.id, service, game_id, amount)
        except Exception:
            logger.exception("Failed to play game %s for Telegram user %s", game_id, call.from_user.id)
            bot.send_message(call.message.chat.id, "Something went wrong. Please try again.")

    @bot.callback_query_handler(func=lambda call: call.data.startswith("tx:"))
    def handle_filter_choice(call):
        try:
            transaction_filter = TransactionFilter(parse_transaction_filter(call.data))
        except ValueError:
            bot.answer_callback_query(call.id, "Invalid filter.")
            return

        bot.answer_callback_query(call.id)
        service = sessions.get(str(call.from_user.id))
        try:
            bot.edit_message_text(
                format_transactions(service.list_transactions(transaction_filter)),
                call.message.chat.id,
                call.message.message_id,
                reply_markup=_filters_markup(),
            )
        except ApiTelegramException:
            # Telegram refuses edits that leave the message unchanged.
            logger.debug("Transaction list unchanged for filter %s", transaction_filter.value)

    return bot

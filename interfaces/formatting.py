"""Plain-text rendering shared by the chat front ends."""
from __future__ import annotations

from decimal import Decimal
from typing import Iterable, List

from application.results import GameStats, PlayResult
from domain.games import Game
from domain.models import Account, GameHistoryEntry, GameResult, Transaction, TransactionKind


_TRANSACTION_ICONS = {
    TransactionKind.DEPOSIT: "💰",
    TransactionKind.WITHDRAW: "💸",
    TransactionKind.BET: "🎲",
    TransactionKind.WIN: "🎉",
    TransactionKind.BONUS: "🎁",
}

_TRANSACTION_LABELS = {
    TransactionKind.DEPOSIT: "Wallet Deposit",
    TransactionKind.WITHDRAW: "Wallet Withdrawal",
    TransactionKind.BONUS: "Welcome Bonus",
}


def format_btc(amount: Decimal, signed: bool = False) -> str:
    text = f"₿{abs(amount):.6f}"
    if not signed:
        return text if amount >= 0 else f"-{text}"
    return f"+{text}" if amount >= 0 else f"-{text}"


def format_account(account: Account) -> str:
    return (
        f"{account.display_name} ({account.email})\n"
        f"Balance: {format_btc(account.balance)}"
    )


def format_games(games: Iterable[Game]) -> str:
    lines = [
        f"{g.id}. {g.icon} {g.name} - min bet ₿{g.min_bet}, up to {g.max_multiplier}x"
        for g in games
    ]
    return "\n".join(lines)


def format_transaction(transaction: Transaction) -> str:
    icon = _TRANSACTION_ICONS.get(transaction.kind, "•")
    label = transaction.game or _TRANSACTION_LABELS.get(transaction.kind, "N/A")
    when = transaction.timestamp.strftime("%Y-%m-%d %H:%M")
    return (
        f"{icon} {label}: {format_btc(transaction.amount, signed=True)} "
        f"[{transaction.status.value}] {when}"
    )


def format_transactions(transactions: List[Transaction], limit: int = 15) -> str:
    if not transactions:
        return "No transactions yet."
    lines = [format_transaction(t) for t in transactions[:limit]]
    if len(transactions) > limit:
        lines.append(f"... and {len(transactions) - limit} more")
    return "\n".join(lines)


def format_history_entry(entry: GameHistoryEntry) -> str:
    icon = "🎉" if entry.result == GameResult.WIN else "😢"
    return (
        f"{icon} {entry.game}: bet {format_btc(entry.bet_amount)}, "
        f"won {format_btc(entry.win_amount)} ({format_btc(entry.net_amount, signed=True)})"
    )


def format_stats(stats: GameStats) -> str:
    label = "Net Profit" if stats.net_profit >= 0 else "Net Loss"
    return (
        f"Wins: {stats.wins}  Losses: {stats.losses}\n"
        f"{label}: {format_btc(stats.net_profit, signed=True)}\n"
        f"Win Rate: {stats.win_rate:.1f}% ({stats.wins}/{stats.total} games)"
    )


def format_history(entries: List[GameHistoryEntry], stats: GameStats, limit: int = 10) -> str:
    if not entries:
        return "No games played yet."
    lines = [format_stats(stats), ""]
    lines.extend(format_history_entry(e) for e in entries[:limit])
    return "\n".join(lines)


def format_play_result(game: Game, result: PlayResult) -> str:
    outcome = result.outcome
    reels = f"{' '.join(outcome.reels)}\n" if outcome.reels else ""
    balance = result.new_balance if result.new_balance is not None else Decimal("0")
    if outcome.is_win:
        return (
            f"{reels}🎉 {game.name}: you won {format_btc(outcome.payout, signed=True)} "
            f"({outcome.multiplier}x)\nNew Balance: {format_btc(balance)}"
        )
    return (
        f"{reels}😢 {game.name}: you lost {format_btc(result.bet_amount)}\n"
        f"New Balance: {format_btc(balance)}"
    )

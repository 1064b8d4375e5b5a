from __future__ import annotations

from decimal import Decimal, InvalidOperation


def encode_play_choice(game_id: int, amount: Decimal) -> str:
    """
    Encode a "play this game" button.

    Format: play:{game_id}:{amount}
    """

    return f"play:{game_id}:{amount}"


def parse_play_choice(data: str) -> tuple[int, Decimal]:
    parts = data.split(":")
    if len(parts) != 3 or parts[0] != "play":
        raise ValueError(f"Invalid play callback data: {data}")

    try:
        game_id = int(parts[1])
        amount = Decimal(parts[2])
    except (ValueError, InvalidOperation) as exc:
        raise ValueError(f"Invalid play callback data: {data}") from exc
    return game_id, amount


def encode_transaction_filter(transaction_filter: str) -> str:
    """
    Encode a transaction-list filter tab.

    Format: tx:{filter}
    """

    return f"tx:{transaction_filter}"


def parse_transaction_filter(data: str) -> str:
    parts = data.split(":")
    if len(parts) != 2 or parts[0] != "tx" or not parts[1]:
        raise ValueError(f"Invalid transaction filter callback data: {data}")
    return parts[1]

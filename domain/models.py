from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import ROUND_DOWN, Decimal
from enum import Enum
from typing import List, Optional


SATOSHI = Decimal("0.00000001")
# Total Bitcoin supply; no single deposit or wager may exceed it.
MAX_AMOUNT = Decimal("21000000")


def to_money(value) -> Decimal:
    """
    Convert a user or random-draw supplied number to a BTC amount.

    Floats go through `str` so that `0.001` stays `0.001` rather than the
    binary approximation. Amounts are truncated to one satoshi.
    """

    if isinstance(value, float):
        value = str(value)
    return Decimal(value).quantize(SATOSHI, rounding=ROUND_DOWN)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TransactionKind(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"
    BET = "bet"
    WIN = "win"
    BONUS = "bonus"


class TransactionStatus(str, Enum):
    COMPLETED = "completed"
    PENDING = "pending"
    FAILED = "failed"


class GameResult(str, Enum):
    WIN = "win"
    LOSS = "loss"


class WagerState(str, Enum):
    BET_PLACED = "bet_placed"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class Transaction:
    """A single balance-affecting ledger record. Never mutated once created."""

    id: int
    kind: TransactionKind
    amount: Decimal
    status: TransactionStatus
    timestamp: datetime
    game: Optional[str] = None


@dataclass(frozen=True)
class GameHistoryEntry:
    id: int
    game: str
    bet_amount: Decimal
    win_amount: Decimal
    result: GameResult
    timestamp: datetime

    @property
    def net_amount(self) -> Decimal:
        return self.win_amount - self.bet_amount


@dataclass
class Account:
    """
    A registered player's identity and financial record.

    The balance is not stored: it is always the sum of the signed amounts
    of every transaction that did not fail. Both sequences are kept
    newest-first, so index 0 is the most recent record.
    """

    email: str
    password_hash: str
    display_name: str
    has_received_bonus: bool = False
    transactions: List[Transaction] = field(default_factory=list)
    game_history: List[GameHistoryEntry] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)

    @property
    def balance(self) -> Decimal:
        return sum(
            (t.amount for t in self.transactions if t.status != TransactionStatus.FAILED),
            Decimal("0"),
        )

    def next_transaction_id(self) -> int:
        return max((t.id for t in self.transactions), default=0) + 1

    def next_game_history_id(self) -> int:
        return max((g.id for g in self.game_history), default=0) + 1


@dataclass
class Wager:
    """
    A bet that has been debited but not yet resolved.

    `id` is the handle callers pass back to resolve the wager.
    """

    id: str
    email: str
    game_id: int
    amount: Decimal
    state: WagerState = WagerState.BET_PLACED
    placed_at: datetime = field(default_factory=utcnow)

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional

from domain.models import Account, Wager
from domain.outcomes import Outcome


class ErrorCode(str, Enum):
    ALREADY_EXISTS = "already_exists"
    NOT_FOUND = "not_found"
    WRONG_PASSWORD = "wrong_password"
    BELOW_MINIMUM = "below_minimum"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    INVALID_ADDRESS = "invalid_address"
    NO_ACTIVE_SESSION = "no_active_session"
    INVALID_INPUT = "invalid_input"
    UNKNOWN_GAME = "unknown_game"
    WAGER_IN_PROGRESS = "wager_in_progress"


class WagerNotFoundError(Exception):
    """Raised when resolving a wager handle that is unknown or already resolved."""


@dataclass
class OperationResult:
    """Generic result type for account and wallet operations."""

    success: bool
    error: Optional[ErrorCode] = None
    error_message: Optional[str] = None
    new_balance: Optional[Decimal] = None
    account: Optional[Account] = None

    @classmethod
    def failure(cls, error: ErrorCode, message: str) -> "OperationResult":
        return cls(success=False, error=error, error_message=message)


@dataclass
class WagerResult:
    """Result of placing a wager: the handle to resolve it, or why it was refused."""

    success: bool
    wager: Optional[Wager] = None
    new_balance: Optional[Decimal] = None
    error: Optional[ErrorCode] = None
    error_message: Optional[str] = None

    @classmethod
    def failure(cls, error: ErrorCode, message: str) -> "WagerResult":
        return cls(success=False, error=error, error_message=message)


@dataclass
class PlayResult:
    """Result of a full place-and-resolve round."""

    success: bool
    outcome: Optional[Outcome] = None
    bet_amount: Optional[Decimal] = None
    new_balance: Optional[Decimal] = None
    error: Optional[ErrorCode] = None
    error_message: Optional[str] = None


@dataclass
class GameStats:
    wins: int
    losses: int
    net_profit: Decimal

    @property
    def total(self) -> int:
        return self.wins + self.losses

    @property
    def win_rate(self) -> float:
        """Percentage of rounds won, 0.0 when nothing has been played."""
        if self.total == 0:
            return 0.0
        return self.wins / self.total * 100

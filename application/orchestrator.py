from __future__ import annotations

import logging
import random
import threading
import uuid
from decimal import Decimal
from typing import Dict, Optional, Union

from application.ledger import Ledger
from application.results import ErrorCode, WagerNotFoundError, WagerResult
from domain.games import get_game
from domain.models import MAX_AMOUNT, GameResult, TransactionKind, Wager, WagerState
from domain.outcomes import Outcome, OutcomeGenerator, build_outcome_generators
from domain.repositories import AccountRepository


logger = logging.getLogger(__name__)


def handle_id(handle: Union[Wager, str]) -> str:
    return handle.id if isinstance(handle, Wager) else handle


class GameOrchestrator:
    """
    Runs the wager lifecycle for each account:

        Idle -> BetPlaced -> Resolved -> Idle

    `place_wager` debits the stake and hands back a `Wager` handle.
    `resolve_wager` draws the outcome, credits any payout and records the
    round in the game history. While an account has a wager in BetPlaced,
    further wagers on that account are refused.
    """

    def __init__(
        self,
        account_repo: AccountRepository,
        ledger: Ledger,
        generators: Optional[Dict[str, OutcomeGenerator]] = None,
        rng: Optional[random.Random] = None,
        max_amount: Decimal = MAX_AMOUNT,
    ) -> None:
        self._account_repo = account_repo
        self._ledger = ledger
        self._generators = generators or build_outcome_generators()
        self._rng = rng or random.Random()
        self._max_amount = max_amount
        self._pending: Dict[str, Wager] = {}
        self._active_by_email: Dict[str, str] = {}
        self._guard = threading.Lock()

    def active_wager(self, email: str) -> Optional[Wager]:
        with self._guard:
            wager_id = self._active_by_email.get(email)
            return self._pending.get(wager_id) if wager_id else None

    def pending_wager(self, handle: Union[Wager, str]) -> Optional[Wager]:
        with self._guard:
            return self._pending.get(handle_id(handle))

    def place_wager(self, email: str, game_id: int, amount: Decimal) -> WagerResult:
        game = get_game(game_id)
        if game is None:
            return WagerResult.failure(ErrorCode.UNKNOWN_GAME, f"Unknown game: {game_id}")
        if amount <= 0:
            return WagerResult.failure(ErrorCode.INVALID_INPUT, "Bet amount must be greater than zero.")
        if amount > self._max_amount:
            return WagerResult.failure(
                ErrorCode.INVALID_INPUT, f"Bet amount cannot exceed {self._max_amount} BTC."
            )
        if amount < game.min_bet:
            return WagerResult.failure(
                ErrorCode.BELOW_MINIMUM,
                f"Minimum bet for {game.name} is {game.min_bet} BTC",
            )

        with self._ledger.lock_for(email):
            account = self._account_repo.get_by_email(email)
            if account is None:
                return WagerResult.failure(ErrorCode.NOT_FOUND, "Account not found.")
            if self.active_wager(email) is not None:
                return WagerResult.failure(
                    ErrorCode.WAGER_IN_PROGRESS,
                    "Your previous bet is still being resolved.",
                )
            if account.balance < amount:
                return WagerResult.failure(
                    ErrorCode.INSUFFICIENT_BALANCE,
                    "Not enough Bitcoin to play this game",
                )

            new_balance = self._ledger.apply_balance_delta(
                account, -amount, TransactionKind.BET, game=game.name
            )
            wager = Wager(id=uuid.uuid4().hex, email=email, game_id=game.id, amount=amount)
            with self._guard:
                self._pending[wager.id] = wager
                self._active_by_email[email] = wager.id

        logger.info("Wager %s placed: %s BTC on %s by %s", wager.id, amount, game.name, email)
        return WagerResult(success=True, wager=wager, new_balance=new_balance)

    def resolve_wager(self, handle: Union[Wager, str]) -> Outcome:
        wager = self.pending_wager(handle)
        if wager is None:
            raise WagerNotFoundError(f"No pending wager with handle {handle_id(handle)}")

        game = get_game(wager.game_id)
        generator = self._generators[game.outcome_model]

        with self._ledger.lock_for(wager.email):
            account = self._account_repo.get_by_email(wager.email)
            with self._guard:
                # Another thread may have resolved it while we waited for the lock.
                if wager.id not in self._pending:
                    raise WagerNotFoundError(f"No pending wager with handle {wager.id}")
                if account is None:
                    self._forget(wager)
                    raise WagerNotFoundError(f"Account for wager {wager.id} no longer exists")

            # A failed draw leaves the wager pending so it can be resolved again.
            outcome = generator.resolve(wager.amount, game, self._rng)

            with self._guard:
                self._pending.pop(wager.id, None)
            try:
                if outcome.result == GameResult.WIN:
                    self._ledger.apply_balance_delta(
                        account, outcome.payout, TransactionKind.WIN, game=game.name
                    )
                self._ledger.record_game_history(
                    account, game.name, wager.amount, outcome.payout, outcome.result
                )
                wager.state = WagerState.RESOLVED
            finally:
                with self._guard:
                    self._forget(wager)

        logger.info(
            "Wager %s resolved: %s, payout %s BTC",
            wager.id,
            outcome.result.value,
            outcome.payout,
        )
        return outcome

    def _forget(self, wager: Wager) -> None:
        self._pending.pop(wager.id, None)
        if self._active_by_email.get(wager.email) == wager.id:
            del self._active_by_email[wager.email]

    def clear(self) -> None:
        """Forget every pending wager (used when all account data is reset)."""
        with self._guard:
            self._pending.clear()
            self._active_by_email.clear()

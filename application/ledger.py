from __future__ import annotations

import logging
import threading
from decimal import Decimal
from typing import Dict, Optional

from domain.models import (
    Account,
    GameHistoryEntry,
    GameResult,
    Transaction,
    TransactionKind,
    TransactionStatus,
    utcnow,
)
from domain.repositories import AccountRepository


logger = logging.getLogger(__name__)


# Credits are positive, debits negative.
_CREDIT_KINDS = {TransactionKind.DEPOSIT, TransactionKind.WIN, TransactionKind.BONUS}
_DEBIT_KINDS = {TransactionKind.WITHDRAW, TransactionKind.BET}


class Ledger:
    """
    Append-only transaction and game-history log for accounts.

    Every write prepends the new record (index 0 is the newest) and persists
    the whole account through the repository in a single `update_account`
    call. Writers for the same account are serialised with a per-account
    re-entrant lock; callers that read-check-write (e.g. "is the balance
    high enough?") should hold `lock_for(email)` around the whole sequence.
    """

    def __init__(self, account_repo: AccountRepository) -> None:
        self._account_repo = account_repo
        self._locks: Dict[str, threading.RLock] = {}
        self._locks_guard = threading.Lock()

    def lock_for(self, email: str) -> threading.RLock:
        with self._locks_guard:
            lock = self._locks.get(email)
            if lock is None:
                lock = threading.RLock()
                self._locks[email] = lock
            return lock

    @staticmethod
    def _check_sign(kind: TransactionKind, amount: Decimal) -> None:
        if amount == 0:
            raise ValueError(f"{kind.value} transaction amount must be non-zero")
        if kind in _CREDIT_KINDS and amount < 0:
            raise ValueError(f"{kind.value} transaction amount must be positive, got {amount}")
        if kind in _DEBIT_KINDS and amount > 0:
            raise ValueError(f"{kind.value} transaction amount must be negative, got {amount}")

    def record_transaction(
        self,
        account: Account,
        kind: TransactionKind,
        amount: Decimal,
        status: TransactionStatus = TransactionStatus.COMPLETED,
        game: Optional[str] = None,
    ) -> Transaction:
        self._check_sign(kind, amount)
        with self.lock_for(account.email):
            transaction = Transaction(
                id=account.next_transaction_id(),
                kind=kind,
                amount=amount,
                status=status,
                game=game,
                timestamp=utcnow(),
            )
            account.transactions.insert(0, transaction)
            self._account_repo.update_account(account)

        logger.debug(
            "Recorded %s %s for %s (id=%d, status=%s)",
            kind.value,
            amount,
            account.email,
            transaction.id,
            status.value,
        )
        return transaction

    def apply_balance_delta(
        self,
        account: Account,
        delta: Decimal,
        kind: TransactionKind,
        status: TransactionStatus = TransactionStatus.COMPLETED,
        game: Optional[str] = None,
    ) -> Decimal:
        """
        Move the account balance by `delta` and return the new balance.

        The balance is derived from the ledger, so the change and its audit
        record are the same write: they cannot diverge.
        """

        self.record_transaction(account, kind, delta, status, game)
        return account.balance

    def record_game_history(
        self,
        account: Account,
        game: str,
        bet_amount: Decimal,
        win_amount: Decimal,
        result: GameResult,
    ) -> GameHistoryEntry:
        if bet_amount < 0 or win_amount < 0:
            raise ValueError("bet_amount and win_amount must not be negative")
        if result == GameResult.WIN and win_amount <= 0:
            raise ValueError("a winning round must pay out a positive amount")
        if result == GameResult.LOSS and win_amount != 0:
            raise ValueError("a losing round cannot pay out")

        with self.lock_for(account.email):
            entry = GameHistoryEntry(
                id=account.next_game_history_id(),
                game=game,
                bet_amount=bet_amount,
                win_amount=win_amount,
                result=result,
                timestamp=utcnow(),
            )
            account.game_history.insert(0, entry)
            self._account_repo.update_account(account)
        return entry

from __future__ import annotations

import logging
import random
import re
import time
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Callable, List, Optional, Union

from werkzeug.security import check_password_hash, generate_password_hash

from application.ledger import Ledger
from application.orchestrator import GameOrchestrator, handle_id
from application.results import (
    ErrorCode,
    GameStats,
    OperationResult,
    PlayResult,
    WagerNotFoundError,
    WagerResult,
)
from application.session import Session
from application.settings import CasinoSettings
from domain.games import GAMES, Game, get_game
from domain.models import (
    Account,
    GameHistoryEntry,
    GameResult,
    Transaction,
    TransactionKind,
    TransactionStatus,
    Wager,
    to_money,
    utcnow,
)
from domain.outcomes import Outcome
from domain.repositories import AccountExistsError, AccountRepository


logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

WELCOME_BONUS_LABEL = "Welcome Bonus"
DEMO_EMAIL = "demo@casino.com"
DEMO_PASSWORD = "password123"
DEMO_NAME = "Demo User"


class TransactionFilter(str, Enum):
    ALL = "all"
    DEPOSITS = "deposits"
    WITHDRAWALS = "withdrawals"
    GAMES = "games"


_FILTER_KINDS = {
    TransactionFilter.DEPOSITS: {TransactionKind.DEPOSIT, TransactionKind.BONUS},
    TransactionFilter.WITHDRAWALS: {TransactionKind.WITHDRAW},
    TransactionFilter.GAMES: {TransactionKind.BET, TransactionKind.WIN},
}


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def parse_amount(value: Union[str, float, int, Decimal, None]) -> Optional[Decimal]:
    """Turn user input into a BTC amount, or None if it is not a finite number."""

    if value is None:
        return None
    try:
        amount = Decimal(str(value).strip())
        if not amount.is_finite():
            return None
        return to_money(amount)
    except InvalidOperation:
        return None


def _validate_positive_amount(amount: Optional[Decimal], maximum: Decimal) -> Optional[str]:
    if amount is None or amount <= 0:
        return "Please enter a valid amount"
    if amount > maximum:
        return f"Amount cannot exceed {maximum} BTC"
    return None


class CasinoService:
    """
    In-process API of the casino: accounts, wallet, games and history.

    One service holds one `Session`. The account repository, ledger and
    orchestrator may be shared between several services (one per chat in
    the bot front ends) via `new_session()`; per-account locks live in the
    shared ledger, so concurrent services stay consistent.

    User-facing failures come back as result objects carrying an
    `ErrorCode`; only programming errors raise.
    """

    def __init__(
        self,
        account_repo: AccountRepository,
        session: Session,
        ledger: Ledger,
        orchestrator: GameOrchestrator,
        settings: Optional[CasinoSettings] = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._account_repo = account_repo
        self.session = session
        self._ledger = ledger
        self._orchestrator = orchestrator
        self.settings = settings or CasinoSettings()
        self._sleep = sleep

    def new_session(self) -> "CasinoService":
        """Return a service with its own session over the same accounts."""
        return CasinoService(
            self._account_repo,
            Session(self._account_repo),
            self._ledger,
            self._orchestrator,
            self.settings,
            self._sleep,
        )

    # ----- accounts -----

    def _create_account(self, email: str, password: str, display_name: str) -> Account:
        bonus = self.settings.bonus_amount
        account = Account(
            email=email,
            password_hash=generate_password_hash(password),
            display_name=display_name,
            has_received_bonus=True,
            transactions=[
                Transaction(
                    id=1,
                    kind=TransactionKind.BONUS,
                    amount=bonus,
                    status=TransactionStatus.COMPLETED,
                    game=WELCOME_BONUS_LABEL,
                    timestamp=utcnow(),
                )
            ],
        )
        # Account and bonus are stored in one write.
        self._account_repo.create_account(account)
        return account

    def register(
        self,
        email: str,
        password: str,
        display_name: str,
        confirm_password: Optional[str] = None,
    ) -> OperationResult:
        """
        Create an account credited with the welcome bonus and log into it.

        `confirm_password`, when given, must match `password`.
        """

        email = normalize_email(email)
        display_name = (display_name or "").strip()
        if not email or not password or not display_name:
            return OperationResult.failure(ErrorCode.INVALID_INPUT, "Please fill in all fields")
        if confirm_password is not None and confirm_password != password:
            return OperationResult.failure(ErrorCode.INVALID_INPUT, "Passwords do not match")
        if len(password) < self.settings.min_password_length:
            return OperationResult.failure(
                ErrorCode.INVALID_INPUT,
                f"Password must be at least {self.settings.min_password_length} characters",
            )
        if not EMAIL_RE.match(email):
            return OperationResult.failure(ErrorCode.INVALID_INPUT, "Please enter a valid email address")

        with self._ledger.lock_for(email):
            if self._account_repo.get_by_email(email) is not None:
                return OperationResult.failure(
                    ErrorCode.ALREADY_EXISTS, "An account with this email already exists."
                )
            try:
                account = self._create_account(email, password, display_name)
            except AccountExistsError:
                return OperationResult.failure(
                    ErrorCode.ALREADY_EXISTS, "An account with this email already exists."
                )

        self.session.login(email)
        logger.info("Registered %s with a %s BTC welcome bonus", email, self.settings.bonus_amount)
        return OperationResult(success=True, new_balance=account.balance, account=account)

    def login(self, email: str, password: str) -> OperationResult:
        email = normalize_email(email)
        if not email or not password:
            return OperationResult.failure(ErrorCode.INVALID_INPUT, "Please fill in all fields")

        account = self._account_repo.get_by_email(email)
        if account is None:
            return OperationResult.failure(
                ErrorCode.NOT_FOUND, "No account found for this email. Please sign up first."
            )
        if not check_password_hash(account.password_hash, password):
            logger.info("Failed login for %s", email)
            return OperationResult.failure(
                ErrorCode.WRONG_PASSWORD, "Invalid password. Please try again."
            )

        self.session.login(email)
        return OperationResult(success=True, new_balance=account.balance, account=account)

    def logout(self) -> None:
        self.session.logout()

    def current_account(self) -> Optional[Account]:
        return self.session.current()

    def seed_demo_account(self) -> bool:
        """Create the demo account when the store is empty. Returns True if created."""

        if self._account_repo.count_accounts() > 0:
            return False
        try:
            self._create_account(DEMO_EMAIL, DEMO_PASSWORD, DEMO_NAME)
        except AccountExistsError:
            return False
        logger.info("Demo user created: %s", DEMO_EMAIL)
        return True

    def reset(self) -> None:
        """Drop every account, pending wager and the current session."""

        self._account_repo.clear()
        self._orchestrator.clear()
        self.session.logout()
        logger.warning("All casino data cleared")

    # ----- wallet -----

    def _no_session(self) -> OperationResult:
        return OperationResult.failure(
            ErrorCode.NO_ACTIVE_SESSION, "User not found. Please login again."
        )

    def deposit(self, amount) -> OperationResult:
        email = self.session.current_email
        if email is None:
            return self._no_session()

        amount = parse_amount(amount)
        error = _validate_positive_amount(amount, self.settings.max_amount)
        if error:
            return OperationResult.failure(ErrorCode.INVALID_INPUT, error)
        if amount < self.settings.min_deposit:
            return OperationResult.failure(
                ErrorCode.BELOW_MINIMUM,
                f"Minimum deposit is {self.settings.min_deposit} BTC",
            )

        with self._ledger.lock_for(email):
            account = self._account_repo.get_by_email(email)
            if account is None:
                return self._no_session()
            new_balance = self._ledger.apply_balance_delta(
                account, amount, TransactionKind.DEPOSIT
            )

        logger.info("Deposit of %s BTC by %s", amount, email)
        return OperationResult(success=True, new_balance=new_balance)

    def withdraw(self, amount, destination_address: str) -> OperationResult:
        """
        Withdraw `amount` to `destination_address`.

        The network fee is charged on top of `amount`; the whole debit is
        recorded as one pending `withdraw` transaction.
        """

        email = self.session.current_email
        if email is None:
            return self._no_session()

        amount = parse_amount(amount)
        error = _validate_positive_amount(amount, self.settings.max_amount)
        if error:
            return OperationResult.failure(ErrorCode.INVALID_INPUT, error)
        if amount < self.settings.min_withdrawal:
            return OperationResult.failure(
                ErrorCode.BELOW_MINIMUM,
                f"Minimum withdrawal is {self.settings.min_withdrawal} BTC",
            )

        total = amount + self.settings.network_fee
        address = (destination_address or "").strip()

        with self._ledger.lock_for(email):
            account = self._account_repo.get_by_email(email)
            if account is None:
                return self._no_session()
            if total > account.balance:
                return OperationResult.failure(
                    ErrorCode.INSUFFICIENT_BALANCE,
                    "Not enough Bitcoin to cover the withdrawal amount and network fee "
                    f"(Total: {total} BTC)",
                )
            if len(address) < self.settings.min_address_length:
                return OperationResult.failure(
                    ErrorCode.INVALID_ADDRESS, "Please enter a valid Bitcoin address"
                )
            new_balance = self._ledger.apply_balance_delta(
                account, -total, TransactionKind.WITHDRAW, TransactionStatus.PENDING
            )

        logger.info("Withdrawal of %s BTC (fee %s) by %s", amount, self.settings.network_fee, email)
        return OperationResult(success=True, new_balance=new_balance)

    def max_withdrawable(self) -> Decimal:
        account = self.current_account()
        if account is None:
            return Decimal("0")
        return max(account.balance - self.settings.network_fee, Decimal("0"))

    # ----- games -----

    def list_games(self) -> List[Game]:
        return list(GAMES)

    def place_wager(self, game_id: int, amount) -> WagerResult:
        email = self.session.current_email
        if email is None:
            return WagerResult.failure(
                ErrorCode.NO_ACTIVE_SESSION, "User not found. Please login again."
            )

        parsed = parse_amount(amount)
        if parsed is None:
            return WagerResult.failure(ErrorCode.INVALID_INPUT, "Please enter a valid amount")
        return self._orchestrator.place_wager(email, game_id, parsed)

    def resolve_wager(self, handle: Union[Wager, str]) -> Outcome:
        """
        Resolve a wager placed by the logged-in account.

        Handles belonging to other accounts are treated as unknown.
        """

        wager = self._orchestrator.pending_wager(handle)
        if wager is None or wager.email != self.session.current_email:
            raise WagerNotFoundError(f"No pending wager with handle {handle_id(handle)}")
        return self._orchestrator.resolve_wager(wager)

    def play(self, game_id: int, amount=None) -> PlayResult:
        """
        Place a wager, wait out the simulated spin, then resolve it.

        Without an amount the game's minimum bet is staked, as the lobby does.
        """

        game = get_game(game_id)
        if game is None:
            return PlayResult(
                success=False, error=ErrorCode.UNKNOWN_GAME, error_message=f"Unknown game: {game_id}"
            )

        placed = self.place_wager(game_id, game.min_bet if amount is None else amount)
        if not placed.success:
            return PlayResult(success=False, error=placed.error, error_message=placed.error_message)

        if self.settings.resolve_delay_seconds > 0:
            self._sleep(self.settings.resolve_delay_seconds)

        outcome = self.resolve_wager(placed.wager)
        account = self.current_account()
        return PlayResult(
            success=True,
            outcome=outcome,
            bet_amount=placed.wager.amount,
            new_balance=account.balance if account is not None else None,
        )

    # ----- history -----

    def list_transactions(
        self, transaction_filter: Union[TransactionFilter, str] = TransactionFilter.ALL
    ) -> List[Transaction]:
        transaction_filter = TransactionFilter(transaction_filter)
        account = self.current_account()
        if account is None:
            return []
        if transaction_filter == TransactionFilter.ALL:
            return list(account.transactions)
        kinds = _FILTER_KINDS[transaction_filter]
        return [t for t in account.transactions if t.kind in kinds]

    def list_game_history(self) -> List[GameHistoryEntry]:
        account = self.current_account()
        if account is None:
            return []
        return list(account.game_history)

    def game_stats(self) -> GameStats:
        history = self.list_game_history()
        return GameStats(
            wins=sum(1 for h in history if h.result == GameResult.WIN),
            losses=sum(1 for h in history if h.result == GameResult.LOSS),
            net_profit=sum((h.net_amount for h in history), Decimal("0")),
        )


def build_casino_service(
    account_repo: AccountRepository,
    settings: Optional[CasinoSettings] = None,
    rng: Optional[random.Random] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> CasinoService:
    """Wire a `CasinoService` and its collaborators around `account_repo`."""

    settings = settings or CasinoSettings()
    ledger = Ledger(account_repo)
    orchestrator = GameOrchestrator(account_repo, ledger, rng=rng, max_amount=settings.max_amount)
    return CasinoService(
        account_repo,
        Session(account_repo),
        ledger,
        orchestrator,
        settings=settings,
        sleep=sleep,
    )

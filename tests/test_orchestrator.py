import threading
import unittest
from decimal import Decimal

from application.ledger import Ledger
from application.orchestrator import GameOrchestrator
from application.results import ErrorCode, WagerNotFoundError
from domain.models import Account, GameResult, TransactionKind, WagerState
from infrastructure.db.account_repository_memory import InMemoryAccountRepository
from helpers import SequenceRandom


EMAIL = "player@example.com"


class GameOrchestratorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.repo = InMemoryAccountRepository()
        self.ledger = Ledger(self.repo)
        self.rng = SequenceRandom([])
        self.orchestrator = GameOrchestrator(self.repo, self.ledger, rng=self.rng)

        self.repo.create_account(Account(email=EMAIL, password_hash="x", display_name="Player"))
        account = self.repo.get_by_email(EMAIL)
        self.ledger.record_transaction(account, TransactionKind.DEPOSIT, Decimal("0.01"))

    def _balance(self) -> Decimal:
        return self.repo.get_by_email(EMAIL).balance

    def test_second_wager_is_refused_until_the_first_resolves(self):
        first = self.orchestrator.place_wager(EMAIL, 2, Decimal("0.001"))
        self.assertTrue(first.success)
        self.assertEqual(first.wager.state, WagerState.BET_PLACED)
        self.assertIs(self.orchestrator.active_wager(EMAIL), first.wager)

        second = self.orchestrator.place_wager(EMAIL, 2, Decimal("0.001"))
        self.assertFalse(second.success)
        self.assertEqual(second.error, ErrorCode.WAGER_IN_PROGRESS)
        self.assertEqual(self._balance(), Decimal("0.009"))

        self.rng.extend([0.1])
        self.orchestrator.resolve_wager(first.wager)
        self.assertEqual(first.wager.state, WagerState.RESOLVED)
        self.assertIsNone(self.orchestrator.active_wager(EMAIL))

        third = self.orchestrator.place_wager(EMAIL, 2, Decimal("0.001"))
        self.assertTrue(third.success)

    def test_resolving_twice_raises(self):
        placed = self.orchestrator.place_wager(EMAIL, 1, Decimal("0.001"))
        self.rng.extend([0.1])
        self.orchestrator.resolve_wager(placed.wager.id)
        with self.assertRaises(WagerNotFoundError):
            self.orchestrator.resolve_wager(placed.wager.id)
        with self.assertRaises(WagerNotFoundError):
            self.orchestrator.resolve_wager("no-such-handle")

    def test_loss_records_history_without_credit(self):
        placed = self.orchestrator.place_wager(EMAIL, 3, Decimal("0.005"))
        self.rng.extend([0.2])
        outcome = self.orchestrator.resolve_wager(placed.wager)

        self.assertEqual(outcome.result, GameResult.LOSS)
        account = self.repo.get_by_email(EMAIL)
        self.assertEqual(account.balance, Decimal("0.005"))
        self.assertEqual(account.transactions[0].kind, TransactionKind.BET)
        self.assertEqual(account.game_history[0].result, GameResult.LOSS)
        self.assertEqual(account.game_history[0].win_amount, Decimal("0"))

    def test_wager_validation(self):
        cases = [
            (99, Decimal("0.001"), ErrorCode.UNKNOWN_GAME),
            (1, Decimal("0"), ErrorCode.INVALID_INPUT),
            (1, Decimal("-0.001"), ErrorCode.INVALID_INPUT),
            (3, Decimal("0.001"), ErrorCode.BELOW_MINIMUM),
            (1, Decimal("0.5"), ErrorCode.INSUFFICIENT_BALANCE),
        ]
        for game_id, amount, error in cases:
            result = self.orchestrator.place_wager(EMAIL, game_id, amount)
            self.assertEqual(result.error, error, (game_id, amount))
        self.assertEqual(self._balance(), Decimal("0.01"))

        missing = self.orchestrator.place_wager("ghost@example.com", 1, Decimal("0.001"))
        self.assertEqual(missing.error, ErrorCode.NOT_FOUND)

    def test_concurrent_placement_allows_only_one_wager(self):
        barrier = threading.Barrier(8)
        results = []

        def place():
            barrier.wait()
            results.append(self.orchestrator.place_wager(EMAIL, 1, Decimal("0.001")))

        threads = [threading.Thread(target=place) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(sum(1 for r in results if r.success), 1)
        self.assertTrue(
            all(r.error == ErrorCode.WAGER_IN_PROGRESS for r in results if not r.success)
        )
        self.assertEqual(self._balance(), Decimal("0.009"))

    def test_clear_forgets_pending_wagers(self):
        placed = self.orchestrator.place_wager(EMAIL, 1, Decimal("0.001"))
        self.orchestrator.clear()
        self.assertIsNone(self.orchestrator.active_wager(EMAIL))
        with self.assertRaises(WagerNotFoundError):
            self.orchestrator.resolve_wager(placed.wager)

    def test_failed_draw_leaves_wager_resolvable(self):
        placed = self.orchestrator.place_wager(EMAIL, 6, Decimal("0.001"))
        with self.assertRaises(IndexError):
            self.orchestrator.resolve_wager(placed.wager)

        self.assertIs(self.orchestrator.active_wager(EMAIL), placed.wager)
        self.assertEqual(placed.wager.state, WagerState.BET_PLACED)
        account = self.repo.get_by_email(EMAIL)
        self.assertEqual(account.balance, Decimal("0.009"))
        self.assertEqual(account.game_history, [])

        self.rng.extend([0.2])
        outcome = self.orchestrator.resolve_wager(placed.wager.id)
        self.assertEqual(outcome.result, GameResult.LOSS)
        self.assertIsNone(self.orchestrator.active_wager(EMAIL))
        self.assertEqual(len(self.repo.get_by_email(EMAIL).game_history), 1)

    def test_wager_above_the_cap_is_refused(self):
        account = self.repo.get_by_email(EMAIL)
        self.ledger.record_transaction(account, TransactionKind.DEPOSIT, Decimal("9e19"))

        result = self.orchestrator.place_wager(EMAIL, 6, Decimal("9e19"))
        self.assertEqual(result.error, ErrorCode.INVALID_INPUT)
        self.assertIsNone(self.orchestrator.active_wager(EMAIL))

        capped = GameOrchestrator(self.repo, self.ledger, rng=self.rng, max_amount=Decimal("0.005"))
        self.assertEqual(capped.place_wager(EMAIL, 1, Decimal("0.006")).error, ErrorCode.INVALID_INPUT)
        self.assertTrue(capped.place_wager(EMAIL, 1, Decimal("0.005")).success)


if __name__ == "__main__":
    unittest.main()

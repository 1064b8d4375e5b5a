import threading
import unittest
from decimal import Decimal

from application.ledger import Ledger
from application.session import Session
from domain.models import Account, GameResult, TransactionKind, TransactionStatus
from infrastructure.db.account_repository_memory import InMemoryAccountRepository


class LedgerTests(unittest.TestCase):
    def setUp(self) -> None:
        self.repo = InMemoryAccountRepository()
        self.ledger = Ledger(self.repo)
        self.repo.create_account(Account(email="a@example.com", password_hash="x", display_name="A"))

    def _account(self) -> Account:
        return self.repo.get_by_email("a@example.com")

    def test_transactions_are_prepended_with_increasing_ids(self):
        account = self._account()
        for n in range(1, 6):
            self.ledger.record_transaction(account, TransactionKind.DEPOSIT, Decimal(n))
            self.assertEqual(account.transactions[0].amount, Decimal(n))

        stored = self._account()
        self.assertEqual([t.id for t in stored.transactions], [5, 4, 3, 2, 1])
        self.assertEqual(stored.balance, Decimal(15))

    def test_apply_balance_delta_returns_new_balance(self):
        account = self._account()
        self.assertEqual(
            self.ledger.apply_balance_delta(account, Decimal("0.01"), TransactionKind.DEPOSIT),
            Decimal("0.01"),
        )
        self.assertEqual(
            self.ledger.apply_balance_delta(
                account, Decimal("-0.004"), TransactionKind.WITHDRAW, TransactionStatus.PENDING
            ),
            Decimal("0.006"),
        )
        self.assertEqual(self._account().balance, Decimal("0.006"))

    def test_failed_transactions_do_not_move_the_balance(self):
        account = self._account()
        self.ledger.record_transaction(account, TransactionKind.DEPOSIT, Decimal("1"))
        self.ledger.record_transaction(
            account, TransactionKind.WITHDRAW, Decimal("-0.5"), TransactionStatus.FAILED
        )
        self.assertEqual(self._account().balance, Decimal("1"))

    def test_sign_must_match_kind(self):
        account = self._account()
        with self.assertRaises(ValueError):
            self.ledger.record_transaction(account, TransactionKind.BET, Decimal("0.001"))
        with self.assertRaises(ValueError):
            self.ledger.record_transaction(account, TransactionKind.WIN, Decimal("-0.001"))
        with self.assertRaises(ValueError):
            self.ledger.record_transaction(account, TransactionKind.DEPOSIT, Decimal("0"))
        self.assertEqual(self._account().transactions, [])

    def test_game_history_is_prepended(self):
        account = self._account()
        self.ledger.record_game_history(account, "Dice Roll", Decimal("0.001"), Decimal("0"), GameResult.LOSS)
        self.ledger.record_game_history(
            account, "Crash", Decimal("0.001"), Decimal("0.0042"), GameResult.WIN
        )
        history = self._account().game_history
        self.assertEqual([h.id for h in history], [2, 1])
        self.assertEqual(history[0].game, "Crash")
        self.assertEqual(history[0].net_amount, Decimal("0.0032"))
        self.assertEqual(history[1].net_amount, Decimal("-0.001"))

    def test_game_history_result_must_match_amounts(self):
        account = self._account()
        with self.assertRaises(ValueError):
            self.ledger.record_game_history(account, "Dice Roll", Decimal("0.001"), Decimal("0"), GameResult.WIN)
        with self.assertRaises(ValueError):
            self.ledger.record_game_history(
                account, "Dice Roll", Decimal("0.001"), Decimal("0.002"), GameResult.LOSS
            )
        with self.assertRaises(ValueError):
            self.ledger.record_game_history(
                account, "Dice Roll", Decimal("-0.001"), Decimal("0"), GameResult.LOSS
            )

    def test_concurrent_writers_keep_ids_unique(self):
        def deposit():
            with self.ledger.lock_for("a@example.com"):
                account = self._account()
                self.ledger.apply_balance_delta(account, Decimal("0.001"), TransactionKind.DEPOSIT)

        threads = [threading.Thread(target=deposit) for _ in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        account = self._account()
        self.assertEqual(sorted(t.id for t in account.transactions), list(range(1, 21)))
        self.assertEqual(account.balance, Decimal("0.020"))


class SessionTests(unittest.TestCase):
    def setUp(self) -> None:
        self.repo = InMemoryAccountRepository()
        self.repo.create_account(Account(email="a@example.com", password_hash="x", display_name="A"))
        self.session = Session(self.repo)

    def test_login_and_logout(self):
        self.assertIsNone(self.session.current())
        self.session.login("a@example.com")
        self.assertTrue(self.session.is_logged_in())
        self.assertIsNotNone(self.session.login_time)
        self.assertEqual(self.session.current().display_name, "A")

        self.session.logout()
        self.assertFalse(self.session.is_logged_in())
        self.assertIsNone(self.session.current())

    def test_login_to_missing_account_resolves_to_none(self):
        self.session.login("ghost@example.com")
        self.assertIsNone(self.session.current())


if __name__ == "__main__":
    unittest.main()

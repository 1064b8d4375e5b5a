from __future__ import annotations

import logging
import sqlite3
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from domain.models import (
    Account,
    GameHistoryEntry,
    GameResult,
    Transaction,
    TransactionKind,
    TransactionStatus,
)
from domain.repositories import AccountExistsError, AccountRepository


logger = logging.getLogger(__name__)


class SqliteAccountRepository(AccountRepository):
    """
    SQLite-backed implementation of `AccountRepository`.

    Manages three tables:
    - `accounts`: one row per player (email, password hash, profile).
    - `transactions`: the ledger, keyed by (email, id).
    - `game_history`: resolved wagers, keyed by (email, id).

    Amounts are stored as TEXT so `Decimal` values round-trip exactly.
    Ledger rows are append-only: `update_account` inserts records it has
    not seen before and never rewrites or deletes existing ones.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path
        self._ensure_tables()

    def _get_connection(self) -> sqlite3.Connection:
        return sqlite3.connect(self._db_path)

    def _ensure_tables(self) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS accounts (
                    email TEXT PRIMARY KEY,
                    password_hash TEXT NOT NULL,
                    display_name TEXT NOT NULL,
                    has_received_bonus INTEGER NOT NULL DEFAULT 0,
                    created_at TEXT NOT NULL
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS transactions (
                    email TEXT NOT NULL,
                    id INTEGER NOT NULL,
                    kind TEXT NOT NULL,
                    amount TEXT NOT NULL,
                    status TEXT NOT NULL,
                    game TEXT,
                    timestamp TEXT NOT NULL,
                    PRIMARY KEY (email, id)
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS game_history (
                    email TEXT NOT NULL,
                    id INTEGER NOT NULL,
                    game TEXT NOT NULL,
                    bet_amount TEXT NOT NULL,
                    win_amount TEXT NOT NULL,
                    result TEXT NOT NULL,
                    timestamp TEXT NOT NULL,
                    PRIMARY KEY (email, id)
                )
                """
            )
            conn.commit()

    @staticmethod
    def _to_transaction(row: sqlite3.Row) -> Transaction:
        return Transaction(
            id=int(row[0]),
            kind=TransactionKind(row[1]),
            amount=Decimal(row[2]),
            status=TransactionStatus(row[3]),
            game=row[4],
            timestamp=datetime.fromisoformat(row[5]),
        )

    @staticmethod
    def _to_game_history(row: sqlite3.Row) -> GameHistoryEntry:
        return GameHistoryEntry(
            id=int(row[0]),
            game=row[1],
            bet_amount=Decimal(row[2]),
            win_amount=Decimal(row[3]),
            result=GameResult(row[4]),
            timestamp=datetime.fromisoformat(row[5]),
        )

    def _load_transactions(self, cur: sqlite3.Cursor, email: str) -> List[Transaction]:
        cur.execute(
            """
            SELECT id, kind, amount, status, game, timestamp
            FROM transactions
            WHERE email = ?
            ORDER BY id DESC
            """,
            (email,),
        )
        return [self._to_transaction(row) for row in cur.fetchall()]

    def _load_game_history(self, cur: sqlite3.Cursor, email: str) -> List[GameHistoryEntry]:
        cur.execute(
            """
            SELECT id, game, bet_amount, win_amount, result, timestamp
            FROM game_history
            WHERE email = ?
            ORDER BY id DESC
            """,
            (email,),
        )
        return [self._to_game_history(row) for row in cur.fetchall()]

    def get_by_email(self, email: str) -> Optional[Account]:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                SELECT email, password_hash, display_name, has_received_bonus, created_at
                FROM accounts
                WHERE email = ?
                """,
                (email,),
            )
            row = cur.fetchone()
            if not row:
                return None
            return Account(
                email=row[0],
                password_hash=row[1],
                display_name=row[2],
                has_received_bonus=bool(row[3]),
                created_at=datetime.fromisoformat(row[4]),
                transactions=self._load_transactions(cur, email),
                game_history=self._load_game_history(cur, email),
            )

    def _insert_ledger(self, cur: sqlite3.Cursor, account: Account) -> None:
        cur.executemany(
            """
            INSERT OR IGNORE INTO transactions
                (email, id, kind, amount, status, game, timestamp)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    account.email,
                    t.id,
                    t.kind.value,
                    str(t.amount),
                    t.status.value,
                    t.game,
                    t.timestamp.isoformat(),
                )
                for t in account.transactions
            ],
        )
        cur.executemany(
            """
            INSERT OR IGNORE INTO game_history
                (email, id, game, bet_amount, win_amount, result, timestamp)
            VALUES (?, ?, ?, ?, ?, ?, ?)
            """,
            [
                (
                    account.email,
                    g.id,
                    g.game,
                    str(g.bet_amount),
                    str(g.win_amount),
                    g.result.value,
                    g.timestamp.isoformat(),
                )
                for g in account.game_history
            ],
        )

    def create_account(self, account: Account) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            try:
                cur.execute(
                    """
                    INSERT INTO accounts
                        (email, password_hash, display_name, has_received_bonus, created_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (
                        account.email,
                        account.password_hash,
                        account.display_name,
                        int(account.has_received_bonus),
                        account.created_at.isoformat(),
                    ),
                )
            except sqlite3.IntegrityError as exc:
                raise AccountExistsError(account.email) from exc
            self._insert_ledger(cur, account)
            conn.commit()

    def update_account(self, account: Account) -> None:
        # Profile upsert and ledger inserts share one SQLite transaction.
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO accounts
                    (email, password_hash, display_name, has_received_bonus, created_at)
                VALUES (?, ?, ?, ?, ?)
                ON CONFLICT (email)
                DO UPDATE SET
                    password_hash = excluded.password_hash,
                    display_name = excluded.display_name,
                    has_received_bonus = excluded.has_received_bonus
                """,
                (
                    account.email,
                    account.password_hash,
                    account.display_name,
                    int(account.has_received_bonus),
                    account.created_at.isoformat(),
                ),
            )
            self._insert_ledger(cur, account)
            conn.commit()

    def count_accounts(self) -> int:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM accounts")
            return int(cur.fetchone()[0])

    def clear(self) -> None:
        with self._get_connection() as conn:
            cur = conn.cursor()
            cur.execute("DELETE FROM game_history")
            cur.execute("DELETE FROM transactions")
            cur.execute("DELETE FROM accounts")
            conn.commit()
        logger.info("Cleared all accounts from %s", self._db_path)

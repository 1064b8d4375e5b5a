from __future__ import annotations

from typing import Optional, Protocol

from .models import Account


class AccountExistsError(Exception):
    """Raised by a repository when an account with the same email is already stored."""


class AccountRepository(Protocol):
    """
    Abstraction over account persistence (the account store).

    Implementations are responsible for:
    - Storing an account together with its transactions and game history.
    - Hiding any SQL / driver details from the application layer.

    Emails passed in are already normalised by the application layer.
    """

    def get_by_email(self, email: str) -> Optional[Account]:
        """Return the account stored under `email`, or None if not found."""

        ...

    def create_account(self, account: Account) -> None:
        """
        Persist a new account.

        Raises `AccountExistsError` if the email is already taken.
        """

        ...

    def update_account(self, account: Account) -> None:
        """
        Replace the stored record for `account.email`.

        Overwrite semantics: no optimistic-concurrency check is made, callers
        serialise writers per account.
        """

        ...

    def count_accounts(self) -> int:
        ...

    def clear(self) -> None:
        """Remove every stored account."""

        ...

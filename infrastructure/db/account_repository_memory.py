from __future__ import annotations

import copy
from typing import Dict, Optional

from domain.models import Account
from domain.repositories import AccountExistsError, AccountRepository


class InMemoryAccountRepository(AccountRepository):
    """
    Ephemeral implementation of `AccountRepository`.

    Accounts live in a dict for the lifetime of the process. Records are
    copied on the way in and out so callers see the same read/modify/update
    behaviour as with the SQLite backend.
    """

    def __init__(self) -> None:
        self._accounts: Dict[str, Account] = {}

    def get_by_email(self, email: str) -> Optional[Account]:
        account = self._accounts.get(email)
        if account is None:
            return None
        return copy.deepcopy(account)

    def create_account(self, account: Account) -> None:
        if account.email in self._accounts:
            raise AccountExistsError(account.email)
        self._accounts[account.email] = copy.deepcopy(account)

    def update_account(self, account: Account) -> None:
        self._accounts[account.email] = copy.deepcopy(account)

    def count_accounts(self) -> int:
        return len(self._accounts)

    def clear(self) -> None:
        self._accounts.clear()

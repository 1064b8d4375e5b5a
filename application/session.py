from __future__ import annotations

from datetime import datetime
from typing import Optional

from domain.models import Account, utcnow
from domain.repositories import AccountRepository


class Session:
    """
    Tracks which account is currently active.

    The session only holds the email key; the account itself is always
    re-read from the repository so callers never see a stale balance.
    Credentials are checked by the caller before `login`.
    """

    def __init__(self, account_repo: AccountRepository) -> None:
        self._account_repo = account_repo
        self.current_email: Optional[str] = None
        self.login_time: Optional[datetime] = None

    def login(self, email: str) -> None:
        self.current_email = email
        self.login_time = utcnow()

    def logout(self) -> None:
        self.current_email = None
        self.login_time = None

    def is_logged_in(self) -> bool:
        return self.current_email is not None

    def current(self) -> Optional[Account]:
        if self.current_email is None:
            return None
        return self._account_repo.get_by_email(self.current_email)

from __future__ import annotations

import logging

from application.settings import CasinoSettings
from domain.repositories import AccountRepository
from infrastructure.db.account_repository_memory import InMemoryAccountRepository
from infrastructure.db.account_repository_sqlite import SqliteAccountRepository


logger = logging.getLogger(__name__)


def create_account_repository(settings: CasinoSettings) -> AccountRepository:
    """Build the account store selected by `settings.storage_backend`."""

    backend = settings.storage_backend
    if backend == "memory":
        logger.info("Using in-memory account store; data is lost on restart")
        return InMemoryAccountRepository()
    if backend == "sqlite":
        logger.info("Using SQLite account store at %s", settings.db_path)
        return SqliteAccountRepository(settings.db_path)
    raise ValueError(f"Unknown storage backend: {backend!r} (expected 'memory' or 'sqlite')")

from __future__ import annotations

import threading
from typing import Dict

from application.services import CasinoService


class ChatSessions:
    """
    Maps an external chat identity (provider + user ID) to its own
    `CasinoService`, so every chat user logs in independently while all of
    them share one account store, ledger and wager orchestrator.
    """

    def __init__(self, root_service: CasinoService, provider: str) -> None:
        self._root = root_service
        self._provider = provider
        self._services: Dict[str, CasinoService] = {}
        self._lock = threading.Lock()

    def get(self, provider_user_id: str) -> CasinoService:
        key = f"{self._provider}:{provider_user_id}"
        with self._lock:
            service = self._services.get(key)
            if service is None:
                service = self._root.new_session()
                self._services[key] = service
            return service

from __future__ import annotations

import os
from dataclasses import dataclass
from decimal import Decimal
from typing import Mapping, Optional

from domain.models import MAX_AMOUNT


def _env_bool(value: Optional[str], default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class CasinoSettings:
    """
    Casino constants and deployment knobs.

    Amounts are in BTC. Entry points build this from the environment after
    `load_dotenv()`; tests construct it directly.
    """

    bonus_amount: Decimal = Decimal("0.002222")
    min_deposit: Decimal = Decimal("0.001")
    min_withdrawal: Decimal = Decimal("0.001")
    network_fee: Decimal = Decimal("0.00001")
    max_amount: Decimal = MAX_AMOUNT
    min_address_length: int = 26
    min_password_length: int = 6
    resolve_delay_seconds: float = 2.0
    storage_backend: str = "memory"
    db_path: str = "casino.db"
    seed_demo_account: bool = False

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "CasinoSettings":
        env = os.environ if environ is None else environ
        return cls(
            resolve_delay_seconds=float(env.get("CASINO_RESOLVE_DELAY", "2")),
            storage_backend=env.get("CASINO_STORAGE", "memory").strip().lower(),
            db_path=env.get("DB_PATH", "casino.db"),
            seed_demo_account=_env_bool(env.get("CASINO_SEED_DEMO"), False),
        )

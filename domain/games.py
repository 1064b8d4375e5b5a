"""Game catalog shown in the lobby."""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional


THRESHOLD_MODEL = "threshold"
SLOT_MACHINE_MODEL = "slot_machine"

SLOT_MACHINE_GAME_ID = 7


@dataclass(frozen=True)
class Game:
    id: int
    name: str
    icon: str
    min_bet: Decimal
    max_multiplier: Decimal
    outcome_model: str = THRESHOLD_MODEL


GAMES: List[Game] = [
    Game(1, "Slot Machine", "🎰", Decimal("0.001"), Decimal("5")),
    Game(2, "Dice Roll", "🎲", Decimal("0.001"), Decimal("3")),
    Game(3, "Blackjack", "🃏", Decimal("0.005"), Decimal("2.5")),
    Game(4, "Roulette", "🎯", Decimal("0.002"), Decimal("35")),
    Game(5, "Wheel of Fortune", "🎪", Decimal("0.003"), Decimal("10")),
    Game(6, "Crash", "💎", Decimal("0.001"), Decimal("100")),
    # Three-reel machine with its own pay table (50x top prize).
    Game(SLOT_MACHINE_GAME_ID, "Lucky Reels", "🍒", Decimal("0.001"), Decimal("50"), SLOT_MACHINE_MODEL),
]

_GAMES_BY_ID: Dict[int, Game] = {g.id: g for g in GAMES}


def get_game(game_id: int) -> Optional[Game]:
    """Return the catalog entry for `game_id`, or None if there is no such game."""
    return _GAMES_BY_ID.get(game_id)

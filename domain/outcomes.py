"""
Outcome generators: the random models that decide a wager's result.

Two independent models are supported:

- `ThresholdOutcomeGenerator`: one uniform draw decides win/loss; a second
  draw picks a multiplier between 1x and the game's maximum.
- `SlotMachineOutcomeGenerator`: three reels drawn uniformly from eight
  symbols, paid from a fixed pay table.

Every generator takes the random source as an argument (anything with a
`random()` method, usually a `random.Random`), so results are reproducible
under a seeded rng.
"""
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Optional, Protocol, Sequence, Tuple

from .games import SLOT_MACHINE_MODEL, THRESHOLD_MODEL, Game
from .models import GameResult, to_money


@dataclass(frozen=True)
class Outcome:
    result: GameResult
    payout: Decimal
    multiplier: Decimal = Decimal("0")
    reels: Optional[Tuple[str, ...]] = None

    @property
    def is_win(self) -> bool:
        return self.result == GameResult.WIN


class OutcomeGenerator(Protocol):
    def resolve(self, wager_amount: Decimal, game: Game, rng) -> Outcome:
        """Decide the outcome of a `wager_amount` bet on `game`."""

        ...

    def theoretical_rtp(self, game: Game) -> float:
        """Expected fraction of the stake paid back per round."""

        ...


class ThresholdOutcomeGenerator:
    """Upper-tail win draw with a uniformly distributed multiplier."""

    DEFAULT_WIN_PROBABILITY = 0.45

    def __init__(self, win_probability: float = DEFAULT_WIN_PROBABILITY) -> None:
        if not 0.0 <= win_probability <= 1.0:
            raise ValueError(f"win_probability must be within [0, 1], got {win_probability}")
        self.win_probability = win_probability

    def draw(self, wager_amount: Decimal, max_multiplier: Decimal, rng) -> Outcome:
        r = rng.random()
        if r <= 1.0 - self.win_probability:
            return Outcome(result=GameResult.LOSS, payout=Decimal("0"))

        max_mult = float(max_multiplier)
        multiplier = 1.0 + rng.random() * (max_mult - 1.0)
        # Keep float noise from leaving the [1, max] band.
        multiplier = min(max(multiplier, 1.0), max_mult)
        payout = to_money(wager_amount * Decimal(repr(multiplier)))
        return Outcome(
            result=GameResult.WIN,
            payout=payout,
            multiplier=Decimal(repr(round(multiplier, 4))),
        )

    def resolve(self, wager_amount: Decimal, game: Game, rng) -> Outcome:
        return self.draw(wager_amount, game.max_multiplier, rng)

    def theoretical_rtp(self, game: Game) -> float:
        # Mean multiplier of a win is the midpoint of [1, max].
        return self.win_probability * (1.0 + float(game.max_multiplier)) / 2.0


class SlotMachineOutcomeGenerator:
    """Three reels, eight symbols, fixed pay table."""

    SYMBOLS: Tuple[str, ...] = ("🍒", "🍋", "🍊", "🍇", "💎", "7️⃣", "🔔", "⭐")
    JACKPOT_SYMBOL = "💎"
    LUCKY_SYMBOL = "7️⃣"

    JACKPOT_MULTIPLIER = 50
    LUCKY_MULTIPLIER = 20
    TRIPLE_MULTIPLIER = 10
    PAIR_MULTIPLIER = 2

    def spin(self, rng) -> Tuple[str, str, str]:
        count = len(self.SYMBOLS)
        return tuple(self.SYMBOLS[int(rng.random() * count)] for _ in range(3))

    def payout_multiplier(self, reels: Sequence[str]) -> int:
        first, second, third = reels
        if first == second == third:
            if first == self.JACKPOT_SYMBOL:
                return self.JACKPOT_MULTIPLIER
            if first == self.LUCKY_SYMBOL:
                return self.LUCKY_MULTIPLIER
            return self.TRIPLE_MULTIPLIER
        if first == second or second == third or first == third:
            return self.PAIR_MULTIPLIER
        return 0

    def resolve(self, wager_amount: Decimal, game: Game, rng) -> Outcome:
        reels = self.spin(rng)
        multiplier = self.payout_multiplier(reels)
        if multiplier == 0:
            return Outcome(result=GameResult.LOSS, payout=Decimal("0"), reels=reels)
        return Outcome(
            result=GameResult.WIN,
            payout=to_money(wager_amount * multiplier),
            multiplier=Decimal(multiplier),
            reels=reels,
        )

    def theoretical_rtp(self, game: Game) -> float:
        n = len(self.SYMBOLS)
        total = n ** 3
        triples = (
            self.JACKPOT_MULTIPLIER
            + self.LUCKY_MULTIPLIER
            + (n - 2) * self.TRIPLE_MULTIPLIER
        )
        # Exactly two of three: choose the odd reel (3), the pair symbol (n)
        # and a different odd symbol (n - 1).
        pairs = 3 * n * (n - 1) * self.PAIR_MULTIPLIER
        return (triples + pairs) / total


OUTCOME_GENERATORS = {
    THRESHOLD_MODEL: ThresholdOutcomeGenerator,
    SLOT_MACHINE_MODEL: SlotMachineOutcomeGenerator,
}


def get_outcome_generator(model: str) -> OutcomeGenerator:
    """Get the outcome generator for an outcome model name."""
    cls = OUTCOME_GENERATORS.get(model)
    if cls is None:
        raise ValueError(f"Unknown outcome model: {model}. Available: {list(OUTCOME_GENERATORS)}")
    return cls()


def build_outcome_generators() -> Dict[str, OutcomeGenerator]:
    return {model: get_outcome_generator(model) for model in OUTCOME_GENERATORS}

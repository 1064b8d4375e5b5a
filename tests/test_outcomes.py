import random
import unittest
from decimal import Decimal

from domain.games import GAMES, SLOT_MACHINE_GAME_ID, get_game
from domain.models import GameResult
from domain.outcomes import (
    SlotMachineOutcomeGenerator,
    ThresholdOutcomeGenerator,
    get_outcome_generator,
)
from helpers import SequenceRandom


class ThresholdOutcomeGeneratorTests(unittest.TestCase):
    def setUp(self) -> None:
        self.generator = ThresholdOutcomeGenerator()

    def test_lower_draws_lose(self):
        for r in (0.0, 0.3, 0.5):
            outcome = self.generator.draw(Decimal("0.001"), Decimal("5"), SequenceRandom([r]))
            self.assertEqual(outcome.result, GameResult.LOSS, r)
            self.assertEqual(outcome.payout, Decimal("0"))

    def test_upper_tail_wins_with_interpolated_multiplier(self):
        outcome = self.generator.draw(Decimal("0.002"), Decimal("10"), SequenceRandom([0.56, 0.5]))
        self.assertEqual(outcome.result, GameResult.WIN)
        self.assertEqual(outcome.multiplier, Decimal("5.5"))
        self.assertEqual(outcome.payout, Decimal("0.011"))

    def test_win_payout_stays_within_bounds(self):
        rng = random.Random(1234)
        wager = Decimal("0.00123456")
        max_multiplier = Decimal("35")
        wins = 0
        for _ in range(2000):
            outcome = self.generator.draw(wager, max_multiplier, rng)
            if outcome.is_win:
                wins += 1
                self.assertGreaterEqual(outcome.payout, wager)
                self.assertLessEqual(outcome.payout, wager * max_multiplier)
            else:
                self.assertEqual(outcome.payout, 0)
        self.assertTrue(700 < wins < 1100, wins)

    def test_extreme_draws(self):
        lowest = self.generator.draw(Decimal("0.001"), Decimal("3"), SequenceRandom([0.999999, 0.0]))
        self.assertEqual(lowest.payout, Decimal("0.001"))
        highest = self.generator.draw(
            Decimal("0.001"), Decimal("3"), SequenceRandom([0.999999, 0.9999999999])
        )
        self.assertLessEqual(highest.payout, Decimal("0.003"))

    def test_win_probability_is_validated(self):
        with self.assertRaises(ValueError):
            ThresholdOutcomeGenerator(win_probability=1.5)

    def test_theoretical_rtp(self):
        game = get_game(1)
        self.assertAlmostEqual(self.generator.theoretical_rtp(game), 0.45 * 3.0)


class SlotMachineOutcomeGeneratorTests(unittest.TestCase):
    CHERRY, LEMON, DIAMOND, SEVEN = 0.01, 0.13, 0.55, 0.65

    def setUp(self) -> None:
        self.generator = SlotMachineOutcomeGenerator()
        self.game = get_game(SLOT_MACHINE_GAME_ID)

    def _resolve(self, draws, bet="0.001"):
        return self.generator.resolve(Decimal(bet), self.game, SequenceRandom(draws))

    def test_diamond_jackpot_pays_fifty_times(self):
        outcome = self._resolve([self.DIAMOND] * 3)
        self.assertEqual(outcome.reels, ("💎", "💎", "💎"))
        self.assertEqual(outcome.payout, Decimal("0.05"))

    def test_lucky_seven_pays_twenty_times(self):
        self.assertEqual(self._resolve([self.SEVEN] * 3).payout, Decimal("0.02"))

    def test_other_triple_pays_ten_times(self):
        self.assertEqual(self._resolve([self.CHERRY] * 3).payout, Decimal("0.01"))

    def test_any_pair_pays_double(self):
        for draws in (
            [self.CHERRY, self.CHERRY, self.LEMON],
            [self.LEMON, self.CHERRY, self.CHERRY],
            [self.DIAMOND, self.LEMON, self.DIAMOND],
        ):
            outcome = self._resolve(draws)
            self.assertEqual(outcome.result, GameResult.WIN)
            self.assertEqual(outcome.payout, Decimal("0.002"))

    def test_no_match_pays_nothing(self):
        outcome = self._resolve([self.CHERRY, self.LEMON, self.SEVEN])
        self.assertEqual(outcome.result, GameResult.LOSS)
        self.assertEqual(outcome.payout, Decimal("0"))

    def test_payout_multiplier_table(self):
        self.assertEqual(self.generator.payout_multiplier(["⭐", "⭐", "⭐"]), 10)
        seven = SlotMachineOutcomeGenerator.LUCKY_SYMBOL
        self.assertEqual(self.generator.payout_multiplier([seven, seven, "🔔"]), 2)
        self.assertEqual(self.generator.payout_multiplier(["🍒", "🍋", "🍊"]), 0)

    def test_theoretical_rtp(self):
        self.assertAlmostEqual(self.generator.theoretical_rtp(self.game), 466 / 512)


class RegistryTests(unittest.TestCase):
    def test_every_game_has_a_generator(self):
        for game in GAMES:
            self.assertIsNotNone(get_outcome_generator(game.outcome_model))

    def test_unknown_model(self):
        with self.assertRaises(ValueError):
            get_outcome_generator("roulette-wheel")


if __name__ == "__main__":
    unittest.main()

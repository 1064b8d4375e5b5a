import asyncio
import unittest
from decimal import Decimal

from domain.models import GameResult
from interfaces.discord.handlers import _play
from helpers import SequenceRandom, make_service


class RecordingContext:
    """Minimal stand-in for `commands.Context` that keeps sent messages."""

    def __init__(self):
        self.messages = []

    async def send(self, content):
        self.messages.append(content)


class DiscordPlayTests(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.rng = SequenceRandom([0.2])
        self.casino = make_service(rng=self.rng, resolve_delay_seconds=30)
        self.casino.register("player@example.com", "secret1", "Player One")

    async def test_play_reports_the_result(self):
        casino = make_service(rng=SequenceRandom([0.2]), resolve_delay_seconds=0)
        casino.register("quick@example.com", "secret1", "Quick")
        ctx = RecordingContext()

        await _play(ctx, casino, 2, None)

        self.assertEqual(len(ctx.messages), 2)
        self.assertIn("Dice Roll", ctx.messages[0])
        self.assertEqual(casino.list_game_history()[0].result, GameResult.LOSS)

    async def test_cancelled_play_still_resolves_the_wager(self):
        ctx = RecordingContext()
        task = asyncio.create_task(_play(ctx, self.casino, 2, None))
        while not ctx.messages:
            await asyncio.sleep(0)

        task.cancel()
        with self.assertRaises(asyncio.CancelledError):
            await task

        history = self.casino.list_game_history()
        self.assertEqual(len(history), 1)
        self.assertEqual(history[0].result, GameResult.LOSS)
        self.assertEqual(self.casino.current_account().balance, Decimal("0.001222"))

        self.assertTrue(self.casino.place_wager(2, "0.001").success)

    async def test_unknown_game(self):
        ctx = RecordingContext()
        await _play(ctx, self.casino, 99, None)
        self.assertIn("Unknown game", ctx.messages[0])
        self.assertEqual(self.casino.list_game_history(), [])


if __name__ == "__main__":
    unittest.main()

import unittest
from datetime import datetime, timezone

from coinflip_game.core.engine.catalog import CoinCatalog
from coinflip_game.core.engine.conditions import is_unlocked
from coinflip_game.core.engine.models import CoinDefinition
from coinflip_game.core.engine.progress import ProgressState
from coinflip_game.core.engine.tracker import track_coin_landing
from coinflip_game.core.rng import SeededRNG


def coin(path, condition=None):
    data = {"path": path}
    if condition is not None:
        data["unlockCondition"] = condition
    return CoinDefinition.model_validate(data)


class TestProgressTracker(unittest.TestCase):

    def test_counters_and_streaks(self):
        catalog = CoinCatalog([coin("a.png")])
        progress = ProgressState()
        track_coin_landing(progress, catalog, "a.png", True, 1)
        track_coin_landing(progress, catalog, "a.png", True, 2)
        track_coin_landing(progress, catalog, "a.png", False, 1)

        self.assertEqual(progress.total_flips, 3)
        self.assertEqual(progress.heads_flips, 2)
        self.assertEqual(progress.tails_flips, 1)
        self.assertEqual(progress.longest_streak, 2)
        self.assertEqual(progress.longest_heads_streak, 2)
        self.assertEqual(progress.longest_tails_streak, 1)
        self.assertEqual(progress.get_land_count("a.png"), 3)

    def test_total_flips_threshold(self):
        catalog = CoinCatalog([coin("a.png"), coin("ten.png", {"type": "TotalFlips", "requiredCount": 10})])
        progress = ProgressState()

        for _ in range(9):
            self.assertEqual(track_coin_landing(progress, catalog, "a.png", True, 1), [])
        self.assertFalse(is_unlocked(catalog.get("ten.png"), progress, catalog))

        unlocked = track_coin_landing(progress, catalog, "a.png", True, 1)
        self.assertEqual([c.path for c in unlocked], ["ten.png"])
        self.assertIn("ten.png", progress.coin_unlock_timestamps)
        self.assertIn("ten.png", progress.notification_shown_for)

    def test_unlock_log_carries_coin_and_flip_number(self):
        catalog = CoinCatalog([coin("a.png"), coin("one.png", {"type": "TotalFlips", "requiredCount": 1})])
        with self.assertLogs("coinflip.tracker", level="INFO") as logs:
            track_coin_landing(ProgressState(), catalog, "a.png", True, 1)
        record = logs.records[-1]
        self.assertEqual(record.coin_path, "one.png")
        self.assertEqual(record.flip_number, 1)

    def test_land_on_multiple_coins_conjunction(self):
        catalog = CoinCatalog([
            coin("x.png"),
            coin("y.png"),
            coin("z.png"),
            coin("xyz.png", {
                "type": "LandOnMultipleCoins",
                "requiredCoinPaths": ["x.png", "y.png", "z.png"],
                "requiredCount": 5,
            }),
        ])
        progress = ProgressState()
        target = catalog.get("xyz.png")

        for _ in range(5):
            track_coin_landing(progress, catalog, "x.png", True, 1)
            track_coin_landing(progress, catalog, "y.png", True, 1)
        for _ in range(4):
            track_coin_landing(progress, catalog, "z.png", True, 1)
        self.assertFalse(is_unlocked(target, progress, catalog))

        unlocked = track_coin_landing(progress, catalog, "z.png", True, 1)
        self.assertEqual([c.path for c in unlocked], ["xyz.png"])

    def test_unlocks_reported_once_in_catalog_order(self):
        catalog = CoinCatalog([
            coin("a.png"),
            coin("heads.png", {"type": "HeadsFlips", "requiredCount": 2}),
            coin("total.png", {"type": "TotalFlips", "requiredCount": 2}),
        ])
        progress = ProgressState()
        track_coin_landing(progress, catalog, "a.png", True, 1)
        unlocked = track_coin_landing(progress, catalog, "a.png", True, 2)
        self.assertEqual([c.path for c in unlocked], ["heads.png", "total.png"])
        self.assertEqual(track_coin_landing(progress, catalog, "a.png", True, 3), [])

    def test_random_chance_coins_are_left_to_the_roller(self):
        catalog = CoinCatalog([coin("a.png"), coin("river.png", {"type": "RandomChance", "unlockChance": 0.02})])
        progress = ProgressState()
        progress.random_unlocked_coins.add("river.png")
        self.assertEqual(track_coin_landing(progress, catalog, "a.png", True, 1), [])

    def test_persist_sees_stamped_state(self):
        catalog = CoinCatalog([coin("a.png"), coin("one.png", {"type": "TotalFlips", "requiredCount": 1})])
        progress = ProgressState()
        saved = []
        when = datetime(2024, 5, 1, tzinfo=timezone.utc)

        track_coin_landing(progress, catalog, "a.png", True, 1, persist=lambda p: saved.append(p.to_dict()), now=when)

        self.assertEqual(len(saved), 1)
        self.assertEqual(saved[0]["totalFlips"], 1)
        self.assertIn("one.png", saved[0]["coinUnlockTimestamps"])

    def test_unlocks_are_monotonic(self):
        catalog = CoinCatalog([
            coin("a.png"),
            coin("b.png"),
            coin("run.png", {
                "type": "LandOnCoinsWithCharacteristics",
                "characteristicFilter": "SpecificCoins",
                "requiredCoinPaths": ["a.png"],
                "consecutiveCount": 3,
            }),
            coin("heads.png", {"type": "HeadsFlips", "requiredCount": 20}),
            coin("streak.png", {"type": "Streak", "requiredCount": 4}),
            coin("pair.png", {
                "type": "LandOnMultipleCoins",
                "requiredCoinPaths": ["a.png", "b.png"],
                "requiredCount": 15,
            }),
        ])
        progress = ProgressState()
        rng = SeededRNG(99)
        seen = set()
        streak, last = 0, None

        for _ in range(300):
            is_heads = rng() < 0.5
            streak = streak + 1 if is_heads == last else 1
            last = is_heads
            landed = "a.png" if rng() < 0.6 else "b.png"

            for c in track_coin_landing(progress, catalog, landed, is_heads, streak, landed, landed):
                self.assertNotIn(c.path, seen)
                seen.add(c.path)

            for path in seen:
                self.assertTrue(is_unlocked(catalog.get(path), progress, catalog), path)

        self.assertIn("run.png", seen)


if __name__ == "__main__":
    unittest.main()

import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path

import orjson

from coinflip_game.core.exceptions import StorageError
from coinflip_game.core.engine.progress import ProgressState
from coinflip_game.core.storage import (
    MemoryProgressStore,
    ProgressStore,
    SqliteProgressStore,
    create_store,
    load_progress,
    save_progress,
)

KEY = "coinUnlockProgress"


def sample_progress() -> ProgressState:
    progress = ProgressState(
        total_flips=42,
        heads_flips=25,
        tails_flips=17,
        longest_streak=6,
        longest_heads_streak=6,
        longest_tails_streak=4,
    )
    progress.coin_land_counts.update({"coins/Zodiak/Ram.png": 12, "coins/Logos/logo.png": 30})
    progress.random_unlocked_coins.update({"coins/Random/River.png", "coins/Random/Winter.png"})
    progress.coin_unlock_timestamps["coins/Zodiak/Gemini.png"] = datetime(2024, 3, 1, 12, 30, tzinfo=timezone.utc)
    progress.notification_shown_for.add("coins/Zodiak/Gemini.png")
    progress.characteristic_consecutive_counts["coins/Achievements/Zen.png"] = 3
    return progress


class BrokenStore(ProgressStore):
    def get(self, key):
        raise StorageError("disk on fire", key=key)

    def set(self, key, value):
        raise StorageError("disk on fire", key=key)

    def delete(self, key):
        raise StorageError("disk on fire", key=key)


class TestProgressSerialization(unittest.TestCase):

    def test_round_trip(self):
        progress = sample_progress()
        restored = ProgressState.from_json(progress.to_json())
        self.assertEqual(restored, progress)

    def test_blob_layout(self):
        data = orjson.loads(sample_progress().to_json())
        self.assertEqual(data["totalFlips"], 42)
        self.assertEqual(data["randomUnlockedCoins"], ["coins/Random/River.png", "coins/Random/Winter.png"])
        self.assertEqual(data["coinLandCounts"]["coins/Zodiak/Ram.png"], 12)
        self.assertTrue(data["coinUnlockTimestamps"]["coins/Zodiak/Gemini.png"].startswith("2024-03-01T12:30:00"))
        self.assertIn("characteristicConsecutiveCounts", data)

    def test_missing_fields_default_to_zero(self):
        restored = ProgressState.from_json(b'{"totalFlips": 5}')
        self.assertEqual(restored.total_flips, 5)
        self.assertEqual(restored.heads_flips, 0)
        self.assertEqual(restored.random_unlocked_coins, set())
        self.assertEqual(ProgressState.from_json(b"null"), ProgressState())


class TestProgressStores(unittest.TestCase):

    def test_memory_store(self):
        store = MemoryProgressStore()
        self.assertTrue(save_progress(store, KEY, sample_progress()))
        self.assertEqual(load_progress(store, KEY), sample_progress())

    def test_first_load_is_default(self):
        self.assertEqual(load_progress(MemoryProgressStore(), KEY), ProgressState())
        self.assertEqual(load_progress(None, KEY), ProgressState())

    def test_corrupt_blob_falls_back(self):
        store = MemoryProgressStore()
        store.set(KEY, b"{not json")
        self.assertEqual(load_progress(store, KEY), ProgressState())
        store.set(KEY, b'{"totalFlips": "lots"}')
        self.assertEqual(load_progress(store, KEY), ProgressState())

    def test_store_failures_do_not_raise(self):
        self.assertEqual(load_progress(BrokenStore(), KEY), ProgressState())
        self.assertFalse(save_progress(BrokenStore(), KEY, sample_progress()))
        self.assertFalse(save_progress(None, KEY, sample_progress()))

    def test_sqlite_store(self):
        with tempfile.TemporaryDirectory() as tmp:
            db_path = Path(tmp) / "nested" / "progress.db"
            store = SqliteProgressStore(db_path)
            self.assertIsNone(store.get(KEY))

            self.assertTrue(save_progress(store, KEY, ProgressState(total_flips=1)))
            self.assertTrue(save_progress(store, KEY, sample_progress()))
            self.assertEqual(load_progress(SqliteProgressStore(db_path), KEY), sample_progress())

            store.delete(KEY)
            self.assertIsNone(store.get(KEY))

    def test_create_store(self):
        self.assertIsInstance(create_store("memory"), MemoryProgressStore)
        self.assertIsInstance(create_store("sqlite", None), MemoryProgressStore)
        with tempfile.TemporaryDirectory() as tmp:
            self.assertIsInstance(create_store("sqlite", Path(tmp) / "p.db"), SqliteProgressStore)


if __name__ == "__main__":
    unittest.main()

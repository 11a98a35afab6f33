import json
import logging
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from coinflip_game.config import PROJECT_ROOT, AppConfig, load_config, save_config
from coinflip_game.core.logger import JsonFormatter, get_logger


class TestConfig(unittest.TestCase):

    def test_defaults(self):
        with tempfile.TemporaryDirectory() as tmp, patch.dict(os.environ, {}, clear=True):
            config = load_config(Path(tmp) / "config.json")
        self.assertEqual(config.storage.progress_key, "coinUnlockProgress")
        self.assertEqual(config.engine.rarity_weights["Legendary"], 0.1)
        self.assertEqual(config.paths.get_catalog_path(), PROJECT_ROOT / "coins.json")

    def test_file_and_environment_overrides(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            path.write_text(json.dumps({"server": {"port": 9000}, "storage": {"backend": "memory"}}))
            env = {"SERVER_PORT": "9100", "PROGRESS_KEY": "slot2", "DEBUG": "true"}
            with patch.dict(os.environ, env, clear=True):
                config = load_config(path)
        self.assertEqual(config.server.port, 9100)
        self.assertTrue(config.server.debug)
        self.assertEqual(config.storage.backend, "memory")
        self.assertEqual(config.storage.progress_key, "slot2")

    def test_save_round_trip(self):
        with tempfile.TemporaryDirectory() as tmp, patch.dict(os.environ, {}, clear=True):
            path = Path(tmp) / "config.json"
            config = AppConfig()
            config.engine.default_chance_multiplier = 2.0
            save_config(config, path)
            self.assertEqual(load_config(path).engine.default_chance_multiplier, 2.0)

    def test_default_path_and_paths_section(self):
        with tempfile.TemporaryDirectory() as tmp, patch.dict(os.environ, {}, clear=True):
            path = Path(tmp) / "config.json"
            with patch("coinflip_game.config.CONFIG_PATH", path):
                config = AppConfig()
                config.storage.backend = "memory"
                save_config(config)
                self.assertTrue(path.exists())
                self.assertEqual(load_config().storage.backend, "memory")
        self.assertEqual(set(AppConfig().paths.model_dump()), {"catalog", "database", "log_file"})


class TestLogging(unittest.TestCase):

    def test_child_loggers(self):
        self.assertEqual(get_logger("session").name, "coinflip.session")

    def test_json_formatter_includes_extra_fields(self):
        record = logging.LogRecord("coinflip.api", logging.INFO, __file__, 1, "flip", None, None)
        record.coin_path = "coins/Logos/logo.png"
        payload = json.loads(JsonFormatter().format(record))
        self.assertEqual(payload["message"], "flip")
        self.assertEqual(payload["coin_path"], "coins/Logos/logo.png")


if __name__ == "__main__":
    unittest.main()

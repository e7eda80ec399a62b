import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from engine import settings_store


class SettingsStoreTestCase(unittest.TestCase):
    def test_missing_file_gives_defaults(self):
        with tempfile.TemporaryDirectory() as td:
            with patch.object(settings_store, "SETTINGS_PATH", Path(td) / "settings.ini"):
                data = settings_store.load_settings()
        self.assertEqual(settings_store.DEFAULT_SETTINGS, data)

    def test_values_are_sanitized(self):
        with tempfile.TemporaryDirectory() as td:
            ini_path = Path(td) / "settings.ini"
            ini_path.write_text(
                "[engine]\n"
                "move_budget = 999999999\n"
                "solvable_max_nodes = abc\n"
                "seed_source = POOL\n"
                "seed_pool_path =  pools/a.json \n",
                encoding="utf-8",
            )
            with patch.object(settings_store, "SETTINGS_PATH", ini_path):
                data = settings_store.load_settings()
        self.assertEqual("100000", data["move_budget"])
        self.assertEqual("20000", data["solvable_max_nodes"])
        self.assertEqual("pool", data["seed_source"])
        self.assertEqual("pools/a.json", data["seed_pool_path"])

    def test_unknown_seed_source_falls_back(self):
        with tempfile.TemporaryDirectory() as td:
            ini_path = Path(td) / "settings.ini"
            ini_path.write_text("[engine]\nseed_source = lucky\nmove_budget = 0\n", encoding="utf-8")
            with patch.object(settings_store, "SETTINGS_PATH", ini_path):
                data = settings_store.load_settings()
        self.assertEqual("random", data["seed_source"])
        self.assertEqual("1", data["move_budget"])

    def test_wrong_section_or_garbage_gives_defaults(self):
        with tempfile.TemporaryDirectory() as td:
            ini_path = Path(td) / "settings.ini"
            ini_path.write_text("[ui]\nmove_budget = 5\n", encoding="utf-8")
            with patch.object(settings_store, "SETTINGS_PATH", ini_path):
                self.assertEqual(settings_store.DEFAULT_SETTINGS, settings_store.load_settings())
            ini_path.write_text("no section header\n", encoding="utf-8")
            with patch.object(settings_store, "SETTINGS_PATH", ini_path):
                self.assertEqual(settings_store.DEFAULT_SETTINGS, settings_store.load_settings())

    def test_save_roundtrip_drops_unknown_keys(self):
        with tempfile.TemporaryDirectory() as td:
            ini_path = Path(td) / "nested" / "settings.ini"
            with patch.object(settings_store, "SETTINGS_PATH", ini_path):
                settings_store.save_settings({"move_budget": 500, "seed_source": "pool", "theme": "dark"})
                data = settings_store.load_settings()
            text = ini_path.read_text(encoding="utf-8")
        self.assertIn("move_budget = 500", text)
        self.assertNotIn("theme", text)
        self.assertEqual("500", data["move_budget"])
        self.assertEqual("pool", data["seed_source"])


if __name__ == "__main__":
    unittest.main()

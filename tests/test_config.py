import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from querygrid import config


class AppConfigTests(unittest.TestCase):
    def setUp(self):
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.home = Path(tmp.name)
        patcher = mock.patch.dict(os.environ, {"QUERYGRID_HOME": str(self.home)})
        patcher.start()
        self.addCleanup(patcher.stop)

    def test_paths_follow_data_dir_override(self):
        self.assertEqual(Path(config.get_data_dir()), self.home)
        self.assertEqual(Path(config.app_config_path()), self.home / "querygrid.json")
        self.assertEqual(Path(config.log_dir()), self.home / "logs")

    def test_missing_file_loads_empty(self):
        self.assertEqual(config.load_app_config(), {})

    def test_corrupt_file_loads_empty(self):
        (self.home / "querygrid.json").write_text("{not json", encoding="utf-8")
        with self.assertLogs("querygrid", level="ERROR"):
            self.assertEqual(config.load_app_config(), {})

    def test_non_object_file_loads_empty(self):
        (self.home / "querygrid.json").write_text("[1, 2]", encoding="utf-8")
        self.assertEqual(config.load_app_config(), {})

    def test_save_is_atomic_and_round_trips(self):
        cfg = {"ui_lang": "pl", "connections": {"local": "sqlite:///x.db"}}
        config.save_app_config(cfg)
        self.assertFalse((self.home / "querygrid.json.tmp").exists())
        self.assertEqual(json.loads((self.home / "querygrid.json").read_text(encoding="utf-8")), cfg)
        self.assertEqual(config.load_app_config(), cfg)

    def test_failed_replace_leaves_no_temp_file(self):
        with mock.patch.object(config.os, "replace", side_effect=OSError("disk full")):
            with self.assertRaises(OSError):
                config.save_app_config({"ui_lang": "en"})
        self.assertFalse((self.home / "querygrid.json.tmp").exists())
        self.assertFalse((self.home / "querygrid.json").exists())

    def test_persist_ui_lang_keeps_other_keys(self):
        config.save_app_config({"history_limit": 10})
        config.persist_ui_lang("pl")
        self.assertEqual(config.load_app_config(), {"history_limit": 10, "ui_lang": "pl"})


class AppSettingsTests(unittest.TestCase):
    def test_defaults(self):
        settings = config.AppSettings.from_config(None)
        self.assertEqual(settings.history_limit, config.DEFAULT_HISTORY_LIMIT)
        self.assertEqual(settings.import_batch_size, config.DEFAULT_IMPORT_BATCH_SIZE)
        self.assertEqual(settings.connections, {})
        self.assertFalse(settings.log_full_sql)

    def test_invalid_values_fall_back(self):
        settings = config.AppSettings.from_config(
            {
                "history_limit": "lots",
                "import_batch_size": 0,
                "connections": {"ok": "sqlite://", "bad": 5, "blank": " "},
                "ui_lang": 3,
                "csv_profile": "semicolon",
            }
        )
        self.assertEqual(settings.history_limit, config.DEFAULT_HISTORY_LIMIT)
        self.assertEqual(settings.import_batch_size, 1)
        self.assertEqual(settings.connections, {"ok": "sqlite://"})
        self.assertIsNone(settings.ui_lang)
        self.assertEqual(settings.csv_profile, {})

    def test_bool_is_not_a_number(self):
        settings = config.AppSettings.from_config({"history_limit": True})
        self.assertEqual(settings.history_limit, config.DEFAULT_HISTORY_LIMIT)


if __name__ == "__main__":
    unittest.main()

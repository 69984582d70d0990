import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from launchpad.config_manager import (
    DEFAULT_BATCH_SIZE,
    SELF_IDENTIFIER,
    ConfigManager,
    default_cache_dir,
    get_config_manager,
)


class TestConfigManager(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.manager = ConfigManager()

    def tearDown(self):
        self._tmp.cleanup()

    def _write(self, data):
        path = self.root / "config.json"
        path.write_text(json.dumps(data))
        return str(path)

    def test_defaults_are_valid(self):
        self.assertEqual(self.manager.validate(), (True, ""))
        self.assertEqual(self.manager.get("batch_size"), DEFAULT_BATCH_SIZE)
        self.assertEqual(self.manager.get("self_identifier"), SELF_IDENTIFIER)
        labels = [r["source_label"] for r in self.manager.get_scan_roots()]
        self.assertEqual(labels, [None, "System", "Utilities", "Utilities", None])

    def test_user_root_is_expanded(self):
        last = self.manager.get_scan_roots()[-1]
        self.assertEqual(last["path"], os.path.expanduser("~/Applications"))
        self.assertEqual(last["max_depth"], 2)

    def test_load_backfills_missing_keys(self):
        self.assertTrue(self.manager.load_json_file(self._write({"batch_size": 25})))
        self.assertEqual(self.manager.get("batch_size"), 25)
        self.assertEqual(self.manager.get("icon_width"), 128)

    def test_load_rejects_invalid_values(self):
        self.assertFalse(self.manager.load_json_file(self._write({"batch_size": 0})))
        self.assertEqual(self.manager.get("batch_size"), DEFAULT_BATCH_SIZE)

    def test_load_rejects_bad_roots(self):
        path = self._write({"scan_roots": [{"path": "/Applications", "max_depth": 0}]})
        self.assertFalse(self.manager.load_json_file(path))

    def test_load_rejects_malformed_json(self):
        path = self.root / "config.json"
        path.write_text("{not json")
        self.assertFalse(self.manager.load_json_file(str(path)))
        self.assertFalse(self.manager.load_json_file(str(self.root / "missing.json")))
        self.assertFalse(self.manager.load_json_file(self._write(["a", "list"])))

    def test_save_and_reload(self):
        self.manager.config["max_workers"] = 3
        path = self.root / "nested" / "config.json"
        self.assertTrue(self.manager.save_json_file(str(path)))

        other = ConfigManager()
        self.assertTrue(other.load_json_file(str(path)))
        self.assertEqual(other.get("max_workers"), 3)

    def test_cache_dir_override(self):
        self.manager.config["cache_dir"] = str(self.root / "icons")
        self.assertEqual(self.manager.get_cache_dir(), self.root / "icons")

    def test_singleton(self):
        self.assertIs(get_config_manager(), get_config_manager())


class TestDefaultCacheDir(unittest.TestCase):
    def test_macos(self):
        with patch("launchpad.config_manager.sys.platform", "darwin"):
            self.assertEqual(default_cache_dir(),
                             Path.home() / "Library" / "Caches" / "Launchpad" / "icons")

    def test_xdg(self):
        with patch("launchpad.config_manager.sys.platform", "linux"), \
                patch.dict(os.environ, {"XDG_CACHE_HOME": "/tmp/xdg"}):
            self.assertEqual(default_cache_dir(), Path("/tmp/xdg/launchpad/icons"))

    def test_linux_fallback(self):
        env = {k: v for k, v in os.environ.items() if k != "XDG_CACHE_HOME"}
        with patch("launchpad.config_manager.sys.platform", "linux"), \
                patch.dict(os.environ, env, clear=True):
            self.assertEqual(default_cache_dir(), Path.home() / ".cache" / "launchpad" / "icons")


if __name__ == "__main__":
    unittest.main()

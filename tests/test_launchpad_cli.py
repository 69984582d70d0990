import io
import json
import unittest
from unittest.mock import patch

from launchpad import launchpad_cli
from launchpad.app_metadata import ApplicationRecord, IconUpdate


class FakePipeline:
    def get_installed_apps_fast(self):
        return [ApplicationRecord("Foo", "com.example.foo", "/Applications/Foo.app")]

    def load_app_icons(self, sink):
        sink.push_batch([IconUpdate("com.example.foo", "data:image/png;base64,AA==")])
        sink.push_complete()
        return 1


class TestCliOutput(unittest.TestCase):
    def test_icons_mode_prints_listing_then_batches(self):
        out = io.StringIO()
        with patch("sys.stdout", out):
            launchpad_cli._run_icons(FakePipeline())

        lines = [json.loads(line) for line in out.getvalue().splitlines()]
        self.assertEqual(lines[0][0]["identifier"], "com.example.foo")
        self.assertIsNone(lines[0][0]["icon"])
        self.assertEqual(lines[1]["event"], "icons-loaded")
        self.assertEqual(lines[1]["updates"][0]["identifier"], "com.example.foo")
        self.assertEqual(lines[2], {"event": "icons-complete"})


if __name__ == "__main__":
    unittest.main()

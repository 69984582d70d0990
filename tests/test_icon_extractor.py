import base64
import tempfile
import unittest
from pathlib import Path

from launchpad.icon_cache import MemoryIconCache, cache_key_for
from launchpad.icon_extractor import DATA_URI_PREFIX, IconExtractor, to_data_uri
from launchpad.rasterizer import RasterizerError

from bundle_fixtures import make_app, write_file

CONVERTED = b"\x89PNG\r\n\x1a\nconverted"


class FakeRasterizer:
    def __init__(self, result=CONVERTED, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def rasterize(self, source_path, target_width):
        self.calls.append((Path(source_path), target_width))
        if self.error:
            raise self.error
        return self.result


def decode(uri):
    assert uri.startswith(DATA_URI_PREFIX)
    return base64.b64decode(uri[len(DATA_URI_PREFIX):])


class TestIconExtractor(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)
        self.cache = MemoryIconCache()
        self.rasterizer = FakeRasterizer()
        self.extractor = IconExtractor(self.cache, self.rasterizer)

    def tearDown(self):
        self._tmp.cleanup()

    def _extract(self, app, fields):
        return self.extractor.extract_icon(app, app, fields)

    def test_desktop_icon_with_extension_appended(self):
        app = make_app(self.root, "Foo")
        icns = write_file(app / "Contents" / "Resources" / "AppIcon.icns")
        uri = self._extract(app, {"CFBundleIconFile": "AppIcon"})
        self.assertEqual(decode(uri), CONVERTED)
        self.assertEqual(self.rasterizer.calls, [(icns, 128)])

    def test_desktop_icon_literal_name(self):
        app = make_app(self.root, "Foo")
        icns = write_file(app / "Contents" / "Resources" / "Foo.icns")
        self._extract(app, {"CFBundleIconFile": "Foo.icns"})
        self.assertEqual(self.rasterizer.calls, [(icns, 128)])

    def test_icon_width_is_configurable(self):
        app = make_app(self.root, "Foo")
        write_file(app / "Contents" / "Resources" / "AppIcon.icns")
        IconExtractor(self.cache, self.rasterizer, icon_width=64).extract_icon(
            app, app, {"CFBundleIconFile": "AppIcon"})
        self.assertEqual(self.rasterizer.calls[0][1], 64)

    def test_result_is_cached(self):
        app = make_app(self.root, "Foo")
        write_file(app / "Contents" / "Resources" / "AppIcon.icns")
        fields = {"CFBundleIconFile": "AppIcon"}
        first = self._extract(app, fields)
        self.assertEqual(self.cache.get(cache_key_for(app)), CONVERTED)

        second = self._extract(app, fields)
        self.assertEqual(first, second)
        self.assertEqual(len(self.rasterizer.calls), 1)

    def test_cache_hit_short_circuits(self):
        app = make_app(self.root, "Foo")
        self.cache.put(cache_key_for(app), b"cached-bytes")
        uri = self._extract(app, {"CFBundleIconFile": "AppIcon"})
        self.assertEqual(uri, to_data_uri(b"cached-bytes"))
        self.assertEqual(self.rasterizer.calls, [])

    def test_rasterizer_failure_falls_through_to_mobile_icon(self):
        self.rasterizer.error = RasterizerError("sips exited with 1")
        app = make_app(self.root, "Foo")
        write_file(app / "Contents" / "Resources" / "AppIcon.icns")
        write_file(app / "AppIcon60x60@2x.png", b"mobile")
        fields = {
            "CFBundleIconFile": "AppIcon",
            "CFBundleIcons": {"CFBundlePrimaryIcon": {"CFBundleIconFiles": ["AppIcon60x60"]}},
        }
        self.assertEqual(decode(self._extract(app, fields)), b"mobile")

    def test_rasterizer_failure_without_fallback(self):
        self.rasterizer.error = RasterizerError("boom")
        app = make_app(self.root, "Foo")
        write_file(app / "Contents" / "Resources" / "AppIcon.icns")
        self.assertIsNone(self._extract(app, {"CFBundleIconFile": "AppIcon"}))
        self.assertIsNone(self.cache.get(cache_key_for(app)))

    def test_mobile_icon_files_prefer_highest_scale(self):
        app = make_app(self.root, "Bar", layout="mobile")
        write_file(app / "AppIcon60x60.png", b"1x")
        write_file(app / "AppIcon60x60@2x.png", b"2x")
        write_file(app / "AppIcon60x60@3x.png", b"3x")
        fields = {"CFBundleIcons": {"CFBundlePrimaryIcon": {"CFBundleIconFiles": ["AppIcon60x60"]}}}
        self.assertEqual(decode(self._extract(app, fields)), b"3x")

    def test_mobile_icon_files_in_list_order(self):
        app = make_app(self.root, "Bar", layout="mobile")
        write_file(app / "Second.png", b"second")
        fields = {"CFBundleIcons": {"CFBundlePrimaryIcon": {
            "CFBundleIconFiles": ["First", "Second"]}}}
        self.assertEqual(decode(self._extract(app, fields)), b"second")

    def test_icon_name_prefix_match(self):
        app = make_app(self.root, "Bar", layout="mobile")
        write_file(app / "AppIcon60x60.png", b"1x")
        write_file(app / "AppIcon60x60@2x.png", b"2x")
        write_file(app / "AppIcon.txt", b"nope")
        write_file(app / "Other@3x.png", b"other")
        fields = {"CFBundleIcons": {"CFBundlePrimaryIcon": {"CFBundleIconName": "AppIcon"}}}
        self.assertEqual(decode(self._extract(app, fields)), b"2x")

    def test_icon_name_used_when_icon_files_missing_on_disk(self):
        app = make_app(self.root, "Bar", layout="mobile")
        write_file(app / "AppIcon76x76@3x.png", b"3x")
        fields = {"CFBundleIcons": {"CFBundlePrimaryIcon": {
            "CFBundleIconFiles": ["Missing"], "CFBundleIconName": "AppIcon"}}}
        self.assertEqual(decode(self._extract(app, fields)), b"3x")

    def test_no_icon(self):
        app = make_app(self.root, "Foo")
        self.assertIsNone(self._extract(app, {}))
        self.assertIsNone(self._extract(app, {"CFBundleIconFile": "Missing"}))

    def test_outer_path_keys_the_cache(self):
        outer = make_app(self.root, "Outer", layout="none")
        inner = make_app(outer / "Wrapper", "Inner", layout="mobile")
        write_file(inner / "Icon.png", b"inner-icon")
        fields = {"CFBundleIcons": {"CFBundlePrimaryIcon": {"CFBundleIconFiles": ["Icon"]}}}
        self.extractor.extract_icon(inner, outer, fields)
        self.assertEqual(self.cache.get(cache_key_for(outer)), b"inner-icon")

    def test_vanished_outer_path_skips_cache(self):
        app = make_app(self.root, "Bar", layout="mobile")
        write_file(app / "Icon.png", b"icon")
        fields = {"CFBundleIcons": {"CFBundlePrimaryIcon": {"CFBundleIconFiles": ["Icon"]}}}
        uri = self.extractor.extract_icon(app, self.root / "Gone.app", fields)
        self.assertEqual(decode(uri), b"icon")
        self.assertEqual(self.cache.clear(), 0)


if __name__ == "__main__":
    unittest.main()

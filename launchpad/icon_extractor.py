"""
Icon Extractor: Find a bundle's icon and return it as a PNG data URI.

Resolution order:
1. Icon cache (keyed by outer bundle path + mtime)
2. CFBundleIconFile under Contents/Resources, rasterized to PNG
3. CFBundleIcons -> CFBundlePrimaryIcon -> CFBundleIconFiles at the bundle root
4. CFBundlePrimaryIcon -> CFBundleIconName prefix match at the bundle root

Any icon found by 2-4 is written through to the cache.
"""

import base64
import logging
from pathlib import Path
from typing import Any, List, Mapping, Optional

from launchpad.config_manager import DEFAULT_ICON_WIDTH
from launchpad.icon_cache import cache_key_for
from launchpad.rasterizer import RasterizerError

logger = logging.getLogger(__name__)

DATA_URI_PREFIX = "data:image/png;base64,"

# Highest quality first
SCALE_SUFFIXES = ("@3x.png", "@2x.png", ".png")


def to_data_uri(png_data: bytes) -> str:
    return DATA_URI_PREFIX + base64.b64encode(png_data).decode("ascii")


def _primary_icon(fields: Mapping[str, Any]) -> Optional[Mapping[str, Any]]:
    icons = fields.get("CFBundleIcons")
    if not isinstance(icons, dict):
        return None
    primary = icons.get("CFBundlePrimaryIcon")
    return primary if isinstance(primary, dict) else None


def _scale_rank(filename: str) -> int:
    if "@3x" in filename:
        return 3
    if "@2x" in filename:
        return 2
    return 1


class IconExtractor:
    """Resolves icons for bundles using a cache and a rasterizer collaborator."""

    def __init__(self, cache, rasterizer, icon_width: int = DEFAULT_ICON_WIDTH):
        self.cache = cache
        self.rasterizer = rasterizer
        self.icon_width = icon_width

    def extract_icon(self, bundle_root, outer_path, fields: Mapping[str, Any]) -> Optional[str]:
        """Return a data:image/png URI for the bundle, or None if it has no icon."""
        bundle_root = Path(bundle_root)
        key = cache_key_for(outer_path)

        if key is not None:
            cached = self.cache.get(key)
            if cached is not None:
                return to_data_uri(cached)

        png_data = (
            self._desktop_icon(bundle_root, fields)
            or self._mobile_icon_files(bundle_root, fields)
            or self._mobile_icon_name(bundle_root, fields)
        )
        if png_data is None:
            return None

        if key is not None:
            self.cache.put(key, png_data)
        return to_data_uri(png_data)

    def _desktop_icon(self, bundle_root: Path, fields: Mapping[str, Any]) -> Optional[bytes]:
        icon_file = fields.get("CFBundleIconFile")
        if not isinstance(icon_file, str) or not icon_file:
            return None

        resources = bundle_root / "Contents" / "Resources"
        candidates = [resources / icon_file]
        if not Path(icon_file).suffix:
            candidates.append(resources / f"{icon_file}.icns")

        for icon_path in candidates:
            if not icon_path.is_file():
                continue
            try:
                return self.rasterizer.rasterize(icon_path, self.icon_width)
            except RasterizerError as exc:
                logger.warning("Icon conversion failed for %s: %s", icon_path, exc)
                return None
        return None

    def _mobile_icon_files(self, bundle_root: Path, fields: Mapping[str, Any]) -> Optional[bytes]:
        primary = _primary_icon(fields)
        if primary is None:
            return None
        icon_files = primary.get("CFBundleIconFiles")
        if not isinstance(icon_files, list):
            return None

        for base in icon_files:
            if not isinstance(base, str):
                continue
            for suffix in SCALE_SUFFIXES:
                data = _read_file(bundle_root / f"{base}{suffix}")
                if data is not None:
                    return data
        return None

    def _mobile_icon_name(self, bundle_root: Path, fields: Mapping[str, Any]) -> Optional[bytes]:
        primary = _primary_icon(fields)
        if primary is None:
            return None
        icon_name = primary.get("CFBundleIconName")
        if not isinstance(icon_name, str) or not icon_name:
            return None

        try:
            names = sorted(p.name for p in bundle_root.iterdir() if p.is_file())
        except OSError:
            return None

        matches: List[str] = [
            n for n in names if n.startswith(icon_name) and n.endswith(".png")
        ]
        if not matches:
            return None
        best = max(matches, key=_scale_rank)
        return _read_file(bundle_root / best)


def _read_file(path: Path) -> Optional[bytes]:
    if not path.is_file():
        return None
    try:
        return path.read_bytes()
    except OSError:
        return None

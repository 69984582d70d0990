"""
Config Manager: Scan configuration state with JSON I/O

Holds the scan config dict and provides:
- JSON load/save to disk
- Defaults back-fill for keys missing from older files
- Validation before a scan is built from it
- Per-OS icon cache directory resolution
"""

import json
import os
import sys
from pathlib import Path
from typing import Dict, List, Any, Optional


CONFIG_VERSION = 1

# Bundle layout constants
APP_EXTENSION = ".app"
DESCRIPTOR_NAME = "Info.plist"
SELF_IDENTIFIER = "red.launchpad"  # Our own bundle, never listed

# Progressive delivery
DEFAULT_BATCH_SIZE = 10
DEFAULT_ICON_WIDTH = 128
MAX_WORKERS_CAP = 8

# App watcher timing
DEFAULT_WATCH_DEBOUNCE_SEC = 1.5
DEFAULT_WATCH_POLL_SEC = 1.0

# Default config paths
DEFAULT_CONFIG_DIR = Path.home() / ".config" / "launchpad"
DEFAULT_CONFIG_PATH = DEFAULT_CONFIG_DIR / "config.json"


def get_default_scan_roots() -> List[Dict[str, Any]]:
    """Default scan roots, in the order duplicates are resolved."""
    return [
        {"path": "/Applications", "source_label": None, "max_depth": 2},
        {"path": "/System/Applications", "source_label": "System", "max_depth": 1},
        {"path": "/System/Applications/Utilities", "source_label": "Utilities", "max_depth": 1},
        {"path": "/Applications/Utilities", "source_label": "Utilities", "max_depth": 1},
        {"path": "~/Applications", "source_label": None, "max_depth": 2},
    ]


def get_default_max_workers() -> int:
    return min(MAX_WORKERS_CAP, os.cpu_count() or 1)


def get_default_config() -> Dict[str, Any]:
    return {
        "version": CONFIG_VERSION,
        "scan_roots": get_default_scan_roots(),
        "batch_size": DEFAULT_BATCH_SIZE,
        "max_workers": get_default_max_workers(),
        "icon_width": DEFAULT_ICON_WIDTH,
        "self_identifier": SELF_IDENTIFIER,
        "cache_dir": None,
        "watch_debounce_sec": DEFAULT_WATCH_DEBOUNCE_SEC,
        "watch_poll_sec": DEFAULT_WATCH_POLL_SEC,
    }


def default_cache_dir() -> Path:
    """Per-OS icon cache location.

    macOS keeps caches under ~/Library/Caches, everything else follows the
    XDG base directory layout.
    """
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Caches" / "Launchpad" / "icons"
    xdg_cache = os.environ.get("XDG_CACHE_HOME")
    base = Path(xdg_cache) if xdg_cache else Path.home() / ".cache"
    return base / "launchpad" / "icons"


class ConfigManager:
    """Manages the in-memory scan config with JSON I/O and validation"""

    def __init__(self):
        self.config = {}
        self.new_config()

    def new_config(self) -> None:
        """Reset to defaults"""
        self.config = get_default_config()

    def load_json_file(self, path: str) -> bool:
        """Load config from JSON file. Returns True on success.

        Keys missing from the file are filled from defaults. On failure the
        current config is left untouched.
        """
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except (json.JSONDecodeError, FileNotFoundError, IOError):
            return False

        if not isinstance(data, dict):
            return False

        merged = get_default_config()
        merged.update(data)
        previous = self.config
        self.config = merged
        ok, _ = self.validate()
        if not ok:
            self.config = previous
            return False
        return True

    def save_json_file(self, path: str) -> bool:
        """Save config to JSON file. Returns True on success."""
        try:
            Path(path).parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w") as f:
                json.dump(self.config, f, indent=2)
            return True
        except IOError:
            return False

    def get_scan_roots(self) -> List[Dict[str, Any]]:
        """Scan roots with ~ expanded, in configured order"""
        roots = []
        for root in self.config.get("scan_roots", []):
            roots.append({
                "path": os.path.expanduser(root["path"]),
                "source_label": root.get("source_label"),
                "max_depth": root.get("max_depth", 1),
            })
        return roots

    def get_cache_dir(self) -> Path:
        cache_dir = self.config.get("cache_dir")
        if cache_dir:
            return Path(os.path.expanduser(cache_dir))
        return default_cache_dir()

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        return self.config.get(key, default)

    def validate(self) -> tuple[bool, str]:
        """Validate config structure. Returns (is_valid, error_message)."""
        roots = self.config.get("scan_roots")
        if not isinstance(roots, list):
            return False, "scan_roots must be an array"
        for i, root in enumerate(roots):
            if not isinstance(root, dict):
                return False, f"scan_roots[{i}]: must be an object"
            if not isinstance(root.get("path"), str) or not root["path"]:
                return False, f"scan_roots[{i}]: path must be a non-empty string"
            label = root.get("source_label")
            if label is not None and not isinstance(label, str):
                return False, f"scan_roots[{i}]: source_label must be a string or null"
            depth = root.get("max_depth", 1)
            if not isinstance(depth, int) or depth < 1:
                return False, f"scan_roots[{i}]: max_depth must be a positive integer"

        for key in ("batch_size", "max_workers", "icon_width"):
            value = self.config.get(key)
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                return False, f"{key} must be a positive integer"

        if not isinstance(self.config.get("self_identifier"), str):
            return False, "self_identifier must be a string"

        cache_dir = self.config.get("cache_dir")
        if cache_dir is not None and not isinstance(cache_dir, str):
            return False, "cache_dir must be a string or null"

        for key in ("watch_debounce_sec", "watch_poll_sec"):
            value = self.config.get(key)
            if not isinstance(value, (int, float)) or isinstance(value, bool) or value <= 0:
                return False, f"{key} must be a positive number"

        return True, ""


# Singleton instance
_manager = None


def get_config_manager() -> ConfigManager:
    """Get or create singleton ConfigManager instance"""
    global _manager
    if _manager is None:
        _manager = ConfigManager()
    return _manager

"""
Icon Cache: Persistent PNG store keyed by bundle path + modification time.

Each cached icon is one file, <16-hex-key>.png, holding raw PNG bytes.
Touching a bundle changes its key, so outdated entries are simply never
read again. The cache never raises: an unusable directory turns every
lookup into a miss and every write into a no-op.
"""

import hashlib
import logging
import os
import threading
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

CACHE_KEY_LENGTH = 16
CACHE_SUFFIX = ".png"


def cache_key_for(path) -> Optional[str]:
    """Derive the cache key for a bundle, or None if it cannot be stat'ed."""
    try:
        mtime = int(os.stat(path).st_mtime)
    except OSError:
        return None
    return make_cache_key(str(path), mtime)


def make_cache_key(path: str, mtime_seconds: int) -> str:
    hasher = hashlib.sha256()
    hasher.update(path.encode("utf-8", "surrogateescape"))
    hasher.update(str(mtime_seconds).encode("ascii"))
    return hasher.hexdigest()[:CACHE_KEY_LENGTH]


class IconCache:
    """On-disk icon cache rooted at a single directory.

    The directory is created on first use. Creation is attempted once per
    instance; if it fails the instance stays disabled.
    """

    def __init__(self, cache_dir):
        self.cache_dir = Path(cache_dir)
        self._lock = threading.Lock()
        self._ready: Optional[bool] = None

    def _ensure_dir(self) -> bool:
        with self._lock:
            if self._ready is None:
                try:
                    self.cache_dir.mkdir(parents=True, exist_ok=True)
                    self._ready = True
                except OSError as exc:
                    logger.warning("Icon cache disabled, cannot create %s: %s",
                                   self.cache_dir, exc)
                    self._ready = False
            return self._ready

    @property
    def available(self) -> bool:
        return self._ensure_dir()

    def path_for(self, key: str) -> Path:
        return self.cache_dir / f"{key}{CACHE_SUFFIX}"

    def get(self, key: str) -> Optional[bytes]:
        """Return cached PNG bytes, or None on miss or any read error."""
        if not self._ensure_dir():
            return None
        try:
            return self.path_for(key).read_bytes()
        except OSError:
            return None

    def put(self, key: str, data: bytes) -> bool:
        """Store PNG bytes. Returns False if the write failed."""
        if not self._ensure_dir():
            return False
        try:
            self.path_for(key).write_bytes(data)
            return True
        except OSError as exc:
            logger.debug("Icon cache write failed for %s: %s", key, exc)
            return False

    def clear(self) -> int:
        """Delete every cached icon. Returns the number of files removed."""
        if not self._ensure_dir():
            return 0
        removed = 0
        for entry in self.cache_dir.glob(f"*{CACHE_SUFFIX}"):
            try:
                entry.unlink()
                removed += 1
            except OSError as exc:
                logger.debug("Could not remove %s: %s", entry, exc)
        return removed


class MemoryIconCache:
    """Process-local stand-in for IconCache with the same interface."""

    def __init__(self):
        self._entries: Dict[str, bytes] = {}
        self._lock = threading.Lock()
        self.available = True

    def get(self, key: str) -> Optional[bytes]:
        with self._lock:
            return self._entries.get(key)

    def put(self, key: str, data: bytes) -> bool:
        with self._lock:
            self._entries[key] = bytes(data)
        return True

    def clear(self) -> int:
        with self._lock:
            removed = len(self._entries)
            self._entries.clear()
        return removed

"""
App Watcher: Notice when applications are installed, removed or updated.

Polls the scan roots on a background thread, comparing snapshots of the
.app entries found there and of the descriptor files inside them. A change
arms a debounce timer; the callback fires once the roots have been quiet
for the debounce period.
"""

import logging
import os
import threading
import time
from typing import Any, Callable, Dict, Optional, Sequence, Tuple

from launchpad.app_scanner import iter_candidates
from launchpad.bundle_resolver import WRAPPER_DIR
from launchpad.config_manager import DEFAULT_WATCH_DEBOUNCE_SEC, DEFAULT_WATCH_POLL_SEC, DESCRIPTOR_NAME

logger = logging.getLogger(__name__)

# Paths inside a bundle whose mtimes reflect an in-place update.
BUNDLE_MARKERS = (
    "Contents",
    os.path.join("Contents", DESCRIPTOR_NAME),
    DESCRIPTOR_NAME,
    WRAPPER_DIR,
)


def _mtime(path: str) -> Optional[float]:
    try:
        return os.lstat(path).st_mtime
    except OSError:
        return None


def bundle_signature(bundle) -> Tuple[Optional[float], ...]:
    """Modification times of a bundle and its descriptor-bearing entries."""
    markers = tuple(_mtime(os.path.join(bundle, marker)) for marker in BUNDLE_MARKERS)
    return (_mtime(bundle),) + markers


def snapshot_roots(roots: Sequence[Dict[str, Any]]) -> Dict[str, Tuple[Optional[float], ...]]:
    """Map every .app path under the roots to its bundle signature."""
    snapshot = {}
    for root in roots:
        for candidate in iter_candidates(root["path"], root.get("max_depth", 1)):
            signature = bundle_signature(str(candidate))
            if signature[0] is not None:
                snapshot[str(candidate)] = signature
    return snapshot


class AppWatcher:
    """Background watcher that calls `callback` after app folder changes settle."""

    def __init__(
        self,
        roots: Sequence[Dict[str, Any]],
        callback: Callable[[], None],
        debounce_sec: float = DEFAULT_WATCH_DEBOUNCE_SEC,
        poll_sec: float = DEFAULT_WATCH_POLL_SEC,
    ):
        self.roots = list(roots)
        self.callback = callback
        self.debounce_sec = debounce_sec
        self.poll_sec = poll_sec
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._snapshot: Dict[str, Tuple[Optional[float], ...]] = {}
        self._pending_since: Optional[float] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        for root in self.roots:
            if os.path.isdir(root["path"]):
                logger.info("Watching: %s", root["path"])
        self._snapshot = snapshot_roots(self.roots)
        self._pending_since = None
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run, name="app-watcher", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def poll(self, now: Optional[float] = None) -> bool:
        """Take one snapshot and fire the callback if a change has settled.

        Returns True if the callback fired.
        """
        if now is None:
            now = time.monotonic()

        current = snapshot_roots(self.roots)
        if current != self._snapshot:
            self._snapshot = current
            self._pending_since = now
            return False

        if self._pending_since is not None and now - self._pending_since >= self.debounce_sec:
            self._pending_since = None
            try:
                self.callback()
            except Exception as exc:
                logger.error("App watcher callback failed: %s", exc)
            return True
        return False

    def _run(self) -> None:
        while not self._stop_event.wait(self.poll_sec):
            self.poll()

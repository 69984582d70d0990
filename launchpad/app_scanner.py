"""
App Scanner: Discover installed applications from .app bundles.

Walks the configured application folders, resolves each .app candidate to
its descriptor, and builds ApplicationRecords. Three delivery modes:
- get_installed_apps_fast(): metadata only, returned immediately
- load_app_icons(sink): icons extracted in parallel, pushed in batches
- get_installed_apps(): everything at once, icons included
"""

import itertools
import logging
import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Sequence

from launchpad.app_metadata import AppMetadata, ApplicationRecord, IconUpdate, extract_metadata
from launchpad.bundle_resolver import resolve_bundle
from launchpad.config_manager import (
    APP_EXTENSION,
    DEFAULT_BATCH_SIZE,
    SELF_IDENTIFIER,
    ConfigManager,
    get_default_max_workers,
)
from launchpad.icon_cache import IconCache
from launchpad.icon_extractor import IconExtractor
from launchpad.rasterizer import default_rasterizer

logger = logging.getLogger(__name__)


def iter_candidates(root, max_depth: int) -> Iterator[Path]:
    """
    Yield every *.app entry under root, at most max_depth levels down.

    Entries are visited in sorted name order, parents before children.
    Symlinks are reported but never followed. An unreadable directory
    yields nothing.
    """
    root = Path(root)
    try:
        with os.scandir(root) as it:
            entries = sorted(it, key=lambda e: e.name)
    except OSError as exc:
        logger.debug("Cannot scan %s: %s", root, exc)
        return

    for entry in entries:
        path = Path(entry.path)
        if entry.name.endswith(APP_EXTENSION):
            yield path
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
        except OSError:
            continue
        if is_dir and max_depth > 1:
            yield from iter_candidates(path, max_depth - 1)


def dedupe_by_identifier(apps: Sequence[AppMetadata]) -> List[AppMetadata]:
    """Keep the first app seen for each identifier, ordered by identifier.

    The sort is stable, so among equal identifiers the one found first in
    root/scan order survives.
    """
    ordered = sorted(apps, key=lambda a: a.identifier)
    return [next(group) for _, group in itertools.groupby(ordered, key=lambda a: a.identifier)]


def sort_by_name(records):
    return sorted(records, key=lambda r: r.name.lower())


class DiscoveryPipeline:
    """Enumerates scan roots and delivers application records."""

    def __init__(
        self,
        roots: Sequence[Dict[str, Any]],
        extractor: Optional[IconExtractor] = None,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_workers: Optional[int] = None,
        self_identifier: str = SELF_IDENTIFIER,
    ):
        self.roots = list(roots)
        self.extractor = extractor
        self.batch_size = batch_size
        self.max_workers = max_workers or get_default_max_workers()
        self.self_identifier = self_identifier

    @classmethod
    def from_config(cls, config_manager: ConfigManager, cache=None, rasterizer=None) -> "DiscoveryPipeline":
        """Build a pipeline, its icon cache and its rasterizer from config."""
        if cache is None:
            cache = IconCache(config_manager.get_cache_dir())
        if rasterizer is None:
            rasterizer = default_rasterizer()
        extractor = IconExtractor(cache, rasterizer, config_manager.get("icon_width"))
        return cls(
            roots=config_manager.get_scan_roots(),
            extractor=extractor,
            batch_size=config_manager.get("batch_size"),
            max_workers=config_manager.get("max_workers"),
            self_identifier=config_manager.get("self_identifier"),
        )

    # ------------------------------------------------------------------
    # Enumeration
    # ------------------------------------------------------------------

    def scan_root(self, path, source_label: Optional[str], max_depth: int) -> List[AppMetadata]:
        apps = []
        for candidate in iter_candidates(path, max_depth):
            try:
                location = resolve_bundle(candidate)
                if location is None:
                    continue
                meta = extract_metadata(location, source_label, self.self_identifier)
            except Exception as exc:
                logger.debug("Skipping %s: %s", candidate, exc)
                continue
            if meta is not None:
                apps.append(meta)
        return apps

    def collect(self) -> List[AppMetadata]:
        """Scan all roots in order and dedupe. Result is in identifier order."""
        apps = []
        for root in self.roots:
            found = self.scan_root(root["path"], root.get("source_label"), root.get("max_depth", 1))
            logger.debug("Found %d apps in %s", len(found), root["path"])
            apps.extend(found)
        unique = dedupe_by_identifier(apps)
        logger.info("Discovered %d apps (%d before dedup)", len(unique), len(apps))
        return unique

    # ------------------------------------------------------------------
    # Icon extraction
    # ------------------------------------------------------------------

    def _require_extractor(self) -> IconExtractor:
        if self.extractor is None:
            raise RuntimeError("DiscoveryPipeline has no IconExtractor configured")
        return self.extractor

    def _extract_one(self, extractor: IconExtractor, app: AppMetadata) -> Optional[str]:
        try:
            return extractor.extract_icon(app.actual_bundle_root, app.path, app.fields)
        except Exception as exc:
            logger.warning("Icon extraction failed for %s: %s", app.path, exc)
            return None

    def extract_icons(self, apps: Sequence[AppMetadata]) -> List[Optional[str]]:
        """Extract icons in parallel. icons[i] belongs to apps[i]."""
        extractor = self._require_extractor()
        icons: List[Optional[str]] = [None] * len(apps)
        if not apps:
            return icons

        with ThreadPoolExecutor(max_workers=self.max_workers,
                                thread_name_prefix="icon-extract") as pool:
            futures = {
                pool.submit(self._extract_one, extractor, app): index
                for index, app in enumerate(apps)
            }
            for future in as_completed(futures):
                icons[futures[future]] = future.result()
        return icons

    # ------------------------------------------------------------------
    # Delivery modes
    # ------------------------------------------------------------------

    def get_installed_apps_fast(self) -> List[ApplicationRecord]:
        """All installed apps without icons, sorted by name."""
        return sort_by_name(app.to_record() for app in self.collect())

    def load_app_icons(self, sink) -> int:
        """
        Extract icons for every app and push them to sink in batches.

        Batches follow identifier order, batch_size apps per batch; a batch
        with no icons is skipped. push_complete() is always called exactly
        once at the end. Returns the number of batches pushed.
        """
        pushed = 0
        try:
            apps = self.collect()
            icons = self.extract_icons(apps)
            for start in range(0, len(apps), self.batch_size):
                updates = [
                    IconUpdate(app.identifier, icon)
                    for app, icon in zip(apps[start:start + self.batch_size],
                                         icons[start:start + self.batch_size])
                    if icon is not None
                ]
                if updates:
                    sink.push_batch(updates)
                    pushed += 1
            logger.info("Icon scan finished: %d of %d apps have icons, %d batches",
                        sum(1 for i in icons if i is not None), len(apps), pushed)
        finally:
            sink.push_complete()
        return pushed

    def get_installed_apps(self) -> List[ApplicationRecord]:
        """All installed apps with icons, sorted by name. Blocks until done."""
        apps = self.collect()
        icons = self.extract_icons(apps)
        return sort_by_name(app.to_record(icon) for app, icon in zip(apps, icons))

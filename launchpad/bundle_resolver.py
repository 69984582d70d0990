"""
Bundle Resolver: Locate the descriptor and real bundle root of an .app.

Native bundles keep their descriptor at Contents/Info.plist. Mobile apps
repackaged for the desktop nest an inner bundle under Wrapper/, reachable
through a WrappedBundle link, and the inner bundle may use either the
desktop layout or the flat mobile layout with Info.plist at its root.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from launchpad.config_manager import APP_EXTENSION, DESCRIPTOR_NAME

logger = logging.getLogger(__name__)

WRAPPED_BUNDLE_LINK = "WrappedBundle"
WRAPPER_DIR = "Wrapper"


@dataclass(frozen=True)
class BundleLocation:
    """Where one candidate's metadata and icon resources live."""
    outer_path: Path          # Bundle the user launches
    descriptor_path: Path     # Info.plist that describes it
    actual_bundle_root: Path  # Bundle that holds the icon resources


def _inner_descriptor(inner: Path) -> Optional[Path]:
    """Check an inner bundle for a descriptor, desktop layout first."""
    desktop_style = inner / "Contents" / DESCRIPTOR_NAME
    if desktop_style.is_file():
        return desktop_style
    mobile_style = inner / DESCRIPTOR_NAME
    if mobile_style.is_file():
        return mobile_style
    return None


def _resolve_wrapped_bundle(candidate: Path) -> Optional[BundleLocation]:
    link = candidate / WRAPPED_BUNDLE_LINK
    if not (link.is_symlink() or link.exists()):
        return None

    if link.is_symlink():
        try:
            target = os.readlink(link)
        except OSError as exc:
            logger.debug("Unreadable %s in %s: %s", WRAPPED_BUNDLE_LINK, candidate, exc)
            return None
        inner = candidate / target
    else:
        inner = link

    descriptor = _inner_descriptor(inner)
    if descriptor is None:
        return None
    return BundleLocation(candidate, descriptor, inner)


def _resolve_wrapper_dir(candidate: Path) -> Optional[BundleLocation]:
    wrapper = candidate / WRAPPER_DIR
    if not wrapper.is_dir():
        return None

    try:
        children = sorted(wrapper.iterdir(), key=lambda p: p.name)
    except OSError as exc:
        logger.debug("Cannot list %s: %s", wrapper, exc)
        return None

    for child in children:
        if not child.name.endswith(APP_EXTENSION):
            continue
        descriptor = _inner_descriptor(child)
        if descriptor is not None:
            return BundleLocation(candidate, descriptor, child)
    return None


def resolve_bundle(candidate) -> Optional[BundleLocation]:
    """
    Resolve a candidate .app directory to its BundleLocation.

    Search order (first match wins):
    1. Standard layout: candidate/Contents/Info.plist
    2. WrappedBundle link to an inner bundle (desktop, then mobile layout)
    3. First *.app child of candidate/Wrapper with either layout

    Returns None when no descriptor is found; the caller skips the candidate.
    """
    candidate = Path(candidate)

    standard = candidate / "Contents" / DESCRIPTOR_NAME
    if standard.is_file():
        return BundleLocation(candidate, standard, candidate)

    location = _resolve_wrapped_bundle(candidate)
    if location is None:
        location = _resolve_wrapper_dir(candidate)
    if location is None:
        logger.debug("No descriptor found in %s", candidate)
    return location

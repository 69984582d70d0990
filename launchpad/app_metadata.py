"""
App Metadata: Parse bundle descriptors into application records.

Reads Info.plist (XML or binary) for a resolved bundle and extracts the
display name, bundle identifier and category tag. Bundles without a usable
name, and our own bundle, are dropped silently.
"""

import logging
import plistlib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from launchpad.bundle_resolver import BundleLocation
from launchpad.config_manager import SELF_IDENTIFIER
from launchpad.tag_classifier import classify

logger = logging.getLogger(__name__)

UNKNOWN_IDENTIFIER = "unknown"


@dataclass(frozen=True)
class ApplicationRecord:
    """An installed application as returned to callers."""
    name: str
    identifier: str
    path: str                           # Outer bundle path, used for launching
    icon: Optional[str] = None          # data:image/png;base64,... URI
    source_label: Optional[str] = None  # e.g. "System", "Utilities"
    tags: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "identifier": self.identifier,
            "path": self.path,
            "icon": self.icon,
            "source_label": self.source_label,
            "tags": list(self.tags),
        }


@dataclass(frozen=True)
class AppMetadata:
    """Icon-less record plus what the icon pass needs to find the icon."""
    name: str
    identifier: str
    path: str
    actual_bundle_root: Path
    fields: Dict[str, Any] = field(repr=False, compare=False)
    source_label: Optional[str] = None
    tags: List[str] = field(default_factory=list)

    def to_record(self, icon: Optional[str] = None) -> ApplicationRecord:
        return ApplicationRecord(
            name=self.name,
            identifier=self.identifier,
            path=self.path,
            icon=icon,
            source_label=self.source_label,
            tags=list(self.tags),
        )


@dataclass(frozen=True)
class IconUpdate:
    """One entry of a progressive icon batch."""
    identifier: str
    icon: str

    def to_dict(self) -> Dict[str, str]:
        return {"identifier": self.identifier, "icon": self.icon}


def read_descriptor(path) -> Optional[Dict[str, Any]]:
    """Load a property list file. Returns None if unreadable or not a dict."""
    try:
        with open(path, "rb") as f:
            data = plistlib.load(f)
    except Exception as exc:
        logger.debug("Failed to parse %s: %s", path, exc)
        return None
    if not isinstance(data, dict):
        return None
    return data


def _string_field(fields: Dict[str, Any], key: str) -> Optional[str]:
    value = fields.get(key)
    return value if isinstance(value, str) else None


def extract_metadata(
    location: BundleLocation,
    source_label: Optional[str] = None,
    self_identifier: str = SELF_IDENTIFIER,
) -> Optional[AppMetadata]:
    """
    Build the icon-less metadata for a resolved bundle.

    Returns None when the descriptor cannot be parsed, carries neither
    CFBundleDisplayName nor CFBundleName, or belongs to this tool.
    """
    fields = read_descriptor(location.descriptor_path)
    if fields is None:
        return None

    name = _string_field(fields, "CFBundleDisplayName") or _string_field(fields, "CFBundleName")
    if name is None:
        logger.debug("No name in %s", location.descriptor_path)
        return None

    identifier = _string_field(fields, "CFBundleIdentifier") or UNKNOWN_IDENTIFIER
    if identifier == self_identifier:
        return None

    return AppMetadata(
        name=name,
        identifier=identifier,
        path=str(location.outer_path),
        actual_bundle_root=location.actual_bundle_root,
        fields=fields,
        source_label=source_label,
        tags=classify(fields, identifier, name),
    )

"""
Action Executor: Thin OS wrappers for acting on a discovered bundle.

- launch_app: open the bundle with the platform opener
- reveal_in_file_manager: select the bundle in Finder / the file manager
- move_app_to_trash: move the bundle to the user's trash

Each returns (ok, message) and logs failures; nothing here raises.
"""

import logging
import os
import shutil
import subprocess
import sys
from subprocess import DEVNULL

logger = logging.getLogger(__name__)


def _opener() -> str | None:
    if sys.platform == "darwin":
        return "open"
    return shutil.which("xdg-open")


def launch_app(app_path: str) -> tuple[bool, str]:
    """Launch an application bundle."""
    opener = _opener()
    if opener is None:
        return False, "No application opener available"
    try:
        subprocess.Popen([opener, app_path], stdout=DEVNULL, stderr=DEVNULL)
        logger.info("Launched app: %s", app_path)
        return True, ""
    except OSError as exc:
        logger.error("Failed to launch app: %s", exc)
        return False, f"Failed to launch app: {exc}"


def reveal_in_file_manager(app_path: str) -> tuple[bool, str]:
    """Show the bundle in the file manager."""
    if sys.platform == "darwin":
        cmd = ["open", "-R", app_path]
    else:
        opener = _opener()
        if opener is None:
            return False, "No file manager available"
        cmd = [opener, os.path.dirname(app_path) or "."]
    try:
        subprocess.Popen(cmd, stdout=DEVNULL, stderr=DEVNULL)
        return True, ""
    except OSError as exc:
        logger.error("Failed to reveal %s: %s", app_path, exc)
        return False, f"Failed to reveal: {exc}"


def move_app_to_trash(app_path: str) -> tuple[bool, str]:
    """Move the bundle to the trash (Finder on macOS, gio elsewhere)."""
    if not os.path.exists(app_path):
        return False, f"No such bundle: {app_path}"

    if sys.platform == "darwin":
        escaped = app_path.replace("\\", "\\\\").replace('"', '\\"')
        cmd = ["osascript", "-e",
               f'tell application "Finder" to delete POSIX file "{escaped}"']
    elif shutil.which("gio"):
        cmd = ["gio", "trash", app_path]
    else:
        return False, "No trash command available"

    try:
        result = subprocess.run(cmd, capture_output=True, text=True, timeout=30)
    except (subprocess.TimeoutExpired, OSError) as exc:
        logger.error("Failed to move %s to trash: %s", app_path, exc)
        return False, f"Failed to move app to trash: {exc}"

    if result.returncode != 0:
        logger.error("Trash command failed for %s: %s", app_path, result.stderr.strip())
        return False, f"Failed to move app to trash: {result.stderr.strip()}"
    logger.info("Moved to trash: %s", app_path)
    return True, ""

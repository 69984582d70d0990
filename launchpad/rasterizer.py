"""
Rasterizer: Convert bundle icon files (.icns) to fixed-width PNG bytes.

Two interchangeable backends share one call shape,
rasterize(source_path, target_width) -> bytes:
- SipsRasterizer runs macOS's sips utility out of process
- PillowRasterizer converts in process, which works on any platform
"""

import logging
import shutil
import subprocess
import tempfile
from io import BytesIO
from pathlib import Path

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

SIPS_TIMEOUT_SEC = 30


class RasterizerError(Exception):
    """Raised when an icon file cannot be converted to PNG"""

    pass


class SipsRasterizer:
    """Convert with `sips -s format png <src> --out <tmp> --resampleWidth <w>`."""

    def __init__(self, executable: str = "sips", timeout: float = SIPS_TIMEOUT_SEC):
        self.executable = executable
        self.timeout = timeout

    def rasterize(self, source_path, target_width: int) -> bytes:
        with tempfile.TemporaryDirectory(prefix="launchpad_") as tmp:
            out_path = Path(tmp) / "icon.png"
            cmd = [
                self.executable, "-s", "format", "png", str(source_path),
                "--out", str(out_path),
                "--resampleWidth", str(target_width),
            ]
            try:
                result = subprocess.run(cmd, capture_output=True, timeout=self.timeout)
            except (subprocess.TimeoutExpired, FileNotFoundError, OSError) as exc:
                raise RasterizerError(f"{self.executable} failed to run: {exc}")

            if result.returncode != 0:
                stderr = result.stderr.decode("utf-8", "replace").strip()
                raise RasterizerError(
                    f"{self.executable} exited with {result.returncode}: {stderr}"
                )
            try:
                return out_path.read_bytes()
            except OSError:
                raise RasterizerError(f"{self.executable} produced no output for {source_path}")


class PillowRasterizer:
    """Convert with Pillow, which reads .icns natively."""

    def rasterize(self, source_path, target_width: int) -> bytes:
        try:
            with Image.open(source_path) as img:
                img.load()
                if img.mode != "RGBA":
                    img = img.convert("RGBA")
                width, height = img.size
                target_height = max(1, round(height * target_width / width))
                img = img.resize((target_width, target_height), Image.LANCZOS)
                buf = BytesIO()
                img.save(buf, format="PNG", optimize=True)
                return buf.getvalue()
        except (UnidentifiedImageError, OSError, ValueError, ZeroDivisionError) as exc:
            raise RasterizerError(f"Cannot convert {source_path}: {exc}")


def default_rasterizer():
    """Prefer sips where it exists (macOS), fall back to Pillow elsewhere."""
    if shutil.which("sips"):
        return SipsRasterizer()
    logger.debug("sips not found, using Pillow for icon conversion")
    return PillowRasterizer()

"""
Headless display

Frame sink with the display-manager interface the wall pushes frames to
(``image`` + ``update_display()``). Frames are counted and, when a snapshot
path is configured, the latest frame is written to a PNG at most once per
``snapshot_interval`` so another process (a browser page, ``feh``) can show it.
"""

import logging
import os
import tempfile
import time
from typing import Any, Callable, Dict, Optional

from PIL import Image, ImageDraw, ImageFont

logger = logging.getLogger(__name__)


class HeadlessDisplay:
    """In-memory display with optional PNG snapshots."""

    def __init__(
        self,
        width: int = 1280,
        height: int = 720,
        snapshot_path: Optional[str] = None,
        snapshot_interval: float = 1.0,
        clock: Callable[[], float] = time.monotonic
    ):
        self.width = width
        self.height = height
        self.image = Image.new('RGB', (width, height), color=(0, 0, 0))
        self.snapshot_path = snapshot_path or None
        self.snapshot_interval = snapshot_interval
        self._clock = clock
        self._last_snapshot: Optional[float] = None

        self.frames_shown = 0
        self.snapshots_written = 0
        self.is_scrolling = False

    @classmethod
    def from_config(cls, config: Dict[str, Any], **overrides: Any) -> 'HeadlessDisplay':
        display = config.get('display', {})
        options = {
            'width': int(display.get('width', 1280)),
            'height': int(display.get('height', 720)),
            'snapshot_path': display.get('snapshot_path') or None,
            'snapshot_interval': float(display.get('snapshot_interval', 1.0)),
        }
        options.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**options)

    def resize(self, width: int, height: int) -> None:
        self.width = width
        self.height = height
        self.clear()

    def clear(self) -> None:
        self.image = Image.new('RGB', (self.width, self.height), color=(0, 0, 0))

    def set_scrolling_state(self, scrolling: bool) -> None:
        self.is_scrolling = scrolling

    def update_display(self) -> None:
        """Present the current image."""
        self.frames_shown += 1
        if not self.snapshot_path:
            return

        now = self._clock()
        if self._last_snapshot is not None and now - self._last_snapshot < self.snapshot_interval:
            return
        self._last_snapshot = now
        self.save_snapshot(self.snapshot_path)

    def save_snapshot(self, path: str) -> None:
        """Write the current image to ``path`` atomically."""
        directory = os.path.dirname(os.path.abspath(path))
        os.makedirs(directory, exist_ok=True)

        fd, tmp_path = tempfile.mkstemp(suffix='.png', dir=directory)
        try:
            with os.fdopen(fd, 'wb') as f:
                self.image.save(f, format='PNG')
            os.replace(tmp_path, path)
        except OSError:
            logger.exception("Failed to write snapshot %s", path)
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            return
        self.snapshots_written += 1

    def show_message(self, text: str, color=(255, 255, 255)) -> None:
        """Show a centered status message (loading, empty shelf, errors)."""
        self.clear()
        draw = ImageDraw.Draw(self.image)
        font = ImageFont.load_default()
        left, top, right, bottom = draw.textbbox((0, 0), text, font=font)
        x = (self.width - (right - left)) // 2 - left
        y = (self.height - (bottom - top)) // 2 - top
        draw.text((x, y), text, font=font, fill=color)
        self.update_display()

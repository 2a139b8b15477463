"""
Wall Surface

The on-screen container of the wall: an ordered row of column containers and
a horizontal offset. Each call to ``set_offset`` composes a viewport-sized
frame with numpy slicing and hands it to the attached display.
"""

import logging
import math
from typing import Any, List, Optional

import numpy as np
from PIL import Image

from coverwall.wall.config import WallConfig
from coverwall.wall.visuals import ColumnContainer

logger = logging.getLogger(__name__)


class WallSurface:
    """Horizontal strip of columns translated by ``offset`` pixels."""

    def __init__(self, width: int, height: int, config: WallConfig, display: Optional[Any] = None):
        """
        Initialize the surface.

        Args:
            width: Viewport width in pixels
            height: Viewport height in pixels
            config: Wall configuration
            display: Optional display sink with ``image`` and ``update_display()``
        """
        self.width = width
        self.height = height
        self.config = config
        self.display = display
        self.columns: List[ColumnContainer] = []
        self.offset = 0.0

        self._frame_buffer: Optional[np.ndarray] = None
        self.frames_composed = 0

    def resize(self, width: int, height: int) -> None:
        if (width, height) != (self.width, self.height):
            logger.info("Surface resized: %dx%d -> %dx%d", self.width, self.height, width, height)
        self.width = width
        self.height = height
        self._frame_buffer = None

    def append_column(self, container: ColumnContainer) -> None:
        self.columns.append(container)

    def remove_first_column(self) -> Optional[ColumnContainer]:
        if not self.columns:
            return None
        return self.columns.pop(0)

    def replace_columns(self, containers: List[ColumnContainer]) -> None:
        self.columns = list(containers)

    def clear(self) -> None:
        self.columns = []
        self.offset = 0.0

    def set_offset(self, offset: float) -> None:
        """Translate the wall and push the resulting frame to the display."""
        self.offset = offset
        if self.display is not None:
            self.display.image = self.compose_frame()
            self.display.update_display()

    def set_scrolling(self, scrolling: bool) -> None:
        if self.display is not None and hasattr(self.display, 'set_scrolling_state'):
            self.display.set_scrolling_state(scrolling)

    def compose_frame(self) -> Image.Image:
        """
        Compose the currently visible part of the wall.

        Returns:
            RGB image of the viewport size
        """
        shape = (self.height, self.width, 3)
        if self._frame_buffer is None or self._frame_buffer.shape != shape:
            self._frame_buffer = np.empty(shape, dtype=np.uint8)
        frame = self._frame_buffer
        frame[:, :] = self.config.background_color

        column_width = self.config.column_width
        origin = math.floor(self.offset)

        for index, container in enumerate(self.columns):
            x = origin + index * column_width
            if x >= self.width:
                break
            if x + column_width <= 0:
                continue

            src_start = max(0, -x)
            dst_start = max(0, x)
            span = min(column_width - src_start, self.width - dst_start)
            if span <= 0:
                continue

            column_pixels = container.render(self.height)
            frame[:, dst_start:dst_start + span] = column_pixels[:, src_start:src_start + span]

        self.frames_composed += 1
        # Copy so the display may keep the frame after the buffer is reused
        return Image.fromarray(frame.copy())

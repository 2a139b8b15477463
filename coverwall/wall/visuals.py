"""
Visual nodes for the cover wall.

Every entry placed in a column becomes a node with a fixed pixel height:
a scaled cover image or a rendered year label. A ``ColumnContainer`` stacks
nodes top to bottom and renders them into a numpy array once, so per-frame
composition is plain array slicing.
"""

import logging
from typing import List, Optional, Tuple, Union

import numpy as np
from PIL import Image, ImageDraw, ImageFont, ImageOps

from coverwall.wall.config import WallConfig
from coverwall.wall.models import BookItem

logger = logging.getLogger(__name__)


class CoverVisual:
    """A cover image scaled to the column width and clamped to the max height."""

    kind = 'cover'

    def __init__(self, item: BookItem, config: WallConfig, display_height: float):
        self.title = item.record.title or 'Book cover'
        self.source_index = item.source_index
        self.width = config.column_width
        self.height = max(0, int(round(display_height)))
        self._array = self._render(item, config)

    def _render(self, item: BookItem, config: WallConfig) -> np.ndarray:
        if self.height == 0:
            return np.zeros((0, self.width, 3), dtype=np.uint8)

        source = item.asset.image
        if source.mode != 'RGB':
            source = source.convert('RGB')

        natural_height = int(round(source.height * (self.width / source.width)))
        if natural_height > self.height:
            # Taller than the clamp: crop the middle band instead of squashing
            scaled = ImageOps.fit(source, (self.width, self.height), method=Image.Resampling.LANCZOS)
        else:
            scaled = source.resize((self.width, self.height), Image.Resampling.LANCZOS)

        return np.asarray(scaled, dtype=np.uint8)

    @property
    def array(self) -> np.ndarray:
        return self._array


class YearTagVisual:
    """A year label box followed by a margin strip."""

    kind = 'year-tag'

    def __init__(self, year: int, config: WallConfig, font: Optional[ImageFont.ImageFont] = None):
        self.width = config.column_width
        self.height = config.divider_height
        self._config = config
        self._font = font or load_year_font(config)
        self.year: Optional[int] = None
        self._array = np.zeros((self.height, self.width, 3), dtype=np.uint8)
        self.set_year(year)

    def set_year(self, year: int) -> None:
        """Re-label a pooled tag. No-op when the year is unchanged."""
        if year == self.year:
            return
        self.year = year

        config = self._config
        image = Image.new('RGB', (self.width, self.height), config.background_color)
        draw = ImageDraw.Draw(image)
        draw.rectangle(
            [0, 0, self.width - 1, max(0, config.year_tag_height - 1)],
            fill=config.year_tag_color
        )

        text = str(year)
        left, top, right, bottom = draw.textbbox((0, 0), text, font=self._font)
        text_x = (self.width - (right - left)) // 2 - left
        text_y = (config.year_tag_height - (bottom - top)) // 2 - top
        draw.text((text_x, text_y), text, font=self._font, fill=config.year_text_color)

        self._array = np.asarray(image, dtype=np.uint8)

    @property
    def array(self) -> np.ndarray:
        return self._array


Visual = Union[CoverVisual, YearTagVisual]


def load_year_font(config: WallConfig) -> ImageFont.ImageFont:
    """Load the configured year label font, falling back to Pillow's built-in font."""
    size = max(8, int(config.year_tag_height * 0.5))
    if config.font_path:
        try:
            return ImageFont.truetype(config.font_path, size)
        except OSError:
            logger.warning("Could not load font %s, using default font", config.font_path)
    return ImageFont.load_default()


class ColumnContainer:
    """
    Ordered stack of visual nodes making up one column.

    Rendering is lazy and cached; the cache is dropped whenever the node list
    changes or the requested height differs.
    """

    def __init__(self, width: int, background: Tuple[int, int, int] = (0, 0, 0)):
        self.width = width
        self.background = background
        self.nodes: List[Visual] = []
        self._rendered: Optional[np.ndarray] = None

    def append(self, node: Visual) -> None:
        self.nodes.append(node)
        self._rendered = None

    def clear(self) -> List[Visual]:
        """Remove all nodes. Returns the removed nodes so pooled ones can be reclaimed."""
        removed = self.nodes
        self.nodes = []
        self._rendered = None
        return removed

    def render(self, height: int) -> np.ndarray:
        """
        Render the column into a (height, width, 3) array.

        Content past ``height`` is clipped; unused space is background.
        """
        if self._rendered is not None and self._rendered.shape[0] == height:
            return self._rendered

        canvas = np.empty((height, self.width, 3), dtype=np.uint8)
        canvas[:, :] = self.background

        y = 0
        for node in self.nodes:
            if y >= height:
                break
            rows = min(node.height, height - y)
            if rows > 0:
                canvas[y:y + rows, :] = node.array[:rows, :self.width]
            y += node.height

        self._rendered = canvas
        return canvas

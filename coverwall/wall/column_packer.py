"""
Column Packer

Greedily fills one column with sequence entries until it reaches the target
height. Used for the initial wall and for every column the scroll engine
synthesizes, so both follow exactly the same packing rule.
"""

import logging
from typing import Sequence

from coverwall.wall.config import WallConfig
from coverwall.wall.models import BookItem, Column, PackResult, SequenceEntry, YearDivider
from coverwall.wall.resource_pool import ResourcePool

logger = logging.getLogger(__name__)


class ColumnPacker:
    """
    Packs sequence entries into columns.

    The cursor is an absolute walk position: the entry at cursor ``c`` is
    ``sequence[c % len(sequence)]`` and ``c // len(sequence)`` is the number of
    times the walk has wrapped. Packing never loops forever: once the walk
    wraps ``max_repeats`` times the column is accepted as it is.
    """

    def __init__(self, config: WallConfig, pool: ResourcePool):
        self.config = config
        self.pool = pool

    def entry_height(self, entry: SequenceEntry) -> float:
        """
        Pixel height an entry occupies in a column.

        Dividers use the fixed tag height plus margin. Covers scale to the
        column width and are clamped to ``max_image_height``; a cover with
        degenerate intrinsic dimensions takes no space.
        """
        if isinstance(entry, YearDivider):
            return float(self.config.divider_height)

        width = entry.asset.width
        height = entry.asset.height
        key = ('height', entry.source_index, width, height)
        cached = self.pool.get_geometry(key)
        if cached is not None:
            return cached

        if width <= 0 or height <= 0:
            scaled = 0.0
        else:
            scaled = min(height * (self.config.column_width / width), float(self.config.max_image_height))

        self.pool.put_geometry(key, scaled)
        return scaled

    def pack_column(
        self,
        sequence: Sequence[SequenceEntry],
        start_cursor: int,
        target_height: float
    ) -> PackResult:
        """
        Fill one column starting at ``start_cursor``.

        Args:
            sequence: Flat entry sequence
            start_cursor: Absolute walk position to start from
            target_height: Pixel height the column should reach

        Returns:
            PackResult with the filled column and the absolute cursor of the
            first entry not placed
        """
        column = self.pool.acquire_column()
        column.start_cursor = start_cursor

        length = len(sequence)
        if length == 0:
            return PackResult(column=column, next_cursor=start_cursor, wraps=0, underfull=True)

        cursor = start_cursor
        wraps = 0
        while True:
            index = cursor % length
            if index == 0 and cursor != start_cursor:
                wraps += 1
                if wraps >= self.config.max_repeats:
                    break

            self._place(column, sequence[index])
            cursor += 1

            if column.accumulated_height >= target_height:
                break

        underfull = column.accumulated_height < target_height
        if underfull:
            logger.debug(
                "Column accepted underfull: %.0f/%.0fpx after %d wraps (%d entries)",
                column.accumulated_height, target_height, wraps, column.entry_count
            )

        return PackResult(column=column, next_cursor=cursor, wraps=wraps, underfull=underfull)

    def _place(self, column: Column, entry: SequenceEntry) -> None:
        """Append one entry's visual to the column and account for its height."""
        height = self.entry_height(entry)

        if isinstance(entry, YearDivider):
            column.container.append(self.pool.acquire_year_tag(entry.year))
        elif isinstance(entry, BookItem):
            column.container.append(self.pool.cover_visual(entry, height))

        column.entries.append(entry)
        column.accumulated_height += height

"""
Wall Builder

Fills the initial on-screen wall: as many columns as cover the viewport,
packed one after another so the scroll engine can continue exactly where the
last column stopped.
"""

import logging
import math
from typing import List, Sequence

from coverwall.wall.column_packer import ColumnPacker
from coverwall.wall.models import Column, SequenceEntry, WallBuildResult

logger = logging.getLogger(__name__)


def columns_for_width(viewport_width: int, column_width: int) -> int:
    """Number of columns needed to cover ``viewport_width``."""
    if viewport_width <= 0 or column_width <= 0:
        return 0
    return math.ceil(viewport_width / column_width)


class WallBuilder:
    """Builds the initial set of columns."""

    def __init__(self, packer: ColumnPacker):
        self.packer = packer

    def build_wall(
        self,
        sequence: Sequence[SequenceEntry],
        num_columns: int,
        target_height: float,
        start_cursor: int = 0
    ) -> WallBuildResult:
        """
        Pack ``num_columns`` columns, threading the cursor from one to the next.

        Args:
            sequence: Flat entry sequence
            num_columns: Number of columns to fill
            target_height: Viewport height each column should reach
            start_cursor: Where the walk starts (0 for a fresh wall)

        Returns:
            WallBuildResult; empty sequences produce zero columns and
            ``resume_cursor == start_cursor``
        """
        if not sequence:
            logger.info("Empty sequence, nothing to build")
            return WallBuildResult(columns=[], resume_cursor=start_cursor, sequence=list(sequence))

        columns: List[Column] = []
        cursor = start_cursor
        for _ in range(num_columns):
            result = self.packer.pack_column(sequence, cursor, target_height)
            columns.append(result.column)
            cursor = result.next_cursor

        logger.info(
            "Built wall: %d columns, %d entries placed, resume cursor %d",
            len(columns), cursor - start_cursor, cursor
        )
        return WallBuildResult(columns=columns, resume_cursor=cursor, sequence=list(sequence))

"""
Cover Wall

Endless horizontally scrolling wall of book covers grouped by read-year.

Components:
- ItemSequencer: Flattens books into covers and year dividers
- ColumnPacker: Fills one column up to the viewport height
- WallBuilder: Packs the initial set of columns
- ScrollEngine: Frame-driven scroll, column synthesis and retirement
- ResourcePool: Reuses columns, year tags, and scaled covers
- CoverWallController: Host-facing API tying it all together
"""

from coverwall.wall.config import WallConfig
from coverwall.wall.models import (
    BookItem,
    BookRecord,
    Column,
    PackResult,
    ScrollState,
    VisualAsset,
    WallBuildResult,
    YearDivider,
)
from coverwall.wall.sequencer import ItemSequencer, build_sequence, extract_year
from coverwall.wall.column_packer import ColumnPacker
from coverwall.wall.wall_builder import WallBuilder, columns_for_width
from coverwall.wall.resource_pool import ResourcePool
from coverwall.wall.scheduler import FrameLoop, FrameScheduler, SteppedFrameScheduler
from coverwall.wall.scroll_engine import EngineState, ScrollEngine
from coverwall.wall.surface import WallSurface
from coverwall.wall.controller import CoverWallController

__all__ = [
    'WallConfig',
    'BookItem',
    'BookRecord',
    'Column',
    'PackResult',
    'ScrollState',
    'VisualAsset',
    'WallBuildResult',
    'YearDivider',
    'ItemSequencer',
    'build_sequence',
    'extract_year',
    'ColumnPacker',
    'WallBuilder',
    'columns_for_width',
    'ResourcePool',
    'FrameLoop',
    'FrameScheduler',
    'SteppedFrameScheduler',
    'EngineState',
    'ScrollEngine',
    'WallSurface',
    'CoverWallController',
]

"""
Cover Wall Controller

Host-facing entry point for the wall. Wires the sequencer, packer, builder,
scroll engine, and resource pool together and exposes the operations a host
(the app loop, a web page, a test) drives the wall with.
"""

import logging
from typing import Any, Dict, List, Optional, Sequence

from coverwall.wall.column_packer import ColumnPacker
from coverwall.wall.config import WallConfig
from coverwall.wall.models import BookRecord, Column, VisualAsset, WallBuildResult
from coverwall.wall.resource_pool import ResourcePool
from coverwall.wall.scheduler import FrameLoop, FrameScheduler
from coverwall.wall.scroll_engine import ScrollEngine
from coverwall.wall.sequencer import ItemSequencer
from coverwall.wall.surface import WallSurface
from coverwall.wall.wall_builder import WallBuilder, columns_for_width

logger = logging.getLogger(__name__)


class CoverWallController:
    """
    Builds the wall and runs its animation.

    Usage:
        controller = CoverWallController(config, 1280, 720, display=display)
        result = controller.render_wall(books, assets)
        if not result.is_empty:
            controller.start_animation(result.columns, result.resume_cursor)
    """

    def __init__(
        self,
        config: WallConfig,
        viewport_width: int,
        viewport_height: int,
        display: Optional[Any] = None,
        scheduler: Optional[FrameScheduler] = None
    ):
        """
        Initialize the controller.

        Args:
            config: Wall configuration
            viewport_width: Initial viewport width in pixels
            viewport_height: Initial viewport height in pixels
            display: Optional display sink frames are pushed to
            scheduler: Frame scheduler; defaults to a real-time FrameLoop
        """
        self.config = config
        self.viewport_width = viewport_width
        self.viewport_height = viewport_height

        self.pool = ResourcePool(config)
        self.sequencer = ItemSequencer(self.pool, timezone=config.timezone)
        self.packer = ColumnPacker(config, self.pool)
        self.builder = WallBuilder(self.packer)
        self.surface = WallSurface(viewport_width, viewport_height, config, display=display)
        self.scheduler = scheduler or FrameLoop(target_fps=config.target_fps)
        self.engine = ScrollEngine(config, self.packer, self.pool, self.surface, self.scheduler)

        self._books: List[BookRecord] = []
        self._assets: List[Optional[VisualAsset]] = []
        self._last_result: Optional[WallBuildResult] = None
        self.resize_count = 0

        logger.info(
            "CoverWallController initialized: viewport=%dx%d, column_width=%d",
            viewport_width, viewport_height, config.column_width
        )

    # -------------------------------------------------------------------------
    # Wall construction
    # -------------------------------------------------------------------------

    def render_wall(
        self,
        books: Sequence[BookRecord],
        assets: Sequence[Optional[VisualAsset]],
        viewport_width: Optional[int] = None,
        viewport_height: Optional[int] = None
    ) -> WallBuildResult:
        """
        Build the initial wall for ``books`` and draw it at offset 0.

        Any animation in progress is stopped and the previous wall's columns
        are returned to the pool.

        Args:
            books: Book records in display order
            assets: Cover assets, same length and order as ``books``
            viewport_width: New viewport width (defaults to the current one)
            viewport_height: New viewport height (defaults to the current one)

        Returns:
            WallBuildResult; ``is_empty`` when no book has a usable cover
        """
        if viewport_width is not None:
            self.viewport_width = viewport_width
        if viewport_height is not None:
            self.viewport_height = viewport_height

        self.stop_animation()
        self._release_wall()
        self.surface.resize(self.viewport_width, self.viewport_height)

        self._books = list(books)
        self._assets = list(assets)

        sequence = self.sequencer.sequence_for(self._books, self._assets)
        num_columns = columns_for_width(self.viewport_width, self.config.column_width)
        result = self.builder.build_wall(sequence, num_columns, self.viewport_height)

        self.surface.replace_columns([column.container for column in result.columns])
        self.surface.set_offset(0.0)
        self._last_result = result
        return result

    def invalidate_sequence(self) -> None:
        """Forget memoized sequences, e.g. after the shelf was reloaded with the same size."""
        self.pool.clear_geometry()

    # -------------------------------------------------------------------------
    # Animation
    # -------------------------------------------------------------------------

    def start_animation(
        self,
        columns: List[Column],
        resume_cursor: int,
        viewport_height: Optional[int] = None
    ) -> None:
        """
        Start scrolling the given columns.

        Args:
            columns: Initial columns, normally ``render_wall(...).columns``
            resume_cursor: Cursor the first synthesized column starts from
            viewport_height: Target height for synthesized columns
        """
        if viewport_height is None:
            viewport_height = self.viewport_height

        if self._last_result is None or self._last_result.is_empty:
            logger.warning("start_animation called without a rendered wall")
            return

        self.engine.start(columns, resume_cursor, viewport_height, self._last_result.sequence)
        # The engine owns these columns now
        self._last_result = WallBuildResult(
            columns=[], resume_cursor=resume_cursor, sequence=self._last_result.sequence
        )

    def stop_animation(self) -> None:
        self.engine.stop()

    def is_running(self) -> bool:
        return self.engine.is_running()

    def handle_resize(self, viewport_width: int, viewport_height: int) -> bool:
        """
        React to a viewport size change.

        Only a running wall is rebuilt: cleanup pass, rebuild for the new
        size, restart from offset 0.

        Returns:
            True if the wall was rebuilt
        """
        self.viewport_width = viewport_width
        self.viewport_height = viewport_height

        if not self.is_running():
            self.surface.resize(viewport_width, viewport_height)
            return False

        logger.info("Viewport resized to %dx%d, rebuilding wall", viewport_width, viewport_height)
        self.engine.stop()
        self._release_wall()
        self.pool.cleanup()

        result = self.render_wall(self._books, self._assets)
        self.resize_count += 1
        if result.is_empty:
            return True

        self.start_animation(result.columns, result.resume_cursor, viewport_height)
        return True

    # -------------------------------------------------------------------------
    # Resources
    # -------------------------------------------------------------------------

    def _release_wall(self) -> None:
        """Return every column of the current wall to the pool."""
        if self._last_result is not None:
            for column in self._last_result.columns:
                self.pool.release_column(column)
            self._last_result = WallBuildResult(
                columns=[], resume_cursor=0, sequence=self._last_result.sequence
            )
        self.engine.release_columns()

    def cleanup_resources(self) -> Dict[str, int]:
        """Run a resource pool cleanup pass."""
        return self.pool.cleanup()

    def destroy(self) -> None:
        """Stop scrolling and drop all pooled resources."""
        self.stop_animation()
        self._release_wall()
        self.pool.clear()
        self._books = []
        self._assets = []
        self._last_result = None
        logger.info("CoverWallController destroyed")

    def get_status(self) -> Dict[str, Any]:
        """Get comprehensive wall status."""
        status = {
            'running': self.is_running(),
            'viewport': {'width': self.viewport_width, 'height': self.viewport_height},
            'books': len(self._books),
            'resize_count': self.resize_count,
            'config': self.config.to_dict(),
            'pool': self.pool.get_metrics(),
            'pool_stats': dict(self.pool.stats),
        }
        if self.is_running():
            status['engine'] = self.engine.get_status()
        return status

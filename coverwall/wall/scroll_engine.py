"""
Scroll Engine

Drives the endless leftward scroll of the wall. Each frame moves the wall by
``animation_speed * dt`` pixels, packs one new column at the right edge when
the live columns no longer cover the viewport, and retires the leftmost
column once it has fully left the screen.

Offset invariant while running: ``-column_width < offset <= 0`` after every
frame, so the on-screen columns stay a bounded set however long the wall runs.
"""

import logging
import time
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence

from coverwall.wall.column_packer import ColumnPacker
from coverwall.wall.config import WallConfig
from coverwall.wall.models import Column, ScrollState, SequenceEntry
from coverwall.wall.resource_pool import ResourcePool
from coverwall.wall.scheduler import FrameScheduler
from coverwall.wall.surface import WallSurface

logger = logging.getLogger(__name__)


class EngineState(Enum):
    """Scroll engine lifecycle."""
    STOPPED = "stopped"
    RUNNING = "running"


class ScrollEngine:
    """
    Frame-driven scroll animation.

    The engine owns a ``ScrollState`` and one pending frame callback at most.
    All mutation happens inside frame callbacks or in start/stop, which run on
    the scheduler's thread.
    """

    def __init__(
        self,
        config: WallConfig,
        packer: ColumnPacker,
        pool: ResourcePool,
        surface: WallSurface,
        scheduler: FrameScheduler
    ):
        """
        Initialize the scroll engine.

        Args:
            config: Wall configuration (speed, column width, frame clamp)
            packer: Column packer used to synthesize new columns
            pool: Resource pool retired columns are returned to
            surface: Surface the wall is drawn on
            scheduler: Frame scheduler providing per-frame callbacks
        """
        self.config = config
        self.packer = packer
        self.pool = pool
        self.surface = surface
        self.scheduler = scheduler

        self.state = ScrollState()
        self._engine_state = EngineState.STOPPED
        self._frame_handle: Optional[int] = None

    @property
    def engine_state(self) -> EngineState:
        return self._engine_state

    def is_running(self) -> bool:
        return self._engine_state == EngineState.RUNNING

    def start(
        self,
        initial_columns: List[Column],
        resume_cursor: int,
        viewport_height: int,
        sequence: Sequence[SequenceEntry]
    ) -> None:
        """
        Start (or restart) scrolling.

        Args:
            initial_columns: Columns from the wall builder, left to right
            resume_cursor: Cursor the next synthesized column starts from
            viewport_height: Target height for synthesized columns
            sequence: Flat entry sequence the initial columns were packed from

        Raises:
            ValueError: If ``sequence`` is empty
        """
        if not sequence:
            raise ValueError("Cannot start scrolling an empty sequence")

        if self.is_running():
            self.stop()

        # Columns from a previous run that are not part of the new wall go back to the pool
        adopted = {id(column) for column in initial_columns}
        for column in self.state.columns:
            if id(column) not in adopted:
                self.pool.release_column(column)

        self.state = ScrollState(
            offset_pixels=0.0,
            columns=list(initial_columns),
            last_frame_timestamp=None,
            cursor=resume_cursor,
            sequence=list(sequence),
            viewport_height=viewport_height,
            started_at=time.time(),
        )

        self.surface.replace_columns([column.container for column in initial_columns])
        self.surface.set_offset(0.0)
        self.surface.set_scrolling(True)

        self._engine_state = EngineState.RUNNING
        self._frame_handle = self.scheduler.request_frame(self._tick)

        logger.info(
            "Scroll engine started: %d columns, cursor %d, %.1f px/s",
            len(initial_columns), resume_cursor, self.config.animation_speed
        )

    def stop(self) -> None:
        """Stop scrolling. Columns stay on the surface where they are."""
        was_running = self.is_running()
        self._engine_state = EngineState.STOPPED
        self.scheduler.cancel_frame(self._frame_handle)
        self._frame_handle = None
        self.surface.set_scrolling(False)

        if was_running:
            logger.info(
                "Scroll engine stopped after %d frames (%d columns synthesized, %d retired)",
                self.state.frames, self.state.columns_synthesized, self.state.columns_retired
            )

    def release_columns(self) -> int:
        """
        Hand every live column back to the pool and clear the surface.

        Only valid while stopped; the caller is about to rebuild the wall.

        Returns:
            Number of columns released
        """
        if self.is_running():
            raise RuntimeError("Cannot release columns while scrolling")

        released = len(self.state.columns)
        for column in self.state.columns:
            self.pool.release_column(column)
        self.state.columns = []
        self.surface.clear()
        return released

    def _tick(self, timestamp: float) -> None:
        """Advance the animation by one frame."""
        self._frame_handle = None
        if not self.is_running():
            return

        state = self.state
        if state.last_frame_timestamp is None:
            elapsed = 0.0
        else:
            elapsed = min(max(0.0, timestamp - state.last_frame_timestamp), self.config.max_frame_delta)
        state.last_frame_timestamp = timestamp

        column_width = self.config.column_width
        state.offset_pixels -= self.config.animation_speed * elapsed

        if state.wall_width(column_width) + state.offset_pixels <= self.surface.width:
            self._synthesize_column()

        if state.offset_pixels + column_width <= 0 and state.columns:
            self._retire_first_column()

        self.surface.set_offset(state.offset_pixels)
        state.frames += 1

        if self.is_running():
            self._frame_handle = self.scheduler.request_frame(self._tick)

    def _synthesize_column(self) -> None:
        state = self.state
        result = self.packer.pack_column(state.sequence, state.cursor, state.viewport_height)
        state.columns.append(result.column)
        self.surface.append_column(result.column.container)
        state.cursor = result.next_cursor
        state.columns_synthesized += 1
        logger.debug(
            "Synthesized column: %d entries, cursor now %d, %d live columns",
            result.column.entry_count, state.cursor, len(state.columns)
        )

    def _retire_first_column(self) -> None:
        state = self.state
        column = state.columns.pop(0)
        self.surface.remove_first_column()
        pooled = self.pool.release_column(column)
        state.offset_pixels += self.config.column_width
        state.columns_retired += 1
        logger.debug("Retired column (pooled=%s), offset now %.2f", pooled, state.offset_pixels)

    def get_status(self) -> Dict[str, Any]:
        """Current engine status."""
        state = self.state
        return {
            'state': self._engine_state.value,
            'offset': state.offset_pixels,
            'columns': len(state.columns),
            'cursor': state.cursor,
            'sequence_length': len(state.sequence),
            'frames': state.frames,
            'columns_synthesized': state.columns_synthesized,
            'columns_retired': state.columns_retired,
            'uptime_seconds': time.time() - state.started_at if self.is_running() else 0.0,
        }

"""
Resource Pool

Reuses column containers, year tag visuals, and scaled cover visuals instead
of rebuilding them every time a column is synthesized, and memoizes pure
geometry calculations.

Eviction is deliberately coarse: nothing is evicted on insert (apart from the
hard cap on returned columns), and a cleanup pass clears any cache that has
grown past its threshold wholesale. Correctness never depends on pool
contents; a cold pool only means the work is redone.
"""

import logging
from typing import Any, Dict, Hashable, List, Optional, Tuple

from PIL import ImageFont

from coverwall.wall.config import WallConfig
from coverwall.wall.models import BookItem, Column
from coverwall.wall.visuals import ColumnContainer, CoverVisual, YearTagVisual, load_year_font

logger = logging.getLogger(__name__)


class ResourcePool:
    """Bounded pools for wall render resources."""

    def __init__(self, config: WallConfig):
        """
        Initialize the pool.

        Args:
            config: Wall configuration (supplies geometry and pool thresholds)
        """
        self.config = config

        # Free lists keyed by node kind
        self._column_pool: List[Column] = []
        self._year_tag_pool: List[YearTagVisual] = []

        # Caches
        self._cover_cache: Dict[Tuple[str, int], CoverVisual] = {}
        self._geometry: Dict[Hashable, Any] = {}

        self._font: Optional[ImageFont.ImageFont] = None

        self.stats = {
            'columns_created': 0,
            'columns_reused': 0,
            'columns_dropped': 0,
            'covers_created': 0,
            'cover_hits': 0,
            'year_tags_created': 0,
            'year_tags_reused': 0,
            'cleanups': 0,
        }

    # ------------------------------------------------------------------
    # Columns
    # ------------------------------------------------------------------

    def acquire_column(self) -> Column:
        """Return an empty column, recycled from the pool when possible."""
        if self._column_pool:
            column = self._column_pool.pop()
            column.reset()
            self.stats['columns_reused'] += 1
            return column

        self.stats['columns_created'] += 1
        return Column(container=ColumnContainer(self.config.column_width, self.config.background_color))

    def release_column(self, column: Column) -> bool:
        """
        Return a retired column to the pool.

        Its year tags go back to the year tag free list. The column itself is
        only kept while the pool is under ``column_pool_return_limit``.

        Returns:
            True if the column was pooled, False if it was dropped
        """
        for node in column.container.clear():
            if isinstance(node, YearTagVisual):
                self.release_year_tag(node)
        column.accumulated_height = 0.0
        column.entries = []

        if len(self._column_pool) < self.config.column_pool_return_limit:
            self._column_pool.append(column)
            return True

        self.stats['columns_dropped'] += 1
        return False

    # ------------------------------------------------------------------
    # Visual nodes
    # ------------------------------------------------------------------

    def acquire_year_tag(self, year: int) -> YearTagVisual:
        """Return a year tag labelled ``year``."""
        if self._year_tag_pool:
            tag = self._year_tag_pool.pop()
            tag.set_year(year)
            self.stats['year_tags_reused'] += 1
            return tag

        if self._font is None:
            self._font = load_year_font(self.config)
        self.stats['year_tags_created'] += 1
        return YearTagVisual(year, self.config, font=self._font)

    def release_year_tag(self, tag: YearTagVisual) -> None:
        self._year_tag_pool.append(tag)

    def cover_visual(self, item: BookItem, display_height: float) -> CoverVisual:
        """
        Return the scaled cover for ``item``.

        Keyed by (title, source index). Cover visuals are never mutated after
        creation, so one instance can sit in several columns at once.
        """
        key = (item.record.title, item.source_index)
        visual = self._cover_cache.get(key)
        if visual is not None:
            self.stats['cover_hits'] += 1
            return visual

        visual = CoverVisual(item, self.config, display_height)
        self._cover_cache[key] = visual
        self.stats['covers_created'] += 1
        return visual

    # ------------------------------------------------------------------
    # Geometry memo
    # ------------------------------------------------------------------

    def get_geometry(self, key: Hashable) -> Optional[Any]:
        return self._geometry.get(key)

    def put_geometry(self, key: Hashable, value: Any) -> None:
        self._geometry[key] = value

    def clear_geometry(self) -> None:
        self._geometry.clear()

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def cleanup(self) -> Dict[str, int]:
        """
        Run a cleanup pass.

        Caches over their threshold are cleared entirely and free lists are
        truncated to their caps.

        Returns:
            Number of entries removed per pool
        """
        removed = {'geometry': 0, 'covers': 0, 'columns': 0, 'year_tags': 0}

        if len(self._geometry) > self.config.geometry_cache_limit:
            removed['geometry'] = len(self._geometry)
            self._geometry.clear()

        if len(self._cover_cache) > self.config.cover_cache_limit:
            removed['covers'] = len(self._cover_cache)
            self._cover_cache.clear()

        if len(self._column_pool) > self.config.column_pool_limit:
            removed['columns'] = len(self._column_pool) - self.config.column_pool_limit
            del self._column_pool[self.config.column_pool_limit:]

        if len(self._year_tag_pool) > self.config.year_tag_pool_limit:
            removed['year_tags'] = len(self._year_tag_pool) - self.config.year_tag_pool_limit
            del self._year_tag_pool[self.config.year_tag_pool_limit:]

        self.stats['cleanups'] += 1
        if any(removed.values()):
            logger.info(
                "Resource pool cleanup: geometry=%d covers=%d columns=%d year_tags=%d removed",
                removed['geometry'], removed['covers'], removed['columns'], removed['year_tags']
            )
        return removed

    def clear(self) -> None:
        """Drop every pooled and cached resource."""
        self._column_pool.clear()
        self._year_tag_pool.clear()
        self._cover_cache.clear()
        self._geometry.clear()
        logger.debug("Resource pool cleared")

    def get_metrics(self) -> Dict[str, int]:
        """Current pool sizes."""
        return {
            'geometry_cache': len(self._geometry),
            'cover_cache': len(self._cover_cache),
            'column_pool': len(self._column_pool),
            'year_tag_pool': len(self._year_tag_pool),
        }

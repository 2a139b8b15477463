"""
Tests for the resource pool, visual nodes, and wall surface.
"""

import numpy as np

from coverwall.wall.config import WallConfig
from coverwall.wall.models import BookItem
from coverwall.wall.resource_pool import ResourcePool
from coverwall.wall.sequencer import build_sequence
from coverwall.wall.surface import WallSurface
from coverwall.wall.visuals import ColumnContainer, CoverVisual, YearTagVisual


class TestColumnPooling:
    """Test column acquire/release."""

    def test_acquire_creates_when_empty(self, pool):
        column = pool.acquire_column()
        assert column.entry_count == 0
        assert pool.stats['columns_created'] == 1

    def test_released_column_is_reused_cleared(self, pool, packer, make_books, make_asset):
        books = make_books([2020, 2020])
        sequence = build_sequence(books, [make_asset(), make_asset()])
        packed = packer.pack_column(sequence, 0, 900).column

        assert pool.release_column(packed)
        reused = pool.acquire_column()

        assert reused is packed
        assert reused.entry_count == 0
        assert reused.container.nodes == []
        assert reused.accumulated_height == 0.0
        assert pool.stats['columns_reused'] == 1

    def test_release_returns_year_tags(self, pool, packer, make_books, make_asset):
        books = make_books([2020, 2021])
        sequence = build_sequence(books, [make_asset(), make_asset()])
        column = packer.pack_column(sequence, 0, 10_000).column

        pool.release_column(column)

        assert pool.get_metrics()['year_tag_pool'] >= 2

    def test_return_cap(self):
        config = WallConfig(column_pool_return_limit=2)
        pool = ResourcePool(config)
        columns = [pool.acquire_column() for _ in range(3)]

        results = [pool.release_column(column) for column in columns]

        assert results == [True, True, False]
        assert pool.get_metrics()['column_pool'] == 2
        assert pool.stats['columns_dropped'] == 1


class TestYearTags:
    """Test year tag pooling."""

    def test_reused_tag_is_relabelled(self, pool):
        tag = pool.acquire_year_tag(2020)
        pool.release_year_tag(tag)

        reused = pool.acquire_year_tag(2023)

        assert reused is tag
        assert reused.year == 2023

    def test_tag_render_size(self, small_wall_config):
        tag = YearTagVisual(2021, small_wall_config)
        assert tag.array.shape == (80, 200, 3)
        # Label box in the top part, background margin below
        assert tuple(tag.array[0, 0]) == small_wall_config.year_tag_color
        assert tuple(tag.array[79, 0]) == small_wall_config.background_color


class TestCoverCache:
    """Test scaled cover caching."""

    def test_same_title_and_index_shares_visual(self, pool, make_books, make_asset):
        record = make_books([2020])[0]
        item = BookItem(record=record, asset=make_asset(), source_index=0)

        first = pool.cover_visual(item, 320)
        second = pool.cover_visual(item, 320)

        assert first is second
        assert pool.stats['cover_hits'] == 1

    def test_cover_scaled_to_column(self, small_wall_config, make_books, make_asset):
        item = BookItem(record=make_books([2020])[0], asset=make_asset(100, 120), source_index=0)
        visual = CoverVisual(item, small_wall_config, 240)
        assert visual.array.shape == (240, 200, 3)

    def test_tall_cover_is_cropped(self, small_wall_config, make_books, make_asset):
        item = BookItem(record=make_books([2020])[0], asset=make_asset(100, 400), source_index=0)
        visual = CoverVisual(item, small_wall_config, 320)
        assert visual.array.shape == (320, 200, 3)


class TestCleanup:
    """Test the wholesale cleanup pass."""

    def test_geometry_cleared_over_limit(self):
        pool = ResourcePool(WallConfig(geometry_cache_limit=3))
        for index in range(4):
            pool.put_geometry(('k', index), index)

        removed = pool.cleanup()

        assert removed['geometry'] == 4
        assert pool.get_metrics()['geometry_cache'] == 0

    def test_geometry_kept_at_limit(self):
        pool = ResourcePool(WallConfig(geometry_cache_limit=3))
        for index in range(3):
            pool.put_geometry(('k', index), index)

        assert pool.cleanup()['geometry'] == 0
        assert pool.get_geometry(('k', 0)) == 0

    def _fill_covers(self, pool, make_books, make_asset, count):
        for index, record in enumerate(make_books([2020] * count)):
            pool.cover_visual(BookItem(record=record, asset=make_asset(), source_index=index), 320)

    def test_cover_cache_cleared_over_limit(self, make_books, make_asset):
        pool = ResourcePool(WallConfig(cover_cache_limit=2))
        self._fill_covers(pool, make_books, make_asset, 3)
        assert pool.get_metrics()['cover_cache'] == 3

        removed = pool.cleanup()

        assert removed['covers'] == 3
        assert pool.get_metrics()['cover_cache'] == 0
        assert pool.stats['cleanups'] == 1

    def test_cover_cache_kept_at_limit(self, make_books, make_asset):
        pool = ResourcePool(WallConfig(cover_cache_limit=2))
        self._fill_covers(pool, make_books, make_asset, 2)

        assert pool.cleanup()['covers'] == 0
        assert pool.get_metrics()['cover_cache'] == 2

    def test_free_lists_truncated(self):
        config = WallConfig(column_pool_return_limit=100, column_pool_limit=5, year_tag_pool_limit=1)
        pool = ResourcePool(config)
        for _ in range(8):
            pool.release_column(pool.acquire_column())
        columns = [pool.acquire_column() for _ in range(8)]
        for column in columns:
            pool.release_column(column)
        pool.release_year_tag(pool.acquire_year_tag(2020))
        pool.release_year_tag(pool.acquire_year_tag(2021))
        pool.release_year_tag(YearTagVisual(2022, config))

        removed = pool.cleanup()

        assert removed['columns'] == 3
        assert removed['year_tags'] == 1
        metrics = pool.get_metrics()
        assert metrics['column_pool'] == 5
        assert metrics['year_tag_pool'] == 1

    def test_clear(self, pool):
        pool.put_geometry('x', 1)
        pool.release_column(pool.acquire_column())
        pool.clear()
        assert pool.get_metrics() == {
            'geometry_cache': 0, 'cover_cache': 0, 'column_pool': 0, 'year_tag_pool': 0
        }


class TestWallSurface:
    """Test frame composition."""

    def _column(self, color, width=200):
        container = ColumnContainer(width, background=color)
        return container

    def test_compose_places_columns_side_by_side(self, small_wall_config):
        surface = WallSurface(400, 10, small_wall_config)
        surface.replace_columns([self._column((255, 0, 0)), self._column((0, 255, 0))])

        frame = np.asarray(surface.compose_frame())

        assert frame.shape == (10, 400, 3)
        assert tuple(frame[0, 0]) == (255, 0, 0)
        assert tuple(frame[0, 399]) == (0, 255, 0)

    def test_negative_offset_shifts_left(self, small_wall_config):
        surface = WallSurface(400, 10, small_wall_config)
        surface.replace_columns([self._column((255, 0, 0)), self._column((0, 255, 0))])
        surface.offset = -150.5

        frame = np.asarray(surface.compose_frame())

        # floor(-150.5) = -151: first column covers x 0..48, second starts at 49
        assert tuple(frame[0, 48]) == (255, 0, 0)
        assert tuple(frame[0, 49]) == (0, 255, 0)
        # Right edge past the last column is background
        assert tuple(frame[0, 399]) == small_wall_config.background_color

    def test_set_offset_pushes_frame(self, small_wall_config, mock_display):
        surface = WallSurface(400, 10, small_wall_config, display=mock_display)
        surface.set_offset(-5.0)

        assert surface.offset == -5.0
        mock_display.update_display.assert_called_once()
        assert mock_display.image.size == (400, 10)

    def test_remove_first_column(self, small_wall_config):
        surface = WallSurface(400, 10, small_wall_config)
        first, second = self._column((1, 1, 1)), self._column((2, 2, 2))
        surface.replace_columns([first, second])

        assert surface.remove_first_column() is first
        assert surface.columns == [second]
        surface.clear()
        assert surface.remove_first_column() is None

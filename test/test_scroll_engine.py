"""
Tests for the scroll engine and frame schedulers.

Tests frame pacing, offset renormalization, column synthesis and
retirement, seam continuity between the initial wall and synthesized
columns, and stop/restart behaviour.
"""

import pytest
from unittest.mock import Mock

from coverwall.wall.scheduler import FrameLoop, SteppedFrameScheduler
from coverwall.wall.scroll_engine import EngineState, ScrollEngine
from coverwall.wall.sequencer import build_sequence
from coverwall.wall.surface import WallSurface
from coverwall.wall.wall_builder import WallBuilder, columns_for_width


@pytest.fixture
def sequence(make_books, make_asset):
    books = make_books([2020, 2020, 2021, 2021, 2021])
    return build_sequence(books, [make_asset(200, 320) for _ in books])


@pytest.fixture
def surface(small_wall_config):
    return WallSurface(600, 900, small_wall_config)


@pytest.fixture
def engine(small_wall_config, packer, pool, surface, stepped_scheduler):
    return ScrollEngine(small_wall_config, packer, pool, surface, stepped_scheduler)


@pytest.fixture
def initial_wall(packer, sequence):
    return WallBuilder(packer).build_wall(sequence, columns_for_width(600, 200), 900)


class TestSteppedFrameScheduler:
    """Test the deterministic scheduler."""

    def test_callbacks_run_once(self):
        scheduler = SteppedFrameScheduler()
        callback = Mock()
        scheduler.request_frame(callback)

        assert scheduler.step(0.5) == 1
        assert scheduler.step(1.0) == 0
        callback.assert_called_once_with(0.5)

    def test_cancel_frame(self):
        scheduler = SteppedFrameScheduler()
        callback = Mock()
        handle = scheduler.request_frame(callback)
        scheduler.cancel_frame(handle)

        scheduler.step()

        callback.assert_not_called()
        assert scheduler.pending_count == 0

    def test_callback_scheduled_during_frame_waits(self):
        scheduler = SteppedFrameScheduler(frame_interval=0.1)
        seen = []

        def tick(timestamp):
            seen.append(timestamp)
            scheduler.request_frame(tick)

        scheduler.request_frame(tick)
        scheduler.step()
        scheduler.step()

        assert seen == pytest.approx([0.1, 0.2])

    def test_advance_steps_frames(self):
        scheduler = SteppedFrameScheduler(frame_interval=0.25)
        assert scheduler.advance(1.0) == 4
        assert scheduler.now() == pytest.approx(1.0)


class TestFrameLoop:
    """Test the real-time frame loop with a fake clock."""

    def _clock(self):
        state = {'now': 0.0}

        def clock():
            return state['now']

        def sleep(seconds):
            state['now'] += seconds

        return state, clock, sleep

    def test_runs_until_nothing_pending(self):
        state, clock, sleep = self._clock()
        loop = FrameLoop(target_fps=10, clock=clock, sleep=sleep)
        remaining = {'count': 3}

        def tick(timestamp):
            remaining['count'] -= 1
            if remaining['count'] > 0:
                loop.request_frame(tick)

        loop.request_frame(tick)
        frames = loop.run()

        assert frames == 3
        assert state['now'] == pytest.approx(0.2)

    def test_duration_bounds_run(self):
        state, clock, sleep = self._clock()
        loop = FrameLoop(target_fps=4, clock=clock, sleep=sleep)

        def tick(timestamp):
            loop.request_frame(tick)

        loop.request_frame(tick)
        frames = loop.run(duration=1.0)

        assert frames == 4
        assert not loop.is_looping

    def test_stop_loop(self):
        state, clock, sleep = self._clock()
        loop = FrameLoop(target_fps=10, clock=clock, sleep=sleep)

        def tick(timestamp):
            loop.request_frame(tick)
            loop.stop_loop()

        loop.request_frame(tick)
        assert loop.run() == 1
        assert loop.pending_count == 1


class TestScrollEngine:
    """Test the scroll animation."""

    def test_start_schedules_first_frame(self, engine, initial_wall, stepped_scheduler):
        engine.start(initial_wall.columns, initial_wall.resume_cursor, 900, initial_wall.sequence)

        assert engine.is_running()
        assert engine.engine_state == EngineState.RUNNING
        assert stepped_scheduler.pending_count == 1
        assert engine.state.offset_pixels == 0.0

    def test_first_frame_does_not_move(self, engine, initial_wall, stepped_scheduler):
        engine.start(initial_wall.columns, initial_wall.resume_cursor, 900, initial_wall.sequence)
        stepped_scheduler.step(10.0)
        assert engine.state.offset_pixels == 0.0

    def test_moves_left_at_configured_speed(self, engine, initial_wall, stepped_scheduler):
        engine.start(initial_wall.columns, initial_wall.resume_cursor, 900, initial_wall.sequence)
        stepped_scheduler.step(1.0)
        stepped_scheduler.step(1.5)
        assert engine.state.offset_pixels == pytest.approx(-50.0)

    def test_long_stall_is_clamped(self, engine, initial_wall, stepped_scheduler, small_wall_config):
        engine.start(initial_wall.columns, initial_wall.resume_cursor, 900, initial_wall.sequence)
        stepped_scheduler.step(1.0)
        stepped_scheduler.step(100.0)
        expected = -small_wall_config.animation_speed * small_wall_config.max_frame_delta
        assert engine.state.offset_pixels == pytest.approx(expected)

    def test_synthesizes_when_viewport_edge_reached(self, engine, initial_wall, stepped_scheduler, surface):
        # 3 x 200px columns exactly cover 600px, so the first frame adds one
        engine.start(initial_wall.columns, initial_wall.resume_cursor, 900, initial_wall.sequence)
        stepped_scheduler.step()

        assert len(engine.state.columns) == 4
        assert len(surface.columns) == 4
        assert engine.state.columns_synthesized == 1

    def test_offset_stays_within_one_column(self, engine, initial_wall, stepped_scheduler, small_wall_config):
        engine.start(initial_wall.columns, initial_wall.resume_cursor, 900, initial_wall.sequence)
        column_width = small_wall_config.column_width

        for _ in range(60 * 12):
            stepped_scheduler.step()
            assert -column_width < engine.state.offset_pixels <= 0

        assert engine.state.columns_retired >= 5

    def test_live_column_count_is_bounded(self, engine, initial_wall, stepped_scheduler):
        engine.start(initial_wall.columns, initial_wall.resume_cursor, 900, initial_wall.sequence)

        for _ in range(60 * 12):
            stepped_scheduler.step()
            assert len(engine.state.columns) <= 5

    def test_seam_continuity(self, engine, initial_wall, stepped_scheduler, packer):
        placed = [entry for column in initial_wall.columns for entry in column.entries]

        original_pack = packer.pack_column

        def recording_pack(*args, **kwargs):
            result = original_pack(*args, **kwargs)
            placed.extend(result.column.entries)
            return result

        packer.pack_column = recording_pack

        engine.start(initial_wall.columns, initial_wall.resume_cursor, 900, initial_wall.sequence)
        for _ in range(60 * 20):
            stepped_scheduler.step()

        sequence = initial_wall.sequence
        assert engine.state.columns_synthesized >= 8
        assert len(placed) == engine.state.cursor
        for position, entry in enumerate(placed):
            assert entry is sequence[position % len(sequence)]

    def test_retired_columns_return_to_pool(self, engine, initial_wall, stepped_scheduler, pool):
        engine.start(initial_wall.columns, initial_wall.resume_cursor, 900, initial_wall.sequence)
        for _ in range(60 * 3):
            stepped_scheduler.step()

        assert engine.state.columns_retired == 1
        assert pool.get_metrics()['column_pool'] + pool.stats['columns_reused'] >= 1

    def test_stop_cancels_pending_frame(self, engine, initial_wall, stepped_scheduler):
        engine.start(initial_wall.columns, initial_wall.resume_cursor, 900, initial_wall.sequence)
        stepped_scheduler.step(1.0)
        stepped_scheduler.step(1.5)
        engine.stop()

        offset = engine.state.offset_pixels
        stepped_scheduler.step(5.0)

        assert not engine.is_running()
        assert stepped_scheduler.pending_count == 0
        assert engine.state.offset_pixels == offset

    def test_tick_after_stop_is_noop(self, engine, initial_wall):
        engine.start(initial_wall.columns, initial_wall.resume_cursor, 900, initial_wall.sequence)
        engine.stop()

        engine._tick(3.0)

        assert engine.state.frames == 0
        assert engine.state.offset_pixels == 0.0

    def test_stop_keeps_columns(self, engine, initial_wall, surface):
        engine.start(initial_wall.columns, initial_wall.resume_cursor, 900, initial_wall.sequence)
        engine.stop()
        assert len(engine.state.columns) == 3
        assert len(surface.columns) == 3

    def test_restart_while_running(self, engine, initial_wall, stepped_scheduler):
        engine.start(initial_wall.columns, initial_wall.resume_cursor, 900, initial_wall.sequence)
        stepped_scheduler.step(1.0)
        stepped_scheduler.step(2.0)

        engine.start(initial_wall.columns, initial_wall.resume_cursor, 900, initial_wall.sequence)

        assert stepped_scheduler.pending_count == 1
        assert engine.state.offset_pixels == 0.0
        assert engine.state.cursor == initial_wall.resume_cursor

    def test_empty_sequence_rejected(self, engine):
        with pytest.raises(ValueError):
            engine.start([], 0, 900, [])
        assert not engine.is_running()

    def test_release_columns_requires_stopped(self, engine, initial_wall, pool):
        engine.start(initial_wall.columns, initial_wall.resume_cursor, 900, initial_wall.sequence)
        with pytest.raises(RuntimeError):
            engine.release_columns()

        engine.stop()
        assert engine.release_columns() == 3
        assert engine.state.columns == []

    def test_frames_pushed_to_display(self, small_wall_config, packer, pool, stepped_scheduler,
                                      initial_wall, mock_display):
        surface = WallSurface(600, 900, small_wall_config, display=mock_display)
        engine = ScrollEngine(small_wall_config, packer, pool, surface, stepped_scheduler)

        engine.start(initial_wall.columns, initial_wall.resume_cursor, 900, initial_wall.sequence)
        stepped_scheduler.step()
        engine.stop()

        assert mock_display.update_display.call_count == 2
        assert mock_display.image.size == (600, 900)
        mock_display.set_scrolling_state.assert_any_call(True)
        mock_display.set_scrolling_state.assert_called_with(False)

    def test_status(self, engine, initial_wall, stepped_scheduler):
        engine.start(initial_wall.columns, initial_wall.resume_cursor, 900, initial_wall.sequence)
        stepped_scheduler.step()

        status = engine.get_status()

        assert status['state'] == 'running'
        assert status['columns'] == 4
        assert status['sequence_length'] == 7
        assert status['frames'] == 1

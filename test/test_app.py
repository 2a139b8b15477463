"""
Tests for the Cover Wall application, the command line entry point, and
the headless display.
"""

import pytest
from unittest.mock import MagicMock, Mock, patch

from PIL import Image

import run
from coverwall.app import EMPTY_SHELF_MESSAGE, CoverWallApp, describe_load_error
from coverwall.display.headless_display import HeadlessDisplay
from coverwall.exceptions import ConfigError, FeedError, InvalidInputError, UpstreamUnavailable
from coverwall.feed.book_data_service import ShelfData
from coverwall.feed.events import ProgressEvent


@pytest.fixture
def app_config(small_wall_config):
    return {
        'timezone': 'UTC',
        'wall': small_wall_config.to_dict(),
        'goodreads': {'user_id': '12345', 'shelf': 'read'},
        'display': {'width': 600, 'height': 900},
    }


@pytest.fixture
def display():
    return HeadlessDisplay(width=600, height=900)


@pytest.fixture
def data_service(make_books):
    service = MagicMock()
    books = make_books([2020, 2021, 2020, 2021, 2021])
    service.fetch_book_data.return_value = ShelfData(items=books, title='Reader: read', pages=1)
    return service


@pytest.fixture
def image_loader(make_asset):
    loader = MagicMock()
    loader.preload_images.side_effect = lambda books: [make_asset(200, 320) for _ in books]
    return loader


@pytest.fixture
def cover_app(app_config, display, stepped_scheduler, data_service, image_loader):
    return CoverWallApp(
        app_config, display=display, scheduler=stepped_scheduler,
        data_service=data_service, image_loader=image_loader
    )


class TestCoverWallApp:
    """Test loading and wall startup."""

    def test_load_sorts_books_by_read_date(self, cover_app, image_loader):
        assert cover_app.load() is True

        years = [book.read_at[:4] for book in cover_app.books]
        assert years == ['2021', '2021', '2021', '2020', '2020']
        image_loader.preload_images.assert_called_once_with(cover_app.books)
        assert cover_app.channel_title == 'Reader: read'

    def test_build_wall_starts_scrolling(self, cover_app, stepped_scheduler, display):
        cover_app.load()

        assert cover_app.build_wall() is True
        assert cover_app.controller.is_running()

        stepped_scheduler.step()
        stepped_scheduler.step()
        assert display.frames_shown >= 3
        assert display.is_scrolling

    def test_empty_shelf(self, cover_app, data_service, display):
        data_service.fetch_book_data.return_value = ShelfData(items=[], title='')
        display.show_message = Mock()

        assert cover_app.load() is False
        assert cover_app.last_error is None
        display.show_message.assert_called_with(EMPTY_SHELF_MESSAGE)

    def test_no_loadable_covers(self, cover_app, image_loader, display):
        image_loader.preload_images.side_effect = lambda books: [None] * len(books)
        cover_app.load()
        display.show_message = Mock()

        assert cover_app.build_wall() is False
        display.show_message.assert_called_once_with(EMPTY_SHELF_MESSAGE)
        assert not cover_app.controller.is_running()

    def test_feed_error_is_reported(self, cover_app, data_service):
        data_service.fetch_book_data.side_effect = UpstreamUnavailable("down")

        assert cover_app.load() is False
        assert cover_app.last_error == 'Network error. Check your connection and try again.'

    def test_run_returns_error_code_on_failed_load(self, cover_app, data_service):
        data_service.fetch_book_data.side_effect = FeedError("HTTP error! status: 400", status_code=400)
        assert cover_app.run() == 1

    def test_run_shuts_down(self, cover_app, data_service, image_loader):
        assert cover_app.run() == 0
        assert not cover_app.controller.is_running()
        data_service.close.assert_called_once()
        image_loader.close.assert_called_once()

    def test_resize_rebuilds_running_wall(self, cover_app, display):
        cover_app.load()
        cover_app.build_wall()

        cover_app.handle_resize(1000, 500)

        assert (display.width, display.height) == (1000, 500)
        assert cover_app.controller.resize_count == 1
        assert len(cover_app.controller.engine.state.columns) == 5

    def test_injected_services_use_app_events(self, cover_app, data_service, image_loader):
        assert data_service.events is cover_app.events
        assert image_loader.events is cover_app.events

    def test_progress_messages(self, cover_app, display):
        display.show_message = Mock()

        cover_app.events.emit(ProgressEvent.CONNECT)
        cover_app.events.emit(ProgressEvent.FETCH_PROGRESS, 100, 1)
        cover_app.events.emit(ProgressEvent.IMAGE_PROGRESS, 3, 1, 10)
        cover_app.events.emit(ProgressEvent.IMAGE_PROGRESS, 9, 1, 10)

        messages = [call.args[0] for call in display.show_message.call_args_list]
        assert messages == ['Connecting to Goodreads...', 'Fetching books: 100', 'Loading covers: 10 / 10']

    def test_invalid_wall_config(self, app_config, display):
        app_config['wall']['column_width'] = 0
        with pytest.raises(ConfigError):
            CoverWallApp(app_config, display=display, data_service=MagicMock(), image_loader=MagicMock())


class TestDescribeLoadError:
    """Test user-facing load error text."""

    def test_authentication(self):
        error = FeedError('Authentication failed - the server rejected the request', status_code=401)
        assert describe_load_error(error) == 'API authentication failed. Server needs to be updated.'

    def test_network(self):
        assert describe_load_error(UpstreamUnavailable('Proxy request failed')).startswith('Network error')

    def test_other(self):
        error = FeedError('HTTP error! status: 418', status_code=418)
        assert describe_load_error(error) == 'Failed to load book data.'


class TestHeadlessDisplay:
    """Test the frame sink."""

    def test_update_counts_frames(self):
        display = HeadlessDisplay(100, 50)
        display.update_display()
        assert display.frames_shown == 1
        assert display.snapshots_written == 0

    def test_snapshots_are_throttled(self, tmp_path):
        clock = Mock(side_effect=[0.0, 0.5, 1.5])
        path = tmp_path / 'frames' / 'wall.png'
        display = HeadlessDisplay(100, 50, snapshot_path=str(path), snapshot_interval=1.0, clock=clock)

        for _ in range(3):
            display.update_display()

        assert display.snapshots_written == 2
        assert Image.open(path).size == (100, 50)

    def test_show_message_draws_text(self):
        display = HeadlessDisplay(200, 60)
        display.show_message('Hello')

        assert display.image.getbbox() is not None
        assert display.frames_shown == 1

    def test_from_config_overrides(self):
        display = HeadlessDisplay.from_config({'display': {'width': 320, 'height': 240}}, width=640, height=None)
        assert (display.width, display.height) == (640, 240)

    def test_resize_clears(self):
        display = HeadlessDisplay(100, 50)
        display.resize(30, 20)
        assert display.image.size == (30, 20)


class TestCommandLine:
    """Test run.py argument handling."""

    def test_rss_url_sets_user_and_shelf(self):
        args = run.parse_args(['--rss-url', 'https://www.goodreads.com/review/list_rss/99?shelf=faves'])
        config = run.apply_overrides({}, args)
        assert config['goodreads'] == {'user_id': '99', 'shelf': 'faves'}

    def test_explicit_flags_win(self):
        args = run.parse_args([
            '--rss-url', 'https://www.goodreads.com/review/list_rss/99',
            '--shelf', 'to-read', '--width', '800', '--snapshot', '/tmp/wall.png'
        ])
        config = run.apply_overrides({'display': {'height': 480}}, args)

        assert config['goodreads']['shelf'] == 'to-read'
        assert config['display'] == {'height': 480, 'width': 800, 'snapshot_path': '/tmp/wall.png'}

    def test_bad_rss_url(self):
        args = run.parse_args(['--rss-url', 'https://example.com/feed'])
        with pytest.raises(InvalidInputError):
            run.apply_overrides({}, args)

    def test_main_requires_user_id(self, tmp_path):
        config_path = tmp_path / 'config.json'
        config_path.write_text('{"goodreads": {"user_id": ""}}')

        assert run.main(['-c', str(config_path)]) == 2

    def test_main_runs_app(self, tmp_path):
        config_path = tmp_path / 'config.json'
        config_path.write_text('{"goodreads": {"user_id": "5"}}')

        with patch.object(run, 'CoverWallApp') as app_cls:
            app_cls.return_value.run.return_value = 0
            assert run.main(['-c', str(config_path), '--duration', '2']) == 0

        app_cls.return_value.run.assert_called_once_with(duration=2.0)

"""
Cover Wall application

Loads a shelf, preloads its covers, builds the wall, and keeps it scrolling
on a frame loop until interrupted or the requested duration has elapsed.
"""

import logging
from typing import Any, Dict, List, Optional

from coverwall.display.headless_display import HeadlessDisplay
from coverwall.exceptions import ConfigError, FeedError
from coverwall.feed.book_data_service import BookDataService, sort_by_read_date
from coverwall.feed.events import ProgressEvent, ProgressEvents
from coverwall.feed.image_loader import ImageLoader
from coverwall.wall.config import WallConfig
from coverwall.wall.controller import CoverWallController
from coverwall.wall.models import BookRecord, VisualAsset
from coverwall.wall.scheduler import FrameLoop, FrameScheduler

logger = logging.getLogger(__name__)

EMPTY_SHELF_MESSAGE = 'No books found.'


def describe_load_error(error: Exception) -> str:
    """User-facing text for a failed shelf load."""
    message = str(error)
    if 'Authentication failed' in message:
        return 'API authentication failed. Server needs to be updated.'
    if isinstance(error, FeedError) and error.status_code is None:
        return 'Network error. Check your connection and try again.'
    return 'Failed to load book data.'


class CoverWallApp:
    """
    Orchestrates shelf loading and the scrolling wall.

    Usage:
        app = CoverWallApp(config)
        app.run(duration=60)
    """

    def __init__(
        self,
        config: Dict[str, Any],
        display: Optional[Any] = None,
        scheduler: Optional[FrameScheduler] = None,
        data_service: Optional[BookDataService] = None,
        image_loader: Optional[ImageLoader] = None
    ):
        """
        Initialize the app.

        Args:
            config: Main configuration dictionary
            display: Display sink; defaults to a HeadlessDisplay from config['display']
            scheduler: Frame scheduler; defaults to a real-time FrameLoop
            data_service: Shelf loader; defaults to one built from config['goodreads']
            image_loader: Cover loader

        Raises:
            ConfigError: If the wall configuration is invalid
        """
        self.config = config
        self.wall_config = WallConfig.from_config(config)
        errors = self.wall_config.validate()
        if errors:
            raise ConfigError("Invalid wall configuration: " + "; ".join(errors), field='wall')

        self.display = display or HeadlessDisplay.from_config(config)
        self.events = ProgressEvents()
        self.events.subscribe(self._on_progress)

        self.scheduler = scheduler or FrameLoop(target_fps=self.wall_config.target_fps)
        self.controller = CoverWallController(
            self.wall_config,
            self.display.width,
            self.display.height,
            display=self.display,
            scheduler=self.scheduler
        )

        self.data_service = data_service or BookDataService.from_config(config, events=self.events)
        if data_service is not None:
            data_service.events = self.events

        goodreads = config.get('goodreads', {})
        self.image_loader = image_loader or ImageLoader(
            events=self.events,
            max_workers=int(goodreads.get('image_workers', 8)),
            timeout=float(goodreads.get('timeout', 10.0))
        )
        if image_loader is not None:
            image_loader.events = self.events

        self.books: List[BookRecord] = []
        self.assets: List[Optional[VisualAsset]] = []
        self.channel_title = ''
        self.last_error: Optional[str] = None

    def _on_progress(self, event: ProgressEvent, *payload: Any) -> None:
        """Mirror loading progress to the log and the display."""
        if event == ProgressEvent.CONNECT:
            self.display.show_message('Connecting to Goodreads...')
        elif event == ProgressEvent.CHANNEL_TITLE:
            self.channel_title = payload[0]
            logger.info("Loading %s", self.channel_title)
        elif event == ProgressEvent.FETCH_PROGRESS:
            count, page = payload
            logger.debug("Fetched page %d (%d books so far)", page, count)
            self.display.show_message(f'Fetching books: {count}')
        elif event == ProgressEvent.FETCH_COMPLETE:
            self.display.show_message(f'{payload[0]} books')
        elif event == ProgressEvent.IMAGE_PROGRESS:
            loaded, failed, total = payload
            done = loaded + failed
            # Redrawing for every cover is wasteful on large shelves
            if total and (done == total or done % 25 == 0):
                self.display.show_message(f'Loading covers: {done} / {total}')

    def load(self) -> bool:
        """
        Load the shelf and its covers.

        Returns:
            True if at least one book was loaded
        """
        try:
            shelf = self.data_service.fetch_book_data()
        except FeedError as e:
            self.last_error = describe_load_error(e)
            logger.error("Failed to load shelf: %s", e)
            self.display.show_message(self.last_error)
            return False

        self.channel_title = shelf.channel_title
        self.books = sort_by_read_date(shelf.items)
        if not self.books:
            self.display.show_message(EMPTY_SHELF_MESSAGE)
            return False

        self.assets = self.image_loader.preload_images(self.books)
        return True

    def build_wall(self) -> bool:
        """
        Render the wall for the loaded books and start scrolling.

        Returns:
            True if the animation started
        """
        result = self.controller.render_wall(self.books, self.assets, self.display.width, self.display.height)
        if result.is_empty:
            logger.warning("No covers could be loaded for %d books", len(self.books))
            self.display.show_message(EMPTY_SHELF_MESSAGE)
            return False

        self.controller.start_animation(result.columns, result.resume_cursor, self.display.height)
        return True

    def handle_resize(self, width: int, height: int) -> None:
        """Resize the display and let the controller rebuild a running wall."""
        self.display.resize(width, height)
        self.controller.handle_resize(width, height)

    def run(self, duration: Optional[float] = None) -> int:
        """
        Load, build, and scroll.

        Args:
            duration: Seconds to scroll for; None runs until interrupted

        Returns:
            Process exit code
        """
        if not self.load():
            return 1 if self.last_error else 0
        if not self.build_wall():
            return 0

        logger.info("Scrolling %d books from %s", len(self.books), self.channel_title or 'shelf')
        try:
            if isinstance(self.scheduler, FrameLoop):
                self.scheduler.run(duration=duration)
        except KeyboardInterrupt:
            logger.info("Interrupted, stopping wall")
        finally:
            self.shutdown()
        return 0

    def shutdown(self) -> None:
        self.controller.destroy()
        self.data_service.close()
        self.image_loader.close()
        logger.info("Cover wall shut down")

"""
Image Loader

Downloads cover images for a shelf in parallel and decodes them with Pillow.
The result list always matches the input order and length; the wall never
sees a partially loaded list.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from io import BytesIO
from typing import List, Optional, Sequence

import requests
from PIL import Image, UnidentifiedImageError

from coverwall.exceptions import ImageLoadError
from coverwall.feed.events import ProgressEvent, ProgressEvents
from coverwall.feed.goodreads_client import USER_AGENT
from coverwall.wall.models import BookRecord, VisualAsset

logger = logging.getLogger(__name__)


class ImageLoader:
    """Parallel cover preloader with progress reporting."""

    def __init__(
        self,
        events: Optional[ProgressEvents] = None,
        session: Optional[requests.Session] = None,
        max_workers: int = 8,
        timeout: float = 10.0
    ):
        """
        Initialize the loader.

        Args:
            events: Channel image_progress events are emitted on
            session: Optional HTTP session
            max_workers: Concurrent downloads
            timeout: Seconds per image request
        """
        self.events = events or ProgressEvents()
        self.session = session or requests.Session()
        self.session.headers.update({'User-Agent': USER_AGENT})
        self.max_workers = max(1, max_workers)
        self.timeout = timeout

    def load_image(self, url: str) -> VisualAsset:
        """
        Download and decode one image.

        Raises:
            ImageLoadError: On transport errors, non-2xx status, undecodable data
                or images over Pillow's decompression bomb limit
        """
        try:
            response = self.session.get(url, timeout=self.timeout)
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            raise ImageLoadError(f"Download failed: {e.__class__.__name__}", image_url=url) from e

        try:
            image = Image.open(BytesIO(response.content))
            image.load()
        except Image.DecompressionBombError as e:
            raise ImageLoadError("Image too large to decode", image_url=url) from e
        except (UnidentifiedImageError, OSError, ValueError) as e:
            raise ImageLoadError("Could not decode image", image_url=url) from e

        if image.mode != 'RGB':
            image = image.convert('RGB')
        return VisualAsset(image=image, source_url=url)

    def _try_load(self, url: str) -> Optional[VisualAsset]:
        try:
            return self.load_image(url)
        except ImageLoadError as e:
            logger.debug("Cover failed to load: %s", e)
            return None

    def preload_images(self, books: Sequence[BookRecord]) -> List[Optional[VisualAsset]]:
        """
        Load every cover.

        Books without an image URL count as loaded and get a None slot.
        Failed downloads count as failed and also get a None slot.

        Returns:
            One entry per book, in the same order
        """
        total = len(books)
        assets: List[Optional[VisualAsset]] = [None] * total
        if total == 0:
            self.events.emit(ProgressEvent.IMAGE_PROGRESS, 0, 0, 0)
            return assets

        loaded = 0
        failed = 0

        pending = {}
        for index, book in enumerate(books):
            if not book.image_url:
                loaded += 1
                self.events.emit(ProgressEvent.IMAGE_PROGRESS, loaded, failed, total)
            else:
                pending[index] = book.image_url

        if pending:
            with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="CoverLoader") as executor:
                future_to_index = {
                    executor.submit(self._try_load, url): index
                    for index, url in pending.items()
                }

                for future in as_completed(future_to_index):
                    asset = future.result()
                    if asset is None:
                        failed += 1
                    else:
                        loaded += 1
                        assets[future_to_index[future]] = asset
                    self.events.emit(ProgressEvent.IMAGE_PROGRESS, loaded, failed, total)

        logger.info("Cover preload complete: %d loaded, %d failed, %d total", loaded, failed, total)
        return assets

    def close(self) -> None:
        self.session.close()

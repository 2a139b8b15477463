"""
Book Data Service

Loads a whole shelf page by page, either through the proxy endpoint or
straight from Goodreads, and reports progress on a ProgressEvents channel.
"""

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

import requests

from coverwall.exceptions import FeedError, UpstreamTimeout, UpstreamUnavailable
from coverwall.feed.events import ProgressEvent, ProgressEvents
from coverwall.feed.goodreads_client import DEFAULT_TIMEOUT, GoodreadsFeedClient
from coverwall.wall.models import BookRecord
from coverwall.wall.sequencer import parse_read_date

logger = logging.getLogger(__name__)

DEFAULT_MAX_PAGES = 20
DEFAULT_PAGE_DELAY = 0.1

HTTP_ERROR_MESSAGES = {
    401: 'Authentication failed - the server rejected the request',
    403: 'Access forbidden - check API permissions',
    500: 'Server error - please try again later',
}


def create_http_error(status: int, url: Optional[str] = None) -> FeedError:
    """Map a failed proxy response status to a FeedError."""
    message = HTTP_ERROR_MESSAGES.get(status, f'HTTP error! status: {status}')
    if status == 504:
        return UpstreamTimeout(message, url=url, status_code=status)
    if status == 502:
        return UpstreamUnavailable(message, url=url, status_code=status)
    return FeedError(message, url=url, status_code=status)


def _read_timestamp(record: BookRecord) -> Optional[float]:
    parsed = parse_read_date(record.read_at)
    if parsed is None:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def sort_by_read_date(records: Sequence[BookRecord]) -> List[BookRecord]:
    """
    Order books most recently read first.

    Books without a usable read date go last, keeping their feed order.
    """
    dated = []
    undated = []
    for record in records:
        stamp = _read_timestamp(record)
        if stamp is None:
            undated.append(record)
        else:
            dated.append((stamp, record))

    dated.sort(key=lambda pair: pair[0], reverse=True)
    return [record for _, record in dated] + undated


@dataclass
class ShelfData:
    """Everything loaded for one shelf."""
    items: List[BookRecord] = field(default_factory=list)
    title: str = ''
    pages: int = 0

    @property
    def total(self) -> int:
        return len(self.items)

    @property
    def channel_title(self) -> str:
        return self.title or 'Book Collection'


class BookDataService:
    """
    Fetches every page of a shelf.

    With ``api_base_url`` set, pages come from the proxy endpoint; otherwise
    the Goodreads feed is read directly through a GoodreadsFeedClient.
    """

    def __init__(
        self,
        user_id: str,
        shelf: str = 'read',
        key: Optional[str] = None,
        api_base_url: Optional[str] = None,
        events: Optional[ProgressEvents] = None,
        feed_client: Optional[GoodreadsFeedClient] = None,
        session: Optional[requests.Session] = None,
        max_pages: int = DEFAULT_MAX_PAGES,
        page_delay: float = DEFAULT_PAGE_DELAY,
        timeout: float = DEFAULT_TIMEOUT,
        sleep: Callable[[float], None] = time.sleep
    ):
        self.user_id = str(user_id)
        self.shelf = shelf or 'read'
        self.key = key
        self.api_base_url = api_base_url
        self.events = events or ProgressEvents()
        self.max_pages = max_pages
        self.page_delay = page_delay
        self.timeout = timeout
        self._sleep = sleep

        self.feed_client = feed_client
        if api_base_url is None and self.feed_client is None:
            self.feed_client = GoodreadsFeedClient(timeout=timeout)
        self.session = session or requests.Session()

        self.shelf_data: Optional[ShelfData] = None

    @classmethod
    def from_config(cls, config: Dict[str, Any], **kwargs: Any) -> 'BookDataService':
        """
        Create the service from the main configuration dictionary.

        Args:
            config: Main config dict (expects config['goodreads'])
            **kwargs: Overrides passed straight to the constructor
        """
        goodreads = config.get('goodreads', {})
        options = {
            'user_id': goodreads.get('user_id', ''),
            'shelf': goodreads.get('shelf', 'read'),
            'key': goodreads.get('key') or None,
            'api_base_url': goodreads.get('api_base_url') or None,
            'max_pages': int(goodreads.get('max_pages', DEFAULT_MAX_PAGES)),
            'page_delay': float(goodreads.get('page_delay', DEFAULT_PAGE_DELAY)),
            'timeout': float(goodreads.get('timeout', DEFAULT_TIMEOUT)),
        }
        options.update(kwargs)
        return cls(**options)

    def _fetch_proxy_page(self, page: int) -> Dict[str, Any]:
        params = {'userId': self.user_id, 'shelf': self.shelf, 'page': page}
        if self.key:
            params['key'] = self.key

        try:
            response = self.session.get(self.api_base_url, params=params, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise UpstreamTimeout("Proxy request timed out", url=self.api_base_url) from e
        except requests.exceptions.RequestException as e:
            raise UpstreamUnavailable(
                f"Proxy request failed: {e.__class__.__name__}", url=self.api_base_url
            ) from e

        if not response.ok:
            raise create_http_error(response.status_code, url=self.api_base_url)

        try:
            return response.json()
        except ValueError as e:
            raise FeedError("Proxy returned invalid JSON", url=self.api_base_url) from e

    def _fetch_page(self, page: int) -> Dict[str, Any]:
        if self.api_base_url:
            return self._fetch_proxy_page(page)
        return self.feed_client.fetch_page(self.user_id, self.shelf, page, self.key).to_dict()

    def fetch_book_data(self) -> ShelfData:
        """
        Load every page of the shelf.

        Returns:
            ShelfData in feed order

        Raises:
            FeedError: If any page fails; pages fetched so far are discarded
        """
        self.events.emit(ProgressEvent.CONNECT)
        self.events.emit(ProgressEvent.FETCH)

        items: List[BookRecord] = []
        title = ''
        page = 1
        has_more = True

        while has_more and page <= self.max_pages:
            page_data = self._fetch_page(page)

            items.extend(BookRecord.from_feed_item(raw) for raw in page_data.get('items') or [])
            title = page_data.get('title') or title

            if page == 1 and title:
                self.events.emit(ProgressEvent.CHANNEL_TITLE, title)
            self.events.emit(ProgressEvent.FETCH_PROGRESS, len(items), page)

            has_more = bool(page_data.get('hasMore'))
            page += 1

            if has_more and page <= self.max_pages and self.page_delay > 0:
                self._sleep(self.page_delay)

        if has_more:
            logger.warning("Stopped after %d pages; shelf %s has more books", self.max_pages, self.shelf)

        self.events.emit(ProgressEvent.FETCH_COMPLETE, len(items))
        logger.info("Loaded %d books from shelf %s (%d pages)", len(items), self.shelf, page - 1)

        self.shelf_data = ShelfData(items=items, title=title, pages=page - 1)
        return self.shelf_data

    def get_book_count(self) -> int:
        return self.shelf_data.total if self.shelf_data else 0

    def close(self) -> None:
        self.session.close()
        if self.feed_client is not None:
            self.feed_client.close()

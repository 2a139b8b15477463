"""
Goodreads shelf feed client

Fetches one page of a user's shelf RSS feed and converts it into the JSON
item shape the proxy serves and the wall consumes.
"""

import logging
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from coverwall.exceptions import FeedParseError, UpstreamTimeout, UpstreamUnavailable

logger = logging.getLogger(__name__)

GOODREADS_RSS_BASE = "https://www.goodreads.com/review/list_rss"
USER_AGENT = "Cover-Flow-App/1.0"
DEFAULT_TIMEOUT = 10.0
# Goodreads serves at most this many items per feed page
PAGE_SIZE = 100


@dataclass
class FeedPage:
    """One parsed page of a shelf feed."""
    page: int
    title: str
    items: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def has_more(self) -> bool:
        return len(self.items) == PAGE_SIZE

    def to_dict(self) -> Dict[str, Any]:
        return {
            'page': self.page,
            'items': self.items,
            'title': self.title,
            'hasMore': self.has_more,
        }


def _child_text(element: ET.Element, tag: str) -> str:
    child = element.find(tag)
    if child is None or child.text is None:
        return ''
    return child.text.strip()


def _to_int(value: str) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def parse_feed(xml_text: str, page: int = 1) -> FeedPage:
    """
    Parse shelf RSS into a FeedPage.

    Args:
        xml_text: Raw RSS document
        page: Page number the document was fetched for

    Returns:
        FeedPage; a feed without a channel or items yields an empty page

    Raises:
        FeedParseError: If the document is not well-formed XML
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise FeedParseError(f"Malformed feed XML: {e}", context={'page': page}) from e

    channel = root.find('channel')
    if channel is None:
        return FeedPage(page=page, title='', items=[])

    items = []
    for raw in channel.findall('item'):
        items.append({
            'book_id': _to_int(_child_text(raw, 'book_id')),
            'title': _child_text(raw, 'title'),
            'author_name': _child_text(raw, 'author_name'),
            'image_url': _child_text(raw, 'book_large_image_url'),
            'read_at': _child_text(raw, 'user_read_at') or None,
            'date_added': _child_text(raw, 'user_date_added') or _child_text(raw, 'date_added') or None,
        })

    return FeedPage(page=page, title=_child_text(channel, 'title'), items=items)


def build_feed_url(user_id: str, shelf: str = 'read', page: int = 1, key: Optional[str] = None) -> str:
    """Build the upstream shelf RSS URL (without query encoding surprises)."""
    params = {'shelf': shelf, 'sort': 'date_read', 'page': str(page)}
    if key:
        params['key'] = key
    return requests.Request('GET', f"{GOODREADS_RSS_BASE}/{user_id}", params=params).prepare().url


class GoodreadsFeedClient:
    """HTTP client for Goodreads shelf feeds."""

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, session: Optional[requests.Session] = None):
        """
        Initialize the client.

        Args:
            timeout: Seconds to wait for Goodreads per request
            session: Optional pre-configured session
        """
        self.timeout = timeout
        self.session = session or requests.Session()
        if session is None:
            # Connection failures are retried; an answered request never is
            retry_strategy = Retry(total=2, connect=2, read=0, status=0, backoff_factor=0.5)
            adapter = HTTPAdapter(max_retries=retry_strategy)
            self.session.mount("http://", adapter)
            self.session.mount("https://", adapter)
        self.session.headers.update({'User-Agent': USER_AGENT})

    def fetch_page(self, user_id: str, shelf: str = 'read', page: int = 1, key: Optional[str] = None) -> FeedPage:
        """
        Fetch and parse one shelf page.

        Raises:
            UpstreamTimeout: Goodreads did not answer in time
            UpstreamUnavailable: Transport error or non-2xx status
            FeedParseError: Response body is not valid XML
        """
        url = build_feed_url(user_id, shelf, page, key)
        # The access key must not end up in logs
        safe_url = build_feed_url(user_id, shelf, page)

        logger.debug("Fetching shelf feed %s", safe_url)
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.exceptions.Timeout as e:
            raise UpstreamTimeout("Goodreads request timed out", url=safe_url) from e
        except requests.exceptions.RequestException as e:
            raise UpstreamUnavailable(f"Goodreads request failed: {e.__class__.__name__}", url=safe_url) from e

        if not response.ok:
            raise UpstreamUnavailable(
                f"Goodreads returned {response.status_code}",
                url=safe_url,
                status_code=response.status_code
            )

        feed_page = parse_feed(response.text, page=page)
        logger.info(
            "Fetched shelf %s page %d for user %s: %d items",
            shelf, page, user_id, len(feed_page.items)
        )
        return feed_page

    def close(self) -> None:
        self.session.close()

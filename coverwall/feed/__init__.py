"""Shelf loading: Goodreads feed client, book data service, cover loader, progress events."""

from coverwall.feed.events import ProgressEvent, ProgressEvents
from coverwall.feed.goodreads_client import FeedPage, GoodreadsFeedClient, parse_feed
from coverwall.feed.book_data_service import BookDataService, ShelfData, sort_by_read_date
from coverwall.feed.image_loader import ImageLoader
from coverwall.feed.rss_url import parse_goodreads_rss_url

__all__ = [
    'ProgressEvent',
    'ProgressEvents',
    'FeedPage',
    'GoodreadsFeedClient',
    'parse_feed',
    'BookDataService',
    'ShelfData',
    'sort_by_read_date',
    'ImageLoader',
    'parse_goodreads_rss_url',
]

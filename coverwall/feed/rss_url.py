"""Goodreads RSS feed URL parsing."""

import re
from typing import Tuple
from urllib.parse import parse_qs, urlsplit

from coverwall.exceptions import InvalidInputError

_LIST_RSS_PATH = re.compile(r'/review/list_rss/([0-9]+)')


def parse_goodreads_rss_url(url: str) -> Tuple[str, str]:
    """
    Extract the user id and shelf from a shelf RSS URL.

    Example:
        https://www.goodreads.com/review/list_rss/12345?shelf=to-read -> ('12345', 'to-read')

    Raises:
        InvalidInputError: If the URL is not a Goodreads shelf feed URL
    """
    text = (url or '').strip()
    if not text:
        raise InvalidInputError('Please enter a Goodreads RSS feed URL', parameter='url')

    try:
        parts = urlsplit(text)
        hostname = parts.hostname
    except ValueError as e:
        raise InvalidInputError('Please enter a valid URL', parameter='url') from e

    if not parts.scheme or not hostname:
        raise InvalidInputError('Please enter a valid URL', parameter='url')

    if 'goodreads.com' not in hostname:
        raise InvalidInputError('Please enter a valid Goodreads RSS feed URL', parameter='url')

    match = _LIST_RSS_PATH.search(parts.path)
    if not match:
        raise InvalidInputError(
            'Invalid Goodreads RSS URL format. Expected: /review/list_rss/{userId}',
            parameter='url'
        )

    shelf = parse_qs(parts.query).get('shelf', [''])[0] or 'read'
    return match.group(1), shelf

"""
Item Sequencer

Turns an ordered list of (book, cover) pairs into the flat sequence the
column packer walks: book entries, with a year divider inserted in front of
the first book of every read-year.
"""

import logging
from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import List, Optional, Sequence, Tuple, TYPE_CHECKING

import pytz

from coverwall.wall.models import BookItem, BookRecord, SequenceEntry, VisualAsset, YearDivider

if TYPE_CHECKING:
    from coverwall.wall.resource_pool import ResourcePool

logger = logging.getLogger(__name__)

_DATE_ONLY_FORMATS = ('%Y-%m-%d', '%Y/%m/%d', '%Y-%m', '%Y')


def parse_read_date(value: Optional[str]) -> Optional[datetime]:
    """
    Parse a feed date string.

    Accepts RFC 822 (``Sat, 13 Jan 2024 00:00:00 -0800`` as found in the
    Goodreads RSS feed), ISO 8601, and bare dates.

    Returns:
        datetime (naive or aware) or None if the value can't be parsed
    """
    if not value or not isinstance(value, str):
        return None

    text = value.strip()
    if not text:
        return None

    try:
        return parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError):
        pass

    try:
        return datetime.fromisoformat(text.replace('Z', '+00:00'))
    except ValueError:
        pass

    for fmt in _DATE_ONLY_FORMATS:
        try:
            return datetime.strptime(text, fmt)
        except ValueError:
            continue

    return None


def extract_year(record: BookRecord, timezone: str = 'UTC') -> Optional[int]:
    """
    Extract the read-year from a book record.

    Aware datetimes are converted to ``timezone`` first so a book finished
    late on New Year's Eve lands in the year the reader saw it.

    Returns:
        Year as int, or None for missing/unparseable read dates
    """
    parsed = parse_read_date(record.read_at)
    if parsed is None:
        if record.read_at:
            logger.debug("Unparseable read_at for %r: %r", record.title, record.read_at)
        return None

    if parsed.tzinfo is not None:
        try:
            parsed = parsed.astimezone(pytz.timezone(timezone))
        except pytz.UnknownTimeZoneError:
            logger.warning("Unknown timezone %r, using the date's own offset", timezone)

    return parsed.year


def build_sequence(
    books: Sequence[BookRecord],
    assets: Sequence[Optional[VisualAsset]],
    timezone: str = 'UTC'
) -> List[SequenceEntry]:
    """
    Build the flat entry sequence.

    Positions without an asset are skipped entirely. A null read-year does not
    reset the last emitted year, so ``[2021, None, 2021]`` yields one divider.

    Args:
        books: Book records in display order (already sorted by the caller)
        assets: Cover assets, same length and order as ``books``; None = absent
        timezone: Display timezone used for year extraction

    Returns:
        Ordered list of YearDivider and BookItem entries
    """
    entries: List[SequenceEntry] = []
    last_year: Optional[int] = None

    for index, record in enumerate(books):
        asset = assets[index] if index < len(assets) else None
        if asset is None:
            continue

        year = extract_year(record, timezone)
        if year is not None and year != last_year:
            entries.append(YearDivider(year))
            last_year = year

        entries.append(BookItem(record=record, asset=asset, source_index=index))

    return entries


class ItemSequencer:
    """
    Memoizing wrapper around :func:`build_sequence`.

    The memo key is only ``(len(books), len(assets))``. Book lists are rebuilt
    wholesale whenever shelf data changes, never mutated in place, and the
    pool's cleanup pass drops the memo together with the geometry cache.
    """

    def __init__(self, pool: 'ResourcePool', timezone: str = 'UTC'):
        self.pool = pool
        self.timezone = timezone

    def sequence_for(
        self,
        books: Sequence[BookRecord],
        assets: Sequence[Optional[VisualAsset]]
    ) -> List[SequenceEntry]:
        """Return the (possibly memoized) sequence for ``books``/``assets``."""
        key: Tuple[str, int, int] = ('items', len(books), len(assets))
        cached = self.pool.get_geometry(key)
        if cached is not None:
            return cached

        entries = build_sequence(books, assets, self.timezone)
        self.pool.put_geometry(key, entries)

        divider_count = sum(1 for entry in entries if isinstance(entry, YearDivider))
        logger.info(
            "Built sequence: %d entries (%d books, %d dividers) from %d records",
            len(entries), len(entries) - divider_count, divider_count, len(books)
        )
        return entries

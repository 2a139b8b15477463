"""
Cover Wall data model.

Book records come from the shelf feed, visual assets from the image loader.
The sequencer turns both into a flat list of ``SequenceEntry`` values which
the packer lays out into ``Column`` objects.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union, TYPE_CHECKING

from PIL import Image

if TYPE_CHECKING:
    from coverwall.wall.visuals import ColumnContainer


@dataclass(frozen=True)
class BookRecord:
    """One book from a shelf feed. Immutable once loaded."""
    id: int
    title: str
    author: str
    image_url: str = ''
    read_at: Optional[str] = None
    added_at: Optional[str] = None

    @classmethod
    def from_feed_item(cls, item: Dict[str, Any]) -> 'BookRecord':
        """
        Build a record from a proxy/feed item dictionary.

        Args:
            item: Dict with book_id, title, author_name, image_url, read_at, date_added

        Returns:
            BookRecord instance
        """
        try:
            book_id = int(item.get('book_id') or 0)
        except (TypeError, ValueError):
            book_id = 0

        return cls(
            id=book_id,
            title=str(item.get('title') or ''),
            author=str(item.get('author_name') or ''),
            image_url=str(item.get('image_url') or ''),
            read_at=item.get('read_at') or None,
            added_at=item.get('date_added') or None,
        )


@dataclass
class VisualAsset:
    """A successfully loaded cover image with its intrinsic size."""
    image: Image.Image
    source_url: str = ''

    @property
    def width(self) -> int:
        return self.image.width

    @property
    def height(self) -> int:
        return self.image.height


@dataclass(frozen=True)
class YearDivider:
    """Marks the transition to a new read-year."""
    year: int

    @property
    def kind(self) -> str:
        return 'year-divider'


@dataclass(frozen=True, eq=False)
class BookItem:
    """A book cover placed in the flat sequence."""
    record: BookRecord
    asset: VisualAsset
    source_index: int

    @property
    def kind(self) -> str:
        return 'book'


SequenceEntry = Union[YearDivider, BookItem]


@dataclass
class Column:
    """
    One column of the wall.

    The container is exclusively owned by whoever holds the column: the scroll
    engine while it is on screen, the resource pool once it is retired.
    """
    container: 'ColumnContainer'
    accumulated_height: float = 0.0
    entries: List[SequenceEntry] = field(default_factory=list)
    start_cursor: int = 0

    @property
    def entry_count(self) -> int:
        return len(self.entries)

    def reset(self) -> None:
        """Clear content so the column can be reused from the pool."""
        self.container.clear()
        self.accumulated_height = 0.0
        self.entries = []
        self.start_cursor = 0


@dataclass
class PackResult:
    """Result of packing one column."""
    column: Column
    next_cursor: int
    wraps: int = 0
    underfull: bool = False


@dataclass
class WallBuildResult:
    """Initial wall state produced by the wall builder."""
    columns: List[Column]
    resume_cursor: int
    sequence: List[SequenceEntry]

    @property
    def is_empty(self) -> bool:
        return not self.sequence


@dataclass
class ScrollState:
    """Mutable animation state for one running wall."""
    offset_pixels: float = 0.0
    columns: List[Column] = field(default_factory=list)
    last_frame_timestamp: Optional[float] = None
    cursor: int = 0
    sequence: List[SequenceEntry] = field(default_factory=list)
    viewport_height: int = 0
    started_at: float = field(default_factory=time.time)
    frames: int = 0
    columns_synthesized: int = 0
    columns_retired: int = 0

    def wall_width(self, column_width: int) -> int:
        """Total width of all live columns."""
        return len(self.columns) * column_width

"""
Pytest configuration and fixtures for Cover Wall tests.

Provides wall configuration, synthetic books and cover assets, a
deterministic frame scheduler, and mocked display/HTTP collaborators.
"""

import pytest
import sys
from io import BytesIO
from pathlib import Path
from unittest.mock import MagicMock, Mock
from typing import Dict, Any, List, Optional

from PIL import Image

# Add project root to path
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from coverwall.wall.config import WallConfig
from coverwall.wall.models import BookRecord, VisualAsset
from coverwall.wall.resource_pool import ResourcePool
from coverwall.wall.column_packer import ColumnPacker
from coverwall.wall.scheduler import SteppedFrameScheduler


@pytest.fixture
def wall_config():
    """Wall config with the default geometry."""
    return WallConfig()


@pytest.fixture
def small_wall_config():
    """
    Geometry used by the end-to-end scenarios: 200px columns, 320px max
    cover height, 80px dividers, fast enough to retire columns in seconds.
    """
    return WallConfig(
        column_width=200,
        max_image_height=320,
        year_tag_height=60,
        year_tag_margin=20,
        animation_speed=100.0,
        target_fps=60,
    )


@pytest.fixture
def make_asset():
    """Factory for solid-colour cover assets."""
    def _make(width: int = 200, height: int = 320, color=(120, 80, 40), url: str = '') -> VisualAsset:
        return VisualAsset(image=Image.new('RGB', (width, height), color), source_url=url)
    return _make


@pytest.fixture
def make_books():
    """Factory for book records with the given read years (None = unread/undated)."""
    def _make(years: List[Optional[int]], with_images: bool = True) -> List[BookRecord]:
        books = []
        for index, year in enumerate(years):
            books.append(BookRecord(
                id=1000 + index,
                title=f"Book {index}",
                author=f"Author {index}",
                image_url=f"https://images.example.com/{index}.jpg" if with_images else '',
                read_at=f"{year}-06-15" if year is not None else None,
            ))
        return books
    return _make


@pytest.fixture
def pool(small_wall_config):
    return ResourcePool(small_wall_config)


@pytest.fixture
def packer(small_wall_config, pool):
    return ColumnPacker(small_wall_config, pool)


@pytest.fixture
def stepped_scheduler():
    """Deterministic 60 FPS scheduler starting at t=0."""
    return SteppedFrameScheduler(start_time=0.0, frame_interval=1.0 / 60)


@pytest.fixture
def mock_display():
    """Create a mock display sink for testing."""
    mock = MagicMock()
    mock.width = 600
    mock.height = 900
    mock.update_display = Mock()
    mock.set_scrolling_state = Mock()
    mock.show_message = Mock()
    return mock


@pytest.fixture
def png_bytes():
    """Encoded PNG cover image."""
    def _make(width: int = 100, height: int = 150, color=(10, 20, 30)) -> bytes:
        buffer = BytesIO()
        Image.new('RGB', (width, height), color).save(buffer, format='PNG')
        return buffer.getvalue()
    return _make


@pytest.fixture
def make_response():
    """Factory for mocked requests responses."""
    def _make(status_code: int = 200, text: str = '', content: bytes = b'', json_data: Optional[Dict[str, Any]] = None):
        response = MagicMock()
        response.status_code = status_code
        response.ok = 200 <= status_code < 300
        response.text = text
        response.content = content
        if json_data is not None:
            response.json.return_value = json_data
        else:
            response.json.side_effect = ValueError("No JSON")

        def raise_for_status():
            if not response.ok:
                import requests
                raise requests.exceptions.HTTPError(f"{status_code} Error")
        response.raise_for_status = Mock(side_effect=raise_for_status)
        return response
    return _make


def build_rss(items: List[Dict[str, Any]], title: str = "Reader's bookshelf: read") -> str:
    """Render a minimal Goodreads shelf RSS document."""
    parts = ['<?xml version="1.0"?>', '<rss version="2.0">', '<channel>', f'<title><![CDATA[{title}]]></title>']
    for item in items:
        parts.append('<item>')
        for key, value in item.items():
            parts.append(f'<{key}><![CDATA[{value}]]></{key}>')
        parts.append('</item>')
    parts.extend(['</channel>', '</rss>'])
    return '\n'.join(parts)


@pytest.fixture
def rss_document():
    """Factory for shelf RSS documents with ``count`` generated items."""
    def _make(count: int = 3, title: str = "Reader's bookshelf: read") -> str:
        items = []
        for index in range(count):
            items.append({
                'book_id': str(5000 + index),
                'title': f'Title {index}',
                'author_name': f'Writer {index}',
                'book_large_image_url': f'https://images.example.com/large/{index}.jpg',
                'user_read_at': 'Sat, 13 Jan 2024 00:00:00 -0800',
                'user_date_added': 'Mon, 01 Jan 2024 10:00:00 -0800',
            })
        return build_rss(items, title=title)
    return _make


@pytest.fixture(autouse=True)
def reset_logging():
    """Reset logging configuration before each test."""
    import logging
    logging.root.handlers = []
    logging.root.setLevel(logging.WARNING)
    yield
    logging.root.handlers = []
    logging.root.setLevel(logging.WARNING)

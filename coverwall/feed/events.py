"""
Progress events emitted while a shelf is loaded.

Listeners are plain callables taking ``(event, *payload)``. Payloads:

- connect, fetch: none
- channel_title: (title,)
- fetch_progress: (books_so_far, page)
- fetch_complete: (total_books,)
- image_progress: (loaded, failed, total)
"""

import logging
import threading
from enum import Enum
from typing import Any, Callable, List, Union

logger = logging.getLogger(__name__)


class ProgressEvent(str, Enum):
    CONNECT = "connect"
    FETCH = "fetch"
    CHANNEL_TITLE = "channel_title"
    FETCH_PROGRESS = "fetch_progress"
    FETCH_COMPLETE = "fetch_complete"
    IMAGE_PROGRESS = "image_progress"


ProgressListener = Callable[..., None]


class ProgressEvents:
    """Observer channel for loading progress."""

    def __init__(self) -> None:
        self._listeners: List[ProgressListener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: ProgressListener) -> ProgressListener:
        """Register ``listener``. Returns it so this can be used as a decorator."""
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)
        return listener

    def unsubscribe(self, listener: ProgressListener) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def emit(self, event: Union[ProgressEvent, str], *payload: Any) -> None:
        """
        Deliver ``event`` to every listener in subscription order.

        A listener that raises is logged and skipped; the others still run.
        """
        event = ProgressEvent(event)
        with self._lock:
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(event, *payload)
            except Exception:
                logger.exception("Progress listener %r failed on %s", listener, event.value)

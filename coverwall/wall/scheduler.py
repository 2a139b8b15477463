"""
Frame scheduling

The scroll engine never loops on its own: it asks a scheduler for "the next
frame" and the scheduler calls back with a timestamp. Exactly one callback
runs at a time and the next one is only requested by the callback itself,
so ticks are strictly sequential.

- FrameLoop: real-time cooperative loop paced with ``time.sleep``
- SteppedFrameScheduler: driven by explicit timestamps (offline renders, tests)
"""

import logging
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

FrameCallback = Callable[[float], None]


class FrameScheduler(ABC):
    """Host-side "call me on the next display refresh" service."""

    def __init__(self) -> None:
        self._pending: Dict[int, FrameCallback] = {}
        self._next_handle = 1

    def request_frame(self, callback: FrameCallback) -> int:
        """
        Schedule ``callback`` for the next frame.

        Returns:
            Handle that can be passed to :meth:`cancel_frame`
        """
        handle = self._next_handle
        self._next_handle += 1
        self._pending[handle] = callback
        return handle

    def cancel_frame(self, handle: Optional[int]) -> None:
        """Cancel a scheduled callback. Unknown or already-run handles are ignored."""
        if handle is not None:
            self._pending.pop(handle, None)

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def _run_pending(self, timestamp: float) -> int:
        """Run every callback scheduled so far; callbacks they schedule wait for the next frame."""
        callbacks = list(self._pending.values())
        self._pending.clear()
        for callback in callbacks:
            callback(timestamp)
        return len(callbacks)

    @abstractmethod
    def now(self) -> float:
        """Current scheduler time in seconds."""


class FrameLoop(FrameScheduler):
    """
    Real-time frame loop.

    Runs in the calling thread until nothing is scheduled, ``duration``
    elapses, or :meth:`stop_loop` is called. Frames that fall behind are
    dropped rather than replayed.
    """

    def __init__(
        self,
        target_fps: int = 60,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep
    ):
        super().__init__()
        self.frame_interval = 1.0 / max(1, target_fps)
        self._clock = clock
        self._sleep = sleep
        self._running = False
        self.frames_run = 0

    def now(self) -> float:
        return self._clock()

    def run(self, duration: Optional[float] = None) -> int:
        """
        Pump frames.

        Args:
            duration: Seconds to run for, or None to run until stopped

        Returns:
            Number of frames run
        """
        self._running = True
        start = self._clock()
        next_frame = start
        frames = 0

        logger.debug("Frame loop started at %.1f FPS", 1.0 / self.frame_interval)
        try:
            while self._running and self._pending:
                now = self._clock()
                if now < next_frame:
                    self._sleep(next_frame - now)
                    now = self._clock()

                if duration is not None and now - start >= duration:
                    break

                self._run_pending(now)
                frames += 1

                next_frame += self.frame_interval
                if next_frame < now:
                    next_frame = now
        finally:
            self._running = False
            self.frames_run += frames

        logger.debug("Frame loop exited after %d frames", frames)
        return frames

    def stop_loop(self) -> None:
        """Make :meth:`run` return after the current frame."""
        self._running = False

    @property
    def is_looping(self) -> bool:
        return self._running


class SteppedFrameScheduler(FrameScheduler):
    """Deterministic scheduler: frames run only when stepped explicitly."""

    def __init__(self, start_time: float = 0.0, frame_interval: float = 1.0 / 60):
        super().__init__()
        self.current_time = start_time
        self.frame_interval = frame_interval

    def now(self) -> float:
        return self.current_time

    def step(self, timestamp: Optional[float] = None) -> int:
        """
        Run one frame.

        Args:
            timestamp: Frame time; defaults to one frame interval after the last

        Returns:
            Number of callbacks that ran
        """
        if timestamp is None:
            timestamp = self.current_time + self.frame_interval
        self.current_time = timestamp
        return self._run_pending(timestamp)

    def advance(self, seconds: float) -> int:
        """
        Run frames at ``frame_interval`` spacing covering ``seconds``.

        Returns:
            Number of frames stepped
        """
        frames = max(1, int(round(seconds / self.frame_interval)))
        for _ in range(frames):
            self.step()
        return frames

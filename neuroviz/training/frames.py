"""Frame callbacks on the running asyncio loop."""

from __future__ import annotations

import asyncio
from typing import Callable, Optional

FrameCallback = Callable[[float], None]

DISPLAY_REFRESH_INTERVAL = 1.0 / 60.0


class FrameScheduler:
    """Approximately periodic, cancellable callbacks.

    At most one frame is pending at a time: requesting a frame while one is
    already scheduled does nothing, so ticks missed by a slow consumer are
    dropped rather than queued.  Callbacks receive the loop's monotonic time
    in seconds.
    """

    def __init__(self, frame_interval: float = DISPLAY_REFRESH_INTERVAL) -> None:
        if frame_interval < 0:
            raise ValueError("frame_interval must be >= 0")
        self.frame_interval = frame_interval
        self._handle: Optional[asyncio.TimerHandle] = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def request(self, callback: FrameCallback) -> None:
        if self._handle is not None:
            return
        loop = asyncio.get_running_loop()
        self._handle = loop.call_later(self.frame_interval, self._fire, loop, callback)

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self, loop: asyncio.AbstractEventLoop, callback: FrameCallback) -> None:
        self._handle = None
        callback(loop.time())


__all__ = ["DISPLAY_REFRESH_INTERVAL", "FrameCallback", "FrameScheduler"]

import asyncio
import time

from poolsync.logging import logger

WINDOW_SECONDS = 1.0


class RequestThrottle:
    """
    Limit the rate of external calls to `limit` units per one second window. A limit of 0 disables
    throttling.

    A single instance is shared by every task of one sync invocation. The lock guards only the
    counter bookkeeping and the wait for a new window; it is never held across the throttled call.
    """

    def __init__(self, limit: int) -> None:
        self.limit = max(limit, 0)
        self.requests_per_window = 0
        self.window_start = time.monotonic()
        self._lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return self.limit > 0

    async def increment_or_sleep(self, inc: int = 1) -> None:
        """
        Count `inc` units against the current window. If the window has elapsed it is reset first.
        If the units would exceed the limit within the open window, wait for the window to end and
        start a new one.
        """

        if not self.enabled:
            return

        async with self._lock:
            elapsed = time.monotonic() - self.window_start

            if elapsed >= WINDOW_SECONDS:
                self._reset_window()
            elif self.requests_per_window + inc > self.limit:
                logger.debug(f"Throttle limit {self.limit} reached, sleeping {1 - elapsed:.3f}s")
                await asyncio.sleep(WINDOW_SECONDS - elapsed)
                self._reset_window()

            self.requests_per_window += inc

    def _reset_window(self) -> None:
        self.requests_per_window = 0
        self.window_start = time.monotonic()

"""Fixed-window rate limiter for the per-minute request budget."""

from __future__ import annotations

import logging
import time
from threading import Lock

from books_api.models import RateWindow

logger = logging.getLogger(__name__)

WINDOW_SECONDS = 60.0


class FixedWindowRateLimiter:
    """Blocks the caller once `limit` requests were made in the current minute.

    The window opens on the first request and resets on the first request
    made more than WINDOW_SECONDS after it opened. A burst of `limit`
    requests right after a reset goes through without waiting; the next one
    sleeps out the remainder of the window. The sleep is not cancellable.
    """

    def __init__(self, limit: int) -> None:
        """Initialize the limiter.

        Args:
            limit: Requests allowed per window. Zero or negative disables limiting.
        """
        self._window = RateWindow(limit=limit)
        self._lock = Lock()

    @property
    def enabled(self) -> bool:
        return self._window.limit > 0

    @property
    def window(self) -> RateWindow:
        """Snapshot of the current window state."""
        with self._lock:
            return self._window.model_copy()

    def acquire(self) -> None:
        """Wait if necessary, then account for one request."""
        if not self.enabled:
            return

        with self._lock:
            window = self._window
            now = time.monotonic()

            if window.window_start is None or now - window.window_start > WINDOW_SECONDS:
                window.window_start = now
                window.requests_in_window = 1
                return

            elapsed = now - window.window_start
            if window.requests_in_window >= window.limit:
                sleep_time = WINDOW_SECONDS - elapsed
                logger.info(
                    "Rate limit of %d requests/minute reached, sleeping %.1fs",
                    window.limit,
                    sleep_time,
                )
                time.sleep(sleep_time)

            window.requests_in_window += 1

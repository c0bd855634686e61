import logging
import threading
import time
from collections import deque
from typing import Callable

logger = logging.getLogger(__name__)


class _Window:
    """Request timestamps for one client, oldest first."""

    __slots__ = ("lock", "hits")

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.hits: deque[float] = deque()


class SlidingWindowRateLimiter:
    """
    In-memory sliding-window limiter keyed by client identity.

    Each identity owns its own lock, so ``should_limit`` is check-and-record
    atomic per identity while unrelated identities never wait on each other.
    The registry lock is held only long enough to look up or create a window.

    Expired timestamps are evicted lazily on the next check for the same
    identity; there is no background sweep, so windows for clients that
    stop sending requests stay in memory for the life of the process.

    One instance is built per application in ``create_app`` and reached by
    handlers through ``request.app.state.comment_limiter``.
    """

    def __init__(
        self,
        window_seconds: float,
        max_requests: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        self._window_seconds = float(window_seconds)
        self._max_requests = max_requests
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._registry_lock = threading.Lock()

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    @property
    def max_requests(self) -> int:
        return self._max_requests

    @property
    def tracked_identities(self) -> int:
        """Number of identities with a window in memory."""
        with self._registry_lock:
            return len(self._windows)

    def _window_for(self, identity: str) -> _Window:
        with self._registry_lock:
            window = self._windows.get(identity)
            if window is None:
                window = self._windows[identity] = _Window()
            return window

    def should_limit(self, identity: str) -> bool:
        """
        Return True when *identity* has used up its quota for the window.

        A rejected call is not recorded, so a client that keeps retrying
        regains access once its oldest admitted request leaves the window.
        """
        window = self._window_for(identity)
        with window.lock:
            now = self._clock()
            hits = window.hits
            while hits and now - hits[0] >= self._window_seconds:
                hits.popleft()

            if len(hits) >= self._max_requests:
                logger.warning(
                    "Rate limit exceeded for %s (%d requests in %.0fs)",
                    identity, len(hits), self._window_seconds,
                )
                return True

            hits.append(now)
            return False

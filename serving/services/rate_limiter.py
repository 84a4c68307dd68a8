"""
Rate Limiter: fixed window per user.

The first request in a window opens it (count=1, reset_at=now+window); later
requests increment the count and are rejected once count reaches the max.
Once now > reset_at the next request opens a fresh window.
"""

import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from .locks import KeyedLocks

logger = logging.getLogger(__name__)


@dataclass
class RateLimitWindow:
    user_id: str
    count: int
    reset_at: float


class RateLimiter:
    """Per-user fixed-window limiter; users never contend with each other."""

    def __init__(
        self,
        window_seconds: float = 60,
        max_requests: int = 100,
        clock: Callable[[], float] = time.monotonic,
    ):
        if window_seconds <= 0:
            raise ValueError(f"window_seconds must be positive: {window_seconds}")
        if max_requests < 1:
            raise ValueError(f"max_requests must be at least 1: {max_requests}")
        self.window_seconds = window_seconds
        self.max_requests = max_requests
        self._clock = clock
        self._windows: Dict[str, RateLimitWindow] = {}
        self._locks = KeyedLocks()
        # Guards structural changes to the window map made by the sweep.
        self._map_lock = threading.Lock()

    def check(self, user_id: str) -> Tuple[bool, Optional[float]]:
        """
        Count one request for the user.

        Returns (allowed, reset_at) where reset_at is when the current window ends.
        """
        now = self._clock()
        with self._locks.get(user_id):
            window = self._windows.get(user_id)
            if window is None or now > window.reset_at:
                window = RateLimitWindow(user_id=user_id, count=1, reset_at=now + self.window_seconds)
                with self._map_lock:
                    self._windows[user_id] = window
                return True, window.reset_at
            if window.count >= self.max_requests:
                return False, window.reset_at
            window.count += 1
            return True, window.reset_at

    def allow(self, user_id: str) -> bool:
        allowed, _ = self.check(user_id)
        return allowed

    def sweep(self) -> int:
        """Purge windows whose reset_at has passed. Returns how many were removed."""
        now = self._clock()
        stale = [uid for uid, w in list(self._windows.items()) if now > w.reset_at]
        removed = 0
        for user_id in stale:
            with self._locks.get(user_id):
                window = self._windows.get(user_id)
                if window is not None and now > window.reset_at:
                    with self._map_lock:
                        del self._windows[user_id]
                    removed += 1
        if removed:
            logger.info("[rate-limit] Swept %d expired windows", removed)
        return removed

    def window_for(self, user_id: str) -> Optional[RateLimitWindow]:
        return self._windows.get(user_id)

    def __len__(self) -> int:
        return len(self._windows)

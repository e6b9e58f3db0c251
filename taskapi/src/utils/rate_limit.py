import math
import time
from collections import namedtuple
from threading import Lock

from flask import request


RateLimitResult = namedtuple('RateLimitResult', ['allowed', 'limit', 'remaining', 'retry_after'])


class FixedWindowRateLimiter:
    """
    In-memory fixed-window counter.

    Windows are aligned on multiples of window_seconds, so every key shares
    the same boundaries. Counters are read and incremented under one lock.
    """

    # Drop stale windows every N calls
    PURGE_EVERY = 1000

    def __init__(self, clock=time.time):
        self._clock = clock
        self._counters = {}  # (key, window_seconds) -> (window_index, count)
        self._lock = Lock()
        self._calls = 0

    def check_and_increment(self, key: str, limit: int, window_seconds: int) -> RateLimitResult:
        if window_seconds <= 0:
            raise ValueError('window_seconds must be positive')

        now = self._clock()
        window = int(now // window_seconds)
        window_end = (window + 1) * window_seconds
        counter_key = (key, window_seconds)

        with self._lock:
            self._calls += 1
            if self._calls % self.PURGE_EVERY == 0:
                self._purge(now)

            current_window, count = self._counters.get(counter_key, (window, 0))
            if current_window != window:
                count = 0

            if count >= limit:
                retry_after = max(1, math.ceil(window_end - now))
                self._counters[counter_key] = (window, count)
                return RateLimitResult(False, limit, 0, retry_after)

            count += 1
            self._counters[counter_key] = (window, count)
            return RateLimitResult(True, limit, max(0, limit - count), 0)

    def reset(self, key=None):
        """Forget counters for one key, or all of them."""
        with self._lock:
            if key is None:
                self._counters.clear()
                return
            for counter_key in [k for k in self._counters if k[0] == key]:
                del self._counters[counter_key]

    def _purge(self, now):
        for counter_key, (window, _count) in list(self._counters.items()):
            if window != int(now // counter_key[1]):
                del self._counters[counter_key]


def get_client_identifier() -> str:
    """
    Client IP as seen by the WSGI server.

    X-Forwarded-For is only trusted when create_app wraps the app in
    ProxyFix (PROXY_FIX_X_FOR > 0), which rewrites remote_addr.
    """
    return request.remote_addr or 'unknown'

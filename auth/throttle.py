"""
auth/throttle.py -- Server-side lockout after repeated failed logins.

A client address that fails LOGIN_MAX_FAILURES times within
LOGIN_LOCKOUT_SECONDS is refused until the oldest failure leaves the window.
A successful login clears the counter, so only consecutive failures count.

This sits alongside the slowapi request budget on POST /api/auth/login: the
budget caps all attempts, the throttle caps failures. Both are built on the
limits package; the throttle uses a moving window so a burst of failures
cannot be reset by waiting for a fixed window boundary.
"""

import time

from limits import RateLimitItemPerSecond
from limits.storage import MemoryStorage
from limits.strategies import MovingWindowRateLimiter

_NAMESPACE = "login-failures"


class LoginThrottle:
    def __init__(self, max_failures: int = 5, window_seconds: int = 300) -> None:
        self._item = RateLimitItemPerSecond(max_failures, window_seconds)
        self._storage = MemoryStorage()
        self._limiter = MovingWindowRateLimiter(self._storage)

    def is_blocked(self, client_key: str) -> bool:
        """Return True if client_key has used up its failure budget."""
        return not self._limiter.test(self._item, _NAMESPACE, client_key)

    def record_failure(self, client_key: str) -> None:
        self._limiter.hit(self._item, _NAMESPACE, client_key)

    def record_success(self, client_key: str) -> None:
        self._limiter.clear(self._item, _NAMESPACE, client_key)

    def retry_after(self, client_key: str) -> int:
        """Seconds until client_key may try again (at least 1)."""
        reset_time, _remaining = self._limiter.get_window_stats(self._item, _NAMESPACE, client_key)
        return max(1, int(reset_time - time.time()))

    def reset(self) -> None:
        self._storage.reset()

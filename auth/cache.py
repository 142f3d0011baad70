"""
auth/cache.py -- Bounded TTL cache for session validation results.

Usage:
    cache = ValidationCache(ttl=300, max_entries=100)
    hit = cache.get(fingerprint)     # True / False, or None on miss/expiry
    cache.set(fingerprint, True)

One instance belongs to one AuthGate; nothing here is module-global, so tests
build their own and drive time through the clock argument.

Entries are evicted lazily: an expired entry is dropped when it is read, and
when a write pushes the size over max_entries, expired entries go first and
then the oldest ones until the bound holds. A credential revoked while cached
keeps its cached answer until the entry expires; the gate caps each entry at
the expiry of the token it was computed for, so a cached answer never
outlives the token.
"""

import threading
import time
from collections import OrderedDict
from typing import Callable, Optional

_DEFAULT_TTL = 5 * 60  # 5 minutes in seconds
_DEFAULT_MAX_ENTRIES = 100


class ValidationCache:
    def __init__(
        self,
        ttl: float = _DEFAULT_TTL,
        max_entries: int = _DEFAULT_MAX_ENTRIES,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock
        # key -> (value, expires_at); insertion order doubles as age order
        self._entries: OrderedDict[str, tuple[bool, float]] = OrderedDict()
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[bool]:
        """Return the cached result for key, or None if absent or expired."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at <= now:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: bool, max_age: Optional[float] = None) -> None:
        """Store value for key with a fresh TTL, then enforce the size bound.

        max_age shortens the lifetime below ttl, e.g. to the remaining life of
        the credential the answer was computed for. A max_age <= 0 stores nothing.
        """
        lifetime = self.ttl if max_age is None else min(self.ttl, max_age)
        now = self._clock()
        with self._lock:
            self._entries.pop(key, None)
            if lifetime <= 0:
                return
            self._entries[key] = (value, now + lifetime)
            if len(self._entries) > self.max_entries:
                self._evict(now)

    def _evict(self, now: float) -> None:
        expired = [k for k, (_, expires_at) in self._entries.items() if expires_at <= now]
        for k in expired:
            del self._entries[k]
        while len(self._entries) > self.max_entries:
            self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

# src/tasker/core/expiring.py

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Generic, TypeVar

V = TypeVar("V")


class ExpiringStore(Generic[V]):
    """
    In-memory key -> value map where every entry carries its own expiry.

    Expired entries are dropped lazily on access; purge_expired() sweeps the
    rest. Meant to be injected wherever short-lived state (reset codes,
    one-time tokens) is needed, one instance per use.
    """

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._items: dict[str, tuple[V, float]] = {}
        self._lock = threading.Lock()

    def set(self, key: str, value: V, ttl_seconds: float) -> None:
        expires_at = self._clock() + max(0.0, float(ttl_seconds))
        with self._lock:
            self._items[key] = (value, expires_at)

    def get(self, key: str) -> V | None:
        with self._lock:
            item = self._items.get(key)
            if item is None:
                return None
            value, expires_at = item
            if self._clock() >= expires_at:
                del self._items[key]
                return None
            return value

    def pop(self, key: str) -> V | None:
        with self._lock:
            item = self._items.pop(key, None)
        if item is None:
            return None
        value, expires_at = item
        return value if self._clock() < expires_at else None

    def purge_expired(self) -> int:
        now = self._clock()
        with self._lock:
            dead = [k for k, (_, exp) in self._items.items() if now >= exp]
            for k in dead:
                del self._items[k]
        return len(dead)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        self.purge_expired()
        with self._lock:
            return len(self._items)

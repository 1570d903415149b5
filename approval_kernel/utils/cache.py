"""
Read-through cache for system configuration values.

Role holders are read on almost every routing decision and change rarely,
so lookups are served from an in-process dict.  Writers evict synchronously
after flushing: a single key on ``update_value``, the whole cache on bulk
updates.

Thread safety: all access goes through one lock.  The loader runs outside
the lock, so two threads missing the same key may both load it.  Every
invalidation bumps a generation counter, and a loaded value is stored only
if no invalidation happened since the miss; a load that raced a writer is
returned to its caller but never cached.
"""

from __future__ import annotations

import threading
from typing import Callable, Generic, TypeVar

V = TypeVar("V")

_MISSING = object()


class RoleHolderCache(Generic[V]):
    """Thread-safe key/value cache with explicit invalidation."""

    def __init__(self) -> None:
        self._values: dict[str, V] = {}
        self._generation = 0
        self._lock = threading.Lock()

    def get(self, key: str) -> V | None:
        with self._lock:
            return self._values.get(key)

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._values

    def __len__(self) -> int:
        with self._lock:
            return len(self._values)

    def get_or_load(self, key: str, loader: Callable[[str], V]) -> V:
        """Return the cached value for ``key``, loading and storing it on a miss."""
        with self._lock:
            value = self._values.get(key, _MISSING)
            generation = self._generation
        if value is not _MISSING:
            return value  # type: ignore[return-value]

        loaded = loader(key)
        with self._lock:
            if self._generation == generation:
                self._values[key] = loaded
        return loaded

    def put(self, key: str, value: V) -> None:
        with self._lock:
            self._values[key] = value

    def invalidate(self, key: str) -> None:
        with self._lock:
            self._generation += 1
            self._values.pop(key, None)

    def invalidate_all(self) -> None:
        with self._lock:
            self._generation += 1
            self._values.clear()

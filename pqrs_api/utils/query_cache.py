from __future__ import annotations

import json
import threading
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from typing import Any, Dict, Mapping, Optional, Tuple


def cache_key(params: Mapping[str, Any]) -> str:
    """Stable key: parameters sorted by name, JSON encoded."""
    return json.dumps({k: params[k] for k in sorted(params)}, ensure_ascii=False, default=str)


class QueryCache(ABC):
    """
    Expiring key -> value cache for read-heavy queries.

    Expiry is checked on read. `now` is injectable so callers (and tests)
    control the clock. A multi-process deployment needs a shared backend
    behind this interface; the memory one is only visible to its process.
    """

    @abstractmethod
    def get(self, key: str, now: Optional[float] = None) -> Optional[Any]:
        ...

    @abstractmethod
    def put(self, key: str, value: Any, ttl: float, now: Optional[float] = None) -> None:
        ...

    @abstractmethod
    def purge_expired(self, now: Optional[float] = None) -> int:
        ...

    @abstractmethod
    def clear(self) -> None:
        ...


class MemoryQueryCache(QueryCache):
    """Process-local implementation, bounded like an LRU. Thread safe."""

    def __init__(self, capacity: int = 1024) -> None:
        if capacity <= 0:
            raise ValueError("MemoryQueryCache capacity must be > 0")
        self.capacity = int(capacity)
        # key -> (expires_at, value)
        self._store: "OrderedDict[str, Tuple[float, Any]]" = OrderedDict()
        # sync handlers share this instance across threadpool workers
        self._lock = threading.Lock()

    def get(self, key: str, now: Optional[float] = None) -> Optional[Any]:
        now = time.monotonic() if now is None else now
        with self._lock:
            entry = self._store.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if now >= expires_at:
                self._store.pop(key, None)
                return None
            self._store.move_to_end(key)
            return value

    def put(self, key: str, value: Any, ttl: float, now: Optional[float] = None) -> None:
        now = time.monotonic() if now is None else now
        with self._lock:
            self._store.pop(key, None)
            self._store[key] = (now + ttl, value)
            if len(self._store) > self.capacity:
                self._store.popitem(last=False)

    def purge_expired(self, now: Optional[float] = None) -> int:
        now = time.monotonic() if now is None else now
        with self._lock:
            expired = [k for k, (expires_at, _) in self._store.items() if now >= expires_at]
            for k in expired:
                self._store.pop(k, None)
            return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._store.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._store)

    def snapshot(self) -> Dict[str, float]:
        """key -> expires_at, for diagnostics."""
        with self._lock:
            return {k: exp for k, (exp, _) in self._store.items()}

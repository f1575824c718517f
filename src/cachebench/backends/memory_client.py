"""
In-process cache client.

Implements the CacheClient contract over a dict so the whole battery can run
without servers (`cachebench run --dry-run`, unit tests).
"""

import threading
import time
from typing import Any, Dict, Mapping, Optional, Sequence

from cachebench.backends.base import CacheClient


class InMemoryClient(CacheClient):
    """Thread-safe dict-backed cache with TTL support."""

    def __init__(self, name: str = "InMemory"):
        self._name = name
        self._data: Dict[str, Any] = {}
        self._expires: Dict[str, float] = {}
        self._lock = threading.Lock()
        self.closed = False

    @property
    def name(self) -> str:
        return self._name

    def _live(self, key: str) -> bool:
        deadline = self._expires.get(key)
        if deadline is not None and time.monotonic() >= deadline:
            self._data.pop(key, None)
            self._expires.pop(key, None)
            return False
        return key in self._data

    def set(self, key: str, value: Any, ttl: int = 0) -> bool:
        with self._lock:
            self._data[key] = value
            if ttl > 0:
                self._expires[key] = time.monotonic() + ttl
            else:
                self._expires.pop(key, None)
        return True

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            return self._data[key] if self._live(key) else None

    def delete(self, key: str) -> bool:
        with self._lock:
            self._expires.pop(key, None)
            return self._data.pop(key, None) is not None

    def exists(self, key: str) -> bool:
        with self._lock:
            return self._live(key)

    def mset(self, items: Mapping[str, Any]) -> bool:
        with self._lock:
            for key, value in items.items():
                self._data[key] = value
                self._expires.pop(key, None)
        return True

    def mget(self, keys: Sequence[str]) -> Dict[str, Any]:
        with self._lock:
            return {k: self._data[k] for k in keys if self._live(k)}

    def flushall(self) -> bool:
        with self._lock:
            self._data.clear()
            self._expires.clear()
        return True

    def ping(self) -> bool:
        return not self.closed

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "backend": self._name,
                "keys": len(self._data),
                "keys_with_ttl": len(self._expires),
            }

    def close(self) -> None:
        self.closed = True


__all__ = ["InMemoryClient"]

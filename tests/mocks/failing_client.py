"""
Clients whose calls raise, for exercising the adapter's error path.
"""

from typing import Any, Dict, Mapping, Optional, Sequence

from cachebench.backends import CacheClient, InMemoryClient


class FailingClient(CacheClient):
    """Every operation raises ConnectionResetError."""

    def __init__(self, name: str = "Broken"):
        self._name = name
        self.calls = 0

    @property
    def name(self) -> str:
        return self._name

    def _fail(self, *args, **kwargs):
        self.calls += 1
        raise ConnectionResetError("connection reset by peer")

    def set(self, key: str, value: Any, ttl: int = 0) -> bool:
        return self._fail()

    def get(self, key: str) -> Optional[Any]:
        return self._fail()

    def delete(self, key: str) -> bool:
        return self._fail()

    def exists(self, key: str) -> bool:
        return self._fail()

    def mset(self, items: Mapping[str, Any]) -> bool:
        return self._fail()

    def mget(self, keys: Sequence[str]) -> Dict[str, Any]:
        return self._fail()

    def flushall(self) -> bool:
        return self._fail()

    def ping(self) -> bool:
        return self._fail()

    def stats(self) -> Dict[str, Any]:
        return self._fail()

    def close(self) -> None:
        pass


class FlakyClient(InMemoryClient):
    """In-memory client whose set() fails on every `fail_every`-th call."""

    def __init__(self, name: str = "Flaky", fail_every: int = 2):
        super().__init__(name)
        self.fail_every = fail_every
        self.set_calls = 0

    def set(self, key: str, value: Any, ttl: int = 0) -> bool:
        self.set_calls += 1
        if self.set_calls % self.fail_every == 0:
            raise TimeoutError("timed out")
        return super().set(key, value, ttl)

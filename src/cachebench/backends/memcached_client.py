"""
Memcached connection for the benchmark adapter.

Uses pymemcache's PooledClient, which is safe to share between threads.
"""

from typing import Any, Dict, Mapping, Optional, Sequence

from loguru import logger
from pymemcache.client.base import PooledClient
from pymemcache.exceptions import MemcacheError

from cachebench.backends.base import CacheClient
from cachebench.config import MemcachedConfig
from cachebench.exceptions import BackendConnectionError


class MemcachedClient(CacheClient):
    """Memcached-compatible backend."""

    def __init__(
        self,
        config: MemcachedConfig,
        max_connections: int = 10,
        client: Optional[PooledClient] = None,
    ):
        self.config = config
        if client is not None:
            self._client = client
        else:
            self._client = PooledClient(
                (config.host, config.port),
                connect_timeout=config.timeout,
                timeout=config.timeout,
                no_delay=True,
                max_pool_size=max_connections,
            )
        self._connect()

    def _connect(self) -> None:
        # pymemcache connects lazily; force a round trip now.
        try:
            self._client.version()
        except (MemcacheError, OSError) as e:
            raise BackendConnectionError(
                self.name,
                f"cannot reach {self.config.host}:{self.config.port}: {e}",
                context={"host": self.config.host, "port": self.config.port},
            )
        logger.info(
            f"Memcached connection established ({self.config.host}:{self.config.port}, "
            f"weight={self.config.weight})"
        )

    @property
    def name(self) -> str:
        return "Memcached"

    def set(self, key: str, value: Any, ttl: int = 0) -> bool:
        return bool(self._client.set(key, value, expire=ttl, noreply=False))

    def get(self, key: str) -> Optional[Any]:
        return self._client.get(key)

    def delete(self, key: str) -> bool:
        return bool(self._client.delete(key, noreply=False))

    def exists(self, key: str) -> bool:
        return self._client.get(key) is not None

    def mset(self, items: Mapping[str, Any]) -> bool:
        if not items:
            return True
        failed = self._client.set_many(dict(items), noreply=False)
        return not failed

    def mget(self, keys: Sequence[str]) -> Dict[str, Any]:
        if not keys:
            return {}
        return self._client.get_many(list(keys))

    def flushall(self) -> bool:
        return bool(self._client.flush_all(noreply=False))

    def ping(self) -> bool:
        return bool(self._client.version())

    def stats(self) -> Dict[str, Any]:
        raw = self._client.stats()
        return {
            (k.decode() if isinstance(k, bytes) else k): (v.decode() if isinstance(v, bytes) else v)
            for k, v in raw.items()
        }

    def close(self) -> None:
        self._client.close()


__all__ = ["MemcachedClient"]

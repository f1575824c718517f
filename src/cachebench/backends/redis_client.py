"""
Redis connection for the benchmark adapter.

Uses the synchronous redis-py client; its connection pool makes one client
safe to share between the concurrency-sweep worker threads.
"""

from typing import Any, Dict, Mapping, Optional, Sequence

import redis
from loguru import logger

from cachebench.backends.base import CacheClient
from cachebench.config import RedisConfig
from cachebench.exceptions import BackendConnectionError


class RedisClient(CacheClient):
    """Redis-compatible backend. Keys are namespaced with `key_prefix`."""

    def __init__(
        self,
        config: RedisConfig,
        max_connections: int = 10,
        client: Optional[redis.Redis] = None,
    ):
        self.config = config
        self.prefix = config.key_prefix
        if client is not None:
            self._client = client
        else:
            # Worker threads wait for a free connection instead of failing.
            pool = redis.BlockingConnectionPool(
                host=config.host,
                port=config.port,
                db=config.database,
                password=config.password or None,
                socket_connect_timeout=config.timeout,
                socket_timeout=config.timeout,
                max_connections=max_connections,
                timeout=config.timeout,
            )
            self._client = redis.Redis(connection_pool=pool)
        self._connect()

    def _connect(self) -> None:
        try:
            self._client.ping()
        except redis.AuthenticationError as e:
            raise BackendConnectionError(self.name, f"authentication failed: {e}")
        except redis.RedisError as e:
            raise BackendConnectionError(
                self.name,
                f"cannot reach {self.config.host}:{self.config.port}: {e}",
                context={"host": self.config.host, "port": self.config.port},
            )
        logger.info(f"Redis connection established ({self.config.host}:{self.config.port}, db={self.config.database})")

    @property
    def name(self) -> str:
        return "Redis"

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def set(self, key: str, value: Any, ttl: int = 0) -> bool:
        if ttl > 0:
            return bool(self._client.setex(self._key(key), ttl, value))
        return bool(self._client.set(self._key(key), value))

    def get(self, key: str) -> Optional[Any]:
        return self._client.get(self._key(key))

    def delete(self, key: str) -> bool:
        return self._client.delete(self._key(key)) > 0

    def exists(self, key: str) -> bool:
        return self._client.exists(self._key(key)) > 0

    def mset(self, items: Mapping[str, Any]) -> bool:
        if not items:
            return True
        return bool(self._client.mset({self._key(k): v for k, v in items.items()}))

    def mget(self, keys: Sequence[str]) -> Dict[str, Any]:
        if not keys:
            return {}
        values = self._client.mget([self._key(k) for k in keys])
        return {k: v for k, v in zip(keys, values) if v is not None}

    def flushall(self) -> bool:
        # Only the selected logical database is flushed.
        return bool(self._client.flushdb())

    def ping(self) -> bool:
        return bool(self._client.ping())

    def stats(self) -> Dict[str, Any]:
        return dict(self._client.info())

    def close(self) -> None:
        self._client.close()


__all__ = ["RedisClient"]

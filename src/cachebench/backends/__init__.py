"""
Cache backends and the capability adapter.
"""

from typing import List

from loguru import logger

from cachebench.backends.base import CacheAdapter, CacheClient, OperationOutcome, warmup_count
from cachebench.backends.memcached_client import MemcachedClient
from cachebench.backends.memory_client import InMemoryClient
from cachebench.backends.redis_client import RedisClient
from cachebench.config import BenchConfig
from cachebench.exceptions import BackendConnectionError


def connect_adapters(
    config: BenchConfig,
    dry_run: bool = False,
    min_pool_size: int = 0,
) -> List[CacheAdapter]:
    """
    Build one adapter per backend, Redis first.

    Each client pool holds max(concurrent_connections, min_pool_size)
    connections. With dry_run, in-process stubs named after the real
    backends are used.

    Raises:
        BackendConnectionError: If a backend is unreachable. Adapters opened
            before the failure are closed.
    """
    warmup_cap = config.benchmark.warmup_iterations
    if dry_run:
        logger.info("Dry run: using in-memory backends")
        return [
            CacheAdapter(InMemoryClient("Redis"), warmup_cap=warmup_cap),
            CacheAdapter(InMemoryClient("Memcached"), warmup_cap=warmup_cap),
        ]

    pool_size = max(config.benchmark.concurrent_connections, min_pool_size)
    adapters: List[CacheAdapter] = []
    try:
        for factory in (
            lambda: RedisClient(config.redis, max_connections=pool_size),
            lambda: MemcachedClient(config.memcached, max_connections=pool_size),
        ):
            adapters.append(CacheAdapter(factory(), warmup_cap=warmup_cap))
    except BackendConnectionError as e:
        logger.error(f"Failed to connect: {e}")
        for adapter in adapters:
            adapter.close()
        raise
    return adapters


__all__ = [
    "CacheAdapter",
    "CacheClient",
    "InMemoryClient",
    "MemcachedClient",
    "RedisClient",
    "OperationOutcome",
    "connect_adapters",
    "warmup_count",
]

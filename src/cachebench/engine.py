"""
Benchmark engine.

Drives every adapter through a fixed battery of scenarios, one timed run at
a time, and accumulates one BenchmarkResult per (scenario, backend).
"""

from __future__ import annotations

import uuid
from typing import List, Sequence

from loguru import logger

from cachebench.backends import CacheAdapter, connect_adapters
from cachebench.config import BenchConfig
from cachebench.models import Action, BenchmarkResult, Scenario
from cachebench.statistics import READ, WRITE, generate_mixed_workload, generate_payload

# 64 B .. 1 MiB, factor 4
DATA_SIZES = (64, 256, 1024, 4096, 16384, 65536, 262144, 1048576)
CONCURRENCY_LEVELS = (1, 5, 10, 25, 50, 100)
BULK_BATCH_SIZES = (10, 50, 100, 500)
DEFAULT_VALUE_SIZE = 1024


def unique_key(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex}"


class BenchmarkEngine:
    """
    Runs the scenario battery against a set of adapters.

    Battery order:
    1. Basic SET/GET for the small, medium and large payload sizes
    2. SET across the 64 B .. 1 MiB size sweep
    3. Concurrent SET at each concurrency level
    4. 80/20 mixed read/write workload
    5. Bulk set/get for each batch size
    6. SET with a TTL

    Results accumulate across calls to run_all(); nothing is reset.
    cleanup() must be called once by the owner, after reporting.
    """

    def __init__(self, config: BenchConfig, adapters: Sequence[CacheAdapter]):
        if not adapters:
            raise ValueError("BenchmarkEngine needs at least one adapter")
        self.config = config
        self.adapters: List[CacheAdapter] = list(adapters)
        self._results: List[BenchmarkResult] = []

    @classmethod
    def from_config(cls, config: BenchConfig, dry_run: bool = False) -> "BenchmarkEngine":
        """
        Connect to both backends. Raises BackendConnectionError.

        Pools are sized for the widest concurrency level so sweep workers
        never run out of connections.
        """
        adapters = connect_adapters(
            config, dry_run=dry_run, min_pool_size=max(CONCURRENCY_LEVELS)
        )
        return cls(config, adapters)

    @property
    def iterations(self) -> int:
        return self.config.benchmark.iterations

    @property
    def results(self) -> List[BenchmarkResult]:
        return list(self._results)

    def run_all(self) -> List[BenchmarkResult]:
        logger.info(
            f"Starting benchmark suite: {len(self.adapters)} backends, "
            f"{self.iterations} iterations per scenario"
        )
        self.run_basic_operations()
        self.run_data_size_sweep()
        self.run_concurrency_sweep()
        self.run_mixed_workload()
        self.run_bulk_operations()
        self.run_expiration()
        logger.info(f"All benchmarks completed: {len(self._results)} results")
        return self.results

    # --- scenarios ---

    def run_basic_operations(self) -> None:
        logger.info("Running basic operations benchmark")
        for size_name, size in self.config.data_patterns.sizes().items():
            payload = generate_payload(size)
            meta = {"scenario": "basic", "value_size": size}
            for adapter in self.adapters:
                self._run(adapter, Scenario(
                    f"SET_{size_name}",
                    self._set_fresh(adapter, "test_key", payload),
                    self.iterations,
                    meta,
                ))

                key = unique_key("test_key")
                adapter.set(key, payload)
                self._run(adapter, Scenario(
                    f"GET_{size_name}",
                    lambda adapter=adapter, key=key: adapter.get(key),
                    self.iterations,
                    meta,
                ))

    def run_data_size_sweep(self) -> None:
        logger.info("Running data size benchmark")
        for size in DATA_SIZES:
            payload = generate_payload(size)
            for adapter in self.adapters:
                self._run(adapter, Scenario(
                    f"SET_SIZE_{size}",
                    self._set_fresh(adapter, "size_test", payload),
                    self.iterations,
                    {"scenario": "data_size", "value_size": size},
                ))

    def run_concurrency_sweep(self) -> None:
        logger.info("Running concurrency benchmark")
        payload = generate_payload(DEFAULT_VALUE_SIZE)
        for level in CONCURRENCY_LEVELS:
            for adapter in self.adapters:
                result = adapter.timed_concurrent_run(
                    f"CONCURRENT_SET_{level}",
                    self._set_fresh(adapter, "concurrent_test", payload),
                    self.iterations,
                    workers=level,
                    metadata={"scenario": "concurrency", "concurrency": level},
                )
                self._record(result)

    def run_mixed_workload(self) -> None:
        logger.info("Running mixed workload benchmark")
        workload = generate_mixed_workload(self.iterations)
        payload = generate_payload(DEFAULT_VALUE_SIZE)
        for adapter in self.adapters:
            self._run(adapter, Scenario(
                "MIXED_WORKLOAD",
                self._mixed_action(adapter, workload, payload),
                self.iterations,
                {
                    "scenario": "mixed",
                    "reads": workload.count(READ),
                    "writes": workload.count(WRITE),
                },
            ))

    def run_bulk_operations(self) -> None:
        logger.info("Running bulk operations benchmark")
        for batch_size in BULK_BATCH_SIZES:
            payload = generate_payload(DEFAULT_VALUE_SIZE)
            items = {unique_key("bulk_test"): payload for _ in range(batch_size)}
            keys = list(items)
            meta = {"scenario": "bulk", "batch_size": batch_size}
            for adapter in self.adapters:
                self._run(adapter, Scenario(
                    f"BULK_MSET_{batch_size}",
                    lambda adapter=adapter: adapter.bulk_set(items),
                    self.iterations,
                    meta,
                ))
                self._run(adapter, Scenario(
                    f"BULK_MGET_{batch_size}",
                    lambda adapter=adapter: adapter.bulk_get(keys),
                    self.iterations,
                    meta,
                ))

    def run_expiration(self) -> None:
        logger.info("Running expiration benchmark")
        ttl = self.config.benchmark.ttl_seconds
        payload = generate_payload(DEFAULT_VALUE_SIZE)
        for adapter in self.adapters:
            self._run(adapter, Scenario(
                "SET_WITH_TTL",
                self._set_fresh(adapter, "ttl_test", payload, ttl),
                self.iterations,
                {"scenario": "expiration", "ttl_seconds": ttl},
            ))

    def cleanup(self) -> None:
        """Flush every backend and release the connections."""
        for adapter in self.adapters:
            if not adapter.flush_all():
                logger.warning(f"[{adapter.name}] flush failed during cleanup: {adapter.last_error}")
            adapter.close()
        logger.info("Benchmark backends flushed and closed")

    # --- helpers ---

    @staticmethod
    def _set_fresh(adapter: CacheAdapter, prefix: str, payload: str, ttl: int = 0) -> Action:
        """SET under a new key on every call."""
        def action():
            adapter.set(unique_key(prefix), payload, ttl)
        return action

    @staticmethod
    def _mixed_action(adapter: CacheAdapter, workload: List[str], payload: str) -> Action:
        """Consume the next tag on every call, wrapping around at the end."""
        cursor = 0

        def action():
            nonlocal cursor
            if cursor >= len(workload):
                cursor = 0
            tag = workload[cursor]
            cursor += 1
            key = unique_key("mixed_test")
            if tag == WRITE:
                adapter.set(key, payload)
            else:
                adapter.get(key)  # misses expected
        return action

    def _run(self, adapter: CacheAdapter, scenario: Scenario) -> BenchmarkResult:
        result = adapter.timed_run(
            scenario.name, scenario.action, scenario.iterations, metadata=scenario.metadata
        )
        self._record(result)
        return result

    def _record(self, result: BenchmarkResult) -> None:
        self._results.append(result)
        logger.info(
            f"{result.operation} ({result.backend}): {result.average_ms:.4f} ms avg, "
            f"P99 {result.p99_ms:.4f} ms, {result.throughput} ops/sec, errors={result.errors}"
        )

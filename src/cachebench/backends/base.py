"""
Cache capability adapter.

A CacheAdapter puts one backend connection (a CacheClient) behind a uniform
operation surface, counts failed operations, and times batches of repeated
actions into BenchmarkResult records.
"""

from __future__ import annotations

import math
import threading
import time
from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Mapping, NamedTuple, Optional, Sequence

from loguru import logger

from cachebench.exceptions import OperationError, wrap_operation_exception
from cachebench.models import Action, BenchmarkResult
from cachebench.statistics import memory_usage_mb, percentiles, throughput

MAX_WARMUP = 100


class CacheClient(ABC):
    """
    Connection contract every backend must implement.

    Methods raise whatever their client library raises; the adapter converts
    failures. Construction may raise BackendConnectionError.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend identifier used in results."""

    @abstractmethod
    def set(self, key: str, value: Any, ttl: int = 0) -> bool:
        pass

    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the value, or None on a miss."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        pass

    @abstractmethod
    def exists(self, key: str) -> bool:
        pass

    @abstractmethod
    def mset(self, items: Mapping[str, Any]) -> bool:
        pass

    @abstractmethod
    def mget(self, keys: Sequence[str]) -> Dict[str, Any]:
        """Return found keys only."""

    @abstractmethod
    def flushall(self) -> bool:
        pass

    @abstractmethod
    def ping(self) -> bool:
        pass

    @abstractmethod
    def stats(self) -> Dict[str, Any]:
        pass

    @abstractmethod
    def close(self) -> None:
        pass


class OperationOutcome(NamedTuple):
    """Value of an adapter call plus the error that replaced it, if any."""

    value: Any
    error: Optional[OperationError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def warmup_count(iteration_count: int, cap: int = MAX_WARMUP) -> int:
    """Untimed calls before a timed run: min(cap, ceil(iterations / 10))."""
    if iteration_count <= 0 or cap <= 0:
        return 0
    return min(cap, math.ceil(iteration_count / 10))


class CacheAdapter:
    """
    Uniform, failure-absorbing operation surface over one CacheClient.

    Data-plane methods never raise: a failure increments the error counter,
    is kept as `last_error`, and the call returns a conservative value.
    """

    def __init__(self, client: CacheClient, warmup_cap: int = MAX_WARMUP):
        self.client = client
        self.warmup_cap = warmup_cap
        self._errors = 0
        self._last_error: Optional[OperationError] = None
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self.client.name

    @property
    def last_error(self) -> Optional[OperationError]:
        return self._last_error

    def error_count(self) -> int:
        return self._errors

    def reset_error_count(self) -> None:
        with self._lock:
            self._errors = 0
            self._last_error = None

    # --- guarded operations ---

    def call(self, operation: str, func: Callable[..., Any], *args, fallback: Any = None) -> OperationOutcome:
        """Run one client call, converting any failure into an OperationError."""
        try:
            return OperationOutcome(func(*args))
        except Exception as e:
            error = wrap_operation_exception(self.name, operation, e)
            with self._lock:
                self._errors += 1
                self._last_error = error
            logger.debug(f"{error}")
            return OperationOutcome(fallback, error)

    def set(self, key: str, value: Any, ttl: int = 0) -> bool:
        return bool(self.call("set", self.client.set, key, value, ttl, fallback=False).value)

    def get(self, key: str) -> Optional[Any]:
        """Value for key, or None on a miss or failure."""
        return self.call("get", self.client.get, key).value

    def delete(self, key: str) -> bool:
        return bool(self.call("delete", self.client.delete, key, fallback=False).value)

    def exists(self, key: str) -> bool:
        return bool(self.call("exists", self.client.exists, key, fallback=False).value)

    def bulk_set(self, items: Mapping[str, Any]) -> bool:
        return bool(self.call("bulk_set", self.client.mset, items, fallback=False).value)

    def bulk_get(self, keys: Sequence[str]) -> Dict[str, Any]:
        return self.call("bulk_get", self.client.mget, keys, fallback={}).value

    def flush_all(self) -> bool:
        return bool(self.call("flush_all", self.client.flushall, fallback=False).value)

    def ping(self) -> bool:
        return bool(self.call("ping", self.client.ping, fallback=False).value)

    def backend_info(self) -> Dict[str, Any]:
        return self.call("backend_info", self.client.stats, fallback={}).value

    def close(self) -> None:
        try:
            self.client.close()
        except Exception as e:
            logger.warning(f"[{self.name}] close failed: {e}")

    # --- timing ---

    def timed_run(
        self,
        operation: str,
        action: Action,
        iteration_count: int,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> BenchmarkResult:
        """
        Time `iteration_count` sequential calls of `action`.

        A warmup of min(cap, ceil(iterations / 10)) untimed calls runs first.
        Total time covers the timed phase only; the memory delta spans warmup
        and timed phase.
        """
        if iteration_count < 1:
            raise ValueError(f"iteration_count must be >= 1, got {iteration_count}")

        self.reset_error_count()
        start_memory = memory_usage_mb()

        for _ in range(warmup_count(iteration_count, self.warmup_cap)):
            action()

        samples: List[float] = []
        clock = time.perf_counter
        phase_start = clock()
        for _ in range(iteration_count):
            op_start = clock()
            action()
            samples.append((clock() - op_start) * 1000.0)
        total_ms = (clock() - phase_start) * 1000.0

        memory_delta = memory_usage_mb() - start_memory
        return self._build_result(operation, samples, total_ms, memory_delta, metadata)

    def timed_concurrent_run(
        self,
        operation: str,
        action: Action,
        iteration_count: int,
        workers: int,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> BenchmarkResult:
        """
        Spread `iteration_count` calls of `action` over `workers` threads.

        The count is partitioned evenly (the remainder goes to the first
        workers) and timed as one wall-clock span that ends once every
        worker has finished.
        """
        if iteration_count < 1:
            raise ValueError(f"iteration_count must be >= 1, got {iteration_count}")
        if workers < 1:
            raise ValueError(f"workers must be >= 1, got {workers}")

        base, remainder = divmod(iteration_count, workers)
        shares = [base + (1 if i < remainder else 0) for i in range(workers)]

        def worker(count: int) -> List[float]:
            latencies = []
            for _ in range(count):
                t0 = time.perf_counter()
                action()
                latencies.append((time.perf_counter() - t0) * 1000.0)
            return latencies

        self.reset_error_count()
        start_memory = memory_usage_mb()

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"{self.name}-worker") as pool:
            start = time.perf_counter()
            futures = [pool.submit(worker, count) for count in shares]
            samples: List[float] = []
            for future in futures:
                samples.extend(future.result())
            total_ms = (time.perf_counter() - start) * 1000.0

        memory_delta = memory_usage_mb() - start_memory
        meta = {"workers": workers}
        if metadata:
            meta.update(metadata)
        return self._build_result(operation, samples, total_ms, memory_delta, meta)

    def _build_result(
        self,
        operation: str,
        samples: List[float],
        total_ms: float,
        memory_delta: float,
        metadata: Optional[Dict[str, Any]],
    ) -> BenchmarkResult:
        table = percentiles(samples)
        low, high = min(samples), max(samples)
        average = min(max(sum(samples) / len(samples), low), high)
        return BenchmarkResult(
            operation=operation,
            backend=self.name,
            iterations=len(samples),
            total_time_ms=total_ms,
            average_ms=average,
            min_ms=low,
            max_ms=high,
            p50_ms=table.get(50, 0.0),
            p95_ms=table.get(95, 0.0),
            p99_ms=table.get(99, 0.0),
            throughput=throughput(len(samples), total_ms / 1000.0),
            memory_delta_mb=memory_delta,
            errors=self._errors,
            percentiles=table,
            metadata=dict(metadata or {}),
        )


__all__ = [
    "CacheAdapter",
    "CacheClient",
    "OperationOutcome",
    "MAX_WARMUP",
    "warmup_count",
]

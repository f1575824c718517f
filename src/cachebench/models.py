"""
Result and scenario models for cache benchmarking.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field, asdict, fields
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Dict, List, Sequence

from loguru import logger

# A scenario action: invoked with no arguments, return value ignored.
Action = Callable[[], Any]


@dataclass(frozen=True)
class BenchmarkResult:
    """One measured outcome of N iterations of one operation on one backend."""

    operation: str
    backend: str
    iterations: int
    total_time_ms: float

    # Latency (ms)
    average_ms: float
    min_ms: float
    max_ms: float
    p50_ms: float
    p95_ms: float
    p99_ms: float

    throughput: int  # ops/sec
    memory_delta_mb: float
    errors: int
    percentiles: Dict[float, float] = field(default_factory=dict)
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        if self.iterations < 1:
            raise ValueError(f"iterations must be >= 1, got {self.iterations}")

    def to_dict(self) -> Dict[str, Any]:
        """Field mapping; inverse of from_dict()."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "BenchmarkResult":
        known = {f.name for f in fields(cls)}
        kwargs = {k: v for k, v in data.items() if k in known}
        # JSON turns numeric keys into strings
        kwargs["percentiles"] = {
            float(k): float(v) for k, v in (data.get("percentiles") or {}).items()
        }
        kwargs["metadata"] = dict(data.get("metadata") or {})
        return cls(**kwargs)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)

    def get_summary(self) -> str:
        """Get a human-readable summary."""
        lines = [
            f"Operation: {self.operation} ({self.backend})",
            f"  Iterations: {self.iterations}",
            f"  Total Time: {self.total_time_ms:.2f} ms",
            f"  Average Time: {self.average_ms:.4f} ms",
            f"  Min Time: {self.min_ms:.4f} ms",
            f"  Max Time: {self.max_ms:.4f} ms",
            f"  P50 Time: {self.p50_ms:.4f} ms",
            f"  P95 Time: {self.p95_ms:.4f} ms",
            f"  P99 Time: {self.p99_ms:.4f} ms",
            f"  Throughput: {self.throughput} ops/sec",
            f"  Memory Usage: {self.memory_delta_mb:.2f} MB",
            f"  Errors: {self.errors}",
        ]
        if self.percentiles:
            table = ", ".join(f"p{p:g}={v:.4f}" for p, v in sorted(self.percentiles.items()))
            lines.append(f"  Percentiles: {table}")
        if self.metadata:
            meta = ", ".join(f"{k}={v}" for k, v in self.metadata.items())
            lines.append(f"  Metadata: {meta}")
        return "\n".join(lines)


@dataclass(frozen=True)
class Scenario:
    """A named action timed for a fixed number of iterations."""

    name: str
    action: Action
    iterations: int
    metadata: Dict[str, Any] = field(default_factory=dict)


def save_results(results: Sequence[BenchmarkResult], output_dir: str) -> str:
    """Save results to a timestamped JSON file and return its path."""
    Path(output_dir).mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    filepath = Path(output_dir) / f"benchmark_results_{timestamp}.json"

    document = {
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "count": len(results),
        "results": [r.to_dict() for r in results],
    }
    with open(filepath, "w") as f:
        json.dump(document, f, indent=2)

    logger.info(f"Saved {len(results)} results to {filepath}")
    return str(filepath)


def load_results(filepath: str) -> List[BenchmarkResult]:
    """Load results written by save_results()."""
    with open(filepath, "r") as f:
        data = json.load(f)
    return [BenchmarkResult.from_dict(item) for item in data.get("results", [])]


__all__ = [
    "Action",
    "BenchmarkResult",
    "Scenario",
    "save_results",
    "load_results",
]

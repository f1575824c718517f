"""
Statistics helpers for cache benchmarking.

All functions are total: empty input yields zero-valued defaults instead of
raising.
"""

from __future__ import annotations

import math
import random
import string
from typing import Dict, Iterable, List, Sequence

import numpy as np
import psutil

DEFAULT_PERCENTILES = (50, 95, 99)
PAYLOAD_ALPHABET = string.ascii_letters + string.digits
READ = "read"
WRITE = "write"
READ_RATIO = 0.8

_rng = random.SystemRandom()


def percentiles(
    values: Iterable[float],
    requested: Sequence[float] = DEFAULT_PERCENTILES,
) -> Dict[float, float]:
    """
    Percentiles by linear interpolation between the closest ranks.

    For percentile p over n sorted values the fractional rank is
    p/100 * (n - 1); a fractional rank between two indices is interpolated.
    """
    ordered = sorted(values)
    if not ordered:
        return {}

    n = len(ordered)
    result: Dict[float, float] = {}
    for p in requested:
        idx = (p / 100.0) * (n - 1)
        lo = math.floor(idx)
        hi = math.ceil(idx)
        if lo == hi:
            result[p] = float(ordered[lo])
        else:
            value = ordered[lo] + (ordered[hi] - ordered[lo]) * (idx - lo)
            # rounding must not push the value outside its bracketing samples
            result[p] = min(max(value, ordered[lo]), ordered[hi])
    return result


def throughput(op_count: int, total_seconds: float) -> int:
    """Whole operations per second; 0 when no time elapsed."""
    if total_seconds <= 0:
        return 0
    return int(math.floor(op_count / total_seconds))


def standard_deviation(values: Sequence[float]) -> float:
    """Population standard deviation (divides by n)."""
    if len(values) == 0:
        return 0.0
    return float(np.std(np.asarray(values, dtype=np.float64)))


def coefficient_of_variation(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    mean = float(np.mean(np.asarray(values, dtype=np.float64)))
    if mean == 0:
        return 0.0
    return standard_deviation(values) / mean


def generate_payload(size_bytes: int) -> str:
    """Random alphanumeric string of exactly `size_bytes` characters."""
    if size_bytes <= 0:
        return ""
    return "".join(_rng.choices(PAYLOAD_ALPHABET, k=size_bytes))


def generate_mixed_workload(total_ops: int) -> List[str]:
    """
    Shuffled read/write tags: floor(total_ops * 0.8) reads, the rest writes.

    The split is exact; only the order is random.
    """
    if total_ops <= 0:
        return []
    read_count = int(total_ops * READ_RATIO)
    tags = [READ] * read_count + [WRITE] * (total_ops - read_count)
    _rng.shuffle(tags)
    return tags


def memory_usage_mb() -> float:
    """Resident set size of this process in MB."""
    return psutil.Process().memory_info().rss / 1024 / 1024


__all__ = [
    "DEFAULT_PERCENTILES",
    "PAYLOAD_ALPHABET",
    "READ",
    "WRITE",
    "percentiles",
    "throughput",
    "standard_deviation",
    "coefficient_of_variation",
    "generate_payload",
    "generate_mixed_workload",
    "memory_usage_mb",
]

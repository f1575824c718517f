"""
cachebench - Redis vs Memcached benchmark suite.

Provides:
- Statistics helpers (percentiles, throughput, payload/workload generation)
- A failure-absorbing cache adapter with timed-run primitives
- The benchmark engine running the fixed scenario battery
- Text report generation with head-to-head comparison
"""

__version__ = "1.0.0"

from .backends import CacheAdapter, CacheClient, InMemoryClient, connect_adapters
from .config import BenchConfig, load_config
from .engine import BenchmarkEngine
from .exceptions import (
    BackendConnectionError,
    CacheBenchError,
    ConfigurationError,
    OperationError,
)
from .models import BenchmarkResult, Scenario, load_results, save_results
from .report import OperationComparison, ReportGenerator

__all__ = [
    "__version__",
    # Backends
    "CacheAdapter",
    "CacheClient",
    "InMemoryClient",
    "connect_adapters",
    # Config
    "BenchConfig",
    "load_config",
    # Engine
    "BenchmarkEngine",
    # Errors
    "BackendConnectionError",
    "CacheBenchError",
    "ConfigurationError",
    "OperationError",
    # Models
    "BenchmarkResult",
    "Scenario",
    "load_results",
    "save_results",
    # Reporting
    "OperationComparison",
    "ReportGenerator",
]

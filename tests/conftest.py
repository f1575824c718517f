import sys
import socket
from pathlib import Path

import pytest


# Ensure local src/ package imports work without editable install.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
for path in (SRC, ROOT):
    if str(path) not in sys.path:
        sys.path.insert(0, str(path))

from cachebench.backends import CacheAdapter, InMemoryClient  # noqa: E402
from cachebench.config import BenchConfig, BenchmarkSettings  # noqa: E402


# =============================================================================
# Pytest Configuration
# =============================================================================

def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers",
        "integration: mark test as integration test (requires running cache servers)"
    )
    config.addinivalue_line(
        "markers",
        "requires_redis: mark test as requiring a running Redis instance"
    )
    config.addinivalue_line(
        "markers",
        "requires_memcached: mark test as requiring a running Memcached instance"
    )


def pytest_addoption(parser):
    parser.addoption(
        "--run-integration",
        action="store_true",
        default=False,
        help="Run integration tests (requires Redis and Memcached)"
    )


def pytest_collection_modifyitems(config, items):
    """
    - Skip integration tests unless --run-integration flag is passed
    - Skip server-requiring tests if the server is not listening
    """
    run_integration = config.getoption("--run-integration", default=False)
    redis_available = _port_open("localhost", 6379)
    memcached_available = _port_open("localhost", 11211)

    skip_integration = pytest.mark.skip(
        reason="Integration test skipped. Use --run-integration to run."
    )
    skip_redis = pytest.mark.skip(
        reason="Redis not available. Start Redis with: docker run -p 6379:6379 redis"
    )
    skip_memcached = pytest.mark.skip(
        reason="Memcached not available. Start Memcached with: docker run -p 11211:11211 memcached"
    )

    for item in items:
        if "integration" in item.keywords and not run_integration:
            item.add_marker(skip_integration)
        if "requires_redis" in item.keywords and not redis_available:
            item.add_marker(skip_redis)
        if "requires_memcached" in item.keywords and not memcached_available:
            item.add_marker(skip_memcached)


def _port_open(host: str, port: int) -> bool:
    try:
        with socket.create_connection((host, port), timeout=0.5):
            return True
    except OSError:
        return False


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def small_config(tmp_path) -> BenchConfig:
    """Config with 10 iterations writing into a temporary directory."""
    return BenchConfig(
        benchmark=BenchmarkSettings(iterations=10, output_dir=str(tmp_path / "results")),
    )


@pytest.fixture
def memory_adapter() -> CacheAdapter:
    return CacheAdapter(InMemoryClient("Redis"))


@pytest.fixture
def memory_adapters():
    return [
        CacheAdapter(InMemoryClient("Redis")),
        CacheAdapter(InMemoryClient("Memcached")),
    ]

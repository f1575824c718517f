"""
cachebench Configuration
========================
Immutable, validated configuration with environment variable overrides.

Priority: ENV > YAML > defaults. A single BenchConfig is built once by
load_config() and handed to the engine and adapters explicitly.
"""

import dataclasses
import os
from pathlib import Path
from typing import Optional
from dataclasses import dataclass, field

import yaml

from cachebench.exceptions import ConfigurationError


@dataclass(frozen=True)
class RedisConfig:
    host: str = "127.0.0.1"
    port: int = 6379
    password: Optional[str] = None
    database: int = 0
    timeout: float = 5.0
    key_prefix: str = "benchmark:"


@dataclass(frozen=True)
class MemcachedConfig:
    host: str = "127.0.0.1"
    port: int = 11211
    weight: int = 100  # only meaningful for multi-node pools
    timeout: float = 5.0


@dataclass(frozen=True)
class BenchmarkSettings:
    iterations: int = 1000
    concurrent_connections: int = 10
    warmup_iterations: int = 100
    output_dir: str = "./results"
    log_level: str = "INFO"
    ttl_seconds: int = 60


@dataclass(frozen=True)
class DataPatternsConfig:
    small_value_size: int = 1024
    medium_value_size: int = 10240
    large_value_size: int = 102400

    def sizes(self) -> dict[str, int]:
        """Named payload sizes in battery order."""
        return {
            "small": self.small_value_size,
            "medium": self.medium_value_size,
            "large": self.large_value_size,
        }


@dataclass(frozen=True)
class BenchConfig:
    """Root configuration object."""
    redis: RedisConfig = field(default_factory=RedisConfig)
    memcached: MemcachedConfig = field(default_factory=MemcachedConfig)
    benchmark: BenchmarkSettings = field(default_factory=BenchmarkSettings)
    data_patterns: DataPatternsConfig = field(default_factory=DataPatternsConfig)

    def with_overrides(
        self,
        iterations: Optional[int] = None,
        concurrency: Optional[int] = None,
        output_dir: Optional[str] = None,
    ) -> "BenchConfig":
        """Return a copy with command-line values applied."""
        changes = {}
        if iterations is not None:
            changes["iterations"] = iterations
        if concurrency is not None:
            changes["concurrent_connections"] = concurrency
        if output_dir is not None:
            changes["output_dir"] = str(output_dir)
        if not changes:
            return self
        config = dataclasses.replace(
            self, benchmark=dataclasses.replace(self.benchmark, **changes)
        )
        validate_config(config)
        return config


def _env_override(key: str, default):
    """Check for an environment variable override named exactly `key`."""
    val = os.environ.get(key)
    if val is None or val == "":
        return default
    # Type coercion based on the default's type
    try:
        if isinstance(default, bool):
            return val.lower() in ("true", "1", "yes")
        if isinstance(default, int):
            return int(val)
        if isinstance(default, float):
            return float(val)
    except ValueError:
        raise ConfigurationError(
            config_key=key,
            reason=f"cannot interpret {val!r} as {type(default).__name__}",
        )
    return val


def _section(raw: dict, name: str) -> dict:
    value = raw.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigurationError(config_key=name, reason="section must be a mapping")
    return value


def validate_config(config: BenchConfig) -> None:
    """Raise ConfigurationError for values the engine cannot run with."""
    bench = config.benchmark
    if bench.iterations < 1:
        raise ConfigurationError("benchmark.iterations", f"must be >= 1, got {bench.iterations}")
    if bench.concurrent_connections < 1:
        raise ConfigurationError(
            "benchmark.concurrent_connections",
            f"must be >= 1, got {bench.concurrent_connections}",
        )
    if bench.warmup_iterations < 0:
        raise ConfigurationError(
            "benchmark.warmup_iterations", f"must be >= 0, got {bench.warmup_iterations}"
        )
    if bench.ttl_seconds < 1:
        raise ConfigurationError("benchmark.ttl_seconds", f"must be >= 1, got {bench.ttl_seconds}")
    for key, port in (("redis.port", config.redis.port), ("memcached.port", config.memcached.port)):
        if not 1 <= port <= 65535:
            raise ConfigurationError(key, f"must be between 1 and 65535, got {port}")
    for name, size in config.data_patterns.sizes().items():
        if size < 1:
            raise ConfigurationError(f"data_patterns.{name}_value_size", f"must be >= 1, got {size}")


def load_config(path: Optional[Path] = None) -> BenchConfig:
    """
    Load configuration from a YAML file with environment variable overrides.

    Args:
        path: Path to a YAML file. If None, ./cachebench.yaml is used when present.

    Returns:
        Validated BenchConfig instance.

    Raises:
        ConfigurationError: If an explicit path is missing or a value is invalid.
    """
    if path is None:
        candidate = Path("cachebench.yaml")
        if candidate.exists():
            path = candidate
    elif not Path(path).exists():
        raise ConfigurationError(config_key="config", reason=f"file not found: {path}")

    raw = {}
    if path is not None:
        with open(path) as f:
            loaded = yaml.safe_load(f) or {}
        if not isinstance(loaded, dict):
            raise ConfigurationError(config_key="config", reason=f"{path} is not a mapping")
        raw = loaded.get("cachebench") or {}

    redis_raw = _section(raw, "redis")
    redis = RedisConfig(
        host=_env_override("REDIS_HOST", redis_raw.get("host", "127.0.0.1")),
        port=_env_override("REDIS_PORT", int(redis_raw.get("port", 6379))),
        password=_env_override("REDIS_PASSWORD", redis_raw.get("password")),
        database=_env_override("REDIS_DATABASE", int(redis_raw.get("database", 0))),
        timeout=_env_override("REDIS_TIMEOUT", float(redis_raw.get("timeout", 5.0))),
        key_prefix=redis_raw.get("key_prefix", "benchmark:"),
    )

    mc_raw = _section(raw, "memcached")
    memcached = MemcachedConfig(
        host=_env_override("MEMCACHED_HOST", mc_raw.get("host", "127.0.0.1")),
        port=_env_override("MEMCACHED_PORT", int(mc_raw.get("port", 11211))),
        weight=_env_override("MEMCACHED_WEIGHT", int(mc_raw.get("weight", 100))),
        timeout=float(mc_raw.get("timeout", 5.0)),
    )

    bench_raw = _section(raw, "benchmark")
    benchmark = BenchmarkSettings(
        iterations=_env_override("BENCHMARK_ITERATIONS", int(bench_raw.get("iterations", 1000))),
        concurrent_connections=_env_override(
            "BENCHMARK_CONCURRENT_CONNECTIONS", int(bench_raw.get("concurrent_connections", 10))
        ),
        warmup_iterations=_env_override(
            "BENCHMARK_WARMUP_ITERATIONS", int(bench_raw.get("warmup_iterations", 100))
        ),
        output_dir=_env_override("BENCHMARK_OUTPUT_DIR", str(bench_raw.get("output_dir", "./results"))),
        log_level=_env_override("BENCHMARK_LOG_LEVEL", str(bench_raw.get("log_level", "INFO"))),
        ttl_seconds=int(bench_raw.get("ttl_seconds", 60)),
    )

    patterns_raw = _section(raw, "data_patterns")
    data_patterns = DataPatternsConfig(
        small_value_size=_env_override("SMALL_VALUE_SIZE", int(patterns_raw.get("small_value_size", 1024))),
        medium_value_size=_env_override("MEDIUM_VALUE_SIZE", int(patterns_raw.get("medium_value_size", 10240))),
        large_value_size=_env_override("LARGE_VALUE_SIZE", int(patterns_raw.get("large_value_size", 102400))),
    )

    config = BenchConfig(
        redis=redis,
        memcached=memcached,
        benchmark=benchmark,
        data_patterns=data_patterns,
    )
    validate_config(config)
    return config


__all__ = [
    "BenchConfig",
    "BenchmarkSettings",
    "DataPatternsConfig",
    "MemcachedConfig",
    "RedisConfig",
    "load_config",
    "validate_config",
]

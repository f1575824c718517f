"""
cachebench CLI

Usage:
    cachebench run                                  # full battery, config from ./cachebench.yaml + env
    cachebench run --iterations 5000 --concurrent 50
    cachebench run --config production.yaml --output ./benchmark_results
    cachebench run --dry-run                        # in-memory backends, no servers needed
    cachebench check                                # ping both backends
"""

import sys
import time
from pathlib import Path
from typing import Optional

import click

from cachebench.backends import connect_adapters
from cachebench.config import BenchConfig, load_config
from cachebench.engine import BenchmarkEngine
from cachebench.exceptions import BackendConnectionError, ConfigurationError
from cachebench.logging_config import configure_logging
from cachebench.models import save_results
from cachebench.report import ReportGenerator


def _load(config_path: Optional[str]) -> BenchConfig:
    return load_config(Path(config_path) if config_path else None)


def _echo_configuration(config: BenchConfig) -> None:
    click.echo("Configuration:")
    click.echo(f"  Redis: {config.redis.host}:{config.redis.port}")
    click.echo(f"  Memcached: {config.memcached.host}:{config.memcached.port}")
    click.echo(f"  Iterations: {config.benchmark.iterations}")
    click.echo(f"  Concurrent connections: {config.benchmark.concurrent_connections}")
    click.echo(f"  Output directory: {config.benchmark.output_dir}")
    click.echo("  Data patterns:")
    for name, size in config.data_patterns.sizes().items():
        click.echo(f"    {name}: {size:,} bytes")


@click.group()
@click.version_option(package_name="cachebench")
def cli():
    """Redis vs Memcached latency, throughput and memory benchmark."""


@cli.command()
@click.option("--iterations", "-n", type=click.IntRange(min=1), help="Iterations per scenario")
@click.option(
    "--concurrent",
    "-c",
    type=click.IntRange(min=1),
    help="Connections per backend pool; raised to the widest concurrency level (100)",
)
@click.option("--output", "-o", type=click.Path(file_okay=False), help="Output directory for reports")
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="YAML configuration file")
@click.option("--dry-run", is_flag=True, help="Use in-memory backends instead of real servers")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def run(
    iterations: Optional[int],
    concurrent: Optional[int],
    output: Optional[str],
    config_path: Optional[str],
    dry_run: bool,
    verbose: bool,
):
    """Run the full benchmark battery and write the report."""
    try:
        config = _load(config_path).with_overrides(
            iterations=iterations, concurrency=concurrent, output_dir=output
        )
    except ConfigurationError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    output_dir = config.benchmark.output_dir
    configure_logging(
        "DEBUG" if verbose else config.benchmark.log_level,
        sink=Path(output_dir) / "benchmark.log",
    )

    click.echo("=== Cache Benchmark Tool ===")
    _echo_configuration(config)

    try:
        engine = BenchmarkEngine.from_config(config, dry_run=dry_run)
    except BackendConnectionError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    try:
        started = time.perf_counter()
        results = engine.run_all()
        click.echo(
            f"\nBenchmarks completed in {time.perf_counter() - started:.2f} seconds"
        )
        click.echo(f"Total tests executed: {len(results)}\n")

        report = ReportGenerator(results)
        report_path = report.save(output_dir)
        results_path = save_results(results, output_dir)

        click.echo(report.quick_summary())
        click.echo(f"\nReport: {report_path}")
        click.echo(f"Results: {results_path}")
    finally:
        engine.cleanup()


@cli.command()
@click.option("--config", "config_path", type=click.Path(dir_okay=False), help="YAML configuration file")
def check(config_path: Optional[str]):
    """Check that both cache servers are reachable."""
    configure_logging("WARNING")
    try:
        config = _load(config_path)
    except ConfigurationError as e:
        click.echo(f"Error: {e.message}", err=True)
        sys.exit(1)

    try:
        adapters = connect_adapters(config)
    except BackendConnectionError as e:
        click.echo(f"✗ {e.message}", err=True)
        sys.exit(1)

    healthy = True
    for adapter in adapters:
        if adapter.ping():
            click.echo(f"✓ {adapter.name} server is accessible")
        else:
            healthy = False
            click.echo(f"✗ {adapter.name} did not answer ping: {adapter.last_error}", err=True)
        adapter.close()

    if not healthy:
        sys.exit(1)


def main():
    cli()


if __name__ == "__main__":
    main()

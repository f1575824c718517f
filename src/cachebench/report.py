"""
Report generation for cache benchmark results.

Renders three text sections in fixed order: Summary, Detailed, Comparison.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Callable, Dict, List, Optional, Sequence

from loguru import logger
from tabulate import tabulate

from cachebench.models import BenchmarkResult


def improvement_percent(
    group: Sequence[BenchmarkResult],
    winner: BenchmarkResult,
    metric: Callable[[BenchmarkResult], float],
    higher_is_better: bool,
) -> float:
    """
    Winner's improvement over the mean of the other group members, in percent.

    0.0 when there are no other members or their mean is 0.
    """
    others = [r for r in group if r is not winner]
    if not others:
        return 0.0
    other_mean = sum(metric(r) for r in others) / len(others)
    if other_mean == 0:
        return 0.0
    if higher_is_better:
        return (metric(winner) - other_mean) / other_mean * 100
    return (other_mean - metric(winner)) / other_mean * 100


@dataclass(frozen=True)
class OperationComparison:
    """Head-to-head outcome for one operation name."""

    operation: str
    results: List[BenchmarkResult]
    latency_winner: BenchmarkResult
    latency_improvement: float
    throughput_winner: BenchmarkResult
    throughput_improvement: float


class ReportGenerator:
    """Folds a list of results into a human-readable report."""

    def __init__(self, results: Sequence[BenchmarkResult], generated_at: Optional[datetime] = None):
        self.results = list(results)
        self.generated_at = generated_at or datetime.now()

    def backend_counts(self) -> Dict[str, int]:
        """Result count per backend, in first-seen order."""
        return dict(Counter(r.backend for r in self.results))

    def group_by_operation(self) -> Dict[str, List[BenchmarkResult]]:
        groups: Dict[str, List[BenchmarkResult]] = {}
        for result in self.results:
            groups.setdefault(result.operation, []).append(result)
        return groups

    def comparisons(self) -> List[OperationComparison]:
        """One comparison per operation that has at least two results."""
        comparisons = []
        for operation, group in self.group_by_operation().items():
            if len(group) < 2:
                continue
            # min()/max() keep the first of equal values: ties go to insertion order.
            fastest = min(group, key=lambda r: r.average_ms)
            busiest = max(group, key=lambda r: r.throughput)
            comparisons.append(OperationComparison(
                operation=operation,
                results=group,
                latency_winner=fastest,
                latency_improvement=improvement_percent(
                    group, fastest, lambda r: r.average_ms, higher_is_better=False
                ),
                throughput_winner=busiest,
                throughput_improvement=improvement_percent(
                    group, busiest, lambda r: r.throughput, higher_is_better=True
                ),
            ))
        return comparisons

    # --- sections ---

    def summary(self) -> str:
        lines = [
            "=== CACHE BENCHMARK SUMMARY REPORT ===",
            f"Generated: {self.generated_at:%Y-%m-%d %H:%M:%S}",
            f"Total Tests: {len(self.results)}",
            "",
        ]
        for backend, count in self.backend_counts().items():
            lines.append(f"{backend} Tests: {count}")
        lines.append("")
        return "\n".join(lines) + "\n"

    def detailed(self) -> str:
        blocks = ["=== DETAILED RESULTS ===\n"]
        for result in self.results:
            blocks.append(result.get_summary() + "\n")
        return "\n".join(blocks) + "\n"

    def comparison(self) -> str:
        lines = ["=== PERFORMANCE COMPARISON ===", ""]
        for comp in self.comparisons():
            lines.append(f"Operation: {comp.operation}")
            lines.append("-" * (len(comp.operation) + 10))
            for r in comp.results:
                lines.append(
                    f"{r.backend}: {r.average_ms:.4f} ms avg, "
                    f"{r.throughput} ops/sec, {r.memory_delta_mb:.2f} MB memory"
                )
            lines.append(
                f"Winner (Latency): {comp.latency_winner.backend} "
                f"({comp.latency_improvement:.2f}% faster)"
            )
            lines.append(
                f"Winner (Throughput): {comp.throughput_winner.backend} "
                f"({comp.throughput_improvement:.2f}% higher)"
            )
            lines.append("")
        return "\n".join(lines) + "\n"

    def render(self) -> str:
        return self.summary() + self.detailed() + self.comparison()

    def save(self, output_dir: str) -> str:
        """Write the full report to a timestamped text file."""
        Path(output_dir).mkdir(parents=True, exist_ok=True)
        filepath = Path(output_dir) / f"benchmark_report_{self.generated_at:%Y-%m-%d_%H-%M-%S}.txt"
        filepath.write_text(self.render())
        logger.info(f"Report saved to: {filepath}")
        return str(filepath)

    def quick_summary(self) -> str:
        """Per-backend averages plus the overall best performers."""
        if not self.results:
            return "No results."

        rows = []
        for backend in self.backend_counts():
            own = [r for r in self.results if r.backend == backend]
            rows.append([
                backend,
                len(own),
                f"{sum(r.average_ms for r in own) / len(own):.4f}",
                f"{sum(r.throughput for r in own) / len(own):,.0f}",
                sum(r.errors for r in own),
            ])
        table = tabulate(
            rows,
            headers=["Backend", "Tests", "Avg latency (ms)", "Avg throughput (ops/s)", "Errors"],
            tablefmt="grid",
        )

        fastest = min(self.results, key=lambda r: r.average_ms)
        busiest = max(self.results, key=lambda r: r.throughput)
        return "\n".join([
            "=== QUICK SUMMARY ===",
            table,
            "",
            "Best performers:",
            f"  Lowest latency: {fastest.operation} ({fastest.backend}) - {fastest.average_ms:.4f} ms",
            f"  Highest throughput: {busiest.operation} ({busiest.backend}) - {busiest.throughput:,} ops/sec",
        ])


__all__ = ["OperationComparison", "ReportGenerator", "improvement_percent"]

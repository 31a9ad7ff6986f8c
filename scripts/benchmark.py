#!/usr/bin/env python3
"""
Verso Performance Benchmarks

Measures the polling costs that matter for a host update loop: how fast a
consumer skips an unchanged cell, how fast it picks up a change, and how the
cost of a combined consumer grows with its arity.

Usage:
    python scripts/benchmark.py             # Run all benchmarks
    python scripts/benchmark.py --config    # Show current benchmark configuration
    python scripts/benchmark.py --quiet     # Only print the final table

Configuration:
    Adjust the constants at the top of the file to change benchmark parameters.
"""

import argparse
import sys
import time
from dataclasses import dataclass
from typing import Callable, List

# Add the project root to the Python path
sys.path.insert(0, ".")

from rich.console import Console
from rich.table import Table

from verso import ConsumerN, Dynamic, into_consumer

# Configuration constants - adjust these to change benchmark behavior
ITERATIONS = 200_000  # Polls per benchmark
ARITIES = (2, 3, 8, 32)  # Group sizes for the combined consumer benchmark


@dataclass
class BenchmarkResult:
    """Timing for one benchmark."""

    name: str
    workload: str
    iterations: int
    seconds: float

    @property
    def ops_per_second(self) -> float:
        return self.iterations / self.seconds if self.seconds > 0 else float("inf")

    @property
    def latency_ns(self) -> float:
        return (self.seconds / self.iterations) * 1e9


def _time(iterations: int, body: Callable[[], None]) -> float:
    start = time.perf_counter()
    for _ in range(iterations):
        body()
    return time.perf_counter() - start


def _noop(*values) -> None:
    pass


def bench_unchanged_poll(iterations: int) -> BenchmarkResult:
    """Poll a consumer whose cell never changes."""
    cell = Dynamic(0)
    consumer = into_consumer(cell)
    consumer.on_change(_noop)
    elapsed = _time(iterations, lambda: consumer.on_change(_noop))
    return BenchmarkResult("Unchanged poll", "1 cell", iterations, elapsed)


def bench_changed_poll(iterations: int) -> BenchmarkResult:
    """Bump the cell and poll on every iteration."""
    cell = Dynamic(0)
    consumer = into_consumer(cell)

    def step():
        cell.update(lambda x: x + 1)
        consumer.on_change(_noop)

    elapsed = _time(iterations, step)
    return BenchmarkResult("Set + changed poll", "1 cell", iterations, elapsed)


def bench_noop_set(iterations: int) -> BenchmarkResult:
    """Set an equal value; the version never moves."""
    cell = Dynamic(0)
    elapsed = _time(iterations, lambda: cell.set(0))
    return BenchmarkResult("Equal set (no-op)", "1 cell", iterations, elapsed)


def bench_combined_poll(iterations: int, arity: int) -> List[BenchmarkResult]:
    """Poll a combined consumer unchanged, then with one member changing."""
    cells = [Dynamic(n) for n in range(arity)]
    combined: ConsumerN = into_consumer(cells)
    combined.on_change(_noop)
    unchanged = _time(iterations, lambda: combined.on_change(_noop))

    last = cells[-1]

    def step():
        last.update(lambda x: x + 1)
        combined.on_change(_noop)

    changed = _time(iterations, step)
    return [
        BenchmarkResult("Combined unchanged poll", f"{arity} cells", iterations, unchanged),
        BenchmarkResult("Combined changed poll", f"{arity} cells", iterations, changed),
    ]


class VersoBenchmark:
    """Rich-formatted display for Verso benchmarks."""

    def __init__(self, quiet: bool = False):
        self.console = Console()
        self.quiet = quiet
        self.results: List[BenchmarkResult] = []

    def run_benchmarks(self):
        """Run all benchmarks and display results with rich formatting."""
        self._record(bench_unchanged_poll(ITERATIONS))
        self._record(bench_changed_poll(ITERATIONS))
        self._record(bench_noop_set(ITERATIONS))
        for arity in ARITIES:
            for result in bench_combined_poll(ITERATIONS, arity):
                self._record(result)
        self._display_final_results()

    def _record(self, result: BenchmarkResult):
        self.results.append(result)
        if not self.quiet:
            self.console.print(
                f"[green]✓[/green] {result.name} ({result.workload}): "
                f"{result.ops_per_second:,.0f} ops/sec"
            )

    def _display_final_results(self):
        table = Table(title="Verso Benchmark Results")
        table.add_column("Benchmark", style="cyan", no_wrap=True)
        table.add_column("Workload", style="magenta")
        table.add_column("Throughput", style="green", justify="right")
        table.add_column("Latency", style="yellow", justify="right")

        for result in self.results:
            table.add_row(
                result.name,
                result.workload,
                f"{result.ops_per_second / 1000:.1f}K ops/sec",
                f"{result.latency_ns:.0f} ns",
            )

        self.console.print()
        self.console.print(table)


def print_config():
    """Print the current benchmark configuration."""
    print("Benchmark Configuration:")
    print(f"  ITERATIONS: {ITERATIONS}")
    print(f"  ARITIES: {ARITIES}")


def main():
    """Main entry point for the benchmark script."""
    parser = argparse.ArgumentParser(description="Verso Performance Benchmarks")
    parser.add_argument(
        "--config", action="store_true", help="Show current benchmark configuration"
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output, show only final results",
    )

    args = parser.parse_args()

    if args.config:
        print_config()
        return

    if not args.quiet:
        print_config()
        print()

    VersoBenchmark(quiet=args.quiet).run_benchmarks()


if __name__ == "__main__":
    main()

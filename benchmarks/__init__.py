"""
Benchmarks Module

Timing data for known, vetted routines across input sizes.

This module provides:
- Warmup + adaptive iteration-count measurement per input size
- Summary statistics (total iterations, total duration, min/max average)
- Input generators (random, sorted, reverse-sorted, nearly-sorted, graphs)
- Reference routines for the algorithm catalog
- Process-isolated runs with a hard timeout
"""

__version__ = "0.1.0"

from .harness import (
    BenchmarkError,
    BenchmarkFault,
    BenchmarkOptions,
    BenchmarkTimeout,
    benchmark_powers_of_two,
    run_benchmark_over_input_sizes,
)

__all__ = [
    "BenchmarkError",
    "BenchmarkFault",
    "BenchmarkOptions",
    "BenchmarkTimeout",
    "benchmark_powers_of_two",
    "run_benchmark_over_input_sizes",
]

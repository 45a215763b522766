"""Adaptive benchmark harness over a series of input sizes.

For every size the harness builds one input, runs a few unrecorded warmup
iterations, then keeps measuring until either ``min_duration_ms`` of
cumulative time has elapsed or ``max_iterations`` is reached. Fast routines
therefore get many iterations and slow ones few, without hand tuning.

Durations are float milliseconds from ``time.perf_counter``; nothing is
rounded here.
"""

from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TypeVar

from playground_core.schemas import BenchmarkPoint, BenchmarkSummary

logger = logging.getLogger(__name__)

TInput = TypeVar("TInput")


@dataclass(frozen=True)
class BenchmarkOptions:
    warmup_iterations: int = 3
    min_duration_ms: float = 8.0
    max_iterations: int = 1000
    deadline_s: float | None = None


class BenchmarkError(Exception):
    """Base class for benchmark failures."""


class BenchmarkFault(BenchmarkError):
    """The measured routine (or its input generator) raised."""

    def __init__(self, input_size: int | None, message: str) -> None:
        where = f" at input size {input_size}" if input_size is not None else ""
        super().__init__(f"Benchmark failed{where}: {message}")
        self.input_size = input_size
        self.message = message


class BenchmarkTimeout(BenchmarkError):
    """The benchmark exceeded its wall-clock budget."""

    def __init__(self, budget_s: float) -> None:
        super().__init__(f"Benchmark exceeded its {budget_s}s budget")
        self.budget_s = budget_s


class _Deadline:
    def __init__(self, budget_s: float | None) -> None:
        self.budget_s = budget_s
        self._expires_at = time.perf_counter() + budget_s if budget_s is not None else None

    def check(self) -> None:
        if self._expires_at is not None and time.perf_counter() > self._expires_at:
            raise BenchmarkTimeout(self.budget_s or 0.0)


def _call(fn: Callable[[TInput], object], value: TInput, input_size: int) -> None:
    try:
        fn(value)
    except Exception as exc:  # noqa: BLE001 - any routine failure aborts the whole benchmark
        raise BenchmarkFault(input_size, f"{exc.__class__.__name__}: {exc}") from exc


def measure_point(
    fn: Callable[[TInput], object],
    value: TInput,
    input_size: int,
    options: BenchmarkOptions,
    deadline: _Deadline | None = None,
) -> BenchmarkPoint:
    deadline = deadline or _Deadline(None)

    for _ in range(max(0, options.warmup_iterations)):
        deadline.check()
        _call(fn, value, input_size)

    iterations = 0
    elapsed_ms = 0.0
    start = time.perf_counter()
    while elapsed_ms < options.min_duration_ms and iterations < options.max_iterations:
        deadline.check()
        _call(fn, value, input_size)
        iterations += 1
        elapsed_ms = (time.perf_counter() - start) * 1000

    if iterations == 0:
        # min_duration_ms <= 0 or max_iterations <= 0: still record one sample.
        start = time.perf_counter()
        _call(fn, value, input_size)
        iterations = 1
        elapsed_ms = (time.perf_counter() - start) * 1000

    return BenchmarkPoint(input_size=input_size, iterations=iterations, total_duration_ms=elapsed_ms)


def summarize(label: str, points: Sequence[BenchmarkPoint]) -> BenchmarkSummary:
    total_iterations = sum(p.iterations for p in points)
    total_duration_ms = sum(p.total_duration_ms for p in points)
    averages = [p.average_ms for p in points]
    min_avg = min(averages) if averages else math.inf
    max_avg = max(averages) if averages else 0.0
    return BenchmarkSummary(
        label=label,
        points=list(points),
        total_iterations=total_iterations,
        total_duration_ms=total_duration_ms,
        min_avg_ms=min_avg if math.isfinite(min_avg) else 0.0,
        max_avg_ms=max_avg,
    )


def run_benchmark_over_input_sizes(
    label: str,
    fn: Callable[[TInput], object],
    make_input: Callable[[int], TInput],
    input_sizes: Sequence[int],
    options: BenchmarkOptions | None = None,
    on_point: Callable[[BenchmarkPoint], None] | None = None,
) -> BenchmarkSummary:
    """Benchmark ``fn`` for every size in ``input_sizes``, in order.

    Args:
        label: Human-readable label, usually the algorithm id.
        fn: Pure (or at least deterministic) routine to measure.
        make_input: Builds one input instance for a given size.
        input_sizes: Sizes to measure; one point per size.
        options: Warmup, threshold, cap and cooperative deadline.
        on_point: Called after each point is measured (progress reporting).

    Raises:
        BenchmarkFault: ``fn`` or ``make_input`` raised for some size. No
            partial summary is returned.
        BenchmarkTimeout: ``options.deadline_s`` elapsed.
    """
    options = options or BenchmarkOptions()
    deadline = _Deadline(options.deadline_s)
    points: list[BenchmarkPoint] = []

    for size in input_sizes:
        deadline.check()
        try:
            value = make_input(size)
        except Exception as exc:  # noqa: BLE001
            raise BenchmarkFault(size, f"input generation failed: {exc.__class__.__name__}: {exc}") from exc
        point = measure_point(fn, value, size, options, deadline)
        logger.debug(
            f"{label}: n={size} iterations={point.iterations} avg={point.average_ms:.4f}ms"
        )
        points.append(point)
        if on_point is not None:
            on_point(point)

    return summarize(label, points)


def benchmark_powers_of_two(
    label: str,
    fn: Callable[[TInput], object],
    make_input: Callable[[int], TInput],
    min_exponent: int = 3,
    max_exponent: int = 12,
    options: BenchmarkOptions | None = None,
) -> BenchmarkSummary:
    """Benchmark ``fn`` for sizes 2**min_exponent .. 2**max_exponent."""
    sizes = [2**exponent for exponent in range(min_exponent, max_exponent + 1)]
    return run_benchmark_over_input_sizes(label, fn, make_input, sizes, options)

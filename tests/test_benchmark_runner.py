import time

import pytest

from benchmarks import generators, routines
from benchmarks.harness import BenchmarkFault, BenchmarkOptions, BenchmarkTimeout
from benchmarks.runner import run_isolated

FAST = BenchmarkOptions(warmup_iterations=1, min_duration_ms=1.0, max_iterations=20)


def test_isolated_run_returns_summary():
    summary = run_isolated(
        "selection-sort",
        routines.selection_sort,
        generators.make_sort_input,
        [8, 16],
        FAST,
        timeout_seconds=30.0,
    )
    assert [p.input_size for p in summary.points] == [8, 16]
    assert summary.total_iterations == sum(p.iterations for p in summary.points)


def test_isolated_run_is_killed_after_timeout():
    start = time.perf_counter()
    with pytest.raises(BenchmarkTimeout):
        run_isolated(
            "sleepy",
            time.sleep,
            float,
            [5],
            BenchmarkOptions(warmup_iterations=0, min_duration_ms=1.0, max_iterations=1),
            timeout_seconds=1.0,
        )
    assert time.perf_counter() - start < 10.0


def test_isolated_fault_is_reported():
    with pytest.raises(BenchmarkFault) as excinfo:
        run_isolated(
            "binary-search",
            routines.binary_search,
            generators.make_sort_input,
            [8],
            FAST,
            timeout_seconds=30.0,
        )
    assert excinfo.value.input_size == 8

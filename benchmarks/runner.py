"""Run a benchmark in a separate process with a hard wall-clock limit.

The harness' cooperative deadline is checked between iterations only; a
single pathological iteration could outlive it. The child process is
terminated (then killed) once ``timeout_seconds`` passes, so the caller is
never held longer than that plus process teardown.
"""

from __future__ import annotations

import logging
import multiprocessing
from collections.abc import Callable, Sequence
from multiprocessing.connection import Connection
from typing import Any

from playground_core.schemas import BenchmarkSummary

from .harness import (
    BenchmarkFault,
    BenchmarkOptions,
    BenchmarkTimeout,
    run_benchmark_over_input_sizes,
)

logger = logging.getLogger(__name__)

_JOIN_GRACE_SECONDS = 1.0


def _benchmark_worker(
    conn: Connection,
    label: str,
    fn: Callable[[Any], object],
    make_input: Callable[[int], Any],
    input_sizes: list[int],
    options: BenchmarkOptions,
) -> None:
    try:
        summary = run_benchmark_over_input_sizes(label, fn, make_input, input_sizes, options)
        conn.send(("ok", summary.model_dump()))
    except BenchmarkTimeout as exc:
        conn.send(("timeout", exc.budget_s))
    except BenchmarkFault as exc:
        conn.send(("fault", exc.input_size, exc.message))
    except Exception as exc:  # noqa: BLE001 - report instead of dying silently
        conn.send(("fault", None, f"{exc.__class__.__name__}: {exc}"))
    finally:
        conn.close()


def run_isolated(
    label: str,
    fn: Callable[[Any], object],
    make_input: Callable[[int], Any],
    input_sizes: Sequence[int],
    options: BenchmarkOptions | None = None,
    timeout_seconds: float = 30.0,
) -> BenchmarkSummary:
    """Benchmark in a spawned child; ``fn`` and ``make_input`` must be importable."""
    options = options or BenchmarkOptions(deadline_s=timeout_seconds)
    ctx = multiprocessing.get_context("spawn")
    receiver, sender = ctx.Pipe(duplex=False)
    process = ctx.Process(
        target=_benchmark_worker,
        args=(sender, label, fn, make_input, list(input_sizes), options),
        daemon=True,
    )
    process.start()
    sender.close()
    received = False
    try:
        if not receiver.poll(timeout_seconds):
            logger.warning(f"Benchmark {label} killed after {timeout_seconds}s")
            raise BenchmarkTimeout(timeout_seconds)
        try:
            message = receiver.recv()
            received = True
        except EOFError as exc:
            raise BenchmarkFault(None, "benchmark worker exited unexpectedly") from exc
    finally:
        _teardown(process, graceful=received)
        receiver.close()

    status = message[0]
    if status == "ok":
        return BenchmarkSummary.model_validate(message[1])
    if status == "timeout":
        raise BenchmarkTimeout(float(message[1]))
    raise BenchmarkFault(message[1], str(message[2]))


def _teardown(process: multiprocessing.process.BaseProcess, graceful: bool) -> None:
    if graceful:
        process.join(_JOIN_GRACE_SECONDS)
    if process.is_alive():
        process.terminate()
        process.join(_JOIN_GRACE_SECONDS)
    if process.is_alive():
        process.kill()
        process.join()

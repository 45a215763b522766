"""Request orchestration: validate, execute, trace, assemble.

Each call walks ``VALIDATING -> EXECUTING -> TRACING -> ASSEMBLING -> DONE``;
any classified failure moves it to ``FAILED`` and stops. Nothing is retried.
Every failure leaves as exactly one ``PlaygroundError`` kind. Trace
generation is the only stage allowed to degrade: it yields an empty trace
plus a warning instead of failing the request.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from benchmarks.harness import BenchmarkFault, BenchmarkTimeout, run_benchmark_over_input_sizes
from benchmarks.runner import run_isolated
from sandbox.outcome import Completed, Faulted, FaultKind, TimedOut
from tracing.base import TraceGenerationError
from tracing.instrumented import trace_from_line_events

from .catalog import CatalogEntry, lookup_algorithm, runner_for
from .errors import (
    ExecutionTimeoutError,
    InternalFault,
    PlaygroundError,
    RequestValidationError,
    RuntimeFault,
    UnsupportedLanguageError,
)
from .schemas import (
    BaseSchema,
    BenchmarkReport,
    BenchmarkRequest,
    ExecutionRequest,
    ExecutionResult,
    TraceStep,
)
from .settings import EngineSettings

logger = logging.getLogger(__name__)


class Stage(str, Enum):
    VALIDATING = "validating"
    EXECUTING = "executing"
    TRACING = "tracing"
    ASSEMBLING = "assembling"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class Outcome:
    """Terminal state of one request plus what the caller gets back."""

    stage: Stage
    result: BaseSchema | None = None
    error: PlaygroundError | None = None
    warnings: tuple[str, ...] = ()
    failed_at: Stage | None = None

    @property
    def ok(self) -> bool:
        return self.stage is Stage.DONE

    @property
    def http_status(self) -> int:
        return 200 if self.error is None else self.error.http_status

    def to_envelope(self) -> dict[str, Any]:
        if self.error is not None:
            return {"ok": False, "error": self.error.message, "details": self.error.to_details()}
        envelope: dict[str, Any] = {"ok": True, "result": self.result.to_dict() if self.result else None}
        if self.warnings:
            envelope["warnings"] = list(self.warnings)
        return envelope


@dataclass
class _Progress:
    stage: Stage = Stage.VALIDATING
    warnings: list[str] = field(default_factory=list)

    def fail(self, error: PlaygroundError) -> Outcome:
        return Outcome(Stage.FAILED, error=error, warnings=tuple(self.warnings), failed_at=self.stage)


def _validation_error(exc: PydanticValidationError) -> RequestValidationError:
    # loc/msg only: pydantic's "input" entry would echo the submitted code.
    errors = [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]
    summary = "; ".join(f"{e['field']}: {e['message']}" for e in errors)
    return RequestValidationError(f"Invalid request: {summary}", {"errors": errors})


def _parse(model: type[BaseSchema], payload: object) -> Any:
    if isinstance(payload, model):
        return payload
    if not isinstance(payload, Mapping):
        raise RequestValidationError("Request body must be a JSON object.")
    try:
        return model.from_dict(payload)
    except PydanticValidationError as exc:
        raise _validation_error(exc) from exc


class Orchestrator:
    """Entry point for ``execute`` and ``benchmark`` requests.

    Holds only immutable settings; every call builds its own sandbox and
    benchmark state, so one instance can serve concurrent requests.
    """

    def __init__(self, settings: EngineSettings | None = None) -> None:
        self.settings: EngineSettings = settings or EngineSettings()

    # ---------- execute ----------

    def execute(self, payload: Mapping[str, Any] | ExecutionRequest, settings: EngineSettings | None = None) -> Outcome:
        settings = settings or self.settings
        progress = _Progress()
        try:
            request: ExecutionRequest = _parse(ExecutionRequest, payload)
            runner_factory = runner_for(request.language)
            if runner_factory is None:
                raise UnsupportedLanguageError(
                    request.language,
                    {"algorithmId": request.algorithm_id, "hasInput": request.input is not None},
                )
            entry = lookup_algorithm(request.algorithm_id)
            if request.algorithm_id is not None and entry is None:
                progress.warnings.append(
                    f"Unknown algorithmId '{request.algorithm_id}'; falling back to a line-level trace."
                )
            instrument = request.options.capture_trace and entry is None

            progress.stage = Stage.EXECUTING
            executor = runner_factory(settings.sandbox.to_limits())
            outcome = executor.execute(request.source_code, request.input, capture_trace=instrument)
            completed = self._require_completed(outcome)
            if completed.output_truncated:
                progress.warnings.append(
                    f"Output exceeded {settings.sandbox.max_output_chars} characters and was truncated."
                )

            progress.stage = Stage.TRACING
            trace = self._build_trace(request, entry, completed, settings, progress.warnings)

            progress.stage = Stage.ASSEMBLING
            result = ExecutionResult(
                success=True,
                stdout=completed.stdout,
                stderr=completed.stderr,
                duration_ms=completed.duration_ms,
                trace=trace,
            )
            logger.info(
                f"Executed {request.language} program in {completed.duration_ms:.1f}ms "
                f"({len(trace)} trace steps)"
            )
            return Outcome(Stage.DONE, result=result, warnings=tuple(progress.warnings))
        except PlaygroundError as exc:
            if isinstance(exc, InternalFault):
                logger.error(f"Internal fault during {progress.stage.value}: {exc.internal_message}")
            else:
                logger.info(f"Request failed during {progress.stage.value}: {exc.kind.value}")
            return progress.fail(exc)
        except Exception:
            logger.exception(f"Unexpected error during {progress.stage.value}")
            return progress.fail(InternalFault())

    def _require_completed(self, outcome: object) -> Completed:
        if isinstance(outcome, Completed):
            return outcome
        if isinstance(outcome, TimedOut):
            failed = ExecutionResult(success=False, stdout="", stderr="", duration_ms=outcome.elapsed_ms)
            raise ExecutionTimeoutError(
                f"Execution timed out after {outcome.timeout_seconds}s; your program did not finish in time.",
                {"timeoutSeconds": outcome.timeout_seconds, "result": failed.to_dict()},
            )
        if isinstance(outcome, Faulted):
            if outcome.error_kind is FaultKind.INVALID_OUTPUT:
                raise InternalFault(f"Sandbox protocol error: {outcome.message}")
            failed = ExecutionResult(
                success=False,
                stdout=outcome.stdout,
                stderr=outcome.stderr,
                duration_ms=outcome.duration_ms,
            )
            raise RuntimeFault(
                outcome.message,
                {"errorKind": outcome.error_kind.value, "result": failed.to_dict()},
            )
        raise InternalFault(f"Unexpected sandbox outcome {type(outcome).__name__}")

    def _build_trace(
        self,
        request: ExecutionRequest,
        entry: CatalogEntry | None,
        completed: Completed,
        settings: EngineSettings,
        warnings: list[str],
    ) -> list[TraceStep]:
        if not request.options.capture_trace:
            warnings.append("captureTrace=false: trace generation was skipped.")
            return []

        if entry is None:
            if completed.trace_truncated:
                warnings.append(
                    f"Line trace stopped after {settings.sandbox.max_trace_steps} steps."
                )
            return trace_from_line_events(completed.line_events)

        try:
            steps = entry.trace(
                request.input,
                settings.trace.max_input_length,
                settings.trace.max_synthetic_steps,
            )
        except TraceGenerationError as exc:
            logger.warning(f"Trace generation for {entry.algorithm_id} failed: {exc}")
            warnings.append(f"Trace generation for '{entry.algorithm_id}' failed: {exc}. Returning an empty trace.")
            return []
        except (ValueError, TypeError) as exc:
            logger.warning(f"Trace generation for {entry.algorithm_id} produced invalid steps: {exc}")
            warnings.append(f"Trace generation for '{entry.algorithm_id}' failed. Returning an empty trace.")
            return []

        warnings.append(
            f"The trace replays the reference {entry.title} implementation; it may not follow "
            "the exact path of your code, whose output is shown as stdout/stderr."
        )
        return steps

    # ---------- benchmark ----------

    def benchmark(self, payload: Mapping[str, Any] | BenchmarkRequest, settings: EngineSettings | None = None) -> Outcome:
        settings = settings or self.settings
        bench = settings.benchmark
        progress = _Progress()
        try:
            request: BenchmarkRequest = _parse(BenchmarkRequest, payload)
            if runner_for(request.language) is None:
                raise UnsupportedLanguageError(request.language, {"algorithmId": request.algorithm_id})
            try:
                sizes = bench.check_sizes(request.input_sizes)
            except ValueError as e:
                raise RequestValidationError(str(e)) from e

            entry = lookup_algorithm(request.algorithm_id)
            routine = entry.benchmark_routine if entry is not None else None
            make_input = entry.make_benchmark_input if entry is not None else None
            if entry is None or routine is None or make_input is None:
                report = BenchmarkReport(
                    algorithm_id=request.algorithm_id,
                    language=request.language,
                    notes=(
                        f"Benchmarks are not available for '{request.algorithm_id}'. "
                        "Returned an empty dataset."
                    ),
                )
                return Outcome(Stage.DONE, result=report)

            progress.stage = Stage.EXECUTING
            options = bench.to_options()
            if bench.isolated:
                summary = run_isolated(
                    entry.algorithm_id,
                    routine,
                    make_input,
                    sizes,
                    options,
                    timeout_seconds=bench.timeout_seconds,
                )
            else:
                summary = run_benchmark_over_input_sizes(
                    entry.algorithm_id,
                    routine,
                    make_input,
                    sizes,
                    options,
                )

            progress.stage = Stage.ASSEMBLING
            report = BenchmarkReport.from_summary(
                summary,
                algorithm_id=request.algorithm_id,
                language=request.language,
                notes=(
                    f"Reference {entry.title} implementation; {bench.warmup_iterations} warmup iterations, "
                    f"then at least {bench.min_duration_ms}ms or {bench.max_iterations} iterations per size. "
                    "Inputs are random per size."
                ),
            )
            logger.info(
                f"Benchmarked {entry.algorithm_id} over {len(sizes)} sizes "
                f"({summary.total_iterations} iterations, {summary.total_duration_ms:.1f}ms)"
            )
            return Outcome(Stage.DONE, result=report)
        except BenchmarkTimeout as exc:
            return progress.fail(ExecutionTimeoutError(str(exc), {"timeoutSeconds": exc.budget_s}))
        except BenchmarkFault as exc:
            logger.warning(str(exc))
            return progress.fail(RuntimeFault(str(exc), {"inputSize": exc.input_size}))
        except PlaygroundError as exc:
            return progress.fail(exc)
        except Exception:
            logger.exception(f"Unexpected error during benchmark {progress.stage.value}")
            return progress.fail(InternalFault())

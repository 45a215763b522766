import time
from unittest.mock import patch

import pytest

from playground_core.errors import ErrorKind, InternalFault
from playground_core.orchestrator import Orchestrator, Stage
from playground_core.settings import BenchmarkSettings, EngineSettings, SandboxSettings
from sandbox.outcome import Completed, Faulted, FaultKind


@pytest.fixture
def orchestrator():
    settings = EngineSettings(
        sandbox=SandboxSettings(timeout_seconds=1.0),
        benchmark=BenchmarkSettings(
            warmup_iterations=1,
            min_duration_ms=1.0,
            max_iterations=20,
            default_input_sizes=[8, 16],
            isolated=False,
        ),
    )
    return Orchestrator(settings)


def _execute(orchestrator, **payload):
    body = {"language": "python", "code": "print('hi')"}
    body.update(payload)
    return orchestrator.execute(body)


class TestExecute:
    def test_plain_program_succeeds(self, orchestrator):
        outcome = _execute(orchestrator, options={"captureTrace": False})

        assert outcome.ok
        assert outcome.stage is Stage.DONE
        assert outcome.http_status == 200
        envelope = outcome.to_envelope()
        assert envelope["ok"] is True
        assert envelope["result"]["success"] is True
        assert envelope["result"]["stdout"] == "hi\n"
        assert envelope["result"]["stderr"] == ""
        assert envelope["result"]["trace"] == []
        assert any("captureTrace=false" in w for w in envelope["warnings"])

    def test_known_algorithm_gets_reference_trace(self, orchestrator):
        outcome = _execute(orchestrator, algorithmId="bubble-sort", input=[5, 1, 4, 2])

        assert outcome.ok
        trace = outcome.result.trace
        assert trace[0].array_snapshot == [5, 1, 4, 2]
        assert trace[-1].array_snapshot == [1, 2, 4, 5]
        assert any("reference" in w for w in outcome.warnings)

    def test_known_algorithm_without_input_uses_default(self, orchestrator):
        outcome = _execute(orchestrator, algorithmId="selection-sort")
        assert outcome.ok
        assert outcome.result.trace[0].array_snapshot == [5, 1, 4, 2, 8]

    def test_unknown_algorithm_falls_back_to_line_trace(self, orchestrator):
        outcome = _execute(orchestrator, code="a = 1\nb = a + 1\n", algorithmId="quantum-sort")

        assert outcome.ok
        assert [s.current_line for s in outcome.result.trace] == [1, 2]
        assert outcome.result.trace[0].description == "Line 1 in module level"
        assert any("Unknown algorithmId" in w for w in outcome.warnings)

    def test_bad_trace_input_degrades_to_empty_trace(self, orchestrator):
        outcome = _execute(orchestrator, algorithmId="binary-search", input={"array": [3, 1, 2], "target": 1})

        assert outcome.ok
        assert outcome.result.trace == []
        assert outcome.result.stdout == "hi\n"
        assert any("empty trace" in w for w in outcome.warnings)

    def test_timeout(self, orchestrator):
        started = time.monotonic()
        outcome = _execute(orchestrator, code="while True:\n    pass\n")
        elapsed = time.monotonic() - started

        assert elapsed < orchestrator.settings.sandbox.timeout_seconds + 0.5
        assert not outcome.ok
        assert outcome.failed_at is Stage.EXECUTING
        assert outcome.http_status == 200
        envelope = outcome.to_envelope()
        assert envelope["ok"] is False
        assert "timed out" in envelope["error"]
        assert envelope["details"]["kind"] == "timeout_error"
        assert envelope["details"]["result"]["success"] is False

    def test_runtime_fault(self, orchestrator):
        outcome = _execute(orchestrator, code="print('partial')\n1 / 0\n")

        assert outcome.error.kind is ErrorKind.RUNTIME_FAULT
        details = outcome.to_envelope()["details"]
        assert details["errorKind"] == "runtime_error"
        assert details["result"]["stdout"] == "partial\n"
        assert "ZeroDivisionError" in outcome.error.message

    def test_blocked_import_is_a_runtime_fault(self, orchestrator):
        outcome = _execute(orchestrator, code="import os\n")
        assert outcome.error.kind is ErrorKind.RUNTIME_FAULT
        assert outcome.to_envelope()["details"]["errorKind"] == "import_blocked"

    def test_syntax_error_is_a_runtime_fault(self, orchestrator):
        outcome = _execute(orchestrator, code="def f(:\n")
        assert outcome.error.kind is ErrorKind.RUNTIME_FAULT
        assert outcome.to_envelope()["details"]["errorKind"] == "syntax_error"

    def test_validation_error(self, orchestrator):
        outcome = orchestrator.execute({"language": "python", "code": ""})

        assert outcome.error.kind is ErrorKind.VALIDATION_ERROR
        assert outcome.error.message == "Input sizes must not exceed 4096."
        assert outcome.http_status == 400
        assert outcome.failed_at is Stage.VALIDATING

    def test_validation_error_does_not_echo_code(self, orchestrator):
        outcome = orchestrator.execute({"language": "klingon", "code": "super_secret_code()"})

        assert outcome.http_status == 400
        assert "super_secret_code" not in str(outcome.to_envelope())

    def test_non_object_body(self, orchestrator):
        outcome = orchestrator.execute(["not", "an", "object"])
        assert outcome.error.kind is ErrorKind.VALIDATION_ERROR

    def test_unsupported_language(self, orchestrator):
        outcome = _execute(orchestrator, language="javascript", code="console.log(1)")

        assert outcome.http_status == 200
        envelope = outcome.to_envelope()
        assert envelope["ok"] is False
        assert envelope["details"]["kind"] == "unsupported_language"
        assert envelope["details"]["notImplemented"] is True

    def test_output_truncation_warning(self):
        orchestrator = Orchestrator(EngineSettings(sandbox=SandboxSettings(max_output_chars=10)))
        outcome = orchestrator.execute(
            {"language": "python", "code": "print('x' * 100)", "options": {"captureTrace": False}}
        )
        assert outcome.ok
        assert outcome.result.stdout == "x" * 10
        assert any("truncated" in w for w in outcome.warnings)

    def test_repeated_requests_are_independent(self, orchestrator):
        payload = {"language": "python", "code": "print(sum(INPUT))", "input": [1, 2, 3], "algorithmId": "bubble-sort"}
        first = orchestrator.execute(payload).to_envelope()
        second = orchestrator.execute(payload).to_envelope()

        assert first["result"]["stdout"] == second["result"]["stdout"] == "6\n"
        assert first["result"]["trace"] == second["result"]["trace"]

    def test_sandbox_protocol_error_is_internal(self, orchestrator):
        broken = Faulted(FaultKind.INVALID_OUTPUT, "Empty response from sandbox")
        with patch("sandbox.executor.SandboxExecutor.execute", return_value=broken):
            outcome = _execute(orchestrator)

        assert outcome.http_status == 500
        assert isinstance(outcome.error, InternalFault)
        assert outcome.error.message == InternalFault.PUBLIC_MESSAGE
        assert "Empty response" not in str(outcome.to_envelope())

    def test_unexpected_exception_is_internal(self, orchestrator):
        with patch("sandbox.executor.SandboxExecutor.execute", side_effect=RuntimeError("kaboom")):
            outcome = _execute(orchestrator)

        assert outcome.http_status == 500
        assert "kaboom" not in str(outcome.to_envelope())

    def test_line_trace_from_completed_events(self, orchestrator):
        completed = Completed(stdout="", stderr="", duration_ms=1.0, trace_truncated=True)
        with patch("sandbox.executor.SandboxExecutor.execute", return_value=completed):
            outcome = _execute(orchestrator)

        assert outcome.ok
        assert outcome.result.trace == []
        assert any("Line trace stopped" in w for w in outcome.warnings)


class TestBenchmark:
    def test_benchmark_known_algorithm(self, orchestrator):
        outcome = orchestrator.benchmark({"algorithmId": "bubble-sort", "language": "python", "inputSizes": [8, 16, 32]})

        assert outcome.ok
        report = outcome.result
        assert [p.input_size for p in report.points] == [8, 16, 32]
        assert all(p.iterations >= 1 for p in report.points)
        assert report.total_iterations == sum(p.iterations for p in report.points)
        assert report.min_avg_ms <= report.max_avg_ms
        assert report.notes

    def test_benchmark_default_sizes(self, orchestrator):
        outcome = orchestrator.benchmark({"algorithmId": "pack-insertion-sort", "language": "python"})
        assert [p.input_size for p in outcome.result.points] == [8, 16]
        assert outcome.result.algorithm_id == "pack-insertion-sort"

    def test_unknown_algorithm_returns_empty_dataset(self, orchestrator):
        outcome = orchestrator.benchmark({"algorithmId": "quantum-sort", "language": "python"})

        assert outcome.ok
        assert outcome.result.points == []
        assert "not available" in outcome.result.notes

    def test_too_many_sizes(self, orchestrator):
        outcome = orchestrator.benchmark(
            {"algorithmId": "bubble-sort", "language": "python", "inputSizes": list(range(1, 40))}
        )
        assert outcome.http_status == 400

    def test_size_too_large(self, orchestrator):
        outcome = orchestrator.benchmark({"algorithmId": "bubble-sort", "language": "python", "inputSizes": [10**6]})
        assert outcome.error.kind is ErrorKind.VALIDATION_ERROR

    def test_unsupported_language(self, orchestrator):
        outcome = orchestrator.benchmark({"algorithmId": "bubble-sort", "language": "javascript"})
        assert outcome.to_envelope()["details"]["kind"] == "unsupported_language"

    def test_missing_algorithm_id(self, orchestrator):
        outcome = orchestrator.benchmark({"language": "python"})
        assert outcome.http_status == 400

    def test_benchmark_timeout_maps_to_timeout_error(self, orchestrator):
        from benchmarks.harness import BenchmarkTimeout

        with patch(
            "playground_core.orchestrator.run_benchmark_over_input_sizes",
            side_effect=BenchmarkTimeout(30.0),
        ):
            outcome = orchestrator.benchmark({"algorithmId": "bubble-sort", "language": "python"})

        assert outcome.error.kind is ErrorKind.TIMEOUT_ERROR
        assert outcome.http_status == 200

    def test_benchmark_fault_maps_to_runtime_fault(self, orchestrator):
        from benchmarks.harness import BenchmarkFault

        with patch(
            "playground_core.orchestrator.run_benchmark_over_input_sizes",
            side_effect=BenchmarkFault(16, "ValueError: bad"),
        ):
            outcome = orchestrator.benchmark({"algorithmId": "bubble-sort", "language": "python"})

        assert outcome.error.kind is ErrorKind.RUNTIME_FAULT
        assert outcome.to_envelope()["details"]["inputSize"] == 16

    def test_isolated_benchmark(self):
        settings = EngineSettings(
            benchmark=BenchmarkSettings(warmup_iterations=1, min_duration_ms=1.0, max_iterations=10, isolated=True)
        )
        outcome = Orchestrator(settings).benchmark(
            {"algorithmId": "linear-search", "language": "python", "inputSizes": [8, 16]}
        )
        assert outcome.ok
        assert [p.input_size for p in outcome.result.points] == [8, 16]

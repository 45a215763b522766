from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from playground_core.schemas import (
    BenchmarkPoint,
    BenchmarkReport,
    BenchmarkRequest,
    BenchmarkSummary,
    ExecutionRequest,
    ExecutionResult,
    TraceStep,
)


def test_execution_request_accepts_wire_aliases() -> None:
    request = ExecutionRequest.from_dict(
        {"language": "Python", "code": "print(1)", "algoId": "bubble-sort", "input": [3, 1]}
    )

    assert request.language == "python"
    assert request.source_code == "print(1)"
    assert request.algorithm_id == "bubble-sort"
    assert request.input == [3, 1]
    assert request.options.capture_trace is True


def test_execution_request_capture_trace_option() -> None:
    request = ExecutionRequest.from_dict(
        {"language": "python", "code": "x = 1", "options": {"captureTrace": False}}
    )
    assert request.options.capture_trace is False


def test_execution_request_blank_algorithm_is_none() -> None:
    request = ExecutionRequest.from_dict({"language": "python", "code": "x = 1", "algorithmId": "  "})
    assert request.algorithm_id is None


@pytest.mark.parametrize(
    "payload",
    [
        {"language": "python", "code": "   "},
        {"language": "cobol", "code": "x = 1"},
        {"language": "python"},
        {"code": "x = 1"},
    ],
)
def test_execution_request_rejects_invalid(payload) -> None:
    with pytest.raises(ValidationError):
        ExecutionRequest.from_dict(payload)


def test_trace_step_serializes_camel_case() -> None:
    step = TraceStep(step=1, current_line=4, description="Compare", array_snapshot=[2, 1], highlighted_indices=[0, 1])

    assert step.to_dict() == {
        "step": 1,
        "currentLine": 4,
        "description": "Compare",
        "arraySnapshot": [2, 1],
        "highlightedIndices": [0, 1],
        "frames": [],
    }


def test_trace_step_deduplicates_highlights() -> None:
    step = TraceStep(step=1, current_line=1, description="d", array_snapshot=[1, 2, 3], highlighted_indices=[2, 0, 2])
    assert step.highlighted_indices == [2, 0]


def test_trace_step_rejects_out_of_range_highlight() -> None:
    with pytest.raises(ValidationError):
        TraceStep(step=1, current_line=1, description="d", array_snapshot=[1], highlighted_indices=[1])


def test_execution_result_requires_contiguous_steps() -> None:
    steps = [
        TraceStep(step=1, current_line=1, description="a"),
        TraceStep(step=3, current_line=2, description="b"),
    ]
    with pytest.raises(ValidationError):
        ExecutionResult(success=True, stdout="", stderr="", duration_ms=1.0, trace=steps)


def test_execution_result_round_trip() -> None:
    result = ExecutionResult(
        success=True,
        stdout="hi\n",
        stderr="",
        duration_ms=1.5,
        trace=[TraceStep(step=1, current_line=1, description="a", array_snapshot=[1], highlighted_indices=[0])],
    )
    restored = ExecutionResult.from_json(result.to_json())

    assert restored == result
    assert result.to_dict()["durationMs"] == 1.5


def test_benchmark_point_average() -> None:
    point = BenchmarkPoint(input_size=8, iterations=4, total_duration_ms=2.0)
    assert point.average_ms == 0.5
    assert point.to_dict() == {"inputSize": 8, "iterations": 4, "totalDurationMs": 2.0, "averageMs": 0.5}


@pytest.mark.parametrize(
    "fields",
    [
        {"input_size": 0, "iterations": 1, "total_duration_ms": 1.0},
        {"input_size": 8, "iterations": 0, "total_duration_ms": 1.0},
        {"input_size": 8, "iterations": 1, "total_duration_ms": -1.0},
    ],
)
def test_benchmark_point_validation(fields) -> None:
    with pytest.raises(ValidationError):
        BenchmarkPoint(**fields)


def test_benchmark_request_sizes() -> None:
    request = BenchmarkRequest.from_dict({"algorithmId": "bubble-sort", "language": "python", "inputSizes": [8, 16]})
    assert request.input_sizes == [8, 16]

    with pytest.raises(ValidationError):
        BenchmarkRequest.from_dict({"algorithmId": "bubble-sort", "language": "python", "inputSizes": []})
    with pytest.raises(ValidationError):
        BenchmarkRequest.from_dict({"algorithmId": "bubble-sort", "language": "python", "inputSizes": [8, -1]})


def test_benchmark_report_from_summary() -> None:
    points = [
        BenchmarkPoint(input_size=8, iterations=2, total_duration_ms=1.0),
        BenchmarkPoint(input_size=16, iterations=1, total_duration_ms=2.0),
    ]
    summary = BenchmarkSummary(
        label="bubble-sort",
        points=points,
        total_iterations=3,
        total_duration_ms=3.0,
        min_avg_ms=0.5,
        max_avg_ms=2.0,
    )

    report = BenchmarkReport.from_summary(summary, algorithm_id="bubble-sort", language="python")
    data = report.to_dict()

    assert data["algorithmId"] == "bubble-sort"
    assert data["totalIterations"] == 3
    assert [p["inputSize"] for p in data["points"]] == [8, 16]
    assert "notes" not in data
    assert report.created_at.tzinfo is not None


def test_benchmark_report_naive_datetime_is_utc() -> None:
    report = BenchmarkReport(algorithm_id="x", language="python", created_at=datetime(2026, 1, 1))
    assert report.created_at.utcoffset() == timezone.utc.utcoffset(report.created_at)

from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import datetime, timezone
from typing import Any, TypeVar

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

KNOWN_LANGUAGES = ("python", "javascript")


def _ensure_utc(value: datetime) -> datetime:
    if value.tzinfo is None or value.tzinfo.utcoffset(value) is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


TBaseSchema = TypeVar("TBaseSchema", bound="BaseSchema")


class BaseSchema(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_json(cls: type[TBaseSchema], data: str) -> TBaseSchema:
        return cls.model_validate_json(data)

    @classmethod
    def from_dict(cls: type[TBaseSchema], data: Mapping[str, object]) -> TBaseSchema:
        return cls.model_validate(data)


class FrozenSchema(BaseSchema):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class ExecutionOptions(BaseSchema):
    capture_trace: bool = True


class ExecutionRequest(BaseSchema):
    language: str
    source_code: str = Field(validation_alias=AliasChoices("code", "sourceCode", "source_code"))
    algorithm_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("algorithmId", "algoId", "algorithm_id"),
    )
    input: Any = None
    options: ExecutionOptions = Field(default_factory=ExecutionOptions)

    @field_validator("language")
    @classmethod
    def language_known(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in KNOWN_LANGUAGES:
            raise ValueError(f"language must be one of: {', '.join(KNOWN_LANGUAGES)}")
        return normalized

    @field_validator("source_code")
    @classmethod
    def source_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("code must be a non-empty string")
        return value

    @field_validator("algorithm_id")
    @classmethod
    def blank_algorithm_is_none(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        return value.strip()


class TraceFrame(FrozenSchema):
    line: int
    function_name: str
    locals: dict[str, str] = Field(default_factory=dict)


class TraceStep(FrozenSchema):
    step: int = Field(ge=1)
    current_line: int
    description: str
    array_snapshot: list[int | float] | None = None
    highlighted_indices: list[int] | None = None
    frames: list[TraceFrame] = Field(default_factory=list)

    @field_validator("highlighted_indices")
    @classmethod
    def indices_are_a_set(cls, value: list[int] | None) -> list[int] | None:
        if value is None:
            return None
        seen: dict[int, None] = {}
        for index in value:
            seen.setdefault(index, None)
        return list(seen)

    @model_validator(mode="after")
    def highlights_inside_snapshot(self) -> "TraceStep":
        if self.array_snapshot is None or self.highlighted_indices is None:
            return self
        size = len(self.array_snapshot)
        for index in self.highlighted_indices:
            if index < 0 or index >= size:
                raise ValueError(
                    f"highlighted index {index} outside snapshot of length {size}"
                )
        return self


def validate_trace(steps: Sequence[TraceStep]) -> None:
    """Raise ValueError unless steps are numbered 1..N without gaps."""
    for expected, trace_step in enumerate(steps, start=1):
        if trace_step.step != expected:
            raise ValueError(f"trace step {trace_step.step} found where {expected} was expected")


class ExecutionResult(FrozenSchema):
    success: bool
    stdout: str
    stderr: str
    duration_ms: float = Field(ge=0)
    trace: list[TraceStep] = Field(default_factory=list)

    @field_validator("trace")
    @classmethod
    def trace_contiguous(cls, value: list[TraceStep]) -> list[TraceStep]:
        validate_trace(value)
        return value


class BenchmarkPoint(FrozenSchema):
    input_size: int = Field(gt=0)
    iterations: int = Field(ge=1)
    total_duration_ms: float = Field(ge=0)

    @computed_field(alias="averageMs")
    @property
    def average_ms(self) -> float:
        return self.total_duration_ms / self.iterations


class BenchmarkSummary(FrozenSchema):
    label: str
    points: list[BenchmarkPoint]
    total_iterations: int = Field(ge=0)
    total_duration_ms: float = Field(ge=0)
    min_avg_ms: float = Field(ge=0)
    max_avg_ms: float = Field(ge=0)


class BenchmarkRequest(BaseSchema):
    algorithm_id: str = Field(validation_alias=AliasChoices("algorithmId", "algoId", "algorithm_id"))
    language: str
    input_sizes: list[int] | None = None

    @field_validator("algorithm_id")
    @classmethod
    def algorithm_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("algorithmId must be a non-empty string")
        return value.strip()

    @field_validator("language")
    @classmethod
    def language_known(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in KNOWN_LANGUAGES:
            raise ValueError(f"language must be one of: {', '.join(KNOWN_LANGUAGES)}")
        return normalized

    @field_validator("input_sizes")
    @classmethod
    def sizes_positive(cls, value: list[int] | None) -> list[int] | None:
        if value is None:
            return None
        if not value:
            raise ValueError("inputSizes must not be empty")
        if any(size <= 0 for size in value):
            raise ValueError("inputSizes must be positive integers")
        return value


class BenchmarkReport(FrozenSchema):
    algorithm_id: str
    language: str
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    points: list[BenchmarkPoint] = Field(default_factory=list)
    total_iterations: int = 0
    total_duration_ms: float = 0.0
    min_avg_ms: float = 0.0
    max_avg_ms: float = 0.0
    notes: str | None = None

    @field_validator("created_at")
    @classmethod
    def created_at_utc(cls, value: datetime) -> datetime:
        return _ensure_utc(value)

    @classmethod
    def from_summary(
        cls,
        summary: BenchmarkSummary,
        *,
        algorithm_id: str,
        language: str,
        notes: str | None = None,
    ) -> "BenchmarkReport":
        return cls(
            algorithm_id=algorithm_id,
            language=language,
            points=summary.points,
            total_iterations=summary.total_iterations,
            total_duration_ms=summary.total_duration_ms,
            min_avg_ms=summary.min_avg_ms,
            max_avg_ms=summary.max_avg_ms,
            notes=notes,
        )

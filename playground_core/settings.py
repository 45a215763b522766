"""Engine settings: every limit the orchestrator passes down per call."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from benchmarks.harness import BenchmarkOptions
from sandbox import policy
from sandbox.executor import SandboxLimits


class SettingsModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    def to_dict(self) -> dict[str, object]:
        return self.model_dump(mode="json")


class SandboxSettings(SettingsModel):
    timeout_seconds: float = Field(default=2.0, gt=0, le=60)
    memory_limit_mb: int = Field(default=256, ge=32)
    recursion_limit: int = Field(default=1000, ge=50)
    max_output_chars: int = Field(default=64_000, ge=1)
    max_trace_steps: int = Field(default=500, ge=1)
    allowed_modules: list[str] = Field(default_factory=lambda: list(policy.ALLOWED_MODULES))

    @field_validator("allowed_modules")
    @classmethod
    def no_blocked_modules(cls, value: list[str]) -> list[str]:
        blocked = sorted(set(value) & set(policy.BLOCKED_MODULES))
        if blocked:
            raise ValueError(f"modules blocked by sandbox policy cannot be allowed: {blocked}")
        return value

    def to_limits(self) -> SandboxLimits:
        return SandboxLimits(
            timeout_seconds=self.timeout_seconds,
            memory_limit_mb=self.memory_limit_mb,
            recursion_limit=self.recursion_limit,
            max_output_chars=self.max_output_chars,
            max_trace_steps=self.max_trace_steps,
            allowed_modules=tuple(self.allowed_modules),
        )


class TraceSettings(SettingsModel):
    max_input_length: int = Field(default=64, ge=1)
    max_synthetic_steps: int = Field(default=5000, ge=1)


class BenchmarkSettings(SettingsModel):
    warmup_iterations: int = Field(default=3, ge=0)
    min_duration_ms: float = Field(default=8.0, ge=0)
    max_iterations: int = Field(default=1000, ge=1)
    default_input_sizes: list[int] = Field(default_factory=lambda: [32, 64, 128, 256, 512, 1024])
    max_input_sizes: int = Field(default=16, ge=1)
    max_input_size: int = Field(default=4096, ge=1)
    timeout_seconds: float = Field(default=30.0, gt=0)
    isolated: bool = True

    @field_validator("default_input_sizes")
    @classmethod
    def sizes_positive(cls, value: list[int]) -> list[int]:
        if not value or any(size <= 0 for size in value):
            raise ValueError("default_input_sizes must be a non-empty list of positive integers")
        return value

    def check_sizes(self, sizes: list[int] | None) -> list[int]:
        """Return the sizes to run, falling back to the defaults. Raises ValueError past the limits."""
        sizes = sizes or self.default_input_sizes
        if len(sizes) > self.max_input_sizes:
            raise ValueError(f"At most {self.max_input_sizes} input sizes can be benchmarked.")
        if max(sizes) > self.max_input_size:
            raise ValueError(f"Input sizes must not exceed {self.max_input_size}.")
        return sizes

    def to_options(self) -> BenchmarkOptions:
        return BenchmarkOptions(
            warmup_iterations=self.warmup_iterations,
            min_duration_ms=self.min_duration_ms,
            max_iterations=self.max_iterations,
            deadline_s=self.timeout_seconds,
        )


class EngineSettings(SettingsModel):
    sandbox: SandboxSettings = Field(default_factory=SandboxSettings)
    trace: TraceSettings = Field(default_factory=TraceSettings)
    benchmark: BenchmarkSettings = Field(default_factory=BenchmarkSettings)

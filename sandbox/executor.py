"""
Subprocess-based sandbox executor for untrusted code.
"""

from __future__ import annotations

import json
import logging
import math
import os
import subprocess
import sys
import tempfile
import time
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import cast

from sandbox import policy
from sandbox import protocol
from sandbox.outcome import (
    Completed,
    Faulted,
    FaultKind,
    LineEvent,
    SandboxOutcome,
    TimedOut,
    sanitize_message,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SandboxLimits:
    """Per-call execution limits. Passed explicitly on every call."""

    timeout_seconds: float = 2.0
    memory_limit_mb: int = 256
    recursion_limit: int = 1000
    max_output_chars: int = 64_000
    max_trace_steps: int = 500
    allowed_modules: tuple[str, ...] = tuple(policy.ALLOWED_MODULES)


class SandboxExecutor:
    """
    Execute untrusted code in a fresh subprocess with best-effort limits.

    On Unix platforms, CPU and memory limits are enforced via resource.setrlimit.
    On Windows, these limits degrade gracefully and only wall-clock timeout applies.
    The wall-clock timeout always kills the child, so a busy loop can never
    hold the caller past ``timeout_seconds``.
    """

    def __init__(self, limits: SandboxLimits | None = None) -> None:
        self.limits: SandboxLimits = limits or SandboxLimits()

    def execute(
        self,
        code: str,
        input_value: object = None,
        *,
        capture_trace: bool = False,
        limits: SandboxLimits | None = None,
    ) -> SandboxOutcome:
        limits = limits or self.limits
        payload = {
            "code": code,
            "input": input_value,
            "allowed_modules": list(limits.allowed_modules),
            "max_output_chars": limits.max_output_chars,
            "capture_trace": capture_trace,
            "max_trace_steps": limits.max_trace_steps,
            "recursion_limit": limits.recursion_limit,
        }
        try:
            encoded = json.dumps(payload)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"Input value is not JSON serializable: {exc}") from exc

        start = time.perf_counter()
        try:
            with tempfile.TemporaryDirectory(prefix="sandbox-") as workdir:
                completed = subprocess.run(
                    [sys.executable, "-c", protocol.CHILD_TEMPLATE],
                    input=encoded,
                    encoding="utf-8",
                    capture_output=True,
                    timeout=limits.timeout_seconds,
                    cwd=workdir,
                    env=self._child_env(),
                    preexec_fn=self._limit_resources(limits) if os.name != "nt" else None,
                )
        except subprocess.TimeoutExpired:
            elapsed_ms = (time.perf_counter() - start) * 1000
            logger.warning(f"Sandbox execution timed out after {limits.timeout_seconds}s")
            return TimedOut(elapsed_ms=elapsed_ms, timeout_seconds=limits.timeout_seconds)

        runtime_ms = (time.perf_counter() - start) * 1000
        if completed.returncode < 0:
            signal_number = -completed.returncode
            logger.warning(f"Sandbox child terminated by signal {signal_number}")
            return Faulted(
                FaultKind.RESOURCE_LIMIT,
                f"Process terminated by signal {signal_number} (resource limit exceeded)",
                duration_ms=runtime_ms,
            )

        if not completed.stdout:
            error = sanitize_message(completed.stderr.strip(), code) or "Empty response from sandbox"
            return Faulted(FaultKind.INVALID_OUTPUT, error, duration_ms=runtime_ms)

        try:
            loaded = cast(object, json.loads(completed.stdout))
        except json.JSONDecodeError as exc:
            return Faulted(FaultKind.INVALID_OUTPUT, f"Invalid JSON from sandbox: {exc}", duration_ms=runtime_ms)

        if not isinstance(loaded, dict):
            return Faulted(FaultKind.INVALID_OUTPUT, "Invalid response type from sandbox", duration_ms=runtime_ms)
        data = cast(dict[str, object], loaded)
        return self._parse_response(data, code, runtime_ms)

    def _parse_response(self, data: dict[str, object], code: str, fallback_ms: float) -> SandboxOutcome:
        stdout = str(data.get("stdout") or "")
        stderr = str(data.get("stderr") or "")
        runtime_value = data.get("runtime_ms")
        runtime_ms = fallback_ms
        if isinstance(runtime_value, (int, float)) and math.isfinite(runtime_value):
            runtime_ms = float(runtime_value)

        error = data.get("error")
        if not data.get("success"):
            kind = FaultKind.RUNTIME_ERROR
            message = "Unknown error"
            if isinstance(error, dict):
                try:
                    kind = FaultKind(str(error.get("kind")))
                except ValueError:
                    kind = FaultKind.RUNTIME_ERROR
                message = str(error.get("message") or message)
            message = sanitize_message(message, code)
            stderr = f"{stderr}{message}" if not stderr or stderr.endswith("\n") else f"{stderr}\n{message}"
            return Faulted(kind, message, stdout=stdout, stderr=stderr, duration_ms=runtime_ms)

        return Completed(
            stdout=stdout,
            stderr=stderr,
            duration_ms=runtime_ms,
            line_events=_parse_line_events(data.get("line_events")),
            output_truncated=bool(data.get("output_truncated")),
            trace_truncated=bool(data.get("trace_truncated")),
        )

    @staticmethod
    def _child_env() -> dict[str, str]:
        """Minimal environment: the host's variables are never inherited."""
        project_root = str(Path(__file__).resolve().parents[1])
        return {
            "PYTHONPATH": project_root,
            "PYTHONIOENCODING": "utf-8",
            "PYTHONDONTWRITEBYTECODE": "1",
            "PYTHONHASHSEED": "0",
        }

    @staticmethod
    def _limit_resources(limits: SandboxLimits):
        """Return a preexec_fn to enforce resource limits on Unix."""
        def _apply_limits():
            try:
                import resource
            except ImportError:
                return
            cpu_seconds = max(1, math.ceil(limits.timeout_seconds) + 1)
            memory_bytes = int(limits.memory_limit_mb * 1024 * 1024)
            resource.setrlimit(resource.RLIMIT_CPU, (cpu_seconds, cpu_seconds + 1))
            if hasattr(resource, "RLIMIT_AS"):
                resource.setrlimit(resource.RLIMIT_AS, (memory_bytes, memory_bytes))
            elif hasattr(resource, "RLIMIT_DATA"):
                resource.setrlimit(resource.RLIMIT_DATA, (memory_bytes, memory_bytes))

        return _apply_limits


def _parse_line_events(value: object) -> tuple[LineEvent, ...]:
    if not isinstance(value, Sequence) or isinstance(value, str):
        return ()
    events: list[LineEvent] = []
    for item in value:
        if not isinstance(item, dict):
            continue
        locals_value = item.get("locals")
        events.append(
            LineEvent(
                line=int(item.get("line", 0)),
                function=str(item.get("function", "")),
                locals=(
                    {str(k): str(v) for k, v in locals_value.items()}
                    if isinstance(locals_value, dict)
                    else {}
                ),
            )
        )
    return tuple(events)

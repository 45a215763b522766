"""Sandbox outcome variants and error message sanitisation."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Union

MAX_MESSAGE_CHARS = 500
REDACTED = "<redacted>"
_MIN_REDACT_LENGTH = 8


class FaultKind(str, Enum):
    SYNTAX_ERROR = "syntax_error"
    RUNTIME_ERROR = "runtime_error"
    IMPORT_BLOCKED = "import_blocked"
    RESOURCE_LIMIT = "resource_limit"
    INVALID_OUTPUT = "invalid_output"


@dataclass(frozen=True)
class LineEvent:
    """One coarse stepping event recorded by the child's trace hook."""

    line: int
    function: str
    locals: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class Completed:
    stdout: str
    stderr: str
    duration_ms: float
    line_events: tuple[LineEvent, ...] = ()
    output_truncated: bool = False
    trace_truncated: bool = False


@dataclass(frozen=True)
class TimedOut:
    elapsed_ms: float
    timeout_seconds: float


@dataclass(frozen=True)
class Faulted:
    error_kind: FaultKind
    message: str
    stdout: str = ""
    stderr: str = ""
    duration_ms: float = 0.0


SandboxOutcome = Union[Completed, TimedOut, Faulted]


def sanitize_message(message: str, source: str) -> str:
    """Strip echoes of the submitted source from an error message.

    Any source line long enough to be meaningful is replaced wholesale, then
    the message is clipped to ``MAX_MESSAGE_CHARS``.
    """
    cleaned = message
    for raw_line in source.splitlines():
        line = raw_line.strip()
        if len(line) >= _MIN_REDACT_LENGTH and line in cleaned:
            cleaned = cleaned.replace(line, REDACTED)
    cleaned = re.sub(r"\s+\n", "\n", cleaned).strip()
    if len(cleaned) > MAX_MESSAGE_CHARS:
        cleaned = cleaned[: MAX_MESSAGE_CHARS - 3] + "..."
    return cleaned

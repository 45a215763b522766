"""Coarse line-level traces derived from the sandbox's stepping hook."""

from __future__ import annotations

from collections.abc import Iterable

from playground_core.schemas import TraceFrame, TraceStep
from sandbox.outcome import LineEvent

from .base import TraceBuilder

MODULE_FRAME = "<module>"


def trace_from_line_events(events: Iterable[LineEvent]) -> list[TraceStep]:
    """Turn recorded line events into steps; no events gives an empty trace."""
    trace = TraceBuilder()
    for event in events:
        where = "module level" if event.function == MODULE_FRAME else f"{event.function}()"
        trace.add(
            f"Line {event.line} in {where}",
            event.line,
            frames=[TraceFrame(line=event.line, function_name=event.function, locals=event.locals)],
        )
    return trace.build()

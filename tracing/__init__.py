"""
Tracing Module

Step-by-step execution traces for visual playback.

This module provides:
- Contiguous step numbering and snapshot copying (TraceBuilder)
- Synthetic traces from trusted reference implementations
- Coarse line traces from the sandbox stepping hook
"""

__version__ = "0.1.0"

from .base import TraceBuilder, TraceGenerationError
from .instrumented import trace_from_line_events

__all__ = [
    "TraceBuilder",
    "TraceGenerationError",
    "trace_from_line_events",
]

"""
Sandbox Module

Resource-bounded execution environment for submitted programs.

This module provides:
- One fresh subprocess per execution, torn down on every exit path
- Wall-clock timeout with a hard kill
- Memory and CPU limits (platform-dependent)
- Import restrictions and allowlisting, blocked builtins
- Captured stdout/stderr buffers and an optional line-stepping hook

WARNING: This sandbox is NOT a security boundary against hostile code. It
guards against buggy programs (infinite loops, runaway recursion, huge
output), not against deliberate escapes.
"""

__version__ = "0.1.0"

from .executor import SandboxExecutor, SandboxLimits
from .outcome import Completed, Faulted, FaultKind, LineEvent, SandboxOutcome, TimedOut

__all__ = [
    "SandboxExecutor",
    "SandboxLimits",
    "Completed",
    "Faulted",
    "FaultKind",
    "LineEvent",
    "SandboxOutcome",
    "TimedOut",
]

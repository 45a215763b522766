"""
Child process protocol for sandbox execution.

The parent writes one JSON payload to the child's stdin and reads one JSON
response from its stdout. User output never reaches the real process streams:
``sys.stdout``/``sys.stderr`` are redirected into bounded buffers for the
duration of the user program.
"""

from __future__ import annotations

import io
import json
import reprlib
import sys
import time
import traceback
from contextlib import redirect_stderr, redirect_stdout
from types import CodeType, FrameType
from typing import Any, cast

from sandbox import policy
from sandbox.outcome import FaultKind

CHILD_TEMPLATE = """
from sandbox.protocol import child_main
child_main()
""".strip()

USER_FILENAME = "<user-code>"
INPUT_NAME = "INPUT"

_repr = reprlib.Repr()
_repr.maxstring = 60
_repr.maxother = 60
_repr.maxlist = 20
_repr.maxdict = 10


def utf8_safe(text: str) -> str:
    """Escape lone surrogates so the text always encodes as UTF-8."""
    return text.encode("utf-8", "backslashreplace").decode("utf-8")


class BoundedBuffer(io.StringIO):
    """StringIO that silently stops accepting text past ``limit`` chars."""

    def __init__(self, limit: int) -> None:
        super().__init__()
        self.limit = limit
        self.truncated = False
        self._size = 0

    def write(self, text: str) -> int:
        safe = utf8_safe(text)
        remaining = self.limit - self._size
        if remaining <= 0:
            if safe:
                self.truncated = True
            return len(text)
        if len(safe) > remaining:
            self.truncated = True
            text_to_write = safe[:remaining]
        else:
            text_to_write = safe
        self._size += len(text_to_write)
        _ = super().write(text_to_write)
        return len(text)


class LineRecorder:
    """``sys.settrace`` hook recording line events of the user program only."""

    def __init__(self, max_steps: int) -> None:
        self.max_steps = max_steps
        self.events: list[dict[str, object]] = []
        self.truncated = False

    def __call__(self, frame: FrameType, event: str, arg: object) -> Any:
        if frame.f_code.co_filename != USER_FILENAME:
            return None
        if event == "line":
            if len(self.events) >= self.max_steps:
                self.truncated = True
                sys.settrace(None)
                return None
            self.events.append(
                {
                    "line": frame.f_lineno,
                    "function": frame.f_code.co_name,
                    "locals": _snapshot_locals(frame),
                }
            )
        return self


def _snapshot_locals(frame: FrameType) -> dict[str, str]:
    snapshot: dict[str, str] = {}
    for name, value in list(frame.f_locals.items()):
        if name.startswith("__") or callable(value) or isinstance(value, type(sys)):
            continue
        try:
            snapshot[name] = utf8_safe(_repr.repr(value))
        except Exception:  # noqa: BLE001 - user __repr__ may raise anything
            snapshot[name] = "<unrepresentable>"
    return snapshot


def _load_payload() -> dict[str, object]:
    raw = sys.stdin.read()
    if not raw:
        return {}
    try:
        return cast(dict[str, object], json.loads(raw))
    except json.JSONDecodeError:
        return {}


def _format_error(exc: BaseException) -> str:
    return utf8_safe(f"{exc.__class__.__name__}: {exc}")


def _user_lineno(exc: BaseException) -> int | None:
    lineno = None
    for frame_summary in traceback.extract_tb(exc.__traceback__):
        if frame_summary.filename == USER_FILENAME:
            lineno = frame_summary.lineno
    return lineno


def classify_exception(exc: BaseException) -> tuple[FaultKind, str]:
    """Map an exception raised by user code to a fault kind and message."""
    if isinstance(exc, SyntaxError):
        return FaultKind.SYNTAX_ERROR, utf8_safe(f"{exc.__class__.__name__}: {exc.msg} (line {exc.lineno})")
    if isinstance(exc, (RecursionError, MemoryError)):
        return FaultKind.RESOURCE_LIMIT, _format_error(exc)

    message = _format_error(exc)
    lineno = _user_lineno(exc)
    if lineno is not None:
        message = f"{message} (line {lineno})"
    if isinstance(exc, ImportError) and ("sandbox policy" in str(exc) or "allowlisted" in str(exc)):
        return FaultKind.IMPORT_BLOCKED, message
    return FaultKind.RUNTIME_ERROR, message


def _run_user_code(
    compiled: CodeType,
    namespace: dict[str, object],
    recorder: LineRecorder | None,
) -> None:
    if recorder is not None:
        sys.settrace(recorder)
    try:
        exec(compiled, namespace, namespace)
    finally:
        sys.settrace(None)


def child_main() -> None:
    """Entry point for the sandbox child process."""
    real_stdout = sys.stdout
    payload = _load_payload()
    code = str(payload.get("code", ""))
    allowed_modules = cast(list[str], payload.get("allowed_modules", list(policy.ALLOWED_MODULES)))
    max_output_chars = int(cast(int, payload.get("max_output_chars", 64_000)))
    capture_trace = bool(payload.get("capture_trace", False))
    max_trace_steps = int(cast(int, payload.get("max_trace_steps", 500)))
    recursion_limit = int(cast(int, payload.get("recursion_limit", 1000)))

    stdout_buffer = BoundedBuffer(max_output_chars)
    stderr_buffer = BoundedBuffer(max_output_chars)
    recorder = LineRecorder(max_trace_steps) if capture_trace else None

    response: dict[str, object]
    start = time.perf_counter()
    try:
        compiled = compile(code, USER_FILENAME, "exec")
        namespace: dict[str, object] = {
            "__builtins__": policy.build_safe_builtins(allowed_modules=allowed_modules),
            "__name__": "__main__",
            INPUT_NAME: payload.get("input"),
        }
        sys.setrecursionlimit(recursion_limit)
        with redirect_stdout(stdout_buffer), redirect_stderr(stderr_buffer):
            _run_user_code(compiled, namespace, recorder)
        response = {"success": True, "error": None}
    except SystemExit as exc:
        if exc.code in (None, 0):
            response = {"success": True, "error": None}
        else:
            response = {
                "success": False,
                "error": {"kind": FaultKind.RUNTIME_ERROR.value, "message": utf8_safe(f"SystemExit: {exc.code}")},
            }
    except BaseException as exc:  # noqa: BLE001 - capture all child errors
        kind, message = classify_exception(exc)
        response = {"success": False, "error": {"kind": kind.value, "message": message}}

    response["runtime_ms"] = (time.perf_counter() - start) * 1000
    response["stdout"] = stdout_buffer.getvalue()
    response["stderr"] = stderr_buffer.getvalue()
    response["output_truncated"] = stdout_buffer.truncated or stderr_buffer.truncated
    response["line_events"] = recorder.events if recorder is not None else []
    response["trace_truncated"] = recorder.truncated if recorder is not None else False
    _ = real_stdout.write(json.dumps(response))
    real_stdout.flush()


if __name__ == "__main__":
    child_main()

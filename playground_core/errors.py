"""Error taxonomy surfaced by the orchestrator.

Every failure leaving the orchestrator is exactly one of these kinds.
``http_status`` is what the transport layer answers with: 4xx for malformed
requests, 200 for failures that belong to the submitted program, 500 for
anything unexpected on our side.
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    VALIDATION_ERROR = "validation_error"
    TIMEOUT_ERROR = "timeout_error"
    RUNTIME_FAULT = "runtime_fault"
    UNSUPPORTED_LANGUAGE = "unsupported_language"
    INTERNAL_FAULT = "internal_fault"


class PlaygroundError(Exception):
    kind: ErrorKind = ErrorKind.INTERNAL_FAULT
    http_status: int = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details: dict[str, Any] = dict(details or {})

    def to_details(self) -> dict[str, Any]:
        return {"kind": self.kind.value, **self.details}


class RequestValidationError(PlaygroundError):
    kind = ErrorKind.VALIDATION_ERROR
    http_status = 400


class ExecutionTimeoutError(PlaygroundError):
    kind = ErrorKind.TIMEOUT_ERROR
    http_status = 200


class RuntimeFault(PlaygroundError):
    kind = ErrorKind.RUNTIME_FAULT
    http_status = 200


class UnsupportedLanguageError(PlaygroundError):
    kind = ErrorKind.UNSUPPORTED_LANGUAGE
    http_status = 200

    def __init__(self, language: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            f"{language} execution is not implemented by this backend.",
            {"language": language, "notImplemented": True, **(details or {})},
        )
        self.language = language


class InternalFault(PlaygroundError):
    kind = ErrorKind.INTERNAL_FAULT
    http_status = 500

    PUBLIC_MESSAGE = "Internal error while handling the request."

    def __init__(self, internal_message: str | None = None) -> None:
        super().__init__(self.PUBLIC_MESSAGE)
        # Logged server-side only, never serialised.
        self.internal_message = internal_message or self.PUBLIC_MESSAGE

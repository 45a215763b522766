"""
REST API Interface

FastAPI application exposing the execution engine over HTTP.

Status codes: 400 for malformed requests, 200 with ``ok: false`` when the
submitted program failed (timeout, runtime fault) or the language has no
runner, 500 only for internal faults.
"""

from __future__ import annotations

import json
import logging
import time
from datetime import datetime, timezone
from typing import Any

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse

from playground_core import __version__
from playground_core.catalog import ALGORITHMS, supported_languages, validate_catalog
from playground_core.errors import PlaygroundError, RequestValidationError
from playground_core.orchestrator import Orchestrator, Outcome
from playground_core.schemas import KNOWN_LANGUAGES

from .config import ServiceConfig

logger = logging.getLogger(__name__)


async def _read_json(request: Request) -> Any:
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise RequestValidationError("Invalid JSON body.") from exc


def _respond(outcome: Outcome) -> JSONResponse:
    return JSONResponse(outcome.to_envelope(), status_code=outcome.http_status)


def create_app(config: ServiceConfig | None = None) -> FastAPI:
    """Build the app. The catalog is validated here, before serving anything."""
    config = config or ServiceConfig()
    validate_catalog()
    orchestrator = Orchestrator(config.engine_settings())
    started = time.monotonic()

    app = FastAPI(title="Code Playground Execution Engine", version=__version__)
    app.state.config = config
    app.state.orchestrator = orchestrator

    @app.exception_handler(PlaygroundError)
    async def playground_error_handler(_request: Request, exc: PlaygroundError) -> JSONResponse:
        return JSONResponse(
            {"ok": False, "error": exc.message, "details": exc.to_details()},
            status_code=exc.http_status,
        )

    @app.post("/api/execute")
    async def execute(request: Request) -> JSONResponse:
        body = await _read_json(request)
        # Blocking work (child process) runs on the threadpool, one worker per request.
        outcome = await run_in_threadpool(orchestrator.execute, body)
        return _respond(outcome)

    @app.post("/api/benchmark")
    async def benchmark(request: Request) -> JSONResponse:
        body = await _read_json(request)
        outcome = await run_in_threadpool(orchestrator.benchmark, body)
        return _respond(outcome)

    @app.get("/api/health")
    def health() -> dict[str, Any]:
        uptime_seconds = time.monotonic() - started
        return {
            "status": "ok",
            "service": config.service_name,
            "uptimeMs": round(uptime_seconds * 1000),
            "uptimeSeconds": round(uptime_seconds),
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "checks": {
                "executionEngine": bool(supported_languages()),
                "algorithmCatalog": bool(ALGORITHMS),
            },
        }

    @app.get("/api/info")
    def info() -> dict[str, Any]:
        categories = sorted({entry.category for entry in ALGORITHMS.values()})
        return {
            "name": "Code Playground Execution Engine",
            "version": __version__,
            "algorithms": {
                "total": len(ALGORITHMS),
                "categories": categories,
                "ids": sorted(ALGORITHMS),
                "benchmarkable": sorted(a for a, e in ALGORITHMS.items() if e.benchmarkable),
            },
            "languages": {
                "known": list(KNOWN_LANGUAGES),
                "supported": supported_languages(),
            },
            "limits": {
                "timeoutSeconds": config.sandbox.timeout_seconds,
                "maxOutputChars": config.sandbox.max_output_chars,
                "maxTraceSteps": config.sandbox.max_trace_steps,
                "benchmarkTimeoutSeconds": config.benchmark.timeout_seconds,
            },
        }

    logger.info(f"{config.service_name} ready ({len(ALGORITHMS)} algorithms, languages: {supported_languages()})")
    return app

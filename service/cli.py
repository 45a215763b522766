"""CLI interface for running programs, benchmarks and the API server."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Optional

import typer
import yaml
from tqdm import tqdm

from benchmarks.harness import BenchmarkFault, BenchmarkTimeout, run_benchmark_over_input_sizes
from playground_core.catalog import lookup_algorithm
from playground_core.orchestrator import Orchestrator
from playground_core.schemas import BenchmarkPoint, BenchmarkReport, BenchmarkRequest

from .config import ServiceConfig, load_config

app = typer.Typer(help="Code Playground Execution Engine CLI")


def _load(config_path: Optional[str]) -> ServiceConfig:
    if config_path is None:
        config = ServiceConfig()
    else:
        try:
            config = load_config(config_path)
        except FileNotFoundError as e:
            typer.secho(f"❌ Config file not found: {e}", fg=typer.colors.RED, err=True)
            raise typer.Exit(1)
        except ValueError as e:
            typer.secho(f"❌ Invalid config: {e}", fg=typer.colors.RED, err=True)
            raise typer.Exit(1)
    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    return config


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


@app.command()
def execute(
    file: Path = typer.Argument(..., help="Source file to run"),
    language: str = typer.Option("python", "--language", "-l", help="Language of the source file"),
    algorithm: Optional[str] = typer.Option(None, "--algorithm", "-a", help="Algorithm id for a reference trace"),
    input_json: Optional[str] = typer.Option(None, "--input", help="Program input as JSON (exposed as INPUT)"),
    no_trace: bool = typer.Option(False, "--no-trace", help="Skip trace generation"),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to service YAML config"),
) -> None:
    """Run a program in the sandbox and print the response envelope."""
    config = _load(config_path)

    if not file.exists():
        typer.secho(f"❌ Source file not found: {file}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    program_input: Any = None
    if input_json is not None:
        try:
            program_input = json.loads(input_json)
        except json.JSONDecodeError as e:
            typer.secho(f"❌ --input is not valid JSON: {e}", fg=typer.colors.RED, err=True)
            raise typer.Exit(1)

    payload = {
        "language": language,
        "code": file.read_text(encoding="utf-8"),
        "algorithmId": algorithm,
        "input": program_input,
        "options": {"captureTrace": not no_trace},
    }
    outcome = Orchestrator(config.engine_settings()).execute(payload)
    _echo_json(outcome.to_envelope())
    if not outcome.ok:
        raise typer.Exit(1)


@app.command()
def benchmark(
    algorithm: str = typer.Argument(..., help="Algorithm id to benchmark"),
    sizes: Optional[list[int]] = typer.Option(None, "--size", "-s", help="Input size (repeatable)"),
    language: str = typer.Option("python", "--language", "-l", help="Language to benchmark"),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to service YAML config"),
) -> None:
    """Benchmark a reference algorithm in-process with a progress bar."""
    config = _load(config_path)
    bench = config.benchmark

    try:
        request = BenchmarkRequest(algorithm_id=algorithm, language=language, input_sizes=sizes or None)
    except ValueError as e:
        typer.secho(f"❌ Invalid benchmark request: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    entry = lookup_algorithm(request.algorithm_id)
    if entry is None or not entry.benchmarkable:
        typer.secho(f"❌ No benchmark available for '{algorithm}'", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    try:
        input_sizes = bench.check_sizes(request.input_sizes)
    except ValueError as e:
        typer.secho(f"❌ {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    pbar = tqdm(total=len(input_sizes), desc=f"⏱  {entry.algorithm_id}", unit="size", ncols=100)

    def on_point(point: BenchmarkPoint) -> None:
        pbar.update(1)
        pbar.set_postfix({"n": point.input_size, "avg_ms": f"{point.average_ms:.4f}"})

    try:
        summary = run_benchmark_over_input_sizes(
            entry.algorithm_id,
            entry.benchmark_routine,
            entry.make_benchmark_input,
            input_sizes,
            bench.to_options(),
            on_point=on_point,
        )
    except BenchmarkTimeout as e:
        typer.secho(f"❌ {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    except BenchmarkFault as e:
        typer.secho(f"❌ {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)
    finally:
        pbar.close()

    report = BenchmarkReport.from_summary(
        summary,
        algorithm_id=request.algorithm_id,
        language=request.language,
        notes=f"Reference {entry.title} implementation, measured in-process.",
    )
    _echo_json({"ok": True, "result": report.to_dict()})


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, help="Bind address (defaults to config)"),
    port: Optional[int] = typer.Option(None, help="Port (defaults to config)"),
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to service YAML config"),
) -> None:
    """Start the HTTP API server."""
    import uvicorn

    from .app import create_app

    config = _load(config_path)
    try:
        api = create_app(config)
    except ValueError as e:
        typer.secho(f"❌ Algorithm catalog is invalid: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1)

    bind_host = host or config.host
    bind_port = port or config.port
    typer.secho(f"🚀 Serving {config.service_name} on http://{bind_host}:{bind_port}", fg=typer.colors.GREEN)
    uvicorn.run(api, host=bind_host, port=bind_port, log_level=config.log_level.lower())


@app.command()
def show_config(
    config_path: Optional[str] = typer.Option(None, "--config", help="Path to service YAML config"),
) -> None:
    """Print the effective configuration as YAML."""
    config = _load(config_path)
    typer.echo(yaml.dump(config.to_dict(), default_flow_style=False, sort_keys=False, indent=2))


if __name__ == "__main__":
    app()

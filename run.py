#!/usr/bin/env python3
"""
Code Playground quick-start script

Usage:
  python run.py                          # serve with defaults on 127.0.0.1:8000
  python run.py --port 9000              # pick a port
  python run.py --config configs/default.yaml
  python run.py --timeout 5              # per-run sandbox timeout in seconds
  python run.py --help                   # show help
"""

import argparse
import sys


def print_banner():
    """Print the startup banner."""
    print()
    print("╔══════════════════════════════════════════════════════════════════╗")
    print("║          ▶  Code Playground - Execution & Trace Engine  ◀        ║")
    print("╚══════════════════════════════════════════════════════════════════╝")
    print()


def print_config(config):
    """Print the effective settings."""
    print("📋 Configuration:")
    print(f"   Service:        {config.service_name}")
    print(f"   Listen:         http://{config.host}:{config.port}")
    print(f"   Timeout:        {config.sandbox.timeout_seconds}s")
    print(f"   Memory limit:   {config.sandbox.memory_limit_mb} MB")
    print(f"   Output limit:   {config.sandbox.max_output_chars} chars")
    print(f"   Trace steps:    {config.sandbox.max_trace_steps}")
    print(f"   Benchmark:      {'isolated process' if config.benchmark.isolated else 'in-process'}, "
          f"{config.benchmark.timeout_seconds}s budget")
    print(f"   Log level:      {config.log_level}")
    print()


def main():
    parser = argparse.ArgumentParser(
        description="Code Playground quick-start script",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python run.py
  python run.py --host 0.0.0.0 --port 8080
  python run.py --config configs/default.yaml --log-level DEBUG

Endpoints:
  POST /api/execute     run code, return stdout/stderr and a trace
  POST /api/benchmark   time a reference algorithm over input sizes
  GET  /api/health      liveness
  GET  /api/info        catalog and limits
"""
    )

    parser.add_argument(
        "--config", "-c",
        default=None,
        help="Path to a service YAML config (default: built-in defaults)"
    )
    parser.add_argument(
        "--host",
        default=None,
        help="Bind address (overrides config)"
    )
    parser.add_argument(
        "--port", "-p",
        type=int,
        default=None,
        help="Port (overrides config)"
    )
    parser.add_argument(
        "--timeout", "-t",
        type=float,
        default=None,
        help="Per-run sandbox timeout in seconds (overrides config)"
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Log level (overrides config)"
    )

    args = parser.parse_args()

    print_banner()

    from service.config import ServiceConfig, load_config

    try:
        config = load_config(args.config) if args.config else ServiceConfig()
    except (FileNotFoundError, ValueError) as e:
        print(f"❌ Could not load config: {e}")
        sys.exit(1)

    overrides = {}
    if args.host:
        overrides["host"] = args.host
    if args.port:
        overrides["port"] = args.port
    if args.log_level:
        overrides["log_level"] = args.log_level
    if args.timeout is not None:
        overrides["sandbox"] = {**config.sandbox.to_dict(), "timeout_seconds": args.timeout}
    if overrides:
        try:
            config = ServiceConfig.model_validate({**config.to_dict(), **overrides})
        except ValueError as e:
            print(f"❌ Invalid option: {e}")
            sys.exit(1)

    print_config(config)

    import logging

    import uvicorn

    from service.app import create_app

    logging.basicConfig(
        level=getattr(logging, config.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    print("🚀 Starting server...")
    print()
    uvicorn.run(create_app(config), host=config.host, port=config.port, log_level=config.log_level.lower())


if __name__ == "__main__":
    main()

"""
Service Module

HTTP and command-line surfaces of the execution engine.

This module provides:
- YAML-based service configuration
- FastAPI application with execute/benchmark/health/info endpoints
- CLI for running programs, benchmarks and the API server
"""

__version__ = "0.1.0"

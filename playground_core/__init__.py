"""
Playground Core Module

Shared types and request orchestration for the execution engine.

This module provides:
- Wire schemas (requests, results, trace steps, benchmark points/summaries)
- The error taxonomy surfaced to callers
- Strategy tables mapping languages and algorithm ids to implementations
- The request orchestrator (validate, execute, trace, assemble)
"""

__version__ = "0.1.0"

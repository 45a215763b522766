"""Closed strategy tables: language -> runner, algorithm id -> reference entry.

Both tables are plain module-level constants checked once by
``validate_catalog()`` when the service starts; lookups never reflect on
names at request time.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from benchmarks import generators, routines
from sandbox.executor import SandboxExecutor, SandboxLimits
from tracing import algorithms
from tracing.base import TraceGenerationError

from .schemas import KNOWN_LANGUAGES, TraceStep, validate_trace

TraceFactory = Callable[[object, int | None, int | None], list[TraceStep]]

_ID_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")


@dataclass(frozen=True)
class CatalogEntry:
    algorithm_id: str
    title: str
    category: str
    build_trace: TraceFactory
    default_input: Any
    benchmark_routine: Callable[[Any], object] | None = None
    make_benchmark_input: Callable[[int], Any] | None = None

    @property
    def benchmarkable(self) -> bool:
        return self.benchmark_routine is not None and self.make_benchmark_input is not None

    def trace(
        self,
        raw_input: object = None,
        max_input_length: int | None = None,
        max_steps: int | None = None,
    ) -> list[TraceStep]:
        value = self.default_input if raw_input is None else raw_input
        return self.build_trace(value, max_input_length, max_steps)


def _sorting(generator: Callable[..., list[TraceStep]]) -> TraceFactory:
    def build(value: object, max_input_length: int | None, max_steps: int | None) -> list[TraceStep]:
        return generator(algorithms.coerce_number_list(value, max_input_length), max_steps)

    return build


def _searching(generator: Callable[..., list[TraceStep]]) -> TraceFactory:
    def build(value: object, max_input_length: int | None, max_steps: int | None) -> list[TraceStep]:
        arr, target = algorithms.coerce_search_input(value, max_input_length)
        return generator(arr, target, max_steps)

    return build


def _graph(generator: Callable[..., list[TraceStep]]) -> TraceFactory:
    def build(value: object, max_input_length: int | None, max_steps: int | None) -> list[TraceStep]:
        graph, start = algorithms.coerce_graph_input(value, max_input_length)
        return generator(graph, start, max_steps)

    return build


ALGORITHMS: dict[str, CatalogEntry] = {
    entry.algorithm_id: entry
    for entry in (
        CatalogEntry(
            "bubble-sort",
            "Bubble Sort",
            "sorting",
            _sorting(algorithms.bubble_sort_trace),
            algorithms.DEFAULT_SORT_INPUT,
            routines.bubble_sort,
            generators.make_sort_input,
        ),
        CatalogEntry(
            "insertion-sort",
            "Insertion Sort",
            "sorting",
            _sorting(algorithms.insertion_sort_trace),
            algorithms.DEFAULT_SORT_INPUT,
            routines.insertion_sort,
            generators.make_sort_input,
        ),
        CatalogEntry(
            "selection-sort",
            "Selection Sort",
            "sorting",
            _sorting(algorithms.selection_sort_trace),
            algorithms.DEFAULT_SORT_INPUT,
            routines.selection_sort,
            generators.make_sort_input,
        ),
        CatalogEntry(
            "binary-search",
            "Binary Search",
            "searching",
            _searching(algorithms.binary_search_trace),
            {"array": algorithms.DEFAULT_SEARCH_INPUT, "target": algorithms.DEFAULT_SEARCH_TARGET},
            routines.binary_search,
            generators.make_search_input,
        ),
        CatalogEntry(
            "linear-search",
            "Linear Search",
            "searching",
            _searching(algorithms.linear_search_trace),
            {"array": algorithms.DEFAULT_SEARCH_INPUT, "target": algorithms.DEFAULT_SEARCH_TARGET},
            routines.linear_search,
            generators.make_search_input,
        ),
        CatalogEntry(
            "bfs",
            "Breadth-First Search",
            "graph",
            _graph(algorithms.bfs_trace),
            {"graph": algorithms.DEFAULT_BFS_GRAPH, "start": algorithms.DEFAULT_BFS_START},
            routines.bfs,
            generators.make_graph_input,
        ),
    )
}

# Identifiers used by the algorithm library pages for the same entries.
ALIASES: dict[str, str] = {
    "pack-bubble-sort": "bubble-sort",
    "pack-insertion-sort": "insertion-sort",
    "pack-selection-sort": "selection-sort",
    "binary-search-iterative": "binary-search",
}

LANGUAGE_RUNNERS: dict[str, Callable[[SandboxLimits], SandboxExecutor]] = {
    "python": SandboxExecutor,
}


def lookup_algorithm(algorithm_id: str | None) -> CatalogEntry | None:
    if algorithm_id is None:
        return None
    key = algorithm_id.strip().lower()
    return ALGORITHMS.get(ALIASES.get(key, key))


def runner_for(language: str) -> Callable[[SandboxLimits], SandboxExecutor] | None:
    return LANGUAGE_RUNNERS.get(language)


def supported_languages() -> list[str]:
    return sorted(LANGUAGE_RUNNERS)


def validate_catalog() -> None:
    """Check the strategy tables once at startup; raise ValueError if broken."""
    unknown_runners = set(LANGUAGE_RUNNERS) - set(KNOWN_LANGUAGES)
    if unknown_runners:
        raise ValueError(f"Runners registered for unknown languages: {sorted(unknown_runners)}")

    for algorithm_id, entry in ALGORITHMS.items():
        if algorithm_id != entry.algorithm_id or not _ID_PATTERN.match(algorithm_id):
            raise ValueError(f"Invalid catalog id: {algorithm_id!r}")
        if (entry.benchmark_routine is None) != (entry.make_benchmark_input is None):
            raise ValueError(f"{algorithm_id}: benchmark routine and input generator must come together")
        try:
            steps = entry.trace()
        except TraceGenerationError as exc:
            raise ValueError(f"{algorithm_id}: default input does not trace: {exc}") from exc
        if not steps:
            raise ValueError(f"{algorithm_id}: default trace is empty")
        validate_trace(steps)

    for alias, target in ALIASES.items():
        if target not in ALGORITHMS:
            raise ValueError(f"Alias {alias!r} points at unknown algorithm {target!r}")

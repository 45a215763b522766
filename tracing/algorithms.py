"""Synthetic traces from trusted reference implementations.

Each generator replays a textbook implementation of its algorithm and emits
one step per meaningful operation (a comparison, a swap, a queue change).
Line numbers point into the reference listing of the algorithm, not into
whatever code the user submitted.
"""

from __future__ import annotations

import numbers
from collections import deque
from collections.abc import Mapping, Sequence

from playground_core.schemas import TraceStep

from .base import TraceBuilder, TraceGenerationError

Number = int | float

DEFAULT_SORT_INPUT: list[Number] = [5, 1, 4, 2, 8]
DEFAULT_SEARCH_INPUT: list[Number] = [1, 3, 5, 7, 9, 11]
DEFAULT_SEARCH_TARGET: Number = 7
DEFAULT_BFS_GRAPH: dict[int, list[int]] = {
    0: [1, 2],
    1: [0, 3],
    2: [0, 3],
    3: [1, 2, 4],
    4: [3],
}
DEFAULT_BFS_START = 0


# ---------- input coercion ----------


def _is_number(value: object) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool)


def coerce_number_list(value: object, max_length: int | None = None) -> list[Number]:
    if isinstance(value, Mapping):
        value = value.get("array")
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes)):
        raise TraceGenerationError("input must be an array of numbers")
    if not all(_is_number(item) for item in value):
        raise TraceGenerationError("input must contain only numbers")
    if max_length is not None and len(value) > max_length:
        raise TraceGenerationError(f"input has {len(value)} elements; at most {max_length} can be traced")
    return list(value)


def coerce_search_input(
    value: object,
    max_length: int | None = None,
) -> tuple[list[Number], Number]:
    target = DEFAULT_SEARCH_TARGET
    if isinstance(value, Mapping):
        if "target" in value:
            target = value["target"]
            if not _is_number(target):
                raise TraceGenerationError("target must be a number")
    return coerce_number_list(value, max_length), target


def coerce_graph_input(
    value: object,
    max_nodes: int | None = None,
) -> tuple[dict[int, list[int]], int]:
    if not isinstance(value, Mapping):
        raise TraceGenerationError("input must be an object with 'graph' and optional 'start'")
    raw_graph = value.get("graph", value)
    start = value.get("start", DEFAULT_BFS_START)
    if not isinstance(raw_graph, Mapping):
        raise TraceGenerationError("graph must be an adjacency mapping")
    for node, neighbors in raw_graph.items():
        if node in ("start", "graph"):
            continue
        if isinstance(neighbors, (str, bytes)) or not isinstance(neighbors, Sequence):
            raise TraceGenerationError(f"neighbors of node {node} must be a list")
    try:
        graph = {
            int(node): [int(neighbor) for neighbor in neighbors]
            for node, neighbors in raw_graph.items()
            if node not in ("start", "graph")
        }
        start_node = int(start)
    except (TypeError, ValueError) as exc:
        raise TraceGenerationError("graph nodes must be integers") from exc
    if max_nodes is not None and len(graph) > max_nodes:
        raise TraceGenerationError(f"graph has {len(graph)} nodes; at most {max_nodes} can be traced")
    return graph, start_node


# ---------- sorting ----------


def bubble_sort_trace(values: Sequence[Number], max_steps: int | None = None) -> list[TraceStep]:
    arr = list(values)
    trace = TraceBuilder(max_steps)
    n = len(arr)

    for i in range(n):
        for j in range(n - i - 1):
            trace.add(f"Compare arr[{j}] = {arr[j]} and arr[{j + 1}] = {arr[j + 1]}", 4, arr, [j, j + 1])
            if arr[j] > arr[j + 1]:
                arr[j], arr[j + 1] = arr[j + 1], arr[j]
                trace.add(f"Swap indices {j} and {j + 1}", 6, arr, [j, j + 1])
        trace.add(f"End of outer loop iteration i = {i}", 2, arr, [])

    trace.add("Array fully sorted.", 0, arr, [])
    return trace.build()


def insertion_sort_trace(values: Sequence[Number], max_steps: int | None = None) -> list[TraceStep]:
    arr = list(values)
    trace = TraceBuilder(max_steps)

    for i in range(1, len(arr)):
        key = arr[i]
        trace.add(f"Pick key arr[{i}] = {key}", 2, arr, [i])
        j = i - 1
        while j >= 0 and arr[j] > key:
            arr[j + 1] = arr[j]
            trace.add(f"arr[{j}] = {arr[j]} > {key}: shift it right to index {j + 1}", 5, arr, [j, j + 1])
            j -= 1
        arr[j + 1] = key
        trace.add(f"Insert key {key} at index {j + 1}", 8, arr, [j + 1])

    trace.add("Array fully sorted.", 0, arr, [])
    return trace.build()


def selection_sort_trace(values: Sequence[Number], max_steps: int | None = None) -> list[TraceStep]:
    arr = list(values)
    trace = TraceBuilder(max_steps)
    n = len(arr)

    for i in range(n - 1):
        min_idx = i
        trace.add(f"Pass {i}: assume minimum at index {i} ({arr[i]})", 2, arr, [i])
        for j in range(i + 1, n):
            trace.add(f"Compare arr[{j}] = {arr[j]} with current minimum {arr[min_idx]}", 4, arr, [min_idx, j])
            if arr[j] < arr[min_idx]:
                min_idx = j
                trace.add(f"New minimum {arr[min_idx]} at index {min_idx}", 5, arr, [min_idx])
        if min_idx != i:
            arr[i], arr[min_idx] = arr[min_idx], arr[i]
            trace.add(f"Swap indices {i} and {min_idx}", 7, arr, [i, min_idx])

    trace.add("Array fully sorted.", 0, arr, [])
    return trace.build()


# ---------- searching ----------


def binary_search_trace(
    values: Sequence[Number],
    target: Number,
    max_steps: int | None = None,
) -> list[TraceStep]:
    arr = list(values)
    if any(arr[k] > arr[k + 1] for k in range(len(arr) - 1)):
        raise TraceGenerationError("binary search requires a sorted array")
    trace = TraceBuilder(max_steps)

    lo, hi = 0, len(arr) - 1
    while lo <= hi:
        mid = (lo + hi) // 2
        mid_val = arr[mid]
        trace.add(f"lo = {lo}, hi = {hi}, mid = {mid}, arr[mid] = {mid_val}", 5, arr, [lo, mid, hi])

        if mid_val == target:
            trace.add(f"Found target {target} at index {mid}.", 9, arr, [mid])
            return trace.build()

        if mid_val < target:
            trace.add(f"arr[mid] < target: move lo to mid + 1 ({mid + 1}).", 11, arr, [mid])
            lo = mid + 1
        else:
            trace.add(f"arr[mid] > target: move hi to mid - 1 ({mid - 1}).", 13, arr, [mid])
            hi = mid - 1

    trace.add(f"Target {target} not found. Returning -1.", 17, arr, [])
    return trace.build()


def linear_search_trace(
    values: Sequence[Number],
    target: Number,
    max_steps: int | None = None,
) -> list[TraceStep]:
    arr = list(values)
    trace = TraceBuilder(max_steps)

    for i, value in enumerate(arr):
        trace.add(f"Compare arr[{i}] = {value} with target {target}", 3, arr, [i])
        if value == target:
            trace.add(f"Found target {target} at index {i}.", 4, arr, [i])
            return trace.build()

    trace.add(f"Target {target} not found. Returning -1.", 5, arr, [])
    return trace.build()


# ---------- graphs ----------


def bfs_trace(
    graph: Mapping[int, Sequence[int]],
    start: int,
    max_steps: int | None = None,
) -> list[TraceStep]:
    """BFS with the queue as the visualised array."""
    trace = TraceBuilder(max_steps)
    visited = {start}
    queue: deque[int] = deque([start])

    trace.add(f"Start BFS from node {start}. Enqueue {start}.", 1, list(queue), [0])

    while queue:
        trace.add(f"Dequeue node {queue[0]} from queue.", 5, list(queue), [0])
        node = queue.popleft()
        trace.add(f"Visit node {node}.", 6, [node], [0])

        for neighbor in graph.get(node, []):
            if neighbor not in visited:
                visited.add(neighbor)
                queue.append(neighbor)
                trace.add(
                    f"Discover neighbor {neighbor} of node {node}. Enqueue {neighbor}.",
                    8,
                    list(queue),
                    [len(queue) - 1],
                )

        queue_text = ", ".join(str(item) for item in queue)
        trace.add(f"Queue after processing node {node}: [{queue_text}].", 10, list(queue), [])

    trace.add("BFS complete. Queue is empty and all reachable nodes visited.", 12, [], [])
    return trace.build()

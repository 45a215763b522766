"""Input generators for benchmarks and sample inputs.

Generators take an optional ``seed``; without one every call draws fresh
random data, which is what the benchmark wants (average-case inputs per size).
"""

from __future__ import annotations

import random


def random_int_array(length: int, low: int, high: int, seed: int | None = None) -> list[int]:
    rng = random.Random(seed)
    return [rng.randint(low, high) for _ in range(length)]


def sorted_array(length: int) -> list[int]:
    return list(range(length))


def reverse_sorted_array(length: int) -> list[int]:
    """Descending values; worst case for several simple sorts."""
    return list(range(length - 1, -1, -1))


def nearly_sorted_array(length: int, swap_count: int, seed: int | None = None) -> list[int]:
    arr = sorted_array(length)
    if length == 0:
        return arr
    rng = random.Random(seed)
    for _ in range(min(swap_count, length // 2)):
        a = rng.randint(0, length - 1)
        b = rng.randint(0, length - 1)
        arr[a], arr[b] = arr[b], arr[a]
    return arr


def random_graph(node_count: int, edge_probability: float = 0.2, seed: int | None = None) -> dict[int, list[int]]:
    """Undirected G(n, p) random graph as an adjacency list."""
    rng = random.Random(seed)
    graph: dict[int, list[int]] = {node: [] for node in range(node_count)}
    for i in range(node_count):
        for j in range(i + 1, node_count):
            if rng.random() < edge_probability:
                graph[i].append(j)
                graph[j].append(i)
    return graph


# Per-size factories used by the catalog. Each is a pure function of size
# apart from the random draw.


def make_sort_input(size: int) -> list[int]:
    return random_int_array(size, 0, size * 10)


def make_search_input(size: int) -> tuple[list[int], int]:
    rng = random.Random()
    arr = sorted(random_int_array(size, 0, size * 10))
    return arr, rng.choice(arr)


def make_graph_input(size: int) -> tuple[dict[int, list[int]], int]:
    edge_probability = min(1.0, 4.0 / size) if size > 0 else 0.0
    return random_graph(size, edge_probability), 0

"""Reference routines measured by the benchmark harness.

Every routine works on a copy of its input so repeated iterations over the
same instance measure the same amount of work.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Mapping, Sequence


def bubble_sort(values: Sequence[int]) -> list[int]:
    arr = list(values)
    n = len(arr)
    for i in range(n - 1):
        swapped = False
        for j in range(n - i - 1):
            if arr[j] > arr[j + 1]:
                arr[j], arr[j + 1] = arr[j + 1], arr[j]
                swapped = True
        if not swapped:
            break
    return arr


def insertion_sort(values: Sequence[int]) -> list[int]:
    arr = list(values)
    for i in range(1, len(arr)):
        key = arr[i]
        j = i - 1
        while j >= 0 and arr[j] > key:
            arr[j + 1] = arr[j]
            j -= 1
        arr[j + 1] = key
    return arr


def selection_sort(values: Sequence[int]) -> list[int]:
    arr = list(values)
    n = len(arr)
    for i in range(n - 1):
        min_idx = i
        for j in range(i + 1, n):
            if arr[j] < arr[min_idx]:
                min_idx = j
        if min_idx != i:
            arr[i], arr[min_idx] = arr[min_idx], arr[i]
    return arr


def binary_search(instance: tuple[Sequence[int], int]) -> int:
    arr, target = instance
    lo, hi = 0, len(arr) - 1
    while lo <= hi:
        mid = (lo + hi) // 2
        if arr[mid] == target:
            return mid
        if arr[mid] < target:
            lo = mid + 1
        else:
            hi = mid - 1
    return -1


def linear_search(instance: tuple[Sequence[int], int]) -> int:
    arr, target = instance
    for i, value in enumerate(arr):
        if value == target:
            return i
    return -1


def bfs(instance: tuple[Mapping[int, Sequence[int]], int]) -> list[int]:
    graph, start = instance
    visited = {start}
    order: list[int] = []
    queue: deque[int] = deque([start])
    while queue:
        node = queue.popleft()
        order.append(node)
        for neighbor in graph.get(node, ()):
            if neighbor not in visited:
                visited.add(neighbor)
                queue.append(neighbor)
    return order

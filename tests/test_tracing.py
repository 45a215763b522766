import pytest

from tracing import TraceBuilder, TraceGenerationError, trace_from_line_events
from tracing import algorithms
from sandbox.outcome import LineEvent


def _assert_well_formed(steps):
    assert [s.step for s in steps] == list(range(1, len(steps) + 1))
    for s in steps:
        if s.array_snapshot is not None and s.highlighted_indices is not None:
            assert all(0 <= i < len(s.array_snapshot) for i in s.highlighted_indices)


def test_bubble_sort_trace_first_and_last_snapshot():
    steps = algorithms.bubble_sort_trace([5, 1, 4, 2])

    _assert_well_formed(steps)
    assert steps[0].array_snapshot == [5, 1, 4, 2]
    assert steps[0].highlighted_indices == [0, 1]
    assert steps[-1].array_snapshot == [1, 2, 4, 5]
    assert steps[-1].description == "Array fully sorted."


def test_bubble_sort_trace_does_not_mutate_input():
    values = [3, 2, 1]
    algorithms.bubble_sort_trace(values)
    assert values == [3, 2, 1]


def test_snapshots_are_independent_copies():
    steps = algorithms.bubble_sort_trace([2, 1])
    swap = next(s for s in steps if s.description.startswith("Swap"))
    assert steps[0].array_snapshot == [2, 1]
    assert swap.array_snapshot == [1, 2]


@pytest.mark.parametrize(
    "generator",
    [algorithms.bubble_sort_trace, algorithms.insertion_sort_trace, algorithms.selection_sort_trace],
)
def test_sorting_traces_end_sorted(generator):
    values = [9, -3, 4.5, 0, 4.5, 1]
    steps = generator(values)
    _assert_well_formed(steps)
    assert steps[-1].array_snapshot == sorted(values)


@pytest.mark.parametrize(
    "generator",
    [algorithms.bubble_sort_trace, algorithms.insertion_sort_trace, algorithms.selection_sort_trace],
)
def test_sorting_traces_handle_empty_input(generator):
    steps = generator([])
    assert len(steps) == 1
    assert steps[0].array_snapshot == []


def test_binary_search_finds_target():
    steps = algorithms.binary_search_trace([1, 3, 5, 7, 9, 11], 7)
    _assert_well_formed(steps)
    assert steps[-1].description == "Found target 7 at index 3."
    assert steps[-1].highlighted_indices == [3]


def test_binary_search_reports_missing_target():
    steps = algorithms.binary_search_trace([1, 3, 5], 4)
    _assert_well_formed(steps)
    assert "not found" in steps[-1].description


def test_binary_search_rejects_unsorted_input():
    with pytest.raises(TraceGenerationError, match="sorted"):
        algorithms.binary_search_trace([3, 1, 2], 1)


def test_linear_search_steps_through_array():
    steps = algorithms.linear_search_trace([4, 8, 15], 15)
    _assert_well_formed(steps)
    compares = [s for s in steps if s.description.startswith("Compare")]
    assert [s.highlighted_indices for s in compares] == [[0], [1], [2]]
    assert steps[-1].description == "Found target 15 at index 2."


def test_bfs_visits_every_reachable_node():
    steps = algorithms.bfs_trace(algorithms.DEFAULT_BFS_GRAPH, 0)
    _assert_well_formed(steps)
    visited = [s.array_snapshot[0] for s in steps if s.description.startswith("Visit")]
    assert visited == [0, 1, 2, 3, 4]
    assert steps[-1].array_snapshot == []


def test_coerce_number_list_accepts_array_key():
    assert algorithms.coerce_number_list({"array": [3, 1]}) == [3, 1]


@pytest.mark.parametrize("value", ["abc", [1, "2"], [True, False], None, {"array": 5}])
def test_coerce_number_list_rejects_bad_input(value):
    with pytest.raises(TraceGenerationError):
        algorithms.coerce_number_list(value)


def test_coerce_number_list_enforces_length():
    with pytest.raises(TraceGenerationError, match="at most 3"):
        algorithms.coerce_number_list([1, 2, 3, 4], max_length=3)


def test_coerce_graph_input_converts_json_keys():
    graph, start = algorithms.coerce_graph_input({"graph": {"0": ["1"], "1": []}, "start": "0"})
    assert graph == {0: [1], 1: []}
    assert start == 0


@pytest.mark.parametrize("neighbors", ["12", 3, None, {"1": 1}])
def test_coerce_graph_input_rejects_non_list_neighbors(neighbors):
    with pytest.raises(TraceGenerationError, match="neighbors of node 0 must be a list"):
        algorithms.coerce_graph_input({"graph": {"0": neighbors}})


def test_trace_builder_enforces_step_cap():
    builder = TraceBuilder(max_steps=2)
    builder.add("one", 1)
    builder.add("two", 2)
    with pytest.raises(TraceGenerationError):
        builder.add("three", 3)
    assert [s.step for s in builder.build()] == [1, 2]


def test_trace_builder_rejects_highlight_outside_snapshot():
    builder = TraceBuilder()
    with pytest.raises(ValueError):
        builder.add("bad", 1, [1, 2], [2])


def test_trace_from_line_events():
    events = [
        LineEvent(line=1, function="<module>", locals={}),
        LineEvent(line=3, function="helper", locals={"x": "1"}),
    ]
    steps = trace_from_line_events(events)

    assert [s.step for s in steps] == [1, 2]
    assert steps[0].description == "Line 1 in module level"
    assert steps[1].description == "Line 3 in helper()"
    assert steps[1].frames[0].function_name == "helper"
    assert steps[1].frames[0].locals == {"x": "1"}
    assert steps[1].array_snapshot is None


def test_trace_from_no_events_is_empty():
    assert trace_from_line_events([]) == []

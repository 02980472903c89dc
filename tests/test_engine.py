import random
from math import inf

import pytest

from gridrace.core.engine import SearchEngine, search, make_frontier, FifoFrontier, PriorityFrontier
from gridrace.core.errors import SameEndpoints
from gridrace.core.sink import TraceRecorder
from gridrace.core.types import Grid, PathCell, Policy, Visited, manhattan

POLICIES = list(Policy)


def _gap_wall():
    return [(r, 15) for r in range(20) if r != 10]


def _scattered_walls(seed):
    rng = random.Random(seed)
    cells = [(r, c) for r in range(20) for c in range(30)]
    return [c for c in cells if c not in ((0, 0), (19, 29)) and rng.random() < 0.25]


LAYOUTS = [
    pytest.param([], id="open"),
    pytest.param(_gap_wall(), id="gap-wall"),
    pytest.param(_scattered_walls(1), id="scatter-1"),
    pytest.param(_scattered_walls(7), id="scatter-7"),
    pytest.param(_scattered_walls(42), id="scatter-42"),
]


def _is_walk(path, grid):
    return all(manhattan(a, b) == 1 for a, b in zip(path, path[1:])) \
        and not any(grid.is_obstacle(c) for c in path)


@pytest.mark.parametrize("policy", POLICIES)
@pytest.mark.parametrize("start,end", [
    ((5, 5), (5, 6)),
    ((5, 5), (6, 5)),
    ((0, 0), (19, 29)),
    ((19, 0), (0, 29)),
    ((3, 17), (12, 4)),
])
def test_open_grid_path_length_is_manhattan_plus_one(policy, start, end):
    grid = Grid(start=start, end=end)
    result = search(grid, policy)
    assert result.found
    assert result.path_length == manhattan(start, end) + 1
    assert result.path[0] == start and result.path[-1] == end
    assert _is_walk(result.path, grid)


@pytest.mark.parametrize("walls", LAYOUTS)
def test_bfs_and_dijkstra_are_equivalent(make_grid, walls):
    grid = make_grid(20, 30, (0, 0), (19, 29), walls)
    bfs_trace, dij_trace = TraceRecorder(), TraceRecorder()
    bfs = search(grid, Policy.BFS, sink=bfs_trace)
    dij = search(grid, Policy.DIJKSTRA, sink=dij_trace)
    assert (bfs.steps, bfs.path_length) == (dij.steps, dij.path_length)
    assert bfs.path == dij.path
    assert bfs_trace.events == dij_trace.events


@pytest.mark.parametrize("walls", LAYOUTS)
def test_astar_never_expands_more_than_bfs(make_grid, walls):
    grid = make_grid(20, 30, (0, 0), (19, 29), walls)
    bfs = search(grid, Policy.BFS)
    astar = search(grid, Policy.ASTAR)
    assert astar.steps <= bfs.steps
    assert astar.path_length == bfs.path_length


def test_astar_beats_bfs_towards_the_middle():
    grid = Grid(start=(10, 2), end=(10, 27))
    bfs = search(grid, Policy.BFS)
    astar = search(grid, Policy.ASTAR)
    assert astar.path_length == bfs.path_length == 26
    assert astar.steps < bfs.steps


def test_corner_to_corner_steps(corners_grid):
    for policy in POLICIES:
        result = search(corners_grid, policy)
        assert result.path_length == 49
        assert result.steps == 599


@pytest.mark.parametrize("policy", POLICIES)
def test_enclosed_end_exhausts_reachable_cells(make_grid, policy):
    grid = make_grid(5, 5, (0, 0), (4, 4), walls=[(3, 4), (4, 3)])
    result = search(grid, policy)
    assert not result.found
    assert result.path_length == inf
    assert result.path == ()
    assert result.steps == 5 * 5 - 2 - 1


@pytest.mark.parametrize("policy", POLICIES)
def test_iteration_cap_reports_not_found(corners_grid, policy):
    result = search(corners_grid, policy, max_iterations=100)
    assert not result.found
    assert result.steps == 100


def test_zero_iterations(corners_grid):
    result = search(corners_grid, Policy.BFS, max_iterations=0)
    assert result.steps == 0 and not result.found


@pytest.mark.parametrize("policy", POLICIES)
def test_trace_events(corners_grid, policy):
    trace = TraceRecorder()
    result = search(corners_grid, policy, sink=trace)
    assert (0, 0) not in trace.visited_cells
    assert len(trace.visited_cells) == result.steps - 1
    assert len(set(trace.visited_cells)) == len(trace.visited_cells)
    assert trace.path_cells == list(result.path[1:-1])
    # visits come first, then the path
    first_path = next(i for i, e in enumerate(trace.events) if isinstance(e, PathCell))
    assert all(isinstance(e, Visited) for e in trace.events[:first_path])
    assert all(isinstance(e, PathCell) for e in trace.events[first_path:])


def test_adjacent_endpoints_emit_no_path_cells():
    trace = TraceRecorder()
    result = search(Grid(start=(0, 0), end=(0, 1)), Policy.ASTAR, sink=trace)
    assert result.path == ((0, 0), (0, 1))
    assert trace.path_cells == []


def test_first_visits_follow_direction_order():
    trace = TraceRecorder()
    search(Grid(start=(5, 5), end=(15, 25)), Policy.BFS, sink=trace)
    # up, down, left, right from (5, 5)
    assert trace.visited_cells[:4] == [(4, 5), (6, 5), (5, 4), (5, 6)]


def test_step_api_lifecycle(corners_grid):
    engine = SearchEngine(Policy.ASTAR)
    assert engine.step().status == "idle"

    engine.init(corners_grid)
    statuses = []
    while True:
        res = engine.step()
        statuses.append(res.status)
        if res.terminal:
            break
    assert statuses[-1] == "done"
    assert statuses.count("tracing") == 47
    assert engine.result.path_length == 49
    # terminal state is sticky
    again = engine.step()
    assert again.status == "done" and again.events == []
    assert again.metrics["path_len"] == 49

    engine.reset()
    assert engine.result is None and engine.steps == 0
    assert engine.run().path_length == 49


def test_step_one_expansion_at_a_time(corners_grid):
    engine = SearchEngine(Policy.BFS)
    engine.init(corners_grid)
    first = engine.step()
    assert first.status == "running" and first.current == (0, 0) and first.events == []
    second = engine.step()
    assert second.events == [Visited((1, 0))]
    assert second.metrics["steps"] == 2


def test_events_generator_returns_result(corners_grid):
    engine = SearchEngine(Policy.DIJKSTRA)
    engine.init(corners_grid)
    gen = engine.events()
    with pytest.raises(StopIteration) as info:
        while True:
            next(gen)
    assert info.value.value.path_length == 49


def test_events_requires_init():
    with pytest.raises(RuntimeError):
        next(SearchEngine().events())


def test_init_validates_grid():
    with pytest.raises(SameEndpoints):
        SearchEngine().init(Grid(start=(1, 1), end=(1, 1)))


def test_engine_does_not_touch_grid(corners_grid):
    corners_grid.toggle_obstacle((5, 5))
    before = (set(corners_grid.obstacles), corners_grid.start, corners_grid.end)
    for policy in POLICIES:
        search(corners_grid, policy)
    assert (set(corners_grid.obstacles), corners_grid.start, corners_grid.end) == before


def test_engine_name_defaults_to_policy_label():
    assert SearchEngine(Policy.ASTAR).name == "A*"
    assert SearchEngine(Policy.BFS, name="left").name == "left"


def test_negative_iteration_cap_rejected():
    with pytest.raises(ValueError):
        SearchEngine(max_iterations=-1)


def test_frontier_kinds():
    assert isinstance(make_frontier(Policy.BFS), FifoFrontier)
    assert isinstance(make_frontier(Policy.DIJKSTRA), PriorityFrontier)
    assert isinstance(make_frontier(Policy.ASTAR), PriorityFrontier)

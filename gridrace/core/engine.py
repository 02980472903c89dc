# gridrace/core/engine.py
#!/usr/bin/env python3
"""
Grid search engine — one expansion per step() so a race can interleave engines.

Implements the Algorithm API the race drives:
- init(grid) - reset() - step() -> StepResult
- run() -> AlgorithmResult, events() for a plain event stream

Policies share one skeleton and differ only in which frontier entry is taken next:
- BFS:      FIFO.
- DIJKSTRA: smallest accumulated cost g, FIFO among equals. Every edge costs 1,
            so this pops in exactly the BFS order.
- ASTAR:    smallest f = g + h (h = Manhattan distance to end), FIFO among equals.

A cell may sit in the frontier more than once; stale copies are dropped when
popped (lazy deletion). The engine never sleeps and never touches the grid.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Iterator, List, Optional, Set, Tuple, Union
import heapq
import itertools
import logging

from gridrace.core.types import (
    AlgorithmResult,
    Coordinate,
    FrozenGrid,
    Grid,
    PathCell,
    Policy,
    StepResult,
    Visited,
    manhattan,
)

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 10000


@dataclass(frozen=True)
class SearchNode:
    coord: Coordinate
    path: Tuple[Coordinate, ...] = ()   # start .. parent, excludes coord
    g: int = 0
    f: int = 0


class FifoFrontier:
    def __init__(self):
        self._q: Deque[SearchNode] = deque()

    def push(self, node: SearchNode) -> None:
        self._q.append(node)

    def pop(self) -> SearchNode:
        return self._q.popleft()

    def __len__(self) -> int:
        return len(self._q)


class PriorityFrontier:
    """Binary heap keyed by (score, seq); seq keeps ties first-in first-out."""

    def __init__(self, score):
        self._score = score
        self._heap: List[Tuple[int, int, SearchNode]] = []
        self._seq = itertools.count()

    def push(self, node: SearchNode) -> None:
        heapq.heappush(self._heap, (self._score(node), next(self._seq), node))

    def pop(self) -> SearchNode:
        return heapq.heappop(self._heap)[2]

    def __len__(self) -> int:
        return len(self._heap)


def make_frontier(policy: Policy):
    if policy is Policy.BFS:
        return FifoFrontier()
    if policy is Policy.DIJKSTRA:
        return PriorityFrontier(lambda n: n.g)
    if policy is Policy.ASTAR:
        return PriorityFrontier(lambda n: n.f)
    raise ValueError(f"Unknown policy: {policy!r}")


@dataclass
class SearchEngine:
    policy: Policy = Policy.BFS
    max_iterations: int = DEFAULT_MAX_ITERATIONS
    name: str = ""

    # Internal state
    grid: Optional[Union[Grid, FrozenGrid]] = None
    frontier: Union[FifoFrontier, PriorityFrontier, None] = None
    visited: Set[Coordinate] = field(default_factory=set)
    steps: int = 0
    _result: Optional[AlgorithmResult] = None
    _pending: Deque[Coordinate] = field(default_factory=deque)   # path cells not yet emitted

    def __post_init__(self):
        if not self.name:
            self.name = self.policy.label
        if self.max_iterations < 0:
            raise ValueError("max_iterations must be >= 0")

    # -------------------- lifecycle --------------------

    def init(self, grid: Union[Grid, FrozenGrid]) -> None:
        """Attach to a grid and seed the frontier. The grid must pass validate_for_race()."""
        grid.validate_for_race()
        self.grid = grid
        self.reset()

    def reset(self) -> None:
        if self.grid is None:
            return
        self.frontier = make_frontier(self.policy)
        self.visited = set()
        self.steps = 0
        self._result = None
        self._pending = deque()
        s = self.grid.start
        h0 = manhattan(s, self.grid.end)
        self.frontier.push(SearchNode(s, (), 0, h0))

    # -------------------- helpers --------------------

    def _child(self, node: SearchNode, n: Coordinate) -> SearchNode:
        path = node.path + (node.coord,)
        g = len(path)
        f = g + manhattan(n, self.grid.end) if self.policy is Policy.ASTAR else g
        return SearchNode(n, path, g, f)

    def _finish(self, result: AlgorithmResult) -> None:
        self._result = result
        if result.found:
            self._pending = deque(result.path[1:-1])
            logger.debug("%s reached %s after %d steps (path %d)",
                         self.name, self.grid.end, result.steps, result.path_length)
        else:
            logger.debug("%s gave up after %d steps (frontier %d, cap %d)",
                         self.name, result.steps, len(self.frontier), self.max_iterations)

    @property
    def finished(self) -> bool:
        return self._result is not None and not self._pending

    @property
    def result(self) -> Optional[AlgorithmResult]:
        """Final result, available once every path cell has been emitted."""
        return self._result if self.finished else None

    # -------------------- main stepping logic --------------------

    def step(self) -> StepResult:
        """
        Advance to the next suspension point:
          - one cell expanded (emits Visited, except for the start cell), or
          - one path cell emitted after the end was reached, or
          - a terminal result (done / no_path) with no events.
        """
        if self.grid is None:
            return StepResult(status="idle", metrics={"algo": self.name})

        if self._pending:
            c = self._pending.popleft()
            return StepResult(status="tracing", events=[PathCell(c)], current=c,
                              path=list(self._result.path), metrics=self._metrics())

        if self._result is not None:
            if self._result.found:
                return StepResult(status="done", path=list(self._result.path),
                                  metrics=self._metrics())
            return StepResult(status="no_path", metrics=self._metrics())

        while len(self.frontier) and self.steps < self.max_iterations:
            node = self.frontier.pop()
            u = node.coord

            if u == self.grid.end:
                path = node.path + (u,)
                self._finish(AlgorithmResult(self.policy, self.steps, len(path), path))
                return self.step()

            if u in self.visited:
                continue

            self.visited.add(u)
            self.steps += 1
            for v in self.grid.neighbors4(u):
                if v not in self.visited:
                    self.frontier.push(self._child(node, v))

            events = [] if u == self.grid.start else [Visited(u)]
            return StepResult(status="running", events=events, current=u, metrics=self._metrics())

        self._finish(AlgorithmResult(self.policy, self.steps))
        return self.step()

    def events(self) -> Iterator[Union[Visited, PathCell]]:
        """Lazy event stream; the generator's return value is the AlgorithmResult."""
        if self.grid is None:
            raise RuntimeError(f"{self.name}: init(grid) must be called first")
        while True:
            res = self.step()
            yield from res.events
            if res.terminal:
                return self._result

    def run(self) -> AlgorithmResult:
        for _ in self.events():
            pass
        return self._result

    # -------------------- metrics --------------------

    def _metrics(self) -> dict:
        found = self._result is not None and self._result.found
        return {
            "algo": self.name,
            "steps": self.steps,
            "frontier_size": len(self.frontier) if self.frontier is not None else 0,
            "visited_count": len(self.visited),
            "path_len": self._result.path_length if found else 0,
        }


def search(grid: Union[Grid, FrozenGrid], policy: Policy,
           max_iterations: int = DEFAULT_MAX_ITERATIONS, sink=None) -> AlgorithmResult:
    """Run one policy to completion, forwarding its events to `sink` if given."""
    engine = SearchEngine(policy=policy, max_iterations=max_iterations)
    engine.init(grid)
    for event in engine.events():
        if sink is not None:
            sink.emit(event)
    return engine.result

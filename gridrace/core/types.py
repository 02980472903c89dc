# gridrace/core/types.py
#!/usr/bin/env python3
from dataclasses import dataclass, field
from enum import Enum
from math import inf, isinf
from typing import List, Tuple, Optional, Dict, Any, Set, FrozenSet, Iterator, Union

from gridrace.core.errors import (
    InvalidCoordinate,
    MissingEndpoint,
    SameEndpoints,
    EndpointIsObstacle,
)

Coordinate = Tuple[int, int]  # (row, col)

DEFAULT_ROWS = 20
DEFAULT_COLS = 30

# up, down, left, right
DIRECTIONS: Tuple[Coordinate, ...] = ((-1, 0), (1, 0), (0, -1), (0, 1))


class Policy(Enum):
    BFS = "bfs"
    DIJKSTRA = "dijkstra"
    ASTAR = "astar"

    @property
    def label(self) -> str:
        return "A*" if self is Policy.ASTAR else self.name


def manhattan(a: Coordinate, b: Coordinate) -> int:
    return abs(a[0] - b[0]) + abs(a[1] - b[1])


def _as_coordinate(c) -> Coordinate:
    """Normalise a (row, col) pair to a tuple. Non-integers are rejected, never truncated."""
    try:
        r, col = c
    except (TypeError, ValueError):
        raise InvalidCoordinate(c, "not a (row, col) pair") from None
    for v in (r, col):
        if isinstance(v, bool) or not isinstance(v, int):
            raise InvalidCoordinate(c, "row and col must be integers")
    return (r, col)


class _GridQueries:
    """Read-only queries shared by the editable grid and its frozen snapshot."""

    rows: int
    cols: int
    obstacles: Union[Set[Coordinate], FrozenSet[Coordinate]]
    start: Optional[Coordinate]
    end: Optional[Coordinate]

    def in_bounds(self, c: Coordinate) -> bool:
        r, col = c
        return 0 <= r < self.rows and 0 <= col < self.cols

    def is_obstacle(self, c: Coordinate) -> bool:
        return c in self.obstacles

    def neighbors4(self, c: Coordinate) -> Iterator[Coordinate]:
        """In-bounds, non-obstacle orthogonal neighbours in up/down/left/right order."""
        r, col = c
        for dr, dc in DIRECTIONS:
            n = (r + dr, col + dc)
            if self.in_bounds(n) and not self.is_obstacle(n):
                yield n

    def validate_for_race(self) -> None:
        if self.start is None or self.end is None:
            raise MissingEndpoint()
        if self.start == self.end:
            raise SameEndpoints()
        # unreachable through toggle_obstacle, but endpoints may be set after walls
        for c in (self.start, self.end):
            if self.is_obstacle(c):
                raise EndpointIsObstacle(c)


@dataclass
class Grid(_GridQueries):
    rows: int = DEFAULT_ROWS
    cols: int = DEFAULT_COLS
    obstacles: Set[Coordinate] = field(default_factory=set)
    start: Optional[Coordinate] = None
    end: Optional[Coordinate] = None

    def _check_endpoint(self, c: Coordinate) -> Coordinate:
        c = _as_coordinate(c)
        if not self.in_bounds(c):
            raise InvalidCoordinate(c)
        if self.is_obstacle(c):
            raise InvalidCoordinate(c, "cell is a wall")
        return c

    def set_start(self, c: Coordinate) -> None:
        self.start = self._check_endpoint(c)

    def set_end(self, c: Coordinate) -> None:
        self.end = self._check_endpoint(c)

    def toggle_obstacle(self, c: Coordinate) -> bool:
        """Flip a wall. Endpoints are left alone. Returns True if the wall set changed."""
        c = _as_coordinate(c)
        if c == self.start or c == self.end:
            return False
        if not self.in_bounds(c):
            raise InvalidCoordinate(c)
        if c in self.obstacles:
            self.obstacles.remove(c)
        else:
            self.obstacles.add(c)
        return True

    def clear(self) -> None:
        self.obstacles.clear()
        self.start = None
        self.end = None

    def freeze(self) -> "FrozenGrid":
        return FrozenGrid(self.rows, self.cols, frozenset(self.obstacles), self.start, self.end)


@dataclass(frozen=True)
class FrozenGrid(_GridQueries):
    """Snapshot handed to the engines for the duration of one race."""
    rows: int
    cols: int
    obstacles: FrozenSet[Coordinate]
    start: Optional[Coordinate]
    end: Optional[Coordinate]


# -------------------- trace events --------------------
@dataclass(frozen=True)
class Visited:
    coord: Coordinate


@dataclass(frozen=True)
class PathCell:
    coord: Coordinate


TraceEvent = Union[Visited, PathCell]


@dataclass
class StepResult:
    status: str                   # "idle" | "running" | "tracing" | "done" | "no_path"
    events: List[TraceEvent] = field(default_factory=list)
    current: Optional[Coordinate] = None
    path: Optional[List[Coordinate]] = None
    metrics: Dict[str, Any] = field(default_factory=dict)

    @property
    def terminal(self) -> bool:
        return self.status in ("done", "no_path")


@dataclass(frozen=True)
class AlgorithmResult:
    algorithm: Policy
    steps: int
    path_length: float = inf      # number of cells incl. both endpoints, inf if not found
    path: Tuple[Coordinate, ...] = ()

    @property
    def found(self) -> bool:
        return not isinf(self.path_length)

    def status_line(self) -> str:
        shown = int(self.path_length) if self.found else "Not Found"
        return f"{self.algorithm.name} - Steps: {self.steps}, Path: {shown}"

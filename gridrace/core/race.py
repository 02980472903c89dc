# gridrace/core/race.py
#!/usr/bin/env python3
"""
Race orchestration.

- Race:        one race over a frozen grid. Each algorithm is a lane; lanes are
               stepped round-robin on a single thread and paced by their own
               `ready_at` timestamps. One global deadline covers all lanes.
- RaceSession: the editable grid plus the lock, as a state machine
               EDITING -> RACING -> (FINISHED | TIMED_OUT) -> EDITING (via reset).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple
import logging
import time

from gridrace.core.config import RaceConfig
from gridrace.core.engine import SearchEngine
from gridrace.core.errors import GridLocked, RaceTimeout
from gridrace.core.scenarios import apply_scenario
from gridrace.core.sink import Pacing, VisualizationSink
from gridrace.core.types import AlgorithmResult, Coordinate, FrozenGrid, Grid, Policy

logger = logging.getLogger(__name__)

# Declared order doubles as the tie-break order for the winner.
ALGORITHMS: Tuple[Policy, ...] = (Policy.BFS, Policy.DIJKSTRA, Policy.ASTAR)


class RaceState(Enum):
    EDITING = "editing"
    RACING = "racing"
    FINISHED = "finished"
    TIMED_OUT = "timed out"


@dataclass(frozen=True)
class RaceOutcome:
    results: Tuple[AlgorithmResult, ...]
    winner: Optional[AlgorithmResult]
    status: RaceState = RaceState.FINISHED   # timed-out races raise instead

    @property
    def no_path(self) -> bool:
        return self.winner is None

    def result_for(self, policy: Policy) -> AlgorithmResult:
        for r in self.results:
            if r.algorithm is policy:
                return r
        raise KeyError(policy)

    def summary(self) -> str:
        if self.winner is None:
            return "No valid path found"
        w = self.winner
        return f"Winner: {w.algorithm.name} (steps {w.steps}, path {int(w.path_length)})"


def pick_winner(results: Iterable[AlgorithmResult]) -> Optional[AlgorithmResult]:
    """Fewest steps among results that found a path; min() keeps the first of equals."""
    valid = [r for r in results if r.found]
    if not valid:
        return None
    return min(valid, key=lambda r: r.steps)


@dataclass
class Lane:
    engine: SearchEngine
    sink: VisualizationSink
    ready_at: float = 0.0
    complete: bool = False


class Race:
    def __init__(self, grid, config: Optional[RaceConfig] = None,
                 sinks: Optional[Dict[Policy, VisualizationSink]] = None,
                 pacing: Optional[Pacing] = None,
                 policies: Sequence[Policy] = ALGORITHMS,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        grid.validate_for_race()
        self.grid: FrozenGrid = grid.freeze() if isinstance(grid, Grid) else grid
        self.config = config or RaceConfig(rows=self.grid.rows, cols=self.grid.cols)
        self.pacing = pacing if pacing is not None else self.config.pacing
        self._clock = clock
        self._sleep = sleep
        sinks = sinks or {}

        self.lanes: List[Lane] = []
        for p in policies:
            engine = SearchEngine(policy=p, max_iterations=self.config.max_iterations)
            engine.init(self.grid)
            self.lanes.append(Lane(engine, sinks.get(p) or VisualizationSink()))

        self.started_at: Optional[float] = None
        self.deadline: Optional[float] = None
        self.timed_out = False
        self._outcome: Optional[RaceOutcome] = None

    # -------------------- lifecycle --------------------

    def start(self) -> None:
        if self.started_at is not None:
            return
        now = self._clock()
        self.started_at = now
        self.deadline = now + self.config.timeout_s
        for lane in self.lanes:
            lane.ready_at = now
        logger.info("Race started: %s on %dx%d grid, %s -> %s (timeout %d ms)",
                    ", ".join(l.engine.name for l in self.lanes), self.grid.rows, self.grid.cols,
                    self.grid.start, self.grid.end, self.config.timeout_ms)

    @property
    def done(self) -> bool:
        return all(lane.complete for lane in self.lanes)

    @property
    def over(self) -> bool:
        return self.done or self.timed_out

    def elapsed(self) -> float:
        if self.started_at is None:
            return 0.0
        return self._clock() - self.started_at

    # -------------------- stepping --------------------

    def _advance(self, lane: Lane) -> None:
        res = lane.engine.step()
        delay = 0.0
        for event in res.events:
            lane.sink.emit(event)
            delay += self.pacing.delay_for(event)
        lane.ready_at += delay
        if res.terminal:
            lane.complete = True
            logger.info("%s finished: %s", lane.engine.name, lane.engine.result.status_line())

    def tick(self) -> int:
        """Step every lane that is due, round-robin, until none is. Returns steps taken."""
        self.start()
        if self.over:
            return 0

        taken = 0
        while not self.done:
            # deadline is checked once per round-robin pass
            now = self._clock()
            if now >= self.deadline:
                self.timed_out = True
                logger.warning("Race timed out after %d ms", self.config.timeout_ms)
                break
            progressed = False
            for lane in self.lanes:
                if lane.complete or lane.ready_at > now:
                    continue
                self._advance(lane)
                taken += 1
                progressed = True
            if not progressed:
                break
        return taken

    def run(self) -> RaceOutcome:
        """Drive the race to the end on this thread, sleeping out the pacing."""
        self.start()
        while True:
            self.tick()
            if self.over:
                return self.outcome()
            now = self._clock()
            wake = min(l.ready_at for l in self.lanes if not l.complete)
            wait = min(wake, self.deadline) - now
            if wait > 0:
                self._sleep(wait)

    # -------------------- results --------------------

    def outcome(self) -> RaceOutcome:
        """Aggregate results and publish each lane's status line. Raises RaceTimeout."""
        if self.timed_out:
            raise RaceTimeout(self.config.timeout_ms)
        if not self.done:
            raise RuntimeError("race still running")
        if self._outcome is None:
            results = tuple(lane.engine.result for lane in self.lanes)
            for lane in self.lanes:
                lane.sink.report(lane.engine.result)
            self._outcome = RaceOutcome(results, pick_winner(results))
            logger.info("Race over in %.0f ms: %s", self.elapsed() * 1000, self._outcome.summary())
        return self._outcome


class RaceSession:
    """Owns the editable grid and gates edits while a race is in flight."""

    def __init__(self, config: Optional[RaceConfig] = None,
                 clock: Callable[[], float] = time.monotonic,
                 sleep: Callable[[float], None] = time.sleep):
        self.config = config or RaceConfig()
        self._clock = clock
        self._sleep = sleep
        self.grid = Grid(self.config.rows, self.config.cols)
        self.state = RaceState.EDITING
        self.race: Optional[Race] = None
        self.outcome: Optional[RaceOutcome] = None
        if self.config.scenario:
            apply_scenario(self.grid, self.config.scenario)

    @property
    def locked(self) -> bool:
        return self.state is not RaceState.EDITING

    def _require_editing(self) -> None:
        if self.locked:
            raise GridLocked(self.state)

    # -------------------- grid edits --------------------

    def set_start(self, c: Coordinate) -> None:
        self._require_editing()
        self.grid.set_start(c)

    def set_end(self, c: Coordinate) -> None:
        self._require_editing()
        self.grid.set_end(c)

    def toggle_obstacle(self, c: Coordinate) -> bool:
        self._require_editing()
        return self.grid.toggle_obstacle(c)

    def load_scenario(self, name: str) -> None:
        self._require_editing()
        apply_scenario(self.grid, name)

    # -------------------- race control --------------------

    def begin_race(self, sinks: Optional[Dict[Policy, VisualizationSink]] = None,
                   pacing: Optional[Pacing] = None) -> Race:
        """Validate, freeze and lock. Validation errors leave the session editable."""
        self._require_editing()
        race = Race(self.grid, self.config, sinks=sinks, pacing=pacing,
                    clock=self._clock, sleep=self._sleep)
        self.race = race
        self.outcome = None
        self.state = RaceState.RACING
        race.start()
        return race

    def _conclude(self, finish: Callable[[], RaceOutcome]) -> RaceOutcome:
        try:
            outcome = finish()
        except RaceTimeout:
            self.state = RaceState.TIMED_OUT
            raise
        self.state = RaceState.FINISHED
        self.outcome = outcome
        return outcome

    def settle(self) -> RaceOutcome:
        """Record the result of the race in flight once it is over (see Race.over)."""
        if self.race is None:
            raise RuntimeError("no race in flight")
        return self._conclude(self.race.outcome)

    def start_race(self, sinks: Optional[Dict[Policy, VisualizationSink]] = None,
                   pacing: Optional[Pacing] = None) -> RaceOutcome:
        """Run a whole race on this thread and return its outcome."""
        race = self.begin_race(sinks, pacing)
        return self._conclude(race.run)

    def reset(self) -> None:
        """Clear the grid, drop any race in flight and release the lock."""
        self.race = None
        self.outcome = None
        self.grid.clear()
        self.state = RaceState.EDITING
        logger.info("Grid reset")

# gridrace/core/sink.py
#!/usr/bin/env python3
"""
Visualization sinks — where each engine's trace events end up.

A race owns one sink per algorithm. Events arrive strictly ordered per sink;
nothing is promised about ordering across sinks. A sink may still be driven
after the race it belongs to has been declared over, so every method must be
safe to call at any time.
"""

from dataclasses import dataclass, field
from typing import List, Optional

from gridrace.core.types import Coordinate, TraceEvent, Visited, PathCell, AlgorithmResult


class VisualizationSink:
    """No-op sink. Subclasses override what they draw."""

    def visited(self, coord: Coordinate) -> None:
        pass

    def path_cell(self, coord: Coordinate) -> None:
        pass

    def report(self, result: AlgorithmResult) -> None:
        """Per-algorithm status line, published whether or not this algorithm won."""
        pass

    def emit(self, event: TraceEvent) -> None:
        if isinstance(event, Visited):
            self.visited(event.coord)
        elif isinstance(event, PathCell):
            self.path_cell(event.coord)
        else:
            raise TypeError(f"Not a trace event: {event!r}")


@dataclass
class TraceRecorder(VisualizationSink):
    """Keeps everything it is sent; used headless and in tests."""
    events: List[TraceEvent] = field(default_factory=list)
    status: Optional[str] = None
    result: Optional[AlgorithmResult] = None

    def visited(self, coord: Coordinate) -> None:
        self.events.append(Visited(coord))

    def path_cell(self, coord: Coordinate) -> None:
        self.events.append(PathCell(coord))

    def report(self, result: AlgorithmResult) -> None:
        self.result = result
        self.status = result.status_line()

    @property
    def visited_cells(self) -> List[Coordinate]:
        return [e.coord for e in self.events if isinstance(e, Visited)]

    @property
    def path_cells(self) -> List[Coordinate]:
        return [e.coord for e in self.events if isinstance(e, PathCell)]


@dataclass(frozen=True)
class Pacing:
    """Nominal delay a lane waits after each event (presentation only)."""
    visited_delay_ms: float = 5.0
    path_delay_ms: float = 25.0

    @classmethod
    def none(cls) -> "Pacing":
        return cls(0.0, 0.0)

    def delay_for(self, event: TraceEvent) -> float:
        """Delay in seconds."""
        if isinstance(event, PathCell):
            return self.path_delay_ms / 1000.0
        return self.visited_delay_ms / 1000.0

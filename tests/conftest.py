import pytest

from gridrace.core.types import Grid


class FakeClock:
    """Monotonic clock that only moves when the race sleeps."""

    def __init__(self, now: float = 0.0):
        self.now = now
        self.sleeps = 0

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps += 1
        self.now += seconds


class TickingClock(FakeClock):
    """Clock that also moves forward by `step` seconds every time it is read."""

    def __init__(self, now: float = 0.0, step: float = 0.001):
        super().__init__(now)
        self.step = step
        self.reads = 0

    def __call__(self) -> float:
        self.reads += 1
        self.now += self.step
        return self.now


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def ticking_clock():
    return TickingClock()


@pytest.fixture
def corners_grid():
    grid = Grid()
    grid.set_start((0, 0))
    grid.set_end((19, 29))
    return grid


@pytest.fixture
def make_grid():
    def _make(rows, cols, start, end, walls=()):
        grid = Grid(rows, cols)
        for w in walls:
            grid.toggle_obstacle(w)
        grid.set_start(start)
        grid.set_end(end)
        return grid
    return _make

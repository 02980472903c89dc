# gridrace/core/scenarios.py
#!/usr/bin/env python3
"""Preset layouts for quickly checking the three race endings (win, no path, walled end)."""

import logging
from typing import Callable, Dict

from gridrace.core.errors import UnknownScenario
from gridrace.core.types import Grid

logger = logging.getLogger(__name__)


def _corners(grid: Grid) -> None:
    grid.set_start((0, 0))
    grid.set_end((grid.rows - 1, grid.cols - 1))


def _wall_split(grid: Grid) -> None:
    _corners(grid)
    col = grid.cols // 2
    for row in range(grid.rows):
        grid.toggle_obstacle((row, col))


def _walled_end(grid: Grid) -> None:
    _corners(grid)
    for c in ((grid.rows - 2, grid.cols - 1), (grid.rows - 1, grid.cols - 2)):
        if grid.in_bounds(c):
            grid.toggle_obstacle(c)


SCENARIOS: Dict[str, Callable[[Grid], None]] = {
    "corners": _corners,
    "wall_split": _wall_split,
    "walled_end": _walled_end,
}


def apply_scenario(grid: Grid, name: str) -> Grid:
    """Clear `grid` and lay out the named preset on it."""
    try:
        build = SCENARIOS[name]
    except KeyError:
        raise UnknownScenario(name, SCENARIOS) from None
    grid.clear()
    build(grid)
    logger.info("Loaded scenario %s (%d walls)", name, len(grid.obstacles))
    return grid

# gridrace/app/viewer.py
#!/usr/bin/env python3
"""
Grid Race Viewer — three grids, one race.

- Mouse:
    click a cell       -> set start / set end / toggle wall (current mode)
    drag (walls mode)  -> paint walls
- Keyboard:
    [S]/[E]/[W]  -> mode: start / end / walls
    [SPACE]      -> race
    [R]          -> reset
    [1]/[2]/[3]  -> preset: corners / wall split / walled end
    [Q]/[ESC]    -> quit

Config: see gridrace.core.config (GRIDRACE_* env vars, --key=value switches).
"""

# --- bootstrap import path so `from gridrace...` works when run as a script ---
import sys
from pathlib import Path
_REPO_ROOT = Path(__file__).resolve().parents[2]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))
# -------------------------------------------------------------------------

import logging
from typing import List, Tuple, Optional, Dict
import pygame

from gridrace.core.config import RaceConfig, resolve_config
from gridrace.core.errors import GridRaceError, RaceTimeout
from gridrace.core.race import ALGORITHMS, Race, RaceSession, RaceState
from gridrace.core.sink import VisualizationSink
from gridrace.core.types import AlgorithmResult, Coordinate, Policy

logger = logging.getLogger(__name__)

# ---------- Layout ----------
PANEL_H = 230            # bottom band: buttons + results
GRID_MARGIN = 16
LANE_TITLE_H = 28
CELL_SIZE_DEFAULT = 15
FONT_NAME = None  # default pygame font

# Colors
BLACK       = (  0,  0,  0)
CELL_FREE   = (236,239,241)
CELL_LINE   = (200,204,208)
WALL        = ( 52, 58, 64)
START_BLUE  = ( 70,130,180)
END_RED     = (220, 50, 47)
VISITED_A   = (0,150,255,110)
PATH_MINT   = (0,220,170)

BG_TOP      = (24, 26, 32)
BG_BOT      = (36, 40, 48)
CARD_BG     = (24,28,36,220)
CARD_HI     = (255,255,255,18)
TEXT_LIGHT  = (230,235,240)
TEXT_DIM    = (150,156,164)
ACCENT_GOLD = (255,210,0)
ERROR_RED   = (255,120,110)

SCENARIO_KEYS = {pygame.K_1: "corners", pygame.K_2: "wall_split", pygame.K_3: "walled_end"}


# ---------- Per-algorithm sink ----------
class LaneView(VisualizationSink):
    """What one of the three grids shows. Safe to drive after its race is gone."""

    def __init__(self, policy: Policy):
        self.policy = policy
        self.visited_cells: set[Coordinate] = set()
        self.path_cells: List[Coordinate] = []
        self.title = policy.label

    def visited(self, coord: Coordinate) -> None:
        self.visited_cells.add(coord)

    def path_cell(self, coord: Coordinate) -> None:
        self.path_cells.append(coord)

    def report(self, result: AlgorithmResult) -> None:
        self.title = result.status_line()

    def clear(self) -> None:
        self.visited_cells.clear()
        self.path_cells.clear()
        self.title = self.policy.label


# ---------- Simple UI Button ----------
class UIButton:
    def __init__(self, label: str, rect: pygame.Rect, callback, *, togglable: bool = False):
        self.label = label
        self.rect = rect
        self.callback = callback
        self.hover = False
        self.togglable = togglable
        self.active = False  # highlight state
        self.enabled = True

    def set_active(self, value: bool):
        self.active = bool(value)

    def draw(self, screen: pygame.Surface, font: pygame.font.Font):
        base = pygame.Surface(self.rect.size, pygame.SRCALPHA)
        bg_idle   = (36, 40, 48, 220)
        bg_hover  = (46, 50, 60, 230)
        bg_active = (58, 86, 160, 235)
        border_active = (120, 170, 255, 255)

        if self.active and self.togglable:
            bg = bg_active
        elif self.hover and self.enabled:
            bg = bg_hover
        else:
            bg = bg_idle
        pygame.draw.rect(base, bg, base.get_rect(), border_radius=10)

        # subtle highlight top band
        hi = pygame.Surface((self.rect.width, 18), pygame.SRCALPHA)
        pygame.draw.rect(hi, (255,255,255,20), hi.get_rect(), border_radius=10)
        base.blit(hi, (0,0))
        if not self.enabled:
            base.set_alpha(110)
        screen.blit(base, self.rect.topleft)

        if self.active and self.togglable:
            pygame.draw.rect(screen, border_active, self.rect, width=2, border_radius=10)

        color = (235,238,242) if self.enabled else TEXT_DIM
        text = font.render(self.label, True, color)
        screen.blit(text, text.get_rect(center=self.rect.center))

    def handle_mouse(self, event: pygame.event.Event) -> bool:
        if event.type == pygame.MOUSEMOTION:
            self.hover = self.rect.collidepoint(event.pos)
        elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
            if self.rect.collidepoint(event.pos):
                if self.enabled:
                    self.callback()
                return True
        return False


# ---------- Viewer ----------
class Viewer:
    def __init__(self, config: RaceConfig):
        pygame.init()

        self.config = config
        self.session = RaceSession(config)
        self.lanes: Dict[Policy, LaneView] = {p: LaneView(p) for p in ALGORITHMS}
        self.race: Optional[Race] = None

        self.font_small = pygame.font.Font(FONT_NAME, 16)
        self.font = pygame.font.Font(FONT_NAME, 20)
        self.font_big = pygame.font.Font(FONT_NAME, 26)

        self.mode: Optional[str] = None       # "start" | "end" | "walls"
        self.message = ""
        self.message_is_error = False
        self._last_painted: Optional[Coordinate] = None

        self.cell_size = CELL_SIZE_DEFAULT
        win_w = GRID_MARGIN * (len(ALGORITHMS) + 1) + len(ALGORITHMS) * config.cols * self.cell_size
        win_h = GRID_MARGIN * 2 + LANE_TITLE_H + config.rows * self.cell_size + PANEL_H
        win_w = max(win_w, 900)

        self.screen = pygame.display.set_mode((win_w, win_h), pygame.RESIZABLE)
        pygame.display.set_caption("Grid Race — BFS vs Dijkstra vs A*")

        self._buttons: list[UIButton] = []
        self._layout(win_w, win_h)
        self.clock = pygame.time.Clock()

    # ---------- layout ----------
    def _layout(self, win_w: int, win_h: int):
        """Integer cell size that fits three grids side by side above the panel."""
        n = len(ALGORITHMS)
        rows, cols = self.config.rows, self.config.cols
        avail_w = max(1, win_w - (n + 1) * GRID_MARGIN)
        avail_h = max(1, win_h - PANEL_H - 2 * GRID_MARGIN - LANE_TITLE_H)
        self.cell_size = int(max(4, min(avail_w // (n * cols), avail_h // rows)))

        grid_w = cols * self.cell_size
        used_w = n * grid_w + (n - 1) * GRID_MARGIN
        left_x = max(GRID_MARGIN, (win_w - used_w) // 2)
        top_y = GRID_MARGIN + LANE_TITLE_H

        self._grid_rects: Dict[Policy, pygame.Rect] = {}
        for i, p in enumerate(ALGORITHMS):
            x = left_x + i * (grid_w + GRID_MARGIN)
            self._grid_rects[p] = pygame.Rect(x, top_y, grid_w, rows * self.cell_size)

        self._panel = pygame.Rect(0, win_h - PANEL_H, win_w, PANEL_H)
        self._build_buttons()

    def _build_buttons(self):
        self._buttons.clear()
        pb = self._panel
        x = pb.x + 16
        y = pb.y + 14
        w, h, gap = 132, 36, 10

        def add(label, cb, *, togglable=False, store_as: str | None = None):
            nonlocal x
            btn = UIButton(label, pygame.Rect(x, y, w, h), cb, togglable=togglable)
            self._buttons.append(btn)
            if store_as:
                setattr(self, store_as, btn)
            x += w + gap

        add("Set Start", lambda: self._set_mode("start"), togglable=True, store_as="btn_start")
        add("Set End",   lambda: self._set_mode("end"),   togglable=True, store_as="btn_end")
        add("Walls",     lambda: self._set_mode("walls"), togglable=True, store_as="btn_walls")
        add("Race!",     self._start_race, store_as="btn_race")
        add("Reset",     self._reset, store_as="btn_reset")

        x = pb.x + 16
        y += h + gap
        add("Corners",    lambda: self._load_scenario("corners"), store_as="btn_sc1")
        add("Wall split", lambda: self._load_scenario("wall_split"), store_as="btn_sc2")
        add("Walled end", lambda: self._load_scenario("walled_end"), store_as="btn_sc3")

        self._refresh_active_states()

    def _refresh_active_states(self):
        locked = self.session.locked
        for b in self._buttons:
            b.enabled = not locked
        # Reset is always available
        if hasattr(self, "btn_reset"):
            self.btn_reset.enabled = True
        if hasattr(self, "btn_start"):
            self.btn_start.set_active(self.mode == "start")
        if hasattr(self, "btn_end"):
            self.btn_end.set_active(self.mode == "end")
        if hasattr(self, "btn_walls"):
            self.btn_walls.set_active(self.mode == "walls")

    # ---------- main loop ----------
    def run(self):
        while True:
            self._handle_events()
            self._tick_race()
            self._draw()
            self.clock.tick(60)

    def _tick_race(self):
        if self.race is None:
            return
        self.race.tick()
        if not self.race.over:
            return
        try:
            outcome = self.session.settle()
        except RaceTimeout as ex:
            self._say(f"Error: {ex}", error=True)
        else:
            self._say(outcome.summary())
        self.race = None
        self._refresh_active_states()

    # ---------- actions ----------
    def _say(self, text: str, *, error: bool = False):
        self.message = text
        self.message_is_error = error

    def _guarded(self, action, *args):
        """Run a session call; user errors become the panel message."""
        try:
            return action(*args)
        except GridRaceError as ex:
            logger.warning("%s", ex)
            self._say(str(ex), error=True)
            return None

    def _set_mode(self, mode: str):
        if self.session.locked:
            return
        if mode == "walls" and self.mode == "walls":
            self.mode = None
        else:
            self.mode = mode
        self._refresh_active_states()

    def _start_race(self):
        for lane in self.lanes.values():
            lane.clear()
        self._say("")
        race = self._guarded(self.session.begin_race, dict(self.lanes))
        if race is not None:
            self.race = race
            self.mode = None
        self._refresh_active_states()

    def _reset(self):
        self.session.reset()
        self.race = None
        self.mode = None
        for lane in self.lanes.values():
            lane.clear()
        self._say("")
        self._refresh_active_states()

    def _load_scenario(self, name: str):
        for lane in self.lanes.values():
            lane.clear()
        self._guarded(self.session.load_scenario, name)

    def _edit_cell(self, cell: Coordinate, *, dragging: bool = False):
        if self.mode == "start" and not dragging:
            self._guarded(self.session.set_start, cell)
            if self.session.grid.start == cell:
                self.mode = None
        elif self.mode == "end" and not dragging:
            self._guarded(self.session.set_end, cell)
            if self.session.grid.end == cell:
                self.mode = None
        elif self.mode == "walls":
            if dragging and cell == self._last_painted:
                return
            self._last_painted = cell
            self._guarded(self.session.toggle_obstacle, cell)
        self._refresh_active_states()

    # ---------- input ----------
    def _cell_at(self, pos: Tuple[int, int]) -> Optional[Coordinate]:
        for rect in self._grid_rects.values():
            if rect.collidepoint(pos):
                col = (pos[0] - rect.x) // self.cell_size
                row = (pos[1] - rect.y) // self.cell_size
                return (row, col)
        return None

    def _handle_events(self):
        for e in pygame.event.get():
            if e.type == pygame.QUIT:
                pygame.quit(); sys.exit(0)
            elif e.type == pygame.KEYDOWN:
                if e.key in (pygame.K_ESCAPE, pygame.K_q):
                    pygame.quit(); sys.exit(0)
                elif e.key == pygame.K_SPACE:
                    if not self.session.locked:
                        self._start_race()
                elif e.key == pygame.K_r:
                    self._reset()
                elif e.key == pygame.K_s:
                    self._set_mode("start")
                elif e.key == pygame.K_e:
                    self._set_mode("end")
                elif e.key == pygame.K_w:
                    self._set_mode("walls")
                elif e.key in SCENARIO_KEYS and not self.session.locked:
                    self._load_scenario(SCENARIO_KEYS[e.key])
            elif e.type == pygame.VIDEORESIZE:
                self.screen = pygame.display.set_mode((e.w, e.h), pygame.RESIZABLE)
                self._layout(e.w, e.h)
            elif e.type in (pygame.MOUSEMOTION, pygame.MOUSEBUTTONDOWN):
                handled = False
                for b in self._buttons:
                    handled = b.handle_mouse(e) or handled
                if handled or self.session.locked:
                    continue
                if e.type == pygame.MOUSEBUTTONDOWN and e.button == 1:
                    cell = self._cell_at(e.pos)
                    if cell is not None:
                        self._last_painted = None
                        self._edit_cell(cell)
                elif e.type == pygame.MOUSEMOTION and e.buttons[0]:
                    cell = self._cell_at(e.pos)
                    if cell is not None:
                        self._edit_cell(cell, dragging=True)

    # ---------- drawing ----------
    def _draw(self):
        self._draw_backdrop()
        for p in ALGORITHMS:
            self._draw_lane(p)
        self._draw_panel()
        pygame.display.flip()

    def _draw_backdrop(self):
        w, h = self.screen.get_size()
        for y in range(h):
            t = y / max(1, h-1)
            c = (
                int(BG_TOP[0] + (BG_BOT[0]-BG_TOP[0]) * t),
                int(BG_TOP[1] + (BG_BOT[1]-BG_TOP[1]) * t),
                int(BG_TOP[2] + (BG_BOT[2]-BG_TOP[2]) * t),
            )
            pygame.draw.line(self.screen, c, (0, y), (w, y))

    def _cell_rect(self, origin: pygame.Rect, cell: Coordinate) -> pygame.Rect:
        cs = self.cell_size
        row, col = cell
        return pygame.Rect(origin.x + col*cs, origin.y + row*cs, cs, cs)

    def _draw_lane(self, policy: Policy):
        rect = self._grid_rects[policy]
        lane = self.lanes[policy]
        grid = self.session.grid
        cs = self.cell_size

        title = self.font.render(lane.title, True, TEXT_LIGHT)
        self.screen.blit(title, (rect.x, rect.y - LANE_TITLE_H + 4))

        pygame.draw.rect(self.screen, CELL_FREE, rect)
        for c in grid.obstacles:
            pygame.draw.rect(self.screen, WALL, self._cell_rect(rect, c))

        overlay = pygame.Surface((cs, cs), pygame.SRCALPHA); overlay.fill(VISITED_A)
        for c in lane.visited_cells:
            self.screen.blit(overlay, self._cell_rect(rect, c).topleft)
        for c in lane.path_cells:
            pygame.draw.rect(self.screen, PATH_MINT, self._cell_rect(rect, c))

        if grid.start is not None:
            pygame.draw.rect(self.screen, START_BLUE, self._cell_rect(rect, grid.start))
        if grid.end is not None:
            pygame.draw.rect(self.screen, END_RED, self._cell_rect(rect, grid.end))

        # cell borders
        for col in range(grid.cols + 1):
            x = rect.x + col * cs
            pygame.draw.line(self.screen, CELL_LINE, (x, rect.y), (x, rect.bottom))
        for row in range(grid.rows + 1):
            y = rect.y + row * cs
            pygame.draw.line(self.screen, CELL_LINE, (rect.x, y), (rect.right, y))
        pygame.draw.rect(self.screen, BLACK, rect, 1)

    def _draw_panel(self):
        pb = self._panel
        for b in self._buttons:
            b.draw(self.screen, self.font_small)

        card_top = pb.y + 14 + 2 * (36 + 10)
        card = pygame.Surface((pb.width - 32, pb.bottom - card_top - 12), pygame.SRCALPHA)
        pygame.draw.rect(card, CARD_BG, card.get_rect(), border_radius=14)
        hi = pygame.Surface((card.get_width(), 24), pygame.SRCALPHA)
        pygame.draw.rect(hi, CARD_HI, hi.get_rect(), border_radius=14)
        card.blit(hi, (0,0))
        self.screen.blit(card, (pb.x + 16, card_top))

        x0 = pb.x + 30
        y0 = card_top + 10

        def line(text, big=False, color=TEXT_LIGHT):
            nonlocal y0
            f = self.font_big if big else self.font
            surf = f.render(text, True, color)
            self.screen.blit(surf, (x0, y0))
            y0 += surf.get_height() + 6

        state = self.session.state
        header = "Race Results" if state is RaceState.FINISHED else f"State: {state.value}"
        line(header, big=True, color=ACCENT_GOLD)
        if self.message:
            line(self.message, color=ERROR_RED if self.message_is_error else TEXT_LIGHT)
        outcome = self.session.outcome
        if outcome is not None and outcome.winner is not None:
            line(f"Steps: {outcome.winner.steps}   Path Length: {int(outcome.winner.path_length)}")
        elif self.race is not None:
            line(f"Elapsed: {self.race.elapsed():.1f}s / {self.config.timeout_s:.0f}s")
        else:
            mode = self.mode or "none"
            line(f"Mode: {mode}   Walls: {len(self.session.grid.obstacles)}", color=TEXT_DIM)


# ---------- main ----------
def main(argv=None):
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
    try:
        config = resolve_config(argv)
        viewer = Viewer(config)
    except GridRaceError as ex:
        logger.error("Failed to start viewer: %s", ex)
        sys.exit(1)
    viewer.run()

if __name__ == "__main__":
    main()

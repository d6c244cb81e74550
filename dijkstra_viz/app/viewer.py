# dijkstra_viz/app/viewer.py
#!/usr/bin/env python3
"""
Dijkstra Visualizer Viewer — grid editor + animated search + stats

- Keyboard:
    [SPACE]      -> start / pause / resume
    [N]          -> single step (starts a paused run when idle)
    [R]          -> reset
    [C]          -> clear walls
    [1]/[2]/[3]  -> speed slow / medium / fast
    [W]/[S]/[E]  -> edit mode: wall / start / end
    [Q]/[ESC]    -> quit
- Mouse: click or drag on the grid to draw/erase walls (Wall mode) or move
  the start/end cell. Editing is locked while a run is active.

Config: --map=<name|path>, --speed=slow|medium|fast, --log-level=DEBUG
(or DIJKSTRA_VIZ_MAP / DIJKSTRA_VIZ_SPEED / DIJKSTRA_VIZ_LOG_LEVEL).
"""

import logging
import queue
import sys
from typing import List, Optional, Tuple

import pygame

from dijkstra_viz.core.config import SchedulerConfig, resolve_log_level, resolve_map, resolve_speed
from dijkstra_viz.core.errors import ConcurrentRunRejected, ConfigurationError
from dijkstra_viz.core.grid import GridModel, load_map
from dijkstra_viz.core.scheduler import AnimationScheduler
from dijkstra_viz.core.types import Cell, RunState, RunStats, Speed

# ---------- Config ----------
PANEL_W = 360            # right band: metrics + buttons
GRID_MARGIN = 16
CELL_SIZE_DEFAULT = 28
FONT_NAME = None  # default pygame font

# Colors
WHITE       = (255,255,255)
GRID_LINE   = (190,195,205)
WALL_DARK   = ( 40, 44, 54)
START_GREEN = ( 46,180, 87)
END_RED     = (220, 50, 47)
VISITED_A   = ( 90,150,240,150)
PATH_GOLD   = (250,204, 21)

CARD_BG     = (24,28,36,220)
CARD_HI     = (255,255,255,18)
TEXT_LIGHT  = (230,235,240)
ACCENT_GOLD = (255,210,0)

SPEED_KEYS = {pygame.K_1: Speed.SLOW, pygame.K_2: Speed.MEDIUM, pygame.K_3: Speed.FAST}
MODE_KEYS  = {pygame.K_w: "wall", pygame.K_s: "start", pygame.K_e: "end"}


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
        hi = pygame.Surface((self.rect.width, 18), pygame.SRCALPHA)
        pygame.draw.rect(hi, (255,255,255,20), hi.get_rect(), border_radius=10)
        base.blit(hi, (0,0))
        screen.blit(base, self.rect.topleft)

        if self.active and self.togglable:
            pygame.draw.rect(screen, border_active, self.rect, width=2, border_radius=10)

        fg = (235,238,242) if self.enabled else (120,124,132)
        text = font.render(self.label, True, fg)
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
    def __init__(self, grid: GridModel, speed: Speed = Speed.MEDIUM,
                 config: Optional[SchedulerConfig] = None):
        pygame.init()

        self.grid = grid
        self.speed = speed
        self.edit_mode = "wall"
        self.cell_size = self._auto_cell_size(grid)
        self.font_small = pygame.font.Font(FONT_NAME, 14)
        self.font = pygame.font.Font(FONT_NAME, 18)
        self.font_big = pygame.font.Font(FONT_NAME, 22)

        grid_px_w = GRID_MARGIN*2 + grid.cols * self.cell_size
        grid_px_h = GRID_MARGIN*2 + grid.rows * self.cell_size
        win_w = grid_px_w + PANEL_W
        win_h = max(grid_px_h, 620)

        self.screen = pygame.display.set_mode((win_w, win_h), pygame.RESIZABLE)
        pygame.display.set_caption("Dijkstra's Algorithm Visualizer")

        self._buttons: List[UIButton] = []
        self._layout(win_w, win_h)

        # overlays fed by the scheduler thread through the queue
        self._events: "queue.Queue[tuple]" = queue.Queue()
        self.visited: set = set()
        self.path: List[Cell] = []
        self.final_stats = RunStats()

        self.scheduler = AnimationScheduler(
            on_visited=lambda rec: self._events.put(("visited", rec)),
            on_path_step=lambda prefix: self._events.put(("path", prefix)),
            on_finished=lambda stats, state: self._events.put(("finished", stats, state)),
            config=config or SchedulerConfig.from_env(),
        )

        self._drawing = False
        self._paint_value = True   # drag adds walls (True) or erases them (False)
        self.clock = pygame.time.Clock()

    # ---------- layout ----------
    def _layout(self, win_w: int, win_h: int):
        """Compute integer cell_size that fits window and center the grid."""
        avail_w = max(1, win_w - PANEL_W - 2 * GRID_MARGIN)
        avail_h = max(1, win_h - 2 * GRID_MARGIN)

        cs_by_w = avail_w // self.grid.cols
        cs_by_h = avail_h // self.grid.rows
        self.cell_size = int(max(8, min(cs_by_w, cs_by_h)))

        grid_plate_w = self.grid.cols * self.cell_size + 2 * GRID_MARGIN
        grid_plate_h = self.grid.rows * self.cell_size + 2 * GRID_MARGIN

        left_x = max(0, (win_w - (grid_plate_w + PANEL_W)) // 2)
        top_y  = max(0, (win_h - grid_plate_h) // 2)

        self.canvas_rect = pygame.Rect(left_x, top_y, grid_plate_w, grid_plate_h)
        self._grid_origin = (self.canvas_rect.x + GRID_MARGIN,
                             self.canvas_rect.y + GRID_MARGIN)
        self._right_band = pygame.Rect(self.canvas_rect.right, 0,
                                       max(PANEL_W, win_w - self.canvas_rect.right),
                                       win_h)
        self._build_buttons()

    def _auto_cell_size(self, grid: GridModel) -> int:
        target_h = 720 - GRID_MARGIN*2
        return max(14, min(CELL_SIZE_DEFAULT, target_h // grid.rows))

    def _cell_at(self, pos: Tuple[int, int]) -> Optional[Cell]:
        ox, oy = self._grid_origin
        col = (pos[0] - ox) // self.cell_size
        row = (pos[1] - oy) // self.cell_size
        if pos[0] < ox or pos[1] < oy:
            return None
        c = (row, col)
        return c if self.grid.in_bounds(c) else None

    # ---------- main loop ----------
    def run(self):
        while True:
            self._handle_events()
            self._drain_run_events()
            self._refresh_active_states()
            self._draw()
            self.clock.tick(60)

    def _drain_run_events(self):
        while True:
            try:
                msg = self._events.get_nowait()
            except queue.Empty:
                return
            kind = msg[0]
            if kind == "visited":
                self.visited.add(msg[1].cell)
            elif kind == "path":
                self.path = msg[1]
            elif kind == "finished":
                self.final_stats = msg[1]

    # ---------- run control ----------
    def _start_run(self, paused: bool = False):
        self._clear_overlays()
        try:
            self.scheduler.start(self.grid, self.speed, paused=paused)
        except (ConcurrentRunRejected, ConfigurationError) as ex:
            print(f"Cannot start: {ex}")

    def _toggle_run(self):
        if self.scheduler.is_active:
            self.scheduler.toggle_pause()
        else:
            self._start_run()

    def _step_once(self):
        if self.scheduler.is_active:
            self.scheduler.step_once()
        else:
            self._start_run(paused=True)

    def _reset(self):
        self.scheduler.reset()
        self._clear_overlays()

    def _clear_overlays(self):
        while True:
            try:
                self._events.get_nowait()
            except queue.Empty:
                break
        self.visited.clear()
        self.path = []
        self.final_stats = RunStats()

    def _set_speed(self, speed: Speed):
        self.speed = speed  # picked up by the next run

    def _set_mode(self, mode: str):
        self.edit_mode = mode

    # ---------- editing ----------
    def _edit_locked(self) -> bool:
        return self.scheduler.is_active

    def _edit(self, grid: GridModel):
        if grid is self.grid:
            return
        if self.scheduler.state.is_terminal:
            self._reset()
        self.grid = grid

    def _edit_cell(self, cell: Cell, first: bool):
        if self.edit_mode == "wall":
            if first:
                self._paint_value = not self.grid.is_barrier(*cell)
            if self.grid.is_barrier(*cell) != self._paint_value:
                self._edit(self.grid.with_barriers([cell], present=self._paint_value))
        elif self.edit_mode == "start":
            self._edit(self.grid.with_start(cell))
        elif self.edit_mode == "end":
            self._edit(self.grid.with_end(cell))

    def _clear_walls(self):
        if not self._edit_locked():
            self._edit(self.grid.cleared())

    # ---------- resizer ----------
    def _apply_resize(self, req_w: int, req_h: int):
        new_w = max(640, req_w)
        new_h = max(480, req_h)
        self.screen = pygame.display.set_mode((new_w, new_h), pygame.RESIZABLE)
        self._layout(new_w, new_h)

    def _quit(self):
        self.scheduler.cancel()
        pygame.quit(); sys.exit(0)

    def _handle_events(self):
        for e in pygame.event.get():
            if e.type == pygame.QUIT:
                self._quit()
            elif e.type == pygame.KEYDOWN:
                if e.key in (pygame.K_ESCAPE, pygame.K_q):
                    self._quit()
                elif e.key == pygame.K_SPACE:
                    self._toggle_run()
                elif e.key == pygame.K_n:
                    self._step_once()
                elif e.key == pygame.K_r:
                    self._reset()
                elif e.key == pygame.K_c:
                    self._clear_walls()
                elif e.key in SPEED_KEYS:
                    self._set_speed(SPEED_KEYS[e.key])
                elif e.key in MODE_KEYS:
                    self._set_mode(MODE_KEYS[e.key])
            elif e.type == pygame.VIDEORESIZE:
                self._apply_resize(e.w, e.h)
            elif e.type == pygame.MOUSEBUTTONUP and e.button == 1:
                self._drawing = False
            elif e.type in (pygame.MOUSEMOTION, pygame.MOUSEBUTTONDOWN):
                consumed = False
                for b in self._buttons:
                    consumed = b.handle_mouse(e) or consumed
                if consumed or self._edit_locked():
                    continue
                cell = self._cell_at(e.pos)
                if cell is None:
                    continue
                if e.type == pygame.MOUSEBUTTONDOWN and e.button == 1:
                    self._drawing = True
                    self._edit_cell(cell, first=True)
                elif e.type == pygame.MOUSEMOTION and self._drawing and self.edit_mode == "wall":
                    self._edit_cell(cell, first=False)

    # ---------- drawing ----------
    def _draw(self):
        self._draw_backdrop()
        self._draw_grid()
        self._draw_metrics_and_buttons()
        pygame.display.flip()

    def _draw_backdrop(self):
        w, h = self.screen.get_size()
        top = (30, 27, 75); bot = (80, 28, 80)
        for y in range(h):
            t = y / max(1, h-1)
            c = (
                int(top[0] + (bot[0]-top[0]) * t),
                int(top[1] + (bot[1]-top[1]) * t),
                int(top[2] + (bot[2]-top[2]) * t),
            )
            pygame.draw.line(self.screen, c, (0, y), (w, y))

    def _draw_grid(self):
        cs = self.cell_size
        ox, oy = self._grid_origin
        visited_tile = pygame.Surface((cs, cs), pygame.SRCALPHA)
        visited_tile.fill(VISITED_A)
        on_path = set(self.path)

        for row in range(self.grid.rows):
            for col in range(self.grid.cols):
                rect = pygame.Rect(ox + col*cs, oy + row*cs, cs, cs)
                c = (row, col)
                if c == self.grid.start:
                    pygame.draw.rect(self.screen, START_GREEN, rect)
                elif c == self.grid.end:
                    pygame.draw.rect(self.screen, END_RED, rect)
                elif self.grid.is_barrier(row, col):
                    pygame.draw.rect(self.screen, WALL_DARK, rect)
                elif c in on_path:
                    pygame.draw.rect(self.screen, PATH_GOLD, rect)
                else:
                    pygame.draw.rect(self.screen, WHITE, rect)
                    if c in self.visited:
                        self.screen.blit(visited_tile, rect.topleft)
                pygame.draw.rect(self.screen, GRID_LINE, rect, 1)

        self._draw_badge(self.grid.start, "S")
        self._draw_badge(self.grid.end, "E")

    def _draw_badge(self, cell: Cell, label: str):
        cs = self.cell_size
        ox, oy = self._grid_origin
        row, col = cell
        center = (ox + col*cs + cs//2, oy + row*cs + cs//2)
        txt = self.font_small.render(label, True, WHITE)
        self.screen.blit(txt, txt.get_rect(center=center))

    # ---------- buttons + metrics ----------
    def _build_buttons(self):
        self._buttons.clear()
        rb = self._right_band
        x = rb.x + 16
        y = rb.y + 230  # leaves space for metrics card above
        w = max(160, rb.width - 32)
        h = 36
        gap = 8
        third = (w - 16) // 3

        def add(label, cb, *, togglable=False, store_as: Optional[str] = None):
            btn = UIButton(label, pygame.Rect(x, y, w, h), cb, togglable=togglable)
            self._buttons.append(btn)
            if store_as:
                setattr(self, store_as, btn)

        def add_row(items):
            for i, (label, cb, store_as) in enumerate(items):
                btn = UIButton(label, pygame.Rect(x + i * (third + 8), y, third, h), cb, togglable=True)
                self._buttons.append(btn)
                setattr(self, store_as, btn)

        add("Start / Pause", self._toggle_run, togglable=True, store_as="btn_run"); y += h + gap
        add("Step Once", self._step_once); y += h + gap
        add("Reset", self._reset); y += h + gap
        add("Clear Walls", self._clear_walls, store_as="btn_clear"); y += h + gap + 6

        add_row([("Slow",   lambda: self._set_speed(Speed.SLOW),   "btn_slow"),
                 ("Medium", lambda: self._set_speed(Speed.MEDIUM), "btn_medium"),
                 ("Fast",   lambda: self._set_speed(Speed.FAST),   "btn_fast")]); y += h + gap
        add_row([("Wall",  lambda: self._set_mode("wall"),  "btn_wall"),
                 ("Start", lambda: self._set_mode("start"), "btn_start"),
                 ("End",   lambda: self._set_mode("end"),   "btn_end")])

        self._refresh_active_states()

    def _refresh_active_states(self):
        if not hasattr(self, "scheduler"):
            return
        state = self.scheduler.state
        self.btn_run.set_active(state in (RunState.RUNNING, RunState.PATH_REPLAY))
        self.btn_run.label = "Resume" if state == RunState.PAUSED else \
                             "Pause" if state.is_active else "Start"
        self.btn_clear.enabled = not state.is_active

        self.btn_slow.set_active(self.speed == Speed.SLOW)
        self.btn_medium.set_active(self.speed == Speed.MEDIUM)
        self.btn_fast.set_active(self.speed == Speed.FAST)

        for mode in ("wall", "start", "end"):
            btn = getattr(self, f"btn_{mode}")
            btn.set_active(self.edit_mode == mode)
            btn.enabled = not state.is_active

    def _draw_metrics_and_buttons(self):
        rb = self._right_band

        card_h = 210
        card = pygame.Surface((rb.width - 20, card_h), pygame.SRCALPHA)
        pygame.draw.rect(card, CARD_BG, card.get_rect(), border_radius=14)
        hi = pygame.Surface((card.get_width(), 24), pygame.SRCALPHA)
        pygame.draw.rect(hi, CARD_HI, hi.get_rect(), border_radius=14)
        card.blit(hi, (0,0))
        self.screen.blit(card, (rb.x + 10, rb.y + 10))

        x0 = rb.x + 24
        y0 = rb.y + 18

        def line(text, big=False, color=TEXT_LIGHT):
            nonlocal y0
            f = self.font_big if big else self.font
            surf = f.render(text, True, color)
            self.screen.blit(surf, (x0, y0))
            y0 += surf.get_height() + 6

        state = self.scheduler.state
        stats = self.scheduler.stats if state.is_active else self.final_stats

        line("Stats", big=True, color=ACCENT_GOLD)
        line(f"Path Length: {stats.path_length}")
        line(f"Nodes Visited: {stats.nodes_visited}")
        line(f"Time: {stats.elapsed_ms} ms")
        line("-" * 26)
        line(f"State: {state.value}")
        line(f"Speed: {self.speed.value}")
        line(f"Edit: {self.edit_mode}")

        for b in self._buttons:
            b.draw(self.screen, self.font)


# ---------- main ----------
def main():
    logging.basicConfig(level=resolve_log_level(),
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    try:
        speed = resolve_speed()
        grid = load_map(resolve_map())
    except (OSError, ValueError) as ex:
        print(f"Failed to start viewer: {ex}")
        sys.exit(1)
    Viewer(grid, speed).run()

if __name__ == "__main__":
    main()

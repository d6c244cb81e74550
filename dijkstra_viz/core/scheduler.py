# dijkstra_viz/core/scheduler.py
#!/usr/bin/env python3
"""
Animation scheduler: paces DijkstraSearch.step() for display.

Per run:
    Idle -> Running -> {Paused <-> Running} -> PathReplay -> Completed
                                            -> Exhausted
                                            -> Cancelled
The only suspension points are right after a visited cell is emitted and
right after a path prefix is emitted. Pause, resume, step_once and cancel are
sampled there; a step in progress always completes.

Observers:
- on_visited(VisitedRecord)
- on_path_step(List[Cell])        growing prefix, start first
- on_finished(RunStats, RunState)

start() runs the animation on a daemon thread; run() drives it on the caller's
thread and returns the final RunStats.
"""

from dataclasses import replace
from typing import Callable, List, Optional
import logging
import threading
import time

from dijkstra_viz.core.config import SchedulerConfig
from dijkstra_viz.core.dijkstra import DijkstraSearch
from dijkstra_viz.core.errors import ConcurrentRunRejected, ConfigurationError
from dijkstra_viz.core.grid import GridModel
from dijkstra_viz.core.reconstruct import reconstruct
from dijkstra_viz.core.types import Cell, RunState, RunStats, Speed, VisitedRecord

logger = logging.getLogger(__name__)


class RunContext:
    """Flags for one run. Never reused: every start() gets a new context."""

    def __init__(self, run_id: int, speed: Speed, paused: bool = False):
        self.run_id = run_id
        self.speed = speed
        self.phase = RunState.RUNNING
        self.started_at = time.monotonic()
        self.finished_at: Optional[float] = None
        self._cond = threading.Condition()
        self._paused = paused
        self._cancelled = False
        self._step_budget = 0

    # ---------- flags ----------
    @property
    def paused(self) -> bool:
        return self._paused

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    @property
    def running(self) -> bool:
        return self.phase.is_active

    def pause(self) -> None:
        with self._cond:
            if not self._cancelled:
                self._paused = True
            self._cond.notify_all()

    def resume(self) -> None:
        with self._cond:
            self._paused = False
            self._step_budget = 0
            self._cond.notify_all()

    def step_once(self) -> None:
        with self._cond:
            if self._cancelled:
                return
            self._paused = True
            self._step_budget += 1
            self._cond.notify_all()

    def cancel(self) -> None:
        with self._cond:
            self._cancelled = True
            self._cond.notify_all()

    # ---------- suspension ----------
    def suspend(self, seconds: float) -> bool:
        """Sleep one step delay, then hold while paused. False once cancelled."""
        with self._cond:
            if self._cancelled:
                return False
            deadline = time.monotonic() + seconds
            while not self._cancelled:
                remaining = deadline - time.monotonic()
                if remaining <= 0:
                    break
                self._cond.wait(remaining)
            while self._paused and not self._cancelled:
                if self._step_budget:
                    self._step_budget -= 1
                    break
                self._cond.wait()
            return not self._cancelled

    def elapsed_ms(self) -> int:
        end = self.finished_at if self.finished_at is not None else time.monotonic()
        return int((end - self.started_at) * 1000)


class AnimationScheduler:
    def __init__(self,
                 on_visited: Optional[Callable[[VisitedRecord], None]] = None,
                 on_path_step: Optional[Callable[[List[Cell]], None]] = None,
                 on_finished: Optional[Callable[[RunStats, RunState], None]] = None,
                 config: Optional[SchedulerConfig] = None,
                 search_factory=DijkstraSearch):
        self.on_visited = on_visited
        self.on_path_step = on_path_step
        self.on_finished = on_finished
        self.config = config or SchedulerConfig()
        self._search_factory = search_factory

        self._lock = threading.Lock()
        self._ctx: Optional[RunContext] = None
        self._thread: Optional[threading.Thread] = None
        self._run_seq = 0
        self._final_state = RunState.IDLE
        self._final_stats = RunStats()

        self.visited: List[VisitedRecord] = []
        self.path: List[Cell] = []

    # ---------- queries ----------
    @property
    def state(self) -> RunState:
        ctx = self._ctx
        if ctx is None:
            return self._final_state
        if ctx.phase.is_active and ctx.paused:
            return RunState.PAUSED
        return ctx.phase

    @property
    def is_active(self) -> bool:
        return self.state.is_active

    @property
    def stats(self) -> RunStats:
        """Live snapshot while a run is going, final stats afterwards."""
        ctx = self._ctx
        if ctx is None or not ctx.phase.is_active:
            return self._final_stats
        return RunStats(path_length=len(self.path), nodes_visited=len(self.visited),
                        elapsed_ms=ctx.elapsed_ms())

    # ---------- control surface ----------
    def start(self, grid: GridModel, speed=Speed.MEDIUM, start: Optional[Cell] = None,
              end: Optional[Cell] = None, paused: bool = False) -> RunContext:
        """Validate and launch a run on a background thread."""
        ctx, search = self._begin(grid, speed, start, end, paused)
        self._thread = threading.Thread(target=self._drive_safely, args=(ctx, search),
                                        name=f"dijkstra-run-{ctx.run_id}", daemon=True)
        self._thread.start()
        return ctx

    def run(self, grid: GridModel, speed=Speed.MEDIUM, start: Optional[Cell] = None,
            end: Optional[Cell] = None, paused: bool = False) -> RunStats:
        """Same as start() but blocks the caller until the run ends. Observer errors propagate."""
        ctx, search = self._begin(grid, speed, start, end, paused)
        try:
            self._drive(ctx, search)
        except BaseException:
            self._finish(ctx, RunState.CANCELLED, notify=False)
            raise
        return self._final_stats

    def pause(self) -> None:
        ctx = self._ctx
        if ctx is not None and ctx.running:
            ctx.pause()

    def resume(self) -> None:
        ctx = self._ctx
        if ctx is not None and ctx.running:
            ctx.resume()

    def toggle_pause(self) -> None:
        ctx = self._ctx
        if ctx is None or not ctx.running:
            return
        if ctx.paused:
            ctx.resume()
        else:
            ctx.pause()

    def step_once(self) -> None:
        """Let exactly one more step through, leaving the run paused."""
        ctx = self._ctx
        if ctx is not None and ctx.running:
            ctx.step_once()

    def cancel(self) -> None:
        ctx = self._ctx
        if ctx is not None and ctx.running:
            logger.debug("cancelling run %d", ctx.run_id)
            ctx.cancel()

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Join the background run. True if it has finished."""
        t = self._thread
        if t is None:
            return True
        if t is not threading.current_thread():
            t.join(timeout)
        return not t.is_alive()

    def reset(self) -> None:
        """Cancel whatever is going on and forget every record; back to Idle."""
        self.cancel()
        self.wait(timeout=1.0)
        with self._lock:
            self._ctx = None
            self._thread = None
            self._final_state = RunState.IDLE
            self._final_stats = RunStats()
            self.visited = []
            self.path = []

    # ---------- internals ----------
    def _begin(self, grid, speed, start, end, paused):
        if not isinstance(grid, GridModel):
            raise ConfigurationError(f"expected a GridModel, got {type(grid).__name__}")
        if start is not None or end is not None:
            grid = replace(grid, start=grid.start if start is None else start,
                           end=grid.end if end is None else end)
        speed = Speed.parse(speed)

        with self._lock:
            if self._ctx is not None and self._ctx.running:
                logger.debug("start rejected: run %d is still %s", self._ctx.run_id, self.state.value)
                raise ConcurrentRunRejected(f"run {self._ctx.run_id} is still {self.state.value}")
            self._run_seq += 1
            ctx = RunContext(self._run_seq, speed, paused=paused)
            search = self._search_factory()
            search.init(grid)
            self._ctx = ctx
            self.visited = []
            self.path = []
            self._final_state = RunState.RUNNING
            self._final_stats = RunStats()

        logger.debug("run %d started: %dx%d grid, %s -> %s, speed=%s",
                     ctx.run_id, grid.rows, grid.cols, grid.start, grid.end, speed.value)
        return ctx, search

    def _drive_safely(self, ctx: RunContext, search: DijkstraSearch) -> None:
        try:
            self._drive(ctx, search)
        except Exception:
            logger.exception("run %d aborted by an observer error", ctx.run_id)
            self._finish(ctx, RunState.CANCELLED)

    def _drive(self, ctx: RunContext, search: DijkstraSearch) -> None:
        step_delay = self.config.step_delay(ctx.speed)

        # phase 1: visitation
        while True:
            res = search.step()
            if res.record is not None:
                if ctx.cancelled:
                    break
                self.visited.append(res.record)
                if self.on_visited:
                    self.on_visited(res.record)
            if search.finished:
                break
            if not ctx.suspend(step_delay):
                break

        if ctx.cancelled:
            self._finish(ctx, RunState.CANCELLED)
            return

        path = reconstruct(search.state, search.grid.end) if search.done else None
        if path is None:
            self._finish(ctx, RunState.EXHAUSTED)
            return

        # phase 2: path replay
        ctx.phase = RunState.PATH_REPLAY
        replay_delay = self.config.replay_delay(ctx.speed)
        for i in range(len(path)):
            if ctx.cancelled:
                break
            self.path = path[:i + 1]
            if self.on_path_step:
                self.on_path_step(list(self.path))
            if i < len(path) - 1 and not ctx.suspend(replay_delay):
                break

        self._finish(ctx, RunState.CANCELLED if ctx.cancelled else RunState.COMPLETED)

    def _finish(self, ctx: RunContext, final: RunState, notify: bool = True) -> None:
        with self._lock:
            if ctx.phase.is_terminal:
                return
            ctx.finished_at = time.monotonic()
            ctx.phase = final
            current = self._ctx is ctx
            stats = RunStats(elapsed_ms=ctx.elapsed_ms())
            if current:
                stats = replace(stats, path_length=len(self.path), nodes_visited=len(self.visited))
                self._final_state = final
                self._final_stats = stats
        logger.debug("run %d finished: %s %s", ctx.run_id, final.value, stats)
        # a run dropped by reset() must not report into whatever ran after it
        if notify and current and self.on_finished:
            self.on_finished(stats, final)

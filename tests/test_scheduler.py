import threading
import time

import pytest

from dijkstra_viz.core.config import SchedulerConfig
from dijkstra_viz.core.dijkstra import PathfindingEngine
from dijkstra_viz.core.errors import ConcurrentRunRejected, ConfigurationError
from dijkstra_viz.core.grid import GridModel
from dijkstra_viz.core.scheduler import AnimationScheduler, RunContext
from dijkstra_viz.core.types import RunState, RunStats, Speed

from conftest import wait_until


class Recorder:
    def __init__(self):
        self.visited = []
        self.paths = []
        self.finished = []
        self.done = threading.Event()

    def on_visited(self, rec):
        self.visited.append(rec)

    def on_path_step(self, prefix):
        self.paths.append(prefix)

    def on_finished(self, stats, state):
        self.finished.append((stats, state))
        self.done.set()

    def scheduler(self, config):
        return AnimationScheduler(self.on_visited, self.on_path_step, self.on_finished, config=config)


def test_completed_run_emits_visits_then_path(open_5x5, zero_delay):
    rec = Recorder()
    sched = rec.scheduler(zero_delay)
    stats = sched.run(open_5x5, Speed.FAST)

    expected, _ = PathfindingEngine().run(open_5x5)
    assert rec.visited == expected
    assert [len(p) for p in rec.paths] == list(range(1, 10))
    full = rec.paths[-1]
    assert full[0] == (0, 0) and full[-1] == (4, 4)
    assert all(p == full[:len(p)] for p in rec.paths)

    assert stats.path_length == 9
    assert stats.nodes_visited == 25
    assert sched.state == RunState.COMPLETED
    assert rec.finished == [(stats, RunState.COMPLETED)]
    assert sched.path == full


def test_unreachable_run_is_exhausted(walled_5x5, zero_delay):
    rec = Recorder()
    sched = rec.scheduler(zero_delay)
    stats = sched.run(walled_5x5)
    assert sched.state == RunState.EXHAUSTED
    assert stats.path_length == 0
    assert stats.nodes_visited == 10
    assert rec.paths == []


def test_start_equals_end_completes_immediately(zero_delay):
    rec = Recorder()
    g = GridModel(rows=5, cols=5, start=(2, 2), end=(2, 2))
    stats = rec.scheduler(zero_delay).run(g)
    assert stats.path_length == 1
    assert stats.nodes_visited == 1
    assert rec.paths == [[(2, 2)]]


def test_cancel_after_three_records(open_5x5, zero_delay):
    rec = Recorder()
    sched = rec.scheduler(zero_delay)

    def on_visited(r):
        rec.on_visited(r)
        if len(rec.visited) == 3:
            sched.cancel()

    sched.on_visited = on_visited
    stats = sched.run(open_5x5)
    assert len(rec.visited) == 3
    assert rec.paths == []
    assert sched.state == RunState.CANCELLED
    assert stats.nodes_visited == 3
    assert stats.path_length == 0


def test_cancel_during_path_replay_stops_reveal(open_5x5, zero_delay):
    rec = Recorder()
    sched = rec.scheduler(zero_delay)

    def on_path_step(prefix):
        rec.on_path_step(prefix)
        if len(prefix) == 4:
            sched.cancel()

    sched.on_path_step = on_path_step
    stats = sched.run(open_5x5)
    assert [len(p) for p in rec.paths] == [1, 2, 3, 4]
    assert sched.state == RunState.CANCELLED
    assert stats.nodes_visited == 25


def test_pause_holds_and_resume_continues_without_gaps(open_5x5, zero_delay):
    rec = Recorder()
    sched = rec.scheduler(zero_delay)
    sched.start(open_5x5, Speed.FAST, paused=True)

    assert wait_until(lambda: len(rec.visited) == 1)
    time.sleep(0.05)
    assert len(rec.visited) == 1
    assert sched.state == RunState.PAUSED

    sched.step_once()
    assert wait_until(lambda: len(rec.visited) == 2)
    time.sleep(0.05)
    assert len(rec.visited) == 2
    assert sched.state == RunState.PAUSED

    sched.resume()
    assert rec.done.wait(2.0)
    assert sched.wait(2.0)
    expected, _ = PathfindingEngine().run(open_5x5)
    assert rec.visited == expected
    assert sched.state == RunState.COMPLETED


def test_toggle_pause_mid_run(open_5x5):
    rec = Recorder()
    slow = SchedulerConfig(delays_ms={s: 20 for s in Speed})
    sched = rec.scheduler(slow)
    sched.start(open_5x5, Speed.SLOW)

    assert wait_until(lambda: len(rec.visited) >= 2)
    sched.toggle_pause()
    assert sched.state == RunState.PAUSED
    time.sleep(0.05)            # let any in-flight step land
    held = len(rec.visited)
    time.sleep(0.1)
    assert len(rec.visited) == held

    sched.toggle_pause()
    assert rec.done.wait(5.0)
    assert [r.order for r in rec.visited] == list(range(25))


def test_cancel_while_paused(open_5x5, zero_delay):
    rec = Recorder()
    sched = rec.scheduler(zero_delay)
    sched.start(open_5x5, paused=True)
    assert wait_until(lambda: len(rec.visited) == 1)

    sched.cancel()
    sched.resume()              # racing resume still ends cancelled
    assert rec.done.wait(2.0)
    assert sched.state == RunState.CANCELLED
    assert len(rec.visited) == 1
    assert rec.paths == []
    assert rec.finished[0][1] == RunState.CANCELLED


def test_second_start_is_rejected_while_active(open_5x5, zero_delay):
    rec = Recorder()
    sched = rec.scheduler(zero_delay)
    first = sched.start(open_5x5, paused=True)
    assert wait_until(lambda: len(rec.visited) == 1)

    with pytest.raises(ConcurrentRunRejected):
        sched.start(open_5x5)
    with pytest.raises(ConcurrentRunRejected):
        sched.run(open_5x5)

    assert sched.state == RunState.PAUSED
    sched.resume()
    assert sched.wait(2.0)
    assert sched.state == RunState.COMPLETED
    assert first.phase == RunState.COMPLETED

    # a finished run no longer blocks a new one
    sched.run(open_5x5)
    assert sched.state == RunState.COMPLETED


def test_invalid_endpoints_fail_before_running(open_5x5, zero_delay):
    rec = Recorder()
    sched = rec.scheduler(zero_delay)
    with pytest.raises(ConfigurationError):
        sched.start(open_5x5, end=(5, 5))
    with pytest.raises(ConfigurationError):
        sched.run(open_5x5.with_barrier_toggled((1, 1)), start=(1, 1))
    with pytest.raises(ConfigurationError):
        sched.run({"rows": 5})
    with pytest.raises(ValueError):
        sched.run(open_5x5, speed="warp")
    assert sched.state == RunState.IDLE
    assert rec.visited == []


def test_start_and_end_overrides(open_5x5, zero_delay):
    rec = Recorder()
    stats = rec.scheduler(zero_delay).run(open_5x5, start=(4, 0), end=(4, 2))
    assert stats.path_length == 3
    assert rec.paths[-1] == [(4, 0), (4, 1), (4, 2)]


def test_reset_then_rerun_is_deterministic(zero_delay):
    g = GridModel(rows=6, cols=7, start=(0, 0), end=(5, 6),
                  barriers=frozenset({(1, 1), (2, 2), (3, 3), (1, 4), (4, 5)}))
    rec = Recorder()
    sched = rec.scheduler(zero_delay)
    sched.run(g)
    first_visits, first_path = list(sched.visited), list(sched.path)

    sched.reset()
    assert sched.state == RunState.IDLE
    assert sched.visited == [] and sched.path == []
    assert sched.stats == RunStats()

    sched.run(g)
    assert sched.visited == first_visits
    assert sched.path == first_path


def test_reset_cancels_background_run(open_5x5, zero_delay):
    rec = Recorder()
    sched = rec.scheduler(zero_delay)
    sched.start(open_5x5, paused=True)
    assert wait_until(lambda: len(rec.visited) == 1)
    sched.reset()
    assert sched.state == RunState.IDLE
    assert rec.done.is_set()
    assert rec.finished[0][1] == RunState.CANCELLED


def test_controls_are_noops_when_idle(zero_delay):
    sched = AnimationScheduler(config=zero_delay)
    sched.cancel()
    sched.cancel()
    sched.pause()
    sched.resume()
    sched.toggle_pause()
    sched.step_once()
    assert sched.wait(0.1)
    assert sched.state == RunState.IDLE


def test_observer_error_propagates_from_sync_run(open_5x5, zero_delay):
    def boom(_rec):
        raise RuntimeError("observer failed")

    sched = AnimationScheduler(on_visited=boom, config=zero_delay)
    with pytest.raises(RuntimeError):
        sched.run(open_5x5)
    assert sched.state == RunState.CANCELLED
    sched.on_visited = None
    assert sched.run(open_5x5).path_length == 9


def test_observer_error_in_background_run_ends_cancelled(open_5x5, zero_delay):
    done = threading.Event()
    finished = []

    def boom(_rec):
        raise RuntimeError("observer failed")

    def on_finished(stats, state):
        finished.append(state)
        done.set()

    sched = AnimationScheduler(on_visited=boom, on_finished=on_finished, config=zero_delay)
    sched.start(open_5x5)
    assert done.wait(2.0)
    assert finished == [RunState.CANCELLED]


def test_live_stats_while_paused(open_5x5, zero_delay):
    rec = Recorder()
    sched = rec.scheduler(zero_delay)
    sched.start(open_5x5, paused=True)
    assert wait_until(lambda: len(rec.visited) == 1)
    live = sched.stats
    assert live.nodes_visited == 1
    assert live.path_length == 0
    sched.cancel()
    assert sched.wait(2.0)


def test_replay_uses_slower_pace():
    cfg = SchedulerConfig(delays_ms={s: 10 for s in Speed}, replay_factor=3)
    assert cfg.step_delay(Speed.FAST) == pytest.approx(0.01)
    assert cfg.replay_delay(Speed.FAST) == pytest.approx(0.03)


def test_run_context_suspend_respects_cancel():
    ctx = RunContext(1, Speed.FAST)
    assert ctx.suspend(0)
    ctx.cancel()
    assert not ctx.suspend(0)
    ctx.resume()
    assert not ctx.suspend(0)


def test_run_context_cancel_wakes_a_long_sleep():
    ctx = RunContext(1, Speed.SLOW)
    result = []
    t = threading.Thread(target=lambda: result.append(ctx.suspend(30)))
    t.start()
    time.sleep(0.05)
    ctx.cancel()
    t.join(2.0)
    assert not t.is_alive()
    assert result == [False]


def test_run_outliving_reset_does_not_report_into_the_next_run(open_5x5, zero_delay):
    rec = Recorder()
    sched = rec.scheduler(zero_delay)
    gate = threading.Event()
    entered = threading.Event()

    def on_visited(r):
        if not entered.is_set():
            entered.set()
            gate.wait(5.0)        # observer stuck longer than reset() waits
        rec.on_visited(r)

    sched.on_visited = on_visited
    sched.start(open_5x5)
    old_worker = sched._thread
    assert entered.wait(2.0)

    sched.reset()
    assert old_worker.is_alive()
    assert sched.state == RunState.IDLE

    stats = sched.run(open_5x5)
    gate.set()
    old_worker.join(2.0)
    assert not old_worker.is_alive()

    assert [state for _, state in rec.finished] == [RunState.COMPLETED]
    assert rec.finished[0][0] == stats
    assert sched.state == RunState.COMPLETED
    assert sched.stats == stats

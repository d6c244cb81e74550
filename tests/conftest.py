import time

import pytest

from dijkstra_viz.core.config import SchedulerConfig
from dijkstra_viz.core.grid import GridModel
from dijkstra_viz.core.types import Speed


@pytest.fixture
def open_5x5():
    return GridModel(rows=5, cols=5, start=(0, 0), end=(4, 4))


@pytest.fixture
def walled_5x5():
    # full-height wall in column 2, no gap
    return GridModel(rows=5, cols=5, start=(2, 0), end=(2, 4),
                     barriers=frozenset((r, 2) for r in range(5)))


@pytest.fixture
def zero_delay():
    return SchedulerConfig(delays_ms={s: 0 for s in Speed})


def wait_until(predicate, timeout=2.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.005)
    return predicate()

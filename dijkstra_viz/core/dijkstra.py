# dijkstra_viz/core/dijkstra.py
#!/usr/bin/env python3
"""
Dijkstra (uniform cost, 4-connected) -- one finalized cell per step() for animation.

Algorithm API used by the scheduler and the viewer:
- init(grid) - reset() - step() -> StepResult

Working state is an arena indexed row-major; `previous` holds coordinates,
never references into the caller's grid.

Tie-breaking in the PQ: (distance, row-major index). Equal distances are
finalized in row-major scan order.
"""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple
import heapq
import logging
from math import inf

from dijkstra_viz.core.grid import GridModel
from dijkstra_viz.core.types import Cell, StepResult, VisitedRecord

logger = logging.getLogger(__name__)

EDGE_COST = 1


@dataclass
class SearchState:
    rows: int
    cols: int
    distance: List[float]
    visited: List[bool]
    previous: List[Optional[Cell]]

    @classmethod
    def fresh(cls, grid: GridModel) -> "SearchState":
        n = grid.rows * grid.cols
        state = cls(grid.rows, grid.cols, [inf] * n, [False] * n, [None] * n)
        state.distance[grid.index(grid.start)] = 0
        return state

    def _i(self, c: Cell) -> int:
        return c[0] * self.cols + c[1]

    def distance_of(self, c: Cell) -> float:
        return self.distance[self._i(c)]

    def is_visited(self, c: Cell) -> bool:
        return self.visited[self._i(c)]

    def previous_of(self, c: Cell) -> Optional[Cell]:
        return self.previous[self._i(c)]


@dataclass
class DijkstraSearch:
    name: str = "Dijkstra"

    grid: Optional[GridModel] = None
    state: Optional[SearchState] = None
    open_pq: List[Tuple[float, int]] = field(default_factory=list)   # (distance, row-major index)
    visited_order: List[VisitedRecord] = field(default_factory=list)
    done: bool = False
    no_path: bool = False

    # -------------------- lifecycle --------------------

    def init(self, grid: GridModel) -> None:
        """Bind to a grid. GridModel is frozen, so holding it is a private copy of the topology."""
        self.grid = grid
        self.reset()

    def reset(self) -> None:
        if self.grid is None:
            return
        self.state = SearchState.fresh(self.grid)
        self.open_pq.clear()
        self.visited_order.clear()
        self.done = False
        self.no_path = False
        heapq.heappush(self.open_pq, (0, self.grid.index(self.grid.start)))

    @property
    def finished(self) -> bool:
        return self.done or self.no_path

    # -------------------- stepping --------------------

    def _pop_min(self) -> Optional[int]:
        while self.open_pq:
            d, i = heapq.heappop(self.open_pq)
            if self.state.visited[i] or d != self.state.distance[i]:
                continue  # stale entry
            return i
        return None

    def step(self) -> StepResult:
        if self.grid is None:
            return StepResult(status="idle")
        if self.done:
            return StepResult(status="done")
        if self.no_path:
            return StepResult(status="no_path")

        i = self._pop_min()
        if i is None:
            # every remaining unvisited cell sits at infinite distance
            self.no_path = True
            logger.debug("%s exhausted after %d cells", self.name, len(self.visited_order))
            return StepResult(status="no_path")

        st = self.state
        u = divmod(i, self.grid.cols)
        st.visited[i] = True
        rec = VisitedRecord(u[0], u[1], len(self.visited_order))
        self.visited_order.append(rec)

        if u == self.grid.end:
            self.done = True
            logger.debug("%s reached %s after %d cells", self.name, u, len(self.visited_order))
            return StepResult(status="done", record=rec)

        alt = st.distance[i] + EDGE_COST
        for v in self.grid.neighbors(*u):
            if self.grid.is_barrier(*v):
                continue
            j = self.grid.index(v)
            if st.visited[j]:
                continue
            if alt < st.distance[j]:
                st.distance[j] = alt
                st.previous[j] = u
                heapq.heappush(self.open_pq, (alt, j))

        return StepResult(status="running", record=rec)


class PathfindingEngine:
    """Runs a whole search at once; the scheduler drives DijkstraSearch.step() instead."""

    def __init__(self, search_factory=DijkstraSearch):
        self._factory = search_factory

    def search(self, grid: GridModel) -> DijkstraSearch:
        s = self._factory()
        s.init(grid)
        return s

    def run(self, grid: GridModel) -> Tuple[List[VisitedRecord], SearchState]:
        s = self.search(grid)
        while not s.finished:
            s.step()
        return list(s.visited_order), s.state
